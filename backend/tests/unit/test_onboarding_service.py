"""Tests for OnboardingService and OnboardingRepository.

Runs against the PostgreSQL test database: record creation, transitions
persisted through the repository, completion timestamps, and errors.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from techformpro.core.errors import InvalidStateError, NotFoundError
from techformpro.models import User, UserOnboarding
from techformpro.repositories.onboarding_repository import OnboardingRepository
from techformpro.services.onboarding_service import OnboardingService
from techformpro.services.onboarding_steps import STEP_CATALOG, OnboardingStep


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    """Create a user for service tests."""
    user = User(email="learner@example.com", name="Learner")
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
def service(db_session: AsyncSession) -> OnboardingService:
    return OnboardingService(db_session)


# =============================================================================
# Repository
# =============================================================================


class TestOnboardingRepository:
    """Tests for OnboardingRepository."""

    async def test_get_returns_none_without_record(self, db_session, user):
        assert await OnboardingRepository.get_by_user_id(db_session, user.id) is None

    async def test_create_sets_defaults(self, db_session, user):
        record = await OnboardingRepository.create(db_session, user_id=user.id)

        assert record.current_step == "profile_completion"
        assert record.completed_steps == []
        assert record.skipped_steps == []
        assert record.is_completed is False
        assert record.completed_at is None
        assert record.created_at is not None

    async def test_as_state_drops_unknown_identifiers(self, db_session, user):
        """Identifiers no longer in the catalog are ignored when reading."""
        record = await OnboardingRepository.create(db_session, user_id=user.id)
        record.completed_steps = ["profile_completion", "retired_step"]
        await db_session.flush()

        state = record.as_state()

        assert state.completed_steps == {OnboardingStep.PROFILE_COMPLETION}

    async def test_as_state_unknown_current_step_resumes_first_incomplete(
        self, db_session, user
    ):
        """A retired current step resumes at the first step not yet completed."""
        record = await OnboardingRepository.create(db_session, user_id=user.id)
        record.current_step = "retired_step"
        record.completed_steps = ["profile_completion", "course_exploration"]
        await db_session.flush()

        state = record.as_state()

        assert state.current_step is OnboardingStep.SUBSCRIPTION_SELECTION
        assert state.is_completed is False

    async def test_as_state_unknown_current_step_with_all_completed(
        self, db_session, user
    ):
        record = await OnboardingRepository.create(db_session, user_id=user.id)
        record.current_step = "retired_step"
        record.completed_steps = [step.value for step in STEP_CATALOG]
        await db_session.flush()

        state = record.as_state()

        assert state.current_step is None
        assert state.is_completed is True


# =============================================================================
# Service
# =============================================================================


class TestOnboardingService:
    """Tests for OnboardingService."""

    async def test_start_creates_record(self, service, user):
        record = await service.start(user.id)

        assert record.user_id == user.id
        assert record.as_state().current_step is OnboardingStep.PROFILE_COMPLETION

    async def test_start_returns_existing_record(self, service, user):
        """A second start does not reset progress."""
        first = await service.start(user.id)
        await service.complete_step(user.id, OnboardingStep.PROFILE_COMPLETION)

        second = await service.start(user.id)

        assert second.id == first.id
        assert second.completed_steps == ["profile_completion"]

    async def test_complete_step_persists(self, db_session, service, user):
        await service.start(user.id)

        await service.complete_step(user.id, OnboardingStep.PROFILE_COMPLETION)

        stored = await OnboardingRepository.get_by_user_id(db_session, user.id)
        assert stored.current_step == "subscription_selection"
        assert stored.completed_steps == ["profile_completion"]

    async def test_skip_step_records_skip(self, service, user):
        await service.start(user.id)

        record = await service.skip_step(user.id, OnboardingStep.PROFILE_COMPLETION)

        assert record.completed_steps == []
        assert record.skipped_steps == ["profile_completion"]
        assert record.current_step == "subscription_selection"

    async def test_lists_are_stored_in_catalog_order(self, service, user):
        await service.start(user.id)
        await service.set_current_step(user.id, OnboardingStep.PLATFORM_TOUR)
        await service.skip_step(user.id, OnboardingStep.PLATFORM_TOUR)
        record = await service.complete(user.id)

        assert record.completed_steps == [step.value for step in STEP_CATALOG]

    async def test_complete_stamps_completed_at(self, service, user):
        await service.start(user.id)

        record = await service.complete(user.id)

        assert record.is_completed is True
        assert record.current_step == "completed"
        assert record.completed_at is not None

    async def test_completed_at_is_not_restamped(self, service, user):
        await service.start(user.id)
        first = (await service.complete(user.id)).completed_at

        record = await service.complete_step(user.id, OnboardingStep.PROFILE_COMPLETION)

        assert record.completed_at == first

    async def test_transition_without_record_raises_not_found(self, service, user):
        with pytest.raises(NotFoundError):
            await service.complete_step(user.id, OnboardingStep.PROFILE_COMPLETION)

    async def test_set_step_after_completion_raises(self, service, user):
        await service.start(user.id)
        await service.complete(user.id)

        with pytest.raises(InvalidStateError):
            await service.set_current_step(user.id, OnboardingStep.PROFILE_COMPLETION)

    async def test_one_record_per_user(self, db_session, service, user):
        await service.start(user.id)
        await service.start(user.id)

        count = await db_session.scalar(
            select(func.count()).select_from(UserOnboarding).where(
                UserOnboarding.user_id == user.id
            )
        )
        assert count == 1
