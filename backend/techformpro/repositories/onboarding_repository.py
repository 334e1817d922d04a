"""Repository for UserOnboarding operations.

Provides database access for the user_onboarding table. Follows the same
stateless pattern as the other repositories: every call takes an
AsyncSession so the caller controls transaction boundaries.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from techformpro.models.onboarding import UserOnboarding
from techformpro.services.onboarding_steps import (
    COMPLETED_SENTINEL,
    STEP_CATALOG,
    OnboardingState,
)


class OnboardingRepository:
    """Stateless repository for user_onboarding table operations."""

    @staticmethod
    async def get_by_user_id(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> UserOnboarding | None:
        """Fetch a user's onboarding record.

        Args:
            db: Async database session.
            user_id: Owning user's UUID.
            for_update: Lock the row until the transaction ends, so that
                concurrent transitions for the same user apply one at a time.

        Returns:
            UserOnboarding if found, None otherwise.
        """
        stmt = select(UserOnboarding).where(UserOnboarding.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(db: AsyncSession, *, user_id: uuid.UUID) -> UserOnboarding:
        """Create the initial onboarding record for a user.

        Args:
            db: Async database session.
            user_id: Owning user's UUID.

        Returns:
            Created UserOnboarding with server-generated fields loaded.

        Raises:
            IntegrityError: If the user already has a record.
        """
        record = UserOnboarding(
            user_id=user_id,
            current_step=STEP_CATALOG[0].value,
            completed_steps=[],
            skipped_steps=[],
            is_completed=False,
        )
        db.add(record)
        await db.flush()
        await db.refresh(record)
        return record

    @staticmethod
    async def save_state(
        db: AsyncSession,
        record: UserOnboarding,
        state: OnboardingState,
    ) -> UserOnboarding:
        """Write a transitioned state back onto the record.

        Lists are reassigned (never mutated in place) so SQLAlchemy detects
        the JSONB change. completed_at is stamped the first time the record
        becomes completed and never cleared.

        Args:
            db: Async database session.
            record: Record to update (typically locked with for_update).
            state: New state produced by a transition function.

        Returns:
            The refreshed record.
        """
        was_completed = record.is_completed

        record.current_step = (
            state.current_step.value
            if state.current_step is not None
            else COMPLETED_SENTINEL
        )
        record.completed_steps = [step.value for step in state.ordered(state.completed_steps)]
        record.skipped_steps = [step.value for step in state.ordered(state.skipped_steps)]
        record.is_completed = state.is_completed
        if state.is_completed and not was_completed:
            record.completed_at = datetime.now(UTC)

        await db.flush()
        await db.refresh(record)
        return record
