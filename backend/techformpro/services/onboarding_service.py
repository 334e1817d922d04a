"""Onboarding service: applies step transitions to stored records.

Each mutating call locks the user's row, converts it to an OnboardingState,
runs the matching pure transition from onboarding_steps, and writes the
result back. Concurrent requests for the same user therefore apply one
after the other, in the order the database grants the lock.
"""

import uuid
from collections.abc import Callable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from techformpro.core.errors import NotFoundError
from techformpro.models.onboarding import UserOnboarding
from techformpro.repositories.onboarding_repository import OnboardingRepository
from techformpro.services.onboarding_steps import (
    OnboardingState,
    OnboardingStep,
    complete_all_steps,
    complete_step,
    set_current_step,
    skip_step,
)

logger = structlog.get_logger()

_RESOURCE = "Onboarding"


class OnboardingService:
    """Reads and transitions a user's onboarding record.

    Args:
        db: Async database session. The caller owns commit/rollback.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get(self, user_id: uuid.UUID) -> UserOnboarding | None:
        """Return the user's record, or None if onboarding never started."""
        return await OnboardingRepository.get_by_user_id(self._db, user_id)

    async def start(self, user_id: uuid.UUID) -> UserOnboarding:
        """Create the user's record, or return the existing one untouched.

        Never overwrites progress. Two concurrent starts race on the unique
        user_id constraint; the loser rolls back its savepoint and reads the
        winner's row.

        Args:
            user_id: Owning user's UUID.

        Returns:
            The new or existing record.
        """
        existing = await OnboardingRepository.get_by_user_id(self._db, user_id)
        if existing is not None:
            return existing

        try:
            async with self._db.begin_nested():
                record = await OnboardingRepository.create(self._db, user_id=user_id)
        except IntegrityError:
            logger.info("Onboarding start raced, reusing record", user_id=str(user_id))
            existing = await OnboardingRepository.get_by_user_id(self._db, user_id)
            if existing is None:
                raise
            return existing

        logger.info("Onboarding started", user_id=str(user_id))
        return record

    async def complete_step(
        self, user_id: uuid.UUID, step: OnboardingStep
    ) -> UserOnboarding:
        """Mark a step completed and advance past it."""
        return await self._transition(
            user_id,
            "complete_step",
            lambda state: complete_step(state, step),
            step=step,
        )

    async def skip_step(self, user_id: uuid.UUID, step: OnboardingStep) -> UserOnboarding:
        """Advance past a step without completing it."""
        return await self._transition(
            user_id,
            "skip_step",
            lambda state: skip_step(state, step),
            step=step,
        )

    async def set_current_step(
        self, user_id: uuid.UUID, step: OnboardingStep
    ) -> UserOnboarding:
        """Move the current step without changing completion.

        Raises:
            NotFoundError: If the user has no record.
            InvalidStateError: If onboarding is already completed.
        """
        return await self._transition(
            user_id,
            "set_current_step",
            lambda state: set_current_step(state, step),
            step=step,
        )

    async def complete(self, user_id: uuid.UUID) -> UserOnboarding:
        """Mark every step completed and end onboarding."""
        return await self._transition(user_id, "complete", complete_all_steps)

    async def _transition(
        self,
        user_id: uuid.UUID,
        operation: str,
        transition: Callable[[OnboardingState], OnboardingState],
        *,
        step: OnboardingStep | None = None,
    ) -> UserOnboarding:
        """Lock, transition, and persist a user's record.

        Args:
            user_id: Owning user's UUID.
            operation: Operation name for logging.
            transition: Pure state transition to apply.
            step: Step the operation addresses, for logging.

        Returns:
            The updated record.

        Raises:
            NotFoundError: If the user has no record.
        """
        record = await OnboardingRepository.get_by_user_id(
            self._db, user_id, for_update=True
        )
        if record is None:
            raise NotFoundError(_RESOURCE)

        before = record.as_state()
        after = transition(before)
        if after == before:
            return record

        record = await OnboardingRepository.save_state(self._db, record, after)
        logger.info(
            "Onboarding transition applied",
            user_id=str(user_id),
            operation=operation,
            step=step.value if step is not None else None,
            current_step=record.current_step,
            is_completed=record.is_completed,
        )
        return record
