"""UserOnboarding model - per-user onboarding progress.

One row per user (unique user_id). Step lists are JSONB arrays of catalog
identifiers; current_step holds a catalog identifier or the "completed"
sentinel once the user is done.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from techformpro.models.base import Base, TimestampMixin
from techformpro.services.onboarding_steps import (
    COMPLETED_SENTINEL,
    STEP_CATALOG,
    OnboardingState,
)

_DEFAULT_UUID = text("gen_random_uuid()")
_DEFAULT_EMPTY_JSONB = text("'[]'::jsonb")


class UserOnboarding(Base, TimestampMixin):
    """Onboarding progress for one user.

    Attributes:
        id: UUID primary key.
        user_id: Owning user (unique, CASCADE on delete).
        current_step: Catalog identifier or "completed".
        completed_steps: Completed step identifiers in catalog order.
        skipped_steps: Skipped (and not since completed) step identifiers.
        is_completed: Terminal flag.
        completed_at: When is_completed became true.
        created_at: When onboarding started (from TimestampMixin).
        updated_at: Last transition (from TimestampMixin).
    """

    __tablename__ = "user_onboarding"
    __table_args__ = (
        CheckConstraint(
            "is_completed = (current_step = 'completed')",
            name="ck_user_onboarding_terminal",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=_DEFAULT_UUID,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    current_step: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        server_default=text(f"'{STEP_CATALOG[0].value}'"),
        default=STEP_CATALOG[0].value,
    )
    completed_steps: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=_DEFAULT_EMPTY_JSONB,
        default=list,
    )
    skipped_steps: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=_DEFAULT_EMPTY_JSONB,
        default=list,
    )
    is_completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
        default=False,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )

    def as_state(self) -> OnboardingState:
        """Convert the stored row into an OnboardingState.

        Unknown identifiers in the step lists are dropped; the catalog is
        the source of truth for which steps exist. An unknown current_step on
        an unfinished record falls back to the first catalog step not yet
        completed, or to the terminal state if every step is.
        """
        known = {step.value: step for step in STEP_CATALOG}
        completed = frozenset(
            known[value] for value in self.completed_steps if value in known
        )
        if self.is_completed or self.current_step == COMPLETED_SENTINEL:
            current = None
        elif self.current_step in known:
            current = known[self.current_step]
        else:
            current = next(
                (step for step in STEP_CATALOG if step not in completed), None
            )
        return OnboardingState(
            current_step=current,
            completed_steps=completed,
            skipped_steps=frozenset(
                known[value] for value in self.skipped_steps if value in known
            ),
            is_completed=current is None,
        )
