"""Onboarding request/response schemas.

Wire format shared by the onboarding API and its client. Keys are camelCase
to match the web client (currentStep, completedSteps, isCompleted, ...).
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from techformpro.models.onboarding import UserOnboarding
from techformpro.services.onboarding_steps import (
    COMPLETED_SENTINEL,
    OnboardingState,
    OnboardingStep,
)


class StepRequest(BaseModel):
    """Body of the step-addressed endpoints.

    Attributes:
        step: Catalog step identifier. Unknown identifiers fail validation.
    """

    model_config = ConfigDict(extra="forbid")

    step: OnboardingStep


class OnboardingRecordResponse(BaseModel):
    """A user's onboarding record as returned by the API.

    Attributes:
        current_step: Catalog step identifier, or "completed".
        completed_steps: Completed steps in catalog order.
        skipped_steps: Skipped steps not completed since, in catalog order.
        is_completed: Terminal flag.
        started_at: When onboarding started.
        completed_at: When onboarding was completed, if it was.
        last_updated_at: Last transition time.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_step: OnboardingStep | Literal["completed"]
    completed_steps: list[OnboardingStep]
    skipped_steps: list[OnboardingStep] = []
    is_completed: bool
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_updated_at: datetime | None = None

    @model_validator(mode="after")
    def check_terminal_consistency(self) -> "OnboardingRecordResponse":
        """Reject a record that is past the last step but not completed."""
        if self.current_step == COMPLETED_SENTINEL and not self.is_completed:
            msg = "currentStep is 'completed' but isCompleted is false"
            raise ValueError(msg)
        return self

    @classmethod
    def from_record(cls, record: UserOnboarding) -> "OnboardingRecordResponse":
        """Build the response from a stored record."""
        state = record.as_state()
        return cls(
            current_step=state.current_step or COMPLETED_SENTINEL,
            completed_steps=state.ordered(state.completed_steps),
            skipped_steps=state.ordered(state.skipped_steps),
            is_completed=state.is_completed,
            started_at=record.created_at,
            completed_at=record.completed_at,
            last_updated_at=record.updated_at,
        )

    def to_state(self) -> OnboardingState:
        """Convert the wire record into an OnboardingState."""
        if self.is_completed or self.current_step == COMPLETED_SENTINEL:
            current = None
        else:
            current = OnboardingStep(self.current_step)
        return OnboardingState(
            current_step=current,
            completed_steps=frozenset(self.completed_steps),
            skipped_steps=frozenset(self.skipped_steps) - frozenset(self.completed_steps),
            is_completed=current is None,
        )
