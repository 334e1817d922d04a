"""Onboarding step catalog and state transitions.

The onboarding flow walks a new user through a fixed, ordered catalog:

    profile_completion → subscription_selection → course_exploration
        → session_booking → platform_tour → (completed)

Every transition is a pure function from one OnboardingState to the next.
The API applies them to the stored record and the client sequencer applies
them optimistically, so both ends always compute the same state.

Rules:
- advance() is a function of the catalog alone, never of completion state
- completed_steps only grows; skipped_steps holds skips not yet completed
- Once is_completed is true every transition returns the state unchanged
"""

from dataclasses import dataclass, replace
from enum import Enum

from techformpro.core.errors import InvalidStateError

COMPLETED_SENTINEL = "completed"
"""Wire value of current_step once the user is past the last step."""

# =============================================================================
# Catalog
# =============================================================================


class OnboardingStep(Enum):
    """Onboarding steps in presentation order.

    Declaration order IS the catalog order. Values are the stable identifiers
    stored in the database and exchanged with the web client.
    """

    PROFILE_COMPLETION = "profile_completion"
    SUBSCRIPTION_SELECTION = "subscription_selection"
    COURSE_EXPLORATION = "course_exploration"
    SESSION_BOOKING = "session_booking"
    PLATFORM_TOUR = "platform_tour"

    @classmethod
    def from_string(cls, value: str) -> "OnboardingStep":
        """Convert a step identifier to enum.

        Args:
            value: Step identifier (e.g., "profile_completion").

        Returns:
            The corresponding OnboardingStep.

        Raises:
            ValueError: If the identifier is not in the catalog.
        """
        for step in cls:
            if step.value == value:
                return step
        valid = [s.value for s in cls]
        raise ValueError(f"Invalid onboarding step: '{value}'. Valid: {valid}")

    @property
    def title(self) -> str:
        """Display title for the step dialog header."""
        return _STEP_TEXT[self][0]

    @property
    def description(self) -> str:
        """Display description for the step dialog header."""
        return _STEP_TEXT[self][1]


_STEP_TEXT: dict[OnboardingStep, tuple[str, str]] = {
    OnboardingStep.PROFILE_COMPLETION: (
        "Complete your profile",
        "This is how you'll appear to trainers and other students",
    ),
    OnboardingStep.SUBSCRIPTION_SELECTION: (
        "Choose a subscription",
        "Pick the plan that gives you access to courses and live sessions",
    ),
    OnboardingStep.COURSE_EXPLORATION: (
        "Explore courses",
        "Browse the catalog by category and level",
    ),
    OnboardingStep.SESSION_BOOKING: (
        "Book a live session",
        "Find an upcoming session with a trainer",
    ),
    OnboardingStep.PLATFORM_TOUR: (
        "Take the platform tour",
        "Discover the features available to your role",
    ),
}

STEP_CATALOG: tuple[OnboardingStep, ...] = tuple(OnboardingStep)
"""The ordered catalog. Index 0 is the initial step."""


def catalog_index(step: OnboardingStep) -> int:
    """Position of a step in the catalog (0-based)."""
    return STEP_CATALOG.index(step)


def advance(step: OnboardingStep) -> OnboardingStep | None:
    """Return the step after ``step``, or None when ``step`` is the last one.

    Args:
        step: Step the user is leaving.

    Returns:
        Next catalog step, or None (the terminal sentinel).
    """
    index = catalog_index(step)
    if index + 1 < len(STEP_CATALOG):
        return STEP_CATALOG[index + 1]
    return None


# =============================================================================
# State
# =============================================================================


@dataclass(frozen=True)
class OnboardingState:
    """One user's onboarding progress.

    Attributes:
        current_step: Step being presented, or None once completed.
        completed_steps: Steps the user finished.
        skipped_steps: Steps the user skipped and has not completed since.
        is_completed: Terminal flag; True exactly when current_step is None.
    """

    current_step: OnboardingStep | None
    completed_steps: frozenset[OnboardingStep] = frozenset()
    skipped_steps: frozenset[OnboardingStep] = frozenset()
    is_completed: bool = False

    @classmethod
    def initial(cls) -> "OnboardingState":
        """State of a freshly started onboarding."""
        return cls(current_step=STEP_CATALOG[0])

    def is_step_completed(self, step: OnboardingStep) -> bool:
        """Check whether a step has been completed."""
        return step in self.completed_steps

    def ordered(self, steps: frozenset[OnboardingStep]) -> list[OnboardingStep]:
        """Sort a subset of steps into catalog order (for serialization)."""
        return [step for step in STEP_CATALOG if step in steps]


def _finish(state: OnboardingState) -> OnboardingState:
    return replace(state, current_step=None, is_completed=True)


def complete_step(state: OnboardingState, step: OnboardingStep) -> OnboardingState:
    """Mark ``step`` completed and move to the step after it.

    Completing an already-completed step changes nothing in completed_steps,
    and because the new position is computed from ``step`` (not from the
    current position) repeating the call does not advance twice.

    Args:
        state: Current state.
        step: Step the user finished.

    Returns:
        New state; completed when ``step`` was the last catalog step.
    """
    if state.is_completed:
        return state

    updated = replace(
        state,
        completed_steps=state.completed_steps | {step},
        skipped_steps=state.skipped_steps - {step},
    )
    next_step = advance(step)
    if next_step is None:
        return _finish(updated)
    return replace(updated, current_step=next_step)


def skip_step(state: OnboardingState, step: OnboardingStep) -> OnboardingState:
    """Move past ``step`` without completing it.

    Skipping the last step ends onboarding rather than looping back.

    Args:
        state: Current state.
        step: Step the user skipped.

    Returns:
        New state with ``step`` recorded as skipped (unless already completed).
    """
    if state.is_completed:
        return state

    skipped = state.skipped_steps
    if step not in state.completed_steps:
        skipped = skipped | {step}
    updated = replace(state, skipped_steps=skipped)

    next_step = advance(step)
    if next_step is None:
        return _finish(updated)
    return replace(updated, current_step=next_step)


def complete_all_steps(state: OnboardingState) -> OnboardingState:
    """Mark every catalog step completed and end onboarding.

    Used by the "skip onboarding entirely" action, so it applies regardless
    of the current position.
    """
    if state.is_completed:
        return state
    return _finish(
        replace(
            state,
            completed_steps=frozenset(STEP_CATALOG),
            skipped_steps=frozenset(),
        )
    )


def set_current_step(state: OnboardingState, step: OnboardingStep) -> OnboardingState:
    """Jump to ``step`` without changing completion.

    Args:
        state: Current state.
        step: Step to present next.

    Returns:
        New state positioned on ``step``.

    Raises:
        InvalidStateError: If onboarding is already completed.
    """
    if state.is_completed:
        raise InvalidStateError("Onboarding is already completed")
    return replace(state, current_step=step)
