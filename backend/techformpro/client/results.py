"""Explicit results of sequencer operations.

Every sequencer operation that talks to the API returns one of these instead
of raising, so the shell can branch on success or failure without try/except.
"""

from dataclasses import dataclass

from techformpro.services.onboarding_steps import OnboardingState


@dataclass(frozen=True)
class TransitionOk:
    """The operation succeeded.

    Attributes:
        state: Reconciled state after the operation, or None when a fetch
            found no record.
    """

    state: OnboardingState | None


@dataclass(frozen=True)
class TransitionErr:
    """The operation failed and local state was restored.

    Attributes:
        reason: Human-readable failure description.
        operation: Name of the failed operation (e.g. "complete_step").
        error: Underlying client error, if any.
        stale: True when the response arrived for a session that is no
            longer current and was discarded.
    """

    reason: str
    operation: str
    error: Exception | None = None
    stale: bool = False


TransitionResult = TransitionOk | TransitionErr
