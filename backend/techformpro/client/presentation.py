"""Presentation binding for the onboarding dialog.

Pure policy functions (visibility, progress, tour trigger) plus the dispatch
that picks exactly one step renderer for the current step. Renderers are
supplied by the host UI; this module never draws anything itself.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar, assert_never

from techformpro.client.results import TransitionResult
from techformpro.services.onboarding_steps import (
    STEP_CATALOG,
    OnboardingState,
    OnboardingStep,
    catalog_index,
)

if TYPE_CHECKING:
    from techformpro.client.sequencer import OnboardingSequencer

T = TypeVar("T", covariant=True)
R = TypeVar("R")

TOUR_REOFFER_AFTER = timedelta(days=30)
"""A completed onboarding is offered again once it is this old."""

StepAction = Callable[[], Awaitable[TransitionResult]]


def is_onboarding_visible(
    *, is_authenticated: bool, state_loaded: bool, is_completed: bool
) -> bool:
    """Show the dialog iff signed in, state loaded, and not yet completed."""
    return is_authenticated and state_loaded and not is_completed


@dataclass(frozen=True)
class StepProgress:
    """Where a step sits in the catalog.

    Attributes:
        position: 1-based position.
        total: Number of catalog steps.
        percent: position / total * 100.
        is_last: True on the final step (the shell labels its button "Finish").
    """

    position: int
    total: int
    percent: float
    is_last: bool


def step_progress(step: OnboardingStep) -> StepProgress:
    position = catalog_index(step) + 1
    total = len(STEP_CATALOG)
    return StepProgress(
        position=position,
        total=total,
        percent=position / total * 100,
        is_last=position == total,
    )


def should_offer_tour(
    state: OnboardingState | None,
    completed_at: datetime | None,
    *,
    is_loading: bool,
    now: datetime | None = None,
) -> bool:
    """Decide whether to show the "take the platform tour" trigger.

    Offered when the user has no record, has not finished, or finished more
    than 30 days ago. Hidden while loading. A completed record with no
    completion time counts as completed just now.

    Args:
        state: Loaded state, or None when the user has no record.
        completed_at: Server completion timestamp.
        is_loading: Whether the session or record is still loading.
        now: Reference time. Defaults to the current UTC time.
    """
    if is_loading:
        return False
    if state is None or not state.is_completed:
        return True

    now = now or datetime.now(UTC)
    completion = completed_at or now
    if completion.tzinfo is None:
        completion = completion.replace(tzinfo=UTC)
    return completion < now - TOUR_REOFFER_AFTER


# =============================================================================
# Step dispatch
# =============================================================================


@dataclass(frozen=True)
class StepView:
    """Everything a step renderer needs.

    Attributes:
        step: Step being rendered.
        progress: Its position in the catalog.
        on_next: Completes the step and advances.
        on_skip: Skips the step and advances.
    """

    step: OnboardingStep
    progress: StepProgress
    on_next: StepAction
    on_skip: StepAction

    @property
    def title(self) -> str:
        return self.step.title

    @property
    def description(self) -> str:
        return self.step.description


class StepRenderers(Protocol[T]):
    """One renderer per catalog step. Adding a step breaks type checking
    until a renderer for it exists here and in render_step."""

    def profile_completion(self, view: StepView) -> T: ...

    def subscription_selection(self, view: StepView) -> T: ...

    def course_exploration(self, view: StepView) -> T: ...

    def session_booking(self, view: StepView) -> T: ...

    def platform_tour(self, view: StepView) -> T: ...


def render_step(view: StepView, renderers: StepRenderers[R]) -> R:
    """Render exactly the renderer matching ``view.step``."""
    match view.step:
        case OnboardingStep.PROFILE_COMPLETION:
            return renderers.profile_completion(view)
        case OnboardingStep.SUBSCRIPTION_SELECTION:
            return renderers.subscription_selection(view)
        case OnboardingStep.COURSE_EXPLORATION:
            return renderers.course_exploration(view)
        case OnboardingStep.SESSION_BOOKING:
            return renderers.session_booking(view)
        case OnboardingStep.PLATFORM_TOUR:
            return renderers.platform_tour(view)
        case _:
            assert_never(view.step)


class OnboardingPresenter(Generic[R]):
    """Binds a sequencer to the host's step renderers.

    Args:
        sequencer: Source of state and transitions.
        renderers: Host renderers, one per step.
    """

    def __init__(
        self, sequencer: "OnboardingSequencer", renderers: StepRenderers[R]
    ) -> None:
        self._sequencer = sequencer
        self._renderers = renderers

    def current_view(self) -> StepView | None:
        """View of the step to show, or None when the dialog is hidden."""
        step = self._sequencer.current_step
        if not self._sequencer.is_visible or step is None:
            return None
        sequencer = self._sequencer
        return StepView(
            step=step,
            progress=step_progress(step),
            on_next=lambda: sequencer.complete_step(step),
            on_skip=lambda: sequencer.skip_step(step),
        )

    def render(self) -> R | None:
        """Render the current step, or return None when nothing is shown."""
        view = self.current_view()
        if view is None:
            return None
        return render_step(view, self._renderers)
