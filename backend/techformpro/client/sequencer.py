"""Onboarding sequencer: per-user onboarding state on the client side.

The sequencer owns the signed-in user's OnboardingState. When the host
reports a session it fetches the user's record, creating it on first visit.
The shell then reads current_step to pick what to render and calls the
transition methods as the user moves through the flow.

Transitions are optimistic:

    1. apply the pure transition to local state
    2. send the matching request
    3. on success, replace local state with the server's record
    4. on failure, restore the pre-transition state and return TransitionErr

An asyncio.Lock lets only one remote call run at a time, so transitions
fired back to back apply in the order they were issued, each on top of the
reconciled result of the previous one. Each request is sent with the
credentials of the session current when it was issued. A change of user bumps a
generation counter; a response that comes back for an older generation is
dropped without touching state.

Usage:
    sequencer = OnboardingSequencer(HTTPOnboardingClient())
    await sequencer.on_session_change(
        SessionSnapshot(current_user=user, session_token=token)
    )
    if sequencer.is_visible:
        await sequencer.complete_step(sequencer.current_step)
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime

import structlog

from techformpro.client.api_client import OnboardingAPI, OnboardingClientError
from techformpro.client.notifications import LoggingNotifier, Notifier
from techformpro.client.presentation import (
    StepProgress,
    is_onboarding_visible,
    should_offer_tour,
    step_progress,
)
from techformpro.client.results import TransitionErr, TransitionOk, TransitionResult
from techformpro.client.session import SessionSnapshot
from techformpro.schemas.onboarding import OnboardingRecordResponse
from techformpro.services import onboarding_steps
from techformpro.services.onboarding_steps import OnboardingState, OnboardingStep

logger = structlog.get_logger()

_STALE_REASON = "Session changed while the request was in flight"
_NOT_LOADED_REASON = "Onboarding state is not loaded"

StepLike = OnboardingStep | str


def _as_step(step: StepLike) -> OnboardingStep:
    if isinstance(step, OnboardingStep):
        return step
    return OnboardingStep.from_string(step)


class OnboardingSequencer:
    """Session-aware onboarding state with optimistic, serialized transitions.

    Args:
        api: Onboarding store (usually HTTPOnboardingClient).
        notifier: Toast surface. Defaults to LoggingNotifier.
    """

    def __init__(self, api: OnboardingAPI, notifier: Notifier | None = None) -> None:
        self._api = api
        self._notifier = notifier or LoggingNotifier()
        self._lock = asyncio.Lock()
        self._session = SessionSnapshot()
        self._generation = 0
        self._state: OnboardingState | None = None
        self._record: OnboardingRecordResponse | None = None
        self._fetching = False
        self._retry: Callable[[], Awaitable[TransitionResult]] | None = None

    # -------------------------------------------------------------------------
    # Read-only view
    # -------------------------------------------------------------------------

    @property
    def session(self) -> SessionSnapshot:
        return self._session

    @property
    def state(self) -> OnboardingState | None:
        """Current state, or None until a record has been loaded."""
        return self._state

    @property
    def current_step(self) -> OnboardingStep | None:
        return self._state.current_step if self._state else None

    @property
    def completed_steps(self) -> frozenset[OnboardingStep]:
        return self._state.completed_steps if self._state else frozenset()

    @property
    def skipped_steps(self) -> frozenset[OnboardingStep]:
        return self._state.skipped_steps if self._state else frozenset()

    @property
    def is_completed(self) -> bool:
        return self._state.is_completed if self._state else False

    @property
    def completed_at(self) -> datetime | None:
        """When the server recorded completion, if it has."""
        return self._record.completed_at if self._record else None

    @property
    def is_loading(self) -> bool:
        return self._session.is_loading or self._fetching

    @property
    def can_retry(self) -> bool:
        return self._retry is not None

    @property
    def is_visible(self) -> bool:
        """Whether the onboarding dialog should be shown right now."""
        return is_onboarding_visible(
            is_authenticated=self._session.is_authenticated,
            state_loaded=self._state is not None,
            is_completed=self.is_completed,
        )

    @property
    def progress(self) -> StepProgress | None:
        """Progress through the catalog, or None when nothing is shown."""
        if self.current_step is None:
            return None
        return step_progress(self.current_step)

    def is_step_completed(self, step: StepLike) -> bool:
        return self._state is not None and self._state.is_step_completed(_as_step(step))

    def should_offer_tour(self, now: datetime | None = None) -> bool:
        """Whether to show the "take the platform tour" trigger."""
        return should_offer_tour(
            self._state,
            self.completed_at,
            is_loading=self.is_loading,
            now=now,
        )

    @staticmethod
    def advance(step: StepLike) -> OnboardingStep | None:
        """Next catalog step after ``step``, or None past the last one.

        Raises:
            ValueError: If ``step`` is not a catalog identifier.
        """
        return onboarding_steps.advance(_as_step(step))

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def on_session_change(self, session: SessionSnapshot) -> TransitionResult:
        """Adopt a new session snapshot from the host.

        A different user (including signing out) drops all local state and
        invalidates in-flight requests. An authenticated session without
        loaded state triggers load(), which also retries an earlier failed
        fetch or start.
        """
        previous = self._session
        self._session = session
        if session.user_id != previous.user_id:
            self._reset()

        if not session.is_authenticated:
            return TransitionOk(None)
        if self._state is not None:
            return TransitionOk(self._state)
        return await self.load()

    def _reset(self) -> None:
        self._generation += 1
        self._state = None
        self._record = None
        self._fetching = False
        self._retry = None

    async def load(self) -> TransitionResult:
        """Fetch the user's record, starting onboarding if there is none."""
        result = await self.fetch_state()
        if isinstance(result, TransitionErr) or result.state is not None:
            return result
        return await self.start_onboarding()

    # -------------------------------------------------------------------------
    # Remote reads
    # -------------------------------------------------------------------------

    async def fetch_state(self) -> TransitionResult:
        """Load the user's record from the API.

        Returns:
            TransitionOk with the state, TransitionOk(None) when the user has
            no record, or TransitionErr on failure. Failures are not retried.
        """
        if not self._session.is_authenticated:
            return TransitionErr("Not authenticated", "fetch_state")

        async with self._lock:
            generation = self._generation
            self._fetching = True
            try:
                record = await self._api.fetch_state(self._session)
            except OnboardingClientError as exc:
                if self._is_stale(generation):
                    return TransitionErr(_STALE_REASON, "fetch_state", exc, stale=True)
                logger.warning(
                    "Onboarding fetch failed",
                    user_id=str(self._session.user_id),
                    code=exc.code,
                    status_code=exc.status_code,
                )
                return TransitionErr(exc.message, "fetch_state", exc)
            finally:
                if not self._is_stale(generation):
                    self._fetching = False

            if self._is_stale(generation):
                return TransitionErr(_STALE_REASON, "fetch_state", stale=True)
            if record is not None:
                self._adopt(record)
            return TransitionOk(self._state)

    async def start_onboarding(self) -> TransitionResult:
        """Create the user's record if local state has none.

        A no-op when state is already loaded. The server returns an existing
        record rather than overwriting it.
        """
        if not self._session.is_authenticated:
            return TransitionErr("Not authenticated", "start_onboarding")

        async with self._lock:
            if self._state is not None:
                return TransitionOk(self._state)

            generation = self._generation
            self._fetching = True
            try:
                record = await self._api.start(self._session)
            except OnboardingClientError as exc:
                if self._is_stale(generation):
                    return TransitionErr(
                        _STALE_REASON, "start_onboarding", exc, stale=True
                    )
                logger.warning(
                    "Onboarding start failed",
                    user_id=str(self._session.user_id),
                    code=exc.code,
                    status_code=exc.status_code,
                )
                self._notifier.notify(
                    "Failed to start onboarding", exc.message, "destructive"
                )
                return TransitionErr(exc.message, "start_onboarding", exc)
            finally:
                if not self._is_stale(generation):
                    self._fetching = False

            if self._is_stale(generation):
                return TransitionErr(_STALE_REASON, "start_onboarding", stale=True)
            self._adopt(record)
            logger.info("Onboarding started", user_id=str(self._session.user_id))
            self._notifier.notify(
                "Onboarding started",
                "Welcome to your personalized onboarding experience!",
            )
            return TransitionOk(self._state)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def complete_step(self, step: StepLike) -> TransitionResult:
        """Complete ``step`` and move to the step after it.

        Raises:
            ValueError: If ``step`` is not a catalog identifier.
        """
        target = _as_step(step)
        return await self._transition(
            "complete_step",
            lambda state: onboarding_steps.complete_step(state, target),
            lambda session: self._api.complete_step(session, target),
            step=target,
            success=("Step completed", "Great progress! Keep going with your onboarding."),
            failure_title="Failed to complete step",
        )

    async def skip_step(self, step: StepLike) -> TransitionResult:
        """Move past ``step`` without completing it.

        Raises:
            ValueError: If ``step`` is not a catalog identifier.
        """
        target = _as_step(step)
        return await self._transition(
            "skip_step",
            lambda state: onboarding_steps.skip_step(state, target),
            lambda session: self._api.skip_step(session, target),
            step=target,
            failure_title="Failed to skip step",
        )

    async def go_to_step(self, step: StepLike) -> TransitionResult:
        """Jump to ``step`` without changing completion.

        Raises:
            ValueError: If ``step`` is not a catalog identifier.
        """
        target = _as_step(step)
        return await self._transition(
            "go_to_step",
            lambda state: onboarding_steps.set_current_step(state, target),
            lambda session: self._api.go_to_step(session, target),
            step=target,
            failure_title="Failed to update onboarding step",
        )

    async def complete_all_steps(self) -> TransitionResult:
        """Complete every step and end onboarding, wherever the user is."""
        return await self._transition(
            "complete_all_steps",
            onboarding_steps.complete_all_steps,
            self._api.complete_all,
            success=(
                "Onboarding completed",
                "Congratulations on completing your onboarding!",
            ),
            failure_title="Failed to complete onboarding",
        )

    async def retry(self) -> TransitionResult:
        """Re-issue the most recent failed transition."""
        if self._retry is None:
            return TransitionErr("No failed transition to retry", "retry")
        return await self._retry()

    async def _transition(
        self,
        operation: str,
        apply: Callable[[OnboardingState], OnboardingState],
        remote: Callable[[SessionSnapshot], Awaitable[OnboardingRecordResponse]],
        *,
        step: OnboardingStep | None = None,
        success: tuple[str, str] | None = None,
        failure_title: str,
    ) -> TransitionResult:
        """Apply a transition optimistically and confirm it with the API.

        Args:
            operation: Operation name for results and logging.
            apply: Pure transition applied to local state first.
            remote: Request that performs the same transition server-side, sent
                with the current session's credentials.
            step: Step the operation addresses, for logging.
            success: Toast (title, description) shown on success, if any.
            failure_title: Title of the destructive toast shown on failure.

        Returns:
            TransitionOk with the reconciled state, or TransitionErr with
            local state restored to what it was before the call.
        """

        async def run() -> TransitionResult:
            return await self._transition(
                operation,
                apply,
                remote,
                step=step,
                success=success,
                failure_title=failure_title,
            )

        async with self._lock:
            before = self._state
            if before is None:
                return TransitionErr(_NOT_LOADED_REASON, operation)
            if before.is_completed:
                return TransitionOk(before)

            generation = self._generation
            self._state = apply(before)
            try:
                record = await remote(self._session)
            except OnboardingClientError as exc:
                if self._is_stale(generation):
                    return TransitionErr(_STALE_REASON, operation, exc, stale=True)
                self._state = before
                self._retry = run
                logger.warning(
                    "Onboarding transition failed",
                    user_id=str(self._session.user_id),
                    operation=operation,
                    step=step.value if step else None,
                    code=exc.code,
                    status_code=exc.status_code,
                )
                self._notifier.notify(failure_title, exc.message, "destructive")
                return TransitionErr(exc.message, operation, exc)

            if self._is_stale(generation):
                return TransitionErr(_STALE_REASON, operation, stale=True)

            self._adopt(record)
            self._retry = None
            logger.info(
                "Onboarding transition confirmed",
                user_id=str(self._session.user_id),
                operation=operation,
                step=step.value if step else None,
                is_completed=self.is_completed,
            )
            if success is not None:
                self._notifier.notify(*success)
            return TransitionOk(self._state)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _adopt(self, record: OnboardingRecordResponse) -> None:
        """Replace local state with a server record."""
        self._record = record
        self._state = record.to_state()
