"""Onboarding client: sequencer, API client, and presentation binding."""

from techformpro.client.api_client import (
    HTTPOnboardingClient,
    OnboardingAPI,
    OnboardingClientError,
)
from techformpro.client.notifications import LoggingNotifier, Notifier
from techformpro.client.presentation import (
    OnboardingPresenter,
    StepProgress,
    StepRenderers,
    StepView,
    is_onboarding_visible,
    render_step,
    should_offer_tour,
    step_progress,
)
from techformpro.client.results import TransitionErr, TransitionOk, TransitionResult
from techformpro.client.sequencer import OnboardingSequencer
from techformpro.client.session import SessionSnapshot, SessionUser

__all__ = [
    # API
    "HTTPOnboardingClient",
    "OnboardingAPI",
    "OnboardingClientError",
    # Notifications
    "LoggingNotifier",
    "Notifier",
    # Presentation
    "OnboardingPresenter",
    "StepProgress",
    "StepRenderers",
    "StepView",
    "is_onboarding_visible",
    "render_step",
    "should_offer_tour",
    "step_progress",
    # Results
    "TransitionErr",
    "TransitionOk",
    "TransitionResult",
    # Sequencer
    "OnboardingSequencer",
    # Session
    "SessionSnapshot",
    "SessionUser",
]
