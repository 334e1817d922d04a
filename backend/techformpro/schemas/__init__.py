"""Pydantic request/response schemas for API endpoints."""

from techformpro.schemas.onboarding import OnboardingRecordResponse, StepRequest

__all__ = [
    # Onboarding
    "OnboardingRecordResponse",
    "StepRequest",
]
