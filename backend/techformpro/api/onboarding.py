"""Onboarding API router.

Endpoints:
- GET /onboarding: current user's record, or null
- POST /onboarding/start: create the record (idempotent)
- POST /onboarding/step: move the current step
- POST /onboarding/complete-step: complete a step and advance
- POST /onboarding/skip-step: skip a step and advance
- POST /onboarding/complete: complete every step
"""

from fastapi import APIRouter, Request

from techformpro.api.deps import CurrentUser, CurrentUserId, DbSession
from techformpro.core.config import settings
from techformpro.core.rate_limiting import limiter
from techformpro.schemas.onboarding import OnboardingRecordResponse, StepRequest
from techformpro.services.onboarding_service import OnboardingService

router = APIRouter()


@router.get("")
async def get_onboarding(
    user_id: CurrentUserId,
    db: DbSession,
) -> OnboardingRecordResponse | None:
    """Get the current user's onboarding record.

    Returns:
        The record, or null when onboarding has not been started.
    """
    record = await OnboardingService(db).get(user_id)
    if record is None:
        return None
    return OnboardingRecordResponse.from_record(record)


@router.post("/start")
@limiter.limit(settings.rate_limit_onboarding)
async def start_onboarding(
    request: Request,  # noqa: ARG001
    user: CurrentUser,
    db: DbSession,
) -> OnboardingRecordResponse:
    """Start onboarding for the current user.

    Returns the existing record unchanged if one already exists.
    """
    record = await OnboardingService(db).start(user.id)
    return OnboardingRecordResponse.from_record(record)


@router.post("/step")
@limiter.limit(settings.rate_limit_onboarding)
async def set_current_step(
    request: Request,  # noqa: ARG001
    payload: StepRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> OnboardingRecordResponse:
    """Move the current step without changing completion.

    Raises:
        NotFoundError: If onboarding has not been started.
        InvalidStateError: If onboarding is already completed.
    """
    record = await OnboardingService(db).set_current_step(user_id, payload.step)
    return OnboardingRecordResponse.from_record(record)


@router.post("/complete-step")
@limiter.limit(settings.rate_limit_onboarding)
async def complete_step(
    request: Request,  # noqa: ARG001
    payload: StepRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> OnboardingRecordResponse:
    """Complete a step and advance to the one after it.

    Raises:
        NotFoundError: If onboarding has not been started.
    """
    record = await OnboardingService(db).complete_step(user_id, payload.step)
    return OnboardingRecordResponse.from_record(record)


@router.post("/skip-step")
@limiter.limit(settings.rate_limit_onboarding)
async def skip_step(
    request: Request,  # noqa: ARG001
    payload: StepRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> OnboardingRecordResponse:
    """Skip a step; it is recorded as skipped, not completed.

    Raises:
        NotFoundError: If onboarding has not been started.
    """
    record = await OnboardingService(db).skip_step(user_id, payload.step)
    return OnboardingRecordResponse.from_record(record)


@router.post("/complete")
@limiter.limit(settings.rate_limit_onboarding)
async def complete_onboarding(
    request: Request,  # noqa: ARG001
    user_id: CurrentUserId,
    db: DbSession,
) -> OnboardingRecordResponse:
    """Complete every step and end onboarding.

    Raises:
        NotFoundError: If onboarding has not been started.
    """
    record = await OnboardingService(db).complete(user_id)
    return OnboardingRecordResponse.from_record(record)
