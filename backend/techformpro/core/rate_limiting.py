"""Rate limiting for onboarding transitions using slowapi.

Security: a double-clicking or scripted client cannot hammer the mutating
onboarding endpoints. Keys are per user when auth is enabled (so users behind
one NAT do not share a budget) and per IP otherwise.

Usage in routers:
    from techformpro.core.rate_limiting import limiter

    @router.post("/complete-step")
    @limiter.limit(settings.rate_limit_onboarding)
    async def complete_step(request: Request, ...):
        ...
"""

import jwt
from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from techformpro.core.auth import decode_jwt
from techformpro.core.config import settings
from techformpro.core.responses import ErrorResponse

_UUID_LENGTH = 36
_DEFAULT_RETRY_AFTER = 60
_PERIOD_SECONDS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
}


def _session_subject(request: Request) -> str | None:
    """The sub claim of a valid session cookie, if there is one.

    No revocation check: the limiter only needs a stable key, and deps.py
    does the full validation before the handler runs.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        return None
    try:
        claims = decode_jwt(
            token,
            secret=settings.auth_secret.get_secret_value(),
            issuer=settings.auth_issuer,
        )
    except jwt.InvalidTokenError:
        return None
    sub = claims.get("sub")
    if not isinstance(sub, str) or len(sub) > _UUID_LENGTH:
        return None
    return sub


def _rate_limit_key_func(request: Request) -> str:
    """Rate limit key for a request.

    - Auth disabled: "{ip}"
    - Auth enabled, valid session: "user:{sub}"
    - Auth enabled, no or invalid session: "unauth:{ip}"
    """
    ip = get_remote_address(request)
    if not settings.auth_enabled:
        return ip
    sub = _session_subject(request)
    return f"user:{sub}" if sub else f"unauth:{ip}"


# In-memory storage; one budget per process
limiter = Limiter(
    key_func=_rate_limit_key_func,
    enabled=settings.rate_limit_enabled,
)


def _retry_after_seconds(detail: str | None) -> int:
    """Window length from a slowapi detail such as "30 per 1 minute"."""
    try:
        _count, _per, multiple, unit = detail.split()
        return int(multiple) * _PERIOD_SECONDS[unit.rstrip("s")]
    except (AttributeError, ValueError, KeyError):
        return _DEFAULT_RETRY_AFTER


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """429 in the standard error envelope, with Retry-After set to the window."""
    return JSONResponse(
        status_code=429,
        content=ErrorResponse.build(
            "RATE_LIMITED", f"Rate limit exceeded: {exc.detail}"
        ),
        headers={"Retry-After": str(_retry_after_seconds(exc.detail))},
    )
