"""Request dependencies: database session and the current user.

Local-first mode (AUTH_ENABLED=false) resolves every request to
DEFAULT_USER_ID. Hosted mode requires the session JWT cookie.
"""

import uuid
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from techformpro.core.auth import decode_jwt
from techformpro.core.config import settings
from techformpro.core.database import get_db
from techformpro.models import User

DbSession = Annotated[AsyncSession, Depends(get_db)]


def _unauthorized() -> HTTPException:
    # Security: the detail never says which check failed
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "UNAUTHORIZED", "message": "Authentication required"},
    )


def _verified_claims(token: str) -> tuple[uuid.UUID, float]:
    """User id and issued-at of a valid session token.

    Raises:
        HTTPException: 401 if the token fails verification, its sub is not a
            UUID, or it has no iat (which revocation depends on).
    """
    try:
        claims = decode_jwt(
            token,
            secret=settings.auth_secret.get_secret_value(),
            issuer=settings.auth_issuer,
        )
        user_id = uuid.UUID(claims["sub"])
        issued_at = float(claims["iat"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as exc:
        raise _unauthorized() from exc
    return user_id, issued_at


async def _is_revoked(db: AsyncSession, user_id: uuid.UUID, issued_at: float) -> bool:
    """True if the user's tokens were invalidated after this one was issued."""
    invalidated_before = await db.scalar(
        select(User.token_invalidated_before).where(User.id == user_id)
    )
    return (
        invalidated_before is not None
        and issued_at < invalidated_before.timestamp()
    )


async def get_current_user_id(request: Request, db: DbSession) -> uuid.UUID:
    """Resolve the current user's id.

    Hosted mode checks, in order: cookie present, signature (HS256), exp,
    aud and iss, a UUID sub, an iat, and token_invalidated_before.

    Raises:
        HTTPException: 401 for any auth failure.
    """
    if not settings.auth_enabled:
        if settings.default_user_id is None:
            raise _unauthorized()
        return settings.default_user_id

    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise _unauthorized()

    user_id, issued_at = _verified_claims(token)
    if await _is_revoked(db, user_id, issued_at):
        raise _unauthorized()
    return user_id


CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]


async def get_current_user(user_id: CurrentUserId, db: DbSession) -> User:
    """Load the current user's row.

    For endpoints that insert rows referencing the user, so a deleted
    account fails with 401 instead of a foreign key error.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise _unauthorized()
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
