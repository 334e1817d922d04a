"""Session token helpers.

Users sign in through the platform's auth service; this backend only
validates the session JWT it issues. create_jwt mints tokens with the same
claims so that service, local tooling, and tests agree on the format.
"""

from datetime import UTC, datetime, timedelta

import jwt

from techformpro.core.config import settings

JWT_ALGORITHM = "HS256"
"""Only algorithm accepted when decoding session tokens."""

JWT_AUDIENCE = "techformpro"
"""Audience claim every session token must carry."""

# Default JWT expiration: 1 hour
_DEFAULT_EXPIRATION = timedelta(hours=1)


def create_jwt(
    *,
    user_id: str,
    secret: str,
    expires_delta: timedelta | None = None,
    issued_at: datetime | None = None,
) -> str:
    """Create a signed JWT with standard claims.

    Args:
        user_id: User UUID string for the sub claim.
        secret: HMAC signing secret.
        expires_delta: Time until expiration. Defaults to 1 hour.
        issued_at: Issued-at time. Defaults to now.

    Returns:
        Encoded JWT string.
    """
    now = issued_at or datetime.now(UTC)
    payload = {
        "sub": user_id,
        "aud": JWT_AUDIENCE,
        "iss": settings.auth_issuer,
        "exp": now + (expires_delta or _DEFAULT_EXPIRATION),
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_jwt(token: str, *, secret: str, issuer: str) -> dict:
    """Decode and verify a session JWT.

    Verifies the signature, exp, aud and iss claims. Callers decide what to
    do with a missing iat or an unparseable sub.

    Args:
        token: Encoded JWT string.
        secret: HMAC signing secret.
        issuer: Expected iss claim.

    Returns:
        The decoded claims.

    Raises:
        jwt.InvalidTokenError: If the token fails any verification.
    """
    return jwt.decode(
        token,
        secret,
        algorithms=[JWT_ALGORITHM],
        audience=JWT_AUDIENCE,
        issuer=issuer,
    )
