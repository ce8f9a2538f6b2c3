"""
Security utilities: JWT bearer tokens carrying the caller's household scope.

Authentication itself (login, sessions, household membership checks) lives
in another service. That service issues a signed JWT whose claims name the
authenticated user and the household it has already verified membership of:

  - "sub": The user ID (standard JWT subject claim)
  - "household_id": The household the request acts on
  - "exp": Expiration timestamp; after this, the token is rejected

This service only verifies the signature and reads the claims. The token is
signed with SECRET_KEY using HS256 (HMAC-SHA256), so the server stays
stateless: no session storage is needed.
"""

import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from moneymove.config import settings


def create_access_token(
    user_id: uuid.UUID,
    household_id: uuid.UUID,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed JWT access token for a (user, household) pair.

    Used by the issuing service, the demo seed script and the tests.

    Args:
        user_id: The authenticated user.
        household_id: The household the user is acting in.
        expires_delta: Optional custom expiration time. Defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES from settings.

    Returns:
        An encoded JWT string.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {
        "sub": str(user_id),
        "household_id": str(household_id),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises:
        JWTError: If the token is expired, tampered with, or invalid.

    Returns:
        The decoded payload dictionary (contains "sub", "household_id", "exp").
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
