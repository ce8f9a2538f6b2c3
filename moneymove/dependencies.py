"""
FastAPI dependencies for resolving who is calling and in which household.

    get_current_scope (JWT -> HouseholdScope)

Every money endpoint declares get_current_scope as a parameter. FastAPI
calls it before the route handler runs; a missing, expired or tampered
token rejects the request with 401 and the handler never sees it.

The scope is trusted as already authorized (the issuing service verified
household membership), but the services still filter every query by both
user and household rather than by id alone.
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from moneymove.scope import HouseholdScope
from moneymove.security import decode_access_token


# Tells FastAPI to read "Authorization: Bearer <token>". The tokenUrl belongs
# to the external auth service and only feeds Swagger UI's Authorize button.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_current_scope(
    token: str = Depends(oauth2_scheme),
) -> HouseholdScope:
    """
    Validate the JWT and return the (user, household) scope it carries.

    Raises:
        HTTPException 401: If the token is invalid or lacks either claim.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
        user_id_str: str | None = payload.get("sub")
        household_id_str: str | None = payload.get("household_id")
        if user_id_str is None or household_id_str is None:
            raise credentials_exception
        return HouseholdScope(
            user_id=uuid.UUID(user_id_str),
            household_id=uuid.UUID(household_id_str),
        )
    except (JWTError, ValueError):
        raise credentials_exception
