"""
Reusable FastAPI dependencies for authentication.

Dependencies:
  - get_current_user: extracts the user from the bearer JWT (401 if invalid)
  - get_optional_user: same, but anonymous callers get ``None``
"""

import uuid

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import verify_token
from app.database import get_db
from app.models.user import User


async def _load_user(authorization: str, db: AsyncSession) -> User:
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )

    token = authorization[len("Bearer "):]
    payload = verify_token(token, expected_type="access")
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        )

    user = await db.get(User, user_id)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if user.is_banned:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is suspended",
        )

    return user


async def get_current_user(
    authorization: str = Header(..., description="Bearer <access_token>"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Parse the ``Authorization: Bearer <token>`` header, verify the JWT,
    look up the User in the database, and return it.

    Raises 401 if the token is missing, malformed, expired, or the user
    is not found / suspended.
    """
    return await _load_user(authorization, db)


async def get_optional_user(
    authorization: str | None = Header(None, description="Bearer <access_token>"),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Like ``get_current_user`` but lets anonymous visitors through."""
    if authorization is None:
        return None
    return await _load_user(authorization, db)
