import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from library_lookup.config import ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from library_lookup.database import get_async_session
from library_lookup.models.user_model import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/users/login", auto_error=False)


def _get_secret_key() -> str:
    secret = os.getenv("SECRET_KEY")
    if not secret:
        # Fail fast with a clear message instead of a generic 500
        raise RuntimeError("SECRET_KEY is not configured in the backend environment")
    if len(secret) < 32:
        raise RuntimeError("SECRET_KEY is too short; use at least 32 characters")
    return secret


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "id": user.id,
        "email": user.email,
        "role": user.role,  # informational only; authorization re-reads the stored role
        "exp": expire,
    }
    return jwt.encode(to_encode, _get_secret_key(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Raises JWTError on a bad signature, malformed token or expired `exp`."""
    return jwt.decode(token, _get_secret_key(), algorithms=[ALGORITHM])


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_async_session)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(token)
        user_id = payload.get("id")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    # the row, not the token claim, is the source of truth for the role
    user = await session.get(User, user_id)
    if not user:
        raise credentials_exception

    return user


async def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> Optional[User]:
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except JWTError:
        return None
    user_id = payload.get("id")
    if user_id is None:
        return None
    return await session.get(User, user_id)
