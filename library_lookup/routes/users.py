import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from passlib.hash import bcrypt
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from library_lookup.config import AUTH_RATE_LIMIT
from library_lookup.database import get_async_session
from library_lookup.limiter import limiter
from library_lookup.models.user_model import User
from library_lookup.schemas.user_schemas import (
    UserCreate, UserLogin, UserOut, RegisterResponse, LoginResponse
)
from library_lookup.utils.token_utils import create_access_token, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(request: Request, user: UserCreate, db: AsyncSession = Depends(get_async_session)):
    # validators already trimmed the username and lower-cased the email
    existing = await db.scalar(
        select(User.id).where(func.lower(User.email) == user.email)
    )
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")

    new_user = User(
        username=user.username,
        email=user.email,
        password_hash=bcrypt.hash(user.password),
        role="user",
    )

    try:
        db.add(new_user)
        await db.commit()
        await db.refresh(new_user)
    except IntegrityError:
        # lost a race against a concurrent signup with the same email
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")

    logger.info("User registered: id=%s", new_user.id)
    return RegisterResponse(user=UserOut.model_validate(new_user))


@router.post("/login", response_model=LoginResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(request: Request, user: UserLogin, db: AsyncSession = Depends(get_async_session)):
    email = user.email.strip().lower()
    if not email or not user.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    db_user = await db.scalar(select(User).where(func.lower(User.email) == email))

    # same answer for unknown email and wrong password
    if not db_user or not bcrypt.verify(user.password, db_user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(db_user)
    logger.info("User logged in: id=%s", db_user.id)

    return LoginResponse(token=token, user=UserOut.model_validate(db_user))


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    return user
