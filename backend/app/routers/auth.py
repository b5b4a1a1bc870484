"""Account registration and JWT issuance."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_active_user
from app.auth.security import create_access_token, create_refresh_token, decode_token, hash_password, verify_password
from app.database import get_db
from app.models.user import User, USER_STATUS_ACTIVE
from app.schemas.auth import RefreshTokenRequest, Token, UserLogin, UserRegister, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_EMAIL_MESSAGE = "This email is already used. Please log in or use another email instead."


def _token_pair(user: User) -> Token:
    claims = {"sub": user.uuid, "email": user.email}
    return Token(
        access_token=create_access_token(data=claims),
        refresh_token=create_refresh_token(data=claims),
    )


async def _user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserRegister, db: AsyncSession = Depends(get_db)):
    """
    Create an account and sign it in.

    The email pre-check gives a friendly error; the unique constraint on
    ``users.email`` settles signups that race past it.
    """
    if await _user_by_email(db, user_data.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_EMAIL_MESSAGE)

    user = User(
        name=user_data.name,
        email=user_data.email,
        password_hash=hash_password(user_data.password),
        status=USER_STATUS_ACTIVE,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_EMAIL_MESSAGE)

    logger.info(f"Registered user {user.uuid}")
    return _token_pair(user)


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await _user_by_email(db, credentials.email)
    # Same response for unknown email and wrong password
    if user is None or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return _token_pair(user)


@router.post("/refresh", response_model=Token)
async def refresh(request: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    """Trade a refresh token for a new pair. Access tokens are not accepted here."""
    payload = decode_token(request.refresh_token, token_type="refresh")
    user = await db.get(User, payload["sub"]) if payload and payload.get("sub") else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired refresh token")
    return _token_pair(user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_active_user)):
    return current_user
