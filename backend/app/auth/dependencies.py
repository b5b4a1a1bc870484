"""Request dependencies that resolve the calling user from a bearer token."""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import decode_token
from app.database import get_db
from app.models.user import User, USER_STATUS_ACTIVE

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the access token's ``sub`` claim to a user row (401 otherwise)."""
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = decode_token(credentials.credentials, token_type="access")
    if payload is None or not payload.get("sub"):
        raise _unauthorized("Invalid or expired token")

    user = await db.get(User, payload["sub"])
    if user is None:
        raise _unauthorized("User not found")
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Suspended accounts can authenticate but cannot buy or sell."""
    if current_user.status != USER_STATUS_ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active",
        )
    return current_user
