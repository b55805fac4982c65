"""API dependencies: auth, db session."""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import ACCESS, subject_for
from app.db.session import async_session_maker, get_db
from app.models.user import AuthAccount, UserProfile

security = HTTPBearer(auto_error=False)


async def get_current_account_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AuthAccount | None:
    if not credentials:
        return None
    uid = subject_for(credentials.credentials, ACCESS)
    if not uid:
        return None
    result = await db.execute(select(AuthAccount).where(AuthAccount.uid == uid))
    return result.scalar_one_or_none()


async def get_current_account(
    account: AuthAccount | None = Depends(get_current_account_optional),
) -> AuthAccount:
    """Signed in, verified or not. Used by the auth routes themselves."""
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return account


async def get_verified_account(
    account: AuthAccount = Depends(get_current_account),
) -> AuthAccount:
    if not account.email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email before continuing.",
        )
    return account


async def get_current_user(
    account: AuthAccount = Depends(get_verified_account),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    """Profile of the signed-in, verified user."""
    result = await db.execute(select(UserProfile).where(UserProfile.uid == account.uid))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")
    return profile


async def authenticate_websocket(token: str | None) -> str | None:
    """uid for a WebSocket ``?token=``; None unless it belongs to a verified account."""
    if not token:
        return None
    uid = subject_for(token, ACCESS)
    if not uid:
        return None
    async with async_session_maker() as db:
        account = await db.get(AuthAccount, uid)
    if account is None or not account.email_verified:
        return None
    return uid
