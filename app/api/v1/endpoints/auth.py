"""Auth endpoints: sign-up, e-mail verification, sign-in, refresh."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_account, get_db
from app.core.security import REFRESH, subject_for
from app.models.user import AuthAccount
from app.schemas.user import (
    ReloadResponse,
    ResendVerificationRequest,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
    Token,
    TokenRefresh,
    VerifyEmailRequest,
)
from app.services.auth_service import (
    create_tokens_for_account,
    delete_account,
    get_account,
    profile_to_response,
    reload,
    resend_verification_email,
    sign_in,
    sign_up,
    verify_email,
)
from app.services.profile_service import get_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _token_response(db: AsyncSession, account: AuthAccount) -> Token:
    access_token, refresh_token = create_tokens_for_account(account)
    profile = await get_profile(db, account.uid)
    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        user=profile_to_response(profile) if profile else None,
    )


@router.post("/sign-up", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def sign_up_endpoint(
    data: SignUpRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Sign-up attempt: @%s", data.address)
    result = await sign_up(
        db,
        display_name=data.display_name,
        address=data.address,
        email=data.email,
        password=data.password,
        confirm_password=data.confirm_password,
    )
    return SignUpResponse(uid=result.account.uid, email=result.account.email, address=result.profile.address)


@router.post("/verify-email", response_model=ReloadResponse)
async def verify_email_endpoint(
    data: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db),
):
    account = await verify_email(db, data.token)
    account = await reload(db, account.uid)
    return ReloadResponse(uid=account.uid, email_verified=account.email_verified)


@router.post("/resend-verification", status_code=status.HTTP_202_ACCEPTED)
async def resend_verification(
    data: ResendVerificationRequest,
    db: AsyncSession = Depends(get_db),
):
    await resend_verification_email(db, data.email)
    return {"status": "sent"}


@router.post("/sign-in", response_model=Token)
async def sign_in_endpoint(
    data: SignInRequest,
    db: AsyncSession = Depends(get_db),
):
    account = await sign_in(db, data.email, data.password)
    logger.info("Sign-in success: %s", account.uid)
    return await _token_response(db, account)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    body: TokenRefresh,
    db: AsyncSession = Depends(get_db),
):
    uid = subject_for(body.refresh_token, REFRESH)
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    account = await get_account(db, uid)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return await _token_response(db, account)


@router.post("/reload", response_model=ReloadResponse)
async def reload_endpoint(
    account: AuthAccount = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    account = await reload(db, account.uid)
    return ReloadResponse(uid=account.uid, email_verified=account.email_verified)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(account: AuthAccount = Depends(get_current_account)):
    # Tokens are stateless; the client drops them
    logger.info("Sign-out: %s", account.uid)
    return None


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    account: AuthAccount = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    await delete_account(db, account.uid)
    return None
