"""Authentication business logic.

Accounts (credentials + verified flag) live apart from profiles: an account is
created first, then its profile and @ddress reservation. ``sign_up`` ties the two
together and removes the account again when the profile can't be created.
"""
import logging
from dataclasses import dataclass

from kombu.exceptions import KombuError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AlreadyTaken, AppError, AuthenticationFailed, Conflict, NotFound
from app.core.security import (
    VERIFY_EMAIL,
    create_access_token,
    create_email_verification_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from app.db.session import run_transaction
from app.models.user import AuthAccount, UserProfile
from app.schemas.user import UserResponse
from app.services.profile_service import create_initial_profile, get_next_address_change_at, is_address_available
from app.utils.address import validate_address
from app.utils.validation import check_password, clean_display_name

logger = logging.getLogger(__name__)


@dataclass
class SignUpResult:
    account: AuthAccount
    profile: UserProfile


class SignUpFailed(AppError):
    """Profile creation failed after the account existed and cleanup failed too."""

    def __init__(self, cause: AppError):
        self.status_code = cause.status_code
        super().__init__(f"{cause.detail}. Your sign-in account may still exist; contact support if you can't sign up again.")


async def get_account_by_email(db: AsyncSession, email: str) -> AuthAccount | None:
    result = await db.execute(select(AuthAccount).where(AuthAccount.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def get_account(db: AsyncSession, uid: str) -> AuthAccount | None:
    result = await db.execute(select(AuthAccount).where(AuthAccount.uid == uid))
    return result.scalar_one_or_none()


async def create_account(db: AsyncSession, email: str, password: str, display_name: str) -> AuthAccount:
    normalized_email = email.strip().lower()

    async def work(session: AsyncSession) -> AuthAccount:
        existing = await session.execute(select(AuthAccount.uid).where(AuthAccount.email == normalized_email))
        if existing.first() is not None:
            raise Conflict("Email already registered")
        account = AuthAccount(
            email=normalized_email,
            password_hash=get_password_hash(password),
            display_name=display_name,
            email_verified=False,
        )
        session.add(account)
        await session.flush()
        return account

    account = await run_transaction(db, work)
    logger.info("Account created: %s", account.uid)
    return account


def send_verification_email(account: AuthAccount) -> str:
    """Queue the verification mail; returns the token that was sent."""
    from app.workers.email import send_verification_email as send_task

    token = create_email_verification_token(account.uid, account.email)
    send_task.delay(account.email, account.display_name, token)
    return token


async def resend_verification_email(db: AsyncSession, email: str) -> None:
    account = await get_account_by_email(db, email)
    if account is None or account.email_verified:
        # Same answer either way so the endpoint can't be used to discover addresses
        return
    send_verification_email(account)


async def verify_email(db: AsyncSession, token: str) -> AuthAccount:
    payload = decode_token(token)
    if not payload or payload.get("type") != VERIFY_EMAIL or not payload.get("sub"):
        raise AuthenticationFailed("Verification link is invalid or has expired")
    uid = payload["sub"]

    async def work(session: AsyncSession) -> AuthAccount:
        account = await session.get(AuthAccount, uid, populate_existing=True)
        if account is None or account.email != payload.get("email"):
            raise AuthenticationFailed("Verification link is invalid or has expired")
        account.email_verified = True
        return account

    account = await run_transaction(db, work)
    logger.info("Email verified: %s", uid)
    return account


async def sign_in(db: AsyncSession, email: str, password: str) -> AuthAccount:
    account = await get_account_by_email(db, email)
    if not account or not verify_password(password, account.password_hash):
        raise AuthenticationFailed("Invalid email or password")
    return account


async def reload(db: AsyncSession, uid: str) -> AuthAccount:
    """Fresh account state; copies the verified flag onto the profile."""

    async def work(session: AsyncSession) -> AuthAccount:
        account = await session.get(AuthAccount, uid, populate_existing=True)
        if account is None:
            raise NotFound("Account not found")
        await session.execute(
            update(UserProfile)
            .where(UserProfile.uid == uid, UserProfile.email_verified.is_not(account.email_verified))
            .values(email_verified=account.email_verified)
            .execution_options(synchronize_session=False)
        )
        return account

    return await run_transaction(db, work)


async def delete_account(db: AsyncSession, uid: str) -> None:
    """Remove the sign-in account. Only a profile-less account can be removed here."""

    async def work(session: AsyncSession) -> None:
        account = await session.get(AuthAccount, uid)
        if account is None:
            return
        if await session.get(UserProfile, uid) is not None:
            raise Conflict("Accounts with a profile can't be deleted")
        await session.delete(account)

    await run_transaction(db, work)
    logger.info("Account deleted: %s", uid)


async def sign_up(
    db: AsyncSession,
    *,
    display_name: str,
    address: str,
    email: str,
    password: str,
    confirm_password: str,
) -> SignUpResult:
    name = clean_display_name(display_name)
    handle = validate_address(address)
    check_password(password, confirm_password)

    if not await is_address_available(db, handle):
        raise AlreadyTaken("That @ddress is already taken. Try another.")

    account = await create_account(db, email, password, name)
    uid = account.uid
    try:
        profile = await create_initial_profile(db, uid=uid, email=account.email, display_name=name, address=handle)
    except AppError as exc:
        try:
            await delete_account(db, uid)
        except (AppError, SQLAlchemyError):
            logger.warning("Cleanup of account %s failed after sign-up error", uid, exc_info=True)
            raise SignUpFailed(exc) from exc
        raise

    try:
        send_verification_email(account)
    except KombuError:
        logger.warning("Verification mail for %s not queued", uid, exc_info=True)
    return SignUpResult(account=account, profile=profile)


def create_tokens_for_account(account: AuthAccount) -> tuple[str, str]:
    return create_access_token(account.uid), create_refresh_token(account.uid)


def profile_to_response(profile: UserProfile) -> UserResponse:
    return UserResponse(
        uid=profile.uid,
        email=profile.email,
        display_name=profile.display_name,
        address=profile.address,
        bio=profile.bio or "",
        theme=profile.theme,
        post_count=profile.post_count or 0,
        total_likes_received=profile.total_likes_received or 0,
        email_verified=profile.email_verified,
        address_last_changed_at=profile.address_last_changed_at,
        next_address_change_at=get_next_address_change_at(profile.address_last_changed_at),
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )

