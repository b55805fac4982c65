"""Profiles and the @ddress registry."""
import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import AlreadyTaken, CooldownActive, NotFound
from app.db.session import get_for_update, run_transaction
from app.models.address import AddressReservation
from app.models.user import UserProfile
from app.utils.address import normalize_address, validate_address
from app.utils.dates import utcnow
from app.utils.theme import DEFAULT_THEME, resolve_theme
from app.utils.validation import clean_bio, clean_display_name

logger = logging.getLogger(__name__)


async def get_profile(db: AsyncSession, uid: str) -> UserProfile | None:
    result = await db.execute(select(UserProfile).where(UserProfile.uid == uid))
    return result.scalar_one_or_none()


async def lookup(db: AsyncSession, handle: str) -> str | None:
    """uid holding ``handle``, or None."""
    reservation = await db.get(AddressReservation, normalize_address(handle))
    return reservation.uid if reservation else None


async def get_profile_by_address(db: AsyncSession, handle: str) -> UserProfile | None:
    uid = await lookup(db, handle)
    if not uid:
        return None
    return await get_profile(db, uid)


async def is_address_available(db: AsyncSession, handle: str) -> bool:
    return await lookup(db, handle) is None


async def reserve(db: AsyncSession, handle: str, uid: str, *, now: datetime | None = None) -> AddressReservation:
    """Claim ``handle`` for ``uid`` inside the caller's transaction."""
    normalized = normalize_address(handle)
    existing = await db.get(AddressReservation, normalized, populate_existing=True)
    if existing is not None:
        raise AlreadyTaken()
    reservation = AddressReservation(handle=normalized, uid=uid, created_at=now or utcnow())
    db.add(reservation)
    return reservation


async def release(db: AsyncSession, handle: str) -> None:
    """Drop the reservation for ``handle``; no-op when there is none."""
    await db.execute(delete(AddressReservation).where(AddressReservation.handle == normalize_address(handle)))


def get_next_address_change_at(last_changed_at: datetime | None) -> datetime | None:
    if last_changed_at is None:
        return None
    return last_changed_at + timedelta(days=settings.ADDRESS_CHANGE_COOLDOWN_DAYS)


def can_change_address(last_changed_at: datetime | None, now: datetime | None = None) -> bool:
    next_allowed = get_next_address_change_at(last_changed_at)
    return next_allowed is None or (now or utcnow()) >= next_allowed


async def create_initial_profile(
    db: AsyncSession,
    *,
    uid: str,
    email: str,
    display_name: str,
    address: str,
    now: datetime | None = None,
) -> UserProfile:
    """Create the profile and its address reservation together."""
    normalized = validate_address(address)
    name = clean_display_name(display_name)

    async def work(session: AsyncSession) -> UserProfile:
        created_at = now or utcnow()
        await reserve(session, normalized, uid, now=created_at)
        profile = UserProfile(
            uid=uid,
            email=email,
            display_name=name,
            address=normalized,
            bio="",
            theme=DEFAULT_THEME,
            post_count=0,
            total_likes_received=0,
            address_last_changed_at=None,
            email_verified=False,
            created_at=created_at,
            updated_at=created_at,
        )
        session.add(profile)
        await session.flush()
        return profile

    profile = await run_transaction(db, work)
    logger.info("Profile created: %s @%s", uid, normalized)
    return profile


async def change_address(
    db: AsyncSession,
    uid: str,
    requested_address: str,
    *,
    now: datetime | None = None,
) -> UserProfile:
    """Move ``uid`` to a new handle: reserve new, update profile, release old, atomically.

    Returns the profile unchanged when the requested handle is already the current one.
    """
    normalized = validate_address(requested_address)

    async def work(session: AsyncSession) -> UserProfile:
        changed_at = now or utcnow()
        profile = await get_for_update(session, UserProfile, uid)
        if profile is None:
            raise NotFound("User profile not found")

        current = normalize_address(profile.address)
        if current == normalized:
            return profile

        if not can_change_address(profile.address_last_changed_at, changed_at):
            raise CooldownActive(get_next_address_change_at(profile.address_last_changed_at))

        await reserve(session, normalized, uid, now=changed_at)
        profile.address = normalized
        profile.address_last_changed_at = changed_at
        profile.updated_at = changed_at
        await release(session, current)
        await session.flush()
        return profile

    profile = await run_transaction(db, work)
    logger.info("Address for %s is now @%s", uid, profile.address)
    return profile


async def update_profile_fields(
    db: AsyncSession,
    uid: str,
    *,
    display_name: str | None = None,
    bio: str | None = None,
    theme: str | None = None,
) -> UserProfile:
    name = clean_display_name(display_name) if display_name is not None else None
    cleaned_bio = clean_bio(bio) if bio is not None else None

    async def work(session: AsyncSession) -> UserProfile:
        profile = await get_for_update(session, UserProfile, uid)
        if profile is None:
            raise NotFound("User profile not found")
        if name is not None:
            profile.display_name = name
        if cleaned_bio is not None:
            profile.bio = cleaned_bio
        if theme is not None:
            profile.theme = resolve_theme(theme)
        profile.updated_at = utcnow()
        return profile

    return await run_transaction(db, work)
