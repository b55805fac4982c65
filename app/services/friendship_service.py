"""Business logic for friend requests and friendships.

Sending a request is not folded into one transaction with its duplicate and
already-friends checks: ``send_request_to_address`` reads first and writes after,
so two people sending each other a request at the same moment can both succeed.
The deterministic friendship id keeps the graph itself free of duplicate edges.
"""
import logging

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AlreadyFriends, DuplicateRequest, Forbidden, NotFound, SelfFriend, ValidationFailed
from app.db.session import get_for_update, run_transaction
from app.models.friendship import REQUEST_ACCEPTED, REQUEST_PENDING, FriendRequest, Friendship, friendship_id
from app.models.user import AuthAccount, UserProfile
from app.schemas.friends import FriendRequestResponse, FriendRequestsResponse, FriendshipResponse
from app.schemas.user import UserPublic
from app.services import notification_service
from app.services.profile_service import lookup
from app.services.realtime import friend_requests_topic, friendships_topic, live_queries
from app.utils.address import normalize_address
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


async def send_request(db: AsyncSession, from_uid: str, to_uid: str) -> FriendRequest:
    """Insert a pending request. Duplicate checks are the caller's job."""
    if from_uid == to_uid:
        raise SelfFriend()

    async def work(session: AsyncSession) -> FriendRequest:
        if await session.get(AuthAccount, to_uid) is None:
            raise NotFound("No user found with that @ddress")
        request = FriendRequest(
            from_uid=from_uid,
            to_uid=to_uid,
            status=REQUEST_PENDING,
            created_at=utcnow(),
            responded_at=None,
        )
        session.add(request)
        await session.flush()
        return request

    request = await run_transaction(db, work)
    logger.info("Friend request %s: %s -> %s", request.id, from_uid, to_uid)
    live_queries.publish(friend_requests_topic(from_uid), friend_requests_topic(to_uid))
    return request


async def send_request_to_address(db: AsyncSession, from_uid: str, address: str) -> FriendRequest:
    """Resolve the handle, run the precondition reads, then send and notify."""
    handle = normalize_address(address)
    if not handle:
        raise ValidationFailed("Enter an @ddress first")

    to_uid = await lookup(db, handle)
    if not to_uid:
        raise NotFound("No user found with that @ddress")
    if to_uid == from_uid:
        raise SelfFriend()
    if await are_friends(db, from_uid, to_uid):
        raise AlreadyFriends()
    if await has_pending_request_between(db, from_uid, to_uid):
        raise DuplicateRequest()

    request = await send_request(db, from_uid, to_uid)
    await notification_service.notify_friend_request_received(recipient_uid=to_uid, actor_uid=from_uid)
    return request


async def accept_request(
    db: AsyncSession,
    request_id: str,
    from_uid: str,
    to_uid: str,
    *,
    actor_uid: str | None = None,
) -> Friendship:
    """Mark the request accepted and write the pair's friendship, atomically.

    Accepting an already accepted request leaves both rows as they are.
    """
    if actor_uid is not None and actor_uid != to_uid:
        raise Forbidden("Only the recipient can accept a friend request")
    edge_id = friendship_id(from_uid, to_uid)
    user_a, user_b = sorted([from_uid, to_uid])

    async def work(session: AsyncSession) -> tuple[Friendship, bool]:
        request = await get_for_update(session, FriendRequest, request_id)
        if request is None:
            raise NotFound("Friend request not found")
        if request.from_uid != from_uid or request.to_uid != to_uid:
            raise ValidationFailed("Friend request does not match these users")
        first_accept = request.status != REQUEST_ACCEPTED
        now = utcnow()
        if first_accept:
            request.status = REQUEST_ACCEPTED
            request.responded_at = now

        friendship = await get_for_update(session, Friendship, edge_id)
        if friendship is None:
            friendship = Friendship(id=edge_id, user_a_uid=user_a, user_b_uid=user_b, created_at=now)
            session.add(friendship)
        await session.flush()
        return friendship, first_accept

    friendship, first_accept = await run_transaction(db, work)
    logger.info("Friend request %s accepted: %s <-> %s", request_id, from_uid, to_uid)
    live_queries.publish(
        friendships_topic(from_uid),
        friendships_topic(to_uid),
        friend_requests_topic(from_uid),
        friend_requests_topic(to_uid),
    )
    if first_accept:
        await notification_service.notify_friend_request_accepted(recipient_uid=from_uid, actor_uid=to_uid)
    return friendship


async def accept_request_by_id(db: AsyncSession, request_id: str, actor_uid: str) -> Friendship:
    """Accept on behalf of ``actor_uid``, reading the pair off the request."""
    request = await db.get(FriendRequest, request_id)
    if request is None:
        raise NotFound("Friend request not found")
    return await accept_request(db, request_id, request.from_uid, request.to_uid, actor_uid=actor_uid)


async def remove_friend(db: AsyncSession, uid_a: str, uid_b: str) -> None:
    """Delete the pair's friendship; no-op when they aren't friends."""

    async def work(session: AsyncSession) -> int:
        result = await session.execute(delete(Friendship).where(Friendship.id == friendship_id(uid_a, uid_b)))
        return result.rowcount or 0

    removed = await run_transaction(db, work)
    if removed:
        logger.info("Friendship removed: %s <-> %s", uid_a, uid_b)
        live_queries.publish(friendships_topic(uid_a), friendships_topic(uid_b))


async def get_friendship(db: AsyncSession, uid_a: str, uid_b: str) -> Friendship | None:
    return await db.get(Friendship, friendship_id(uid_a, uid_b))


async def are_friends(db: AsyncSession, uid_a: str, uid_b: str) -> bool:
    return await get_friendship(db, uid_a, uid_b) is not None


async def list_friendships(db: AsyncSession, uid: str) -> list[Friendship]:
    result = await db.execute(
        select(Friendship)
        .where(or_(Friendship.user_a_uid == uid, Friendship.user_b_uid == uid))
        .order_by(Friendship.created_at.asc())
    )
    return list(result.scalars().all())


async def get_friend_ids(db: AsyncSession, uid: str) -> list[str]:
    friend_ids: list[str] = []
    for friendship in await list_friendships(db, uid):
        other = friendship.other(uid)
        if other != uid and other not in friend_ids:
            friend_ids.append(other)
    return friend_ids


async def has_pending_request_between(db: AsyncSession, uid_a: str, uid_b: str) -> bool:
    """True if either user has a pending request to the other."""
    result = await db.execute(
        select(FriendRequest.id)
        .where(
            FriendRequest.status == REQUEST_PENDING,
            or_(
                and_(FriendRequest.from_uid == uid_a, FriendRequest.to_uid == uid_b),
                and_(FriendRequest.from_uid == uid_b, FriendRequest.to_uid == uid_a),
            ),
        )
        .limit(1)
    )
    return result.first() is not None


async def get_incoming_requests(db: AsyncSession, uid: str) -> list[FriendRequest]:
    result = await db.execute(
        select(FriendRequest)
        .where(FriendRequest.status == REQUEST_PENDING, FriendRequest.to_uid == uid)
        .order_by(FriendRequest.created_at.desc())
    )
    return list(result.scalars().all())


async def get_outgoing_requests(db: AsyncSession, uid: str) -> list[FriendRequest]:
    result = await db.execute(
        select(FriendRequest)
        .where(FriendRequest.status == REQUEST_PENDING, FriendRequest.from_uid == uid)
        .order_by(FriendRequest.created_at.desc())
    )
    return list(result.scalars().all())


async def get_profiles(db: AsyncSession, uids: set[str]) -> dict[str, UserProfile]:
    if not uids:
        return {}
    result = await db.execute(select(UserProfile).where(UserProfile.uid.in_(list(uids))))
    return {profile.uid: profile for profile in result.scalars().all()}


def request_to_response(request: FriendRequest, profiles: dict[str, UserProfile]) -> FriendRequestResponse:
    from_user = profiles.get(request.from_uid)
    to_user = profiles.get(request.to_uid)
    return FriendRequestResponse(
        id=request.id,
        from_uid=request.from_uid,
        to_uid=request.to_uid,
        status=request.status,
        created_at=request.created_at,
        responded_at=request.responded_at,
        from_user=UserPublic.model_validate(from_user) if from_user else None,
        to_user=UserPublic.model_validate(to_user) if to_user else None,
    )


async def get_requests_response(db: AsyncSession, uid: str) -> FriendRequestsResponse:
    incoming = await get_incoming_requests(db, uid)
    outgoing = await get_outgoing_requests(db, uid)
    profiles = await get_profiles(db, {r.from_uid for r in incoming} | {r.to_uid for r in outgoing})
    return FriendRequestsResponse(
        incoming=[request_to_response(r, profiles) for r in incoming],
        outgoing=[request_to_response(r, profiles) for r in outgoing],
    )


async def get_friends_response(db: AsyncSession, uid: str) -> list[UserPublic]:
    """Friends' public profiles in the order the friendships were made."""
    friend_ids = await get_friend_ids(db, uid)
    profiles = await get_profiles(db, set(friend_ids))
    return [UserPublic.model_validate(profiles[f]) for f in friend_ids if f in profiles]


def friendship_to_response(friendship: Friendship) -> FriendshipResponse:
    return FriendshipResponse(id=friendship.id, users=friendship.users, created_at=friendship.created_at)
