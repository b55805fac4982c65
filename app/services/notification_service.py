"""Notification outbox: creation, fan-out helpers and queries."""
import logging

from kombu.exceptions import KombuError
from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import Forbidden, NotFound
from app.db.session import async_session_maker, run_transaction
from app.models.notification import (
    COMMENT_REPLIED,
    FRIEND_REQUEST_ACCEPTED,
    FRIEND_REQUEST_RECEIVED,
    POST_COMMENTED,
    POST_LIKED,
    Notification,
)
from app.schemas.notification import NotificationResponse
from app.services.realtime import live_queries, notifications_topic

logger = logging.getLogger(__name__)

PUSH_TEXT = {
    POST_LIKED: "liked your post",
    POST_COMMENTED: "commented on your post",
    COMMENT_REPLIED: "replied to your comment",
    FRIEND_REQUEST_RECEIVED: "sent you a friend request",
    FRIEND_REQUEST_ACCEPTED: "accepted your friend request",
}


def create_notification(
    db: AsyncSession,
    *,
    recipient_uid: str,
    actor_uid: str,
    notification_type: str,
    post_id: str = "",
    comment_id: str = "",
) -> Notification | None:
    """Add a notification to the session. Skips if actor is the recipient (no self-notify)."""
    if recipient_uid == actor_uid:
        return None
    notification = Notification(
        recipient_uid=recipient_uid,
        actor_uid=actor_uid,
        type=notification_type,
        post_id=post_id or "",
        comment_id=comment_id or "",
        read=False,
    )
    db.add(notification)
    return notification


def _schedule_push(notification: Notification) -> None:
    from app.workers.notifications import send_push_notification

    try:
        send_push_notification.delay(notification.recipient_uid, "stamp", PUSH_TEXT.get(notification.type, notification.type))
    except KombuError:
        logger.warning("Push for notification %s not scheduled", notification.id, exc_info=True)


async def enqueue(
    db: AsyncSession,
    *,
    recipient_uid: str,
    actor_uid: str,
    notification_type: str,
    post_id: str = "",
    comment_id: str = "",
) -> Notification | None:
    """Persist one notification in its own transaction."""

    async def work(session: AsyncSession) -> Notification | None:
        notification = create_notification(
            session,
            recipient_uid=recipient_uid,
            actor_uid=actor_uid,
            notification_type=notification_type,
            post_id=post_id,
            comment_id=comment_id,
        )
        if notification is not None:
            await session.flush()
        return notification

    notification = await run_transaction(db, work)
    if notification is None:
        return None
    logger.debug("Notification %s (%s) for %s", notification.id, notification_type, recipient_uid)
    live_queries.publish(notifications_topic(recipient_uid))
    _schedule_push(notification)
    return notification


async def enqueue_best_effort(**kwargs) -> Notification | None:
    """Fire-and-forget enqueue used after a primary write has committed.

    Runs in a fresh session so a failure here can never touch the caller's
    transaction. Failures are logged and dropped, never retried.
    """
    try:
        async with async_session_maker() as session:
            return await enqueue(session, **kwargs)
    except Exception:
        logger.warning(
            "Dropped %s notification for %s",
            kwargs.get("notification_type"),
            kwargs.get("recipient_uid"),
            exc_info=True,
        )
        return None


async def notify_post_liked(*, recipient_uid: str, actor_uid: str, post_id: str) -> Notification | None:
    return await enqueue_best_effort(
        recipient_uid=recipient_uid, actor_uid=actor_uid, notification_type=POST_LIKED, post_id=post_id
    )


async def notify_post_commented(*, recipient_uid: str, actor_uid: str, post_id: str, comment_id: str) -> Notification | None:
    return await enqueue_best_effort(
        recipient_uid=recipient_uid,
        actor_uid=actor_uid,
        notification_type=POST_COMMENTED,
        post_id=post_id,
        comment_id=comment_id,
    )


async def notify_comment_replied(*, recipient_uid: str, actor_uid: str, post_id: str, comment_id: str) -> Notification | None:
    return await enqueue_best_effort(
        recipient_uid=recipient_uid,
        actor_uid=actor_uid,
        notification_type=COMMENT_REPLIED,
        post_id=post_id,
        comment_id=comment_id,
    )


async def notify_friend_request_received(*, recipient_uid: str, actor_uid: str) -> Notification | None:
    return await enqueue_best_effort(
        recipient_uid=recipient_uid, actor_uid=actor_uid, notification_type=FRIEND_REQUEST_RECEIVED
    )


async def notify_friend_request_accepted(*, recipient_uid: str, actor_uid: str) -> Notification | None:
    return await enqueue_best_effort(
        recipient_uid=recipient_uid, actor_uid=actor_uid, notification_type=FRIEND_REQUEST_ACCEPTED
    )


async def get_notifications(
    db: AsyncSession,
    uid: str,
    *,
    skip: int = 0,
    limit: int = 50,
) -> list[Notification]:
    """Get notifications for user, most recent first."""
    result = await db.execute(
        select(Notification)
        .where(Notification.recipient_uid == uid)
        .order_by(desc(Notification.created_at), desc(Notification.id))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Notification.actor))
    )
    return list(result.scalars().all())


async def get_notification(db: AsyncSession, notification_id: str) -> Notification | None:
    result = await db.execute(
        select(Notification)
        .where(Notification.id == notification_id)
        .options(selectinload(Notification.actor))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_unread_count(db: AsyncSession, uid: str) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_uid == uid,
            Notification.read.is_(False),
        )
    )
    return result.scalar() or 0


async def mark_read(db: AsyncSession, notification_id: str, *, recipient_uid: str | None = None) -> Notification:
    """Set read=True. Repeating it is harmless."""

    async def work(session: AsyncSession) -> Notification:
        notification = await session.get(Notification, notification_id)
        if notification is None:
            raise NotFound("Notification not found")
        if recipient_uid is not None and notification.recipient_uid != recipient_uid:
            raise Forbidden("That notification belongs to someone else")
        notification.read = True
        return notification

    notification = await run_transaction(db, work)
    live_queries.publish(notifications_topic(notification.recipient_uid))
    return notification


async def mark_all_read(db: AsyncSession, uid: str) -> int:
    """Mark all notifications as read. Returns count updated."""

    async def work(session: AsyncSession) -> int:
        result = await session.execute(
            update(Notification)
            .where(Notification.recipient_uid == uid, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    updated = await run_transaction(db, work)
    if updated:
        live_queries.publish(notifications_topic(uid))
    return updated


def notification_to_response(notification: Notification) -> NotificationResponse:
    actor = notification.actor
    return NotificationResponse(
        id=notification.id,
        recipient_uid=notification.recipient_uid,
        actor_uid=notification.actor_uid,
        actor_address=actor.address if actor else None,
        actor_display_name=actor.display_name if actor else None,
        type=notification.type,
        post_id=notification.post_id or "",
        comment_id=notification.comment_id or "",
        read=notification.read,
        created_at=notification.created_at,
    )
