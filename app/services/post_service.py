"""Post and like business logic.

Counters (``Post.like_count``, ``UserProfile.post_count``,
``UserProfile.total_likes_received``) only move inside a transaction that has
read and locked the rows they describe, and always as relative SQL increments.
"""
import base64
import logging
from datetime import datetime

from sqlalchemy import and_, desc, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.errors import AlreadyDeleted, Forbidden, NotFound, ValidationFailed
from app.db.session import get_for_update, run_transaction
from app.models.engagement import PostLike, like_id
from app.models.post import Post
from app.models.user import UserProfile
from app.schemas.post import PostResponse
from app.services import notification_service
from app.services.friendship_service import get_friend_ids
from app.services.realtime import live_queries, post_topic, posts_topic
from app.utils.dates import hours_ago, utcnow
from app.utils.validation import clean_post_content

logger = logging.getLogger(__name__)


async def _bump_profile(session: AsyncSession, uid: str, *, posts: int = 0, likes: int = 0) -> None:
    values = {"updated_at": utcnow()}
    if posts:
        values["post_count"] = UserProfile.post_count + posts
    if likes:
        values["total_likes_received"] = UserProfile.total_likes_received + likes
    await session.execute(
        update(UserProfile)
        .where(UserProfile.uid == uid)
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )


async def create_post(
    db: AsyncSession,
    author_uid: str,
    author_address: str,
    content: str,
    *,
    now: datetime | None = None,
) -> Post:
    """Insert the post and bump the author's post_count in one transaction."""
    text = clean_post_content(content)

    async def work(session: AsyncSession) -> Post:
        created_at = now or utcnow()
        author = await get_for_update(session, UserProfile, author_uid)
        if author is None:
            raise NotFound("Could not resolve your profile to post")
        post = Post(
            author_uid=author_uid,
            author_address=author_address,
            content=text,
            like_count=0,
            deleted=False,
            created_at=created_at,
            updated_at=created_at,
        )
        session.add(post)
        await session.flush()
        await _bump_profile(session, author_uid, posts=1)
        return post

    post = await run_transaction(db, work)
    logger.info("Post %s created by %s", post.id, author_uid)
    live_queries.publish(posts_topic(), post_topic(post.id))
    return post


async def delete_own_post(db: AsyncSession, post_id: str, actor_uid: str) -> Post:
    """Soft-delete a post and take its likes back out of the author's total."""

    async def work(session: AsyncSession) -> Post:
        post = await get_for_update(session, Post, post_id)
        if post is None:
            raise NotFound("Post not found")
        if post.deleted:
            raise AlreadyDeleted()
        if post.author_uid != actor_uid:
            raise Forbidden("You can only delete your own post")
        like_count = post.like_count or 0
        post.deleted = True
        post.updated_at = utcnow()
        await _bump_profile(session, post.author_uid, posts=-1, likes=-like_count)
        return post

    post = await run_transaction(db, work)
    logger.info("Post %s deleted by its author", post_id)
    live_queries.publish(posts_topic(), post_topic(post_id))
    return post


async def toggle_like(db: AsyncSession, post_id: str, actor_uid: str) -> tuple[bool, Post]:
    """Like the post if ``actor_uid`` hasn't yet, unlike it otherwise.

    Returns ``(liked, post)`` where ``liked`` is the state after this call.
    """
    ledger_id = like_id(post_id, actor_uid)

    async def work(session: AsyncSession) -> tuple[bool, Post]:
        post = await get_for_update(session, Post, post_id)
        # a deleted post no longer counts towards the author total, so it cannot gain likes either
        if post is None or post.deleted:
            raise NotFound("Post not found")
        like = await get_for_update(session, PostLike, ledger_id)

        if like is not None:
            await session.delete(like)
            delta = -1
        else:
            session.add(PostLike(id=ledger_id, post_id=post_id, user_uid=actor_uid, created_at=utcnow()))
            delta = 1

        await session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(like_count=Post.like_count + delta, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        await _bump_profile(session, post.author_uid, likes=delta)
        await session.flush()
        await session.refresh(post)
        return delta > 0, post

    liked, post = await run_transaction(db, work)
    logger.debug("Post %s %s by %s (now %d)", post_id, "liked" if liked else "unliked", actor_uid, post.like_count)
    live_queries.publish(posts_topic(), post_topic(post_id))

    if liked and actor_uid != post.author_uid:
        await notification_service.notify_post_liked(recipient_uid=post.author_uid, actor_uid=actor_uid, post_id=post_id)
    return liked, post


async def has_user_liked_post(db: AsyncSession, post_id: str, uid: str) -> bool:
    return await db.get(PostLike, like_id(post_id, uid)) is not None


async def get_liked_post_ids(db: AsyncSession, uid: str, post_ids: list[str]) -> set[str]:
    """Return set of post IDs that the user has liked."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(PostLike.post_id).where(
            PostLike.user_uid == uid,
            PostLike.post_id.in_(post_ids),
        )
    )
    return set(row[0] for row in result.all() if row[0])


async def get_post(db: AsyncSession, post_id: str) -> Post | None:
    """Live post by id; soft-deleted posts read as missing."""
    result = await db.execute(
        select(Post)
        .where(Post.id == post_id, Post.deleted.is_(False))
        .options(selectinload(Post.author))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_recent_posts(db: AsyncSession, *, now: datetime | None = None) -> list[Post]:
    """Every live post inside the rolling feed window, newest first."""
    cutoff = hours_ago(settings.FEED_WINDOW_HOURS, now)
    result = await db.execute(
        select(Post)
        .where(Post.deleted.is_(False), Post.created_at >= cutoff)
        .order_by(desc(Post.created_at), desc(Post.id))
        .options(selectinload(Post.author))
    )
    return list(result.scalars().all())


async def get_feed_posts(db: AsyncSession, viewer_uid: str, *, now: datetime | None = None) -> list[Post]:
    """Recent posts by the viewer and the viewer's friends."""
    visible = {viewer_uid, *await get_friend_ids(db, viewer_uid)}
    cutoff = hours_ago(settings.FEED_WINDOW_HOURS, now)
    result = await db.execute(
        select(Post)
        .where(
            Post.deleted.is_(False),
            Post.created_at >= cutoff,
            Post.author_uid.in_(list(visible)),
        )
        .order_by(desc(Post.created_at), desc(Post.id))
        .options(selectinload(Post.author))
    )
    return list(result.scalars().all())


def encode_cursor(post: Post) -> str:
    raw = f"{post.created_at.isoformat()}|{post.id}"
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, str]:
    try:
        created_at, post_id = base64.urlsafe_b64decode(cursor.encode()).decode().split("|", 1)
        return datetime.fromisoformat(created_at), post_id
    except ValueError as exc:
        raise ValidationFailed("Invalid page cursor") from exc


async def get_profile_posts_page(
    db: AsyncSession,
    uid: str,
    *,
    cursor: str | None = None,
    page_size: int | None = None,
) -> tuple[list[Post], str | None]:
    """One page of a user's live posts, newest first, plus the cursor for the next page."""
    size = page_size or settings.PROFILE_POSTS_PAGE_SIZE
    q = (
        select(Post)
        .where(Post.author_uid == uid, Post.deleted.is_(False))
        .order_by(desc(Post.created_at), desc(Post.id))
        .limit(size)
        .options(selectinload(Post.author))
    )
    if cursor:
        created_at, post_id = decode_cursor(cursor)
        q = q.where(
            or_(
                Post.created_at < created_at,
                and_(Post.created_at == created_at, Post.id < post_id),
            )
        )
    result = await db.execute(q)
    posts = list(result.scalars().all())
    next_cursor = encode_cursor(posts[-1]) if len(posts) == size else None
    return posts, next_cursor


def post_to_response(post: Post, is_liked: bool = False) -> PostResponse:
    author = post.author
    return PostResponse(
        id=post.id,
        author_uid=post.author_uid,
        author_address=post.author_address,
        author_display_name=author.display_name if author else None,
        content=post.content,
        like_count=post.like_count or 0,
        created_at=post.created_at,
        updated_at=post.updated_at,
        is_liked=is_liked,
    )
