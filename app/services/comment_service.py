"""Comments on posts: creation with reply fan-out, moderation and thread reads.

Each removal flag belongs to one comment only. Hiding or deleting a comment
never hides its replies; they stay visible until flagged themselves.
"""
import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, Gone, Mismatch, NotFound
from app.db.session import get_for_update, run_transaction
from app.models.comment import Comment
from app.models.post import Post
from app.models.user import UserProfile
from app.schemas.comment import CommentResponse, CommentThreadResponse
from app.services import notification_service
from app.services.realtime import comments_topic, live_queries
from app.utils.dates import utcnow
from app.utils.validation import clean_comment_content

logger = logging.getLogger(__name__)


@dataclass
class CommentThread:
    roots: list[Comment] = field(default_factory=list)
    replies_by_parent_id: dict[str, list[Comment]] = field(default_factory=dict)


async def create_comment(
    db: AsyncSession,
    *,
    actor_uid: str,
    post_id: str,
    content: str,
    parent_comment_id: str | None = None,
) -> Comment:
    text = clean_comment_content(content)
    new_id = uuid.uuid4().hex

    async def work(session: AsyncSession) -> tuple[Comment, Post, Comment | None]:
        actor = await session.get(UserProfile, actor_uid)
        if actor is None:
            raise NotFound("Could not resolve your profile to comment")

        post = await session.get(Post, post_id, populate_existing=True)
        if post is None:
            raise NotFound("Post not found")
        if post.deleted:
            raise Gone("Cannot comment on a deleted post")

        parent = None
        if parent_comment_id:
            parent = await get_for_update(session, Comment, parent_comment_id)
            if parent is None:
                raise NotFound("Reply target not found")
            if parent.post_id != post_id:
                raise Mismatch()
            if not parent.is_visible:
                raise Gone("Cannot reply to a removed comment")

        now = utcnow()
        comment = Comment(
            id=new_id,
            post_id=post_id,
            author_uid=actor_uid,
            author_address=actor.address,
            content=text,
            parent_comment_id=parent.id if parent else "",
            root_comment_id=(parent.root_comment_id or parent.id) if parent else new_id,
            reply_count=0,
            hidden_by_post_owner=False,
            deleted_by_author=False,
            deleted_by_post_owner=False,
            created_at=now,
            updated_at=now,
        )
        session.add(comment)
        if parent is not None:
            await session.execute(
                update(Comment)
                .where(Comment.id == parent.id)
                .values(reply_count=Comment.reply_count + 1)
                .execution_options(synchronize_session="fetch")
            )
        await session.flush()
        return comment, post, parent

    comment, post, parent = await run_transaction(db, work)
    logger.info("Comment %s on post %s by %s", comment.id, post_id, actor_uid)
    live_queries.publish(comments_topic(post_id))

    if parent is not None:
        await notification_service.notify_comment_replied(
            recipient_uid=parent.author_uid, actor_uid=actor_uid, post_id=post_id, comment_id=comment.id
        )
        if post.author_uid != parent.author_uid:
            await notification_service.notify_post_commented(
                recipient_uid=post.author_uid, actor_uid=actor_uid, post_id=post_id, comment_id=comment.id
            )
    else:
        await notification_service.notify_post_commented(
            recipient_uid=post.author_uid, actor_uid=actor_uid, post_id=post_id, comment_id=comment.id
        )
    return comment


async def delete_own_comment(db: AsyncSession, comment_id: str, actor_uid: str) -> Comment:
    async def work(session: AsyncSession) -> Comment:
        comment = await get_for_update(session, Comment, comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        if comment.author_uid != actor_uid:
            raise Forbidden("You can only delete your own comments")
        if not comment.deleted_by_author:
            comment.deleted_by_author = True
            comment.updated_at = utcnow()
        return comment

    comment = await run_transaction(db, work)
    live_queries.publish(comments_topic(comment.post_id))
    return comment


async def _load_for_post_owner(session: AsyncSession, comment_id: str, actor_uid: str) -> Comment:
    comment = await get_for_update(session, Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    post = await session.get(Post, comment.post_id, populate_existing=True)
    if post is None:
        raise NotFound("Post not found")
    if post.author_uid != actor_uid:
        raise Forbidden("Only the post owner can moderate comments")
    return comment


async def hide_for_post_owner(db: AsyncSession, comment_id: str, actor_uid: str) -> Comment:
    async def work(session: AsyncSession) -> Comment:
        comment = await _load_for_post_owner(session, comment_id, actor_uid)
        if not comment.hidden_by_post_owner:
            comment.hidden_by_post_owner = True
            comment.updated_at = utcnow()
        return comment

    comment = await run_transaction(db, work)
    live_queries.publish(comments_topic(comment.post_id))
    return comment


async def delete_for_post_owner(db: AsyncSession, comment_id: str, actor_uid: str) -> Comment:
    async def work(session: AsyncSession) -> Comment:
        comment = await _load_for_post_owner(session, comment_id, actor_uid)
        if not comment.deleted_by_post_owner:
            comment.deleted_by_post_owner = True
            comment.updated_at = utcnow()
        return comment

    comment = await run_transaction(db, work)
    live_queries.publish(comments_topic(comment.post_id))
    return comment


def build_thread(comments: list[Comment]) -> CommentThread:
    """Group visible comments under their immediate parent, oldest first."""
    visible = sorted((c for c in comments if c.is_visible), key=lambda c: (c.created_at, c.id))
    thread = CommentThread()
    for comment in visible:
        if comment.parent_comment_id == "":
            thread.roots.append(comment)
        else:
            thread.replies_by_parent_id.setdefault(comment.parent_comment_id, []).append(comment)
    return thread


async def get_thread(db: AsyncSession, post_id: str) -> CommentThread:
    result = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc())
        .execution_options(populate_existing=True)
    )
    return build_thread(list(result.scalars().all()))


def comment_to_response(comment: Comment) -> CommentResponse:
    return CommentResponse.model_validate(comment)


def thread_to_response(thread: CommentThread) -> CommentThreadResponse:
    return CommentThreadResponse(
        roots=[comment_to_response(c) for c in thread.roots],
        replies_by_parent_id={
            parent_id: [comment_to_response(c) for c in replies]
            for parent_id, replies in thread.replies_by_parent_id.items()
        },
    )
