"""Read-only audit of the cached counters against what they count.

Nothing here writes: drift is reported, never repaired.
"""
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.engagement import PostLike
from app.models.post import Post
from app.models.user import UserProfile


@dataclass(frozen=True)
class CounterDrift:
    kind: str  # like_count | post_count | total_likes_received
    key: str
    cached: int
    actual: int


async def audit_like_counts(db: AsyncSession) -> list[CounterDrift]:
    ledger = (
        select(PostLike.post_id, func.count(PostLike.id).label("n"))
        .group_by(PostLike.post_id)
        .subquery()
    )
    result = await db.execute(
        select(Post.id, Post.like_count, func.coalesce(ledger.c.n, 0))
        .outerjoin(ledger, ledger.c.post_id == Post.id)
    )
    return [
        CounterDrift("like_count", post_id, cached or 0, actual)
        for post_id, cached, actual in result.all()
        if (cached or 0) != actual
    ]


async def audit_profile_counts(db: AsyncSession) -> list[CounterDrift]:
    live = (
        select(
            Post.author_uid.label("uid"),
            func.count(Post.id).label("posts"),
            func.coalesce(func.sum(Post.like_count), 0).label("likes"),
        )
        .where(Post.deleted.is_(False))
        .group_by(Post.author_uid)
        .subquery()
    )
    result = await db.execute(
        select(
            UserProfile.uid,
            UserProfile.post_count,
            UserProfile.total_likes_received,
            func.coalesce(live.c.posts, 0),
            func.coalesce(live.c.likes, 0),
        ).outerjoin(live, live.c.uid == UserProfile.uid)
    )
    drift: list[CounterDrift] = []
    for uid, post_count, total_likes, posts, likes in result.all():
        if (post_count or 0) != posts:
            drift.append(CounterDrift("post_count", uid, post_count or 0, posts))
        if (total_likes or 0) != likes:
            drift.append(CounterDrift("total_likes_received", uid, total_likes or 0, likes))
    return drift


async def audit_counters(db: AsyncSession) -> list[CounterDrift]:
    return [*await audit_like_counts(db), *await audit_profile_counts(db)]
