"""Like ledger: one row per (post, user)."""
from sqlalchemy import Column, DateTime, ForeignKey, String

from app.db.session import Base
from app.utils.dates import utcnow


def like_id(post_id: str, uid: str) -> str:
    return f"{post_id}_{uid}"


class PostLike(Base):
    __tablename__ = "post_likes"

    id = Column(String(160), primary_key=True)
    post_id = Column(String(64), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_uid = Column(String(64), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
