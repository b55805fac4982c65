"""Post comments. Flat table; replies point at their parent by id."""
import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from app.db.session import Base
from app.utils.dates import utcnow


class CommentState(str, enum.Enum):
    VISIBLE = "visible"
    HIDDEN_BY_OWNER = "hidden_by_owner"
    DELETED_BY_AUTHOR = "deleted_by_author"
    DELETED_BY_OWNER = "deleted_by_owner"


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    post_id = Column(String(64), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_uid = Column(String(64), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False)
    author_address = Column(String(32), nullable=False)
    content = Column(Text, nullable=False)
    parent_comment_id = Column(String(64), nullable=False, default="")  # "" for root comments
    root_comment_id = Column(String(64), nullable=False)
    reply_count = Column(Integer, nullable=False, default=0)
    hidden_by_post_owner = Column(Boolean, nullable=False, default=False)
    deleted_by_author = Column(Boolean, nullable=False, default=False)
    deleted_by_post_owner = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def state(self) -> CommentState:
        # Deletions win over hiding when several flags are set
        if self.deleted_by_post_owner:
            return CommentState.DELETED_BY_OWNER
        if self.deleted_by_author:
            return CommentState.DELETED_BY_AUTHOR
        if self.hidden_by_post_owner:
            return CommentState.HIDDEN_BY_OWNER
        return CommentState.VISIBLE

    @property
    def is_visible(self) -> bool:
        return self.state is CommentState.VISIBLE
