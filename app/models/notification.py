"""Notification model for likes, comments, replies and friend requests."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from app.db.session import Base
from app.utils.dates import utcnow

POST_LIKED = "post_liked"
POST_COMMENTED = "post_commented"
COMMENT_REPLIED = "comment_replied"
FRIEND_REQUEST_RECEIVED = "friend_request_received"
FRIEND_REQUEST_ACCEPTED = "friend_request_accepted"

NOTIFICATION_TYPES = (POST_LIKED, POST_COMMENTED, COMMENT_REPLIED, FRIEND_REQUEST_RECEIVED, FRIEND_REQUEST_ACCEPTED)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    recipient_uid = Column(String(64), ForeignKey("auth_accounts.uid", ondelete="CASCADE"), nullable=False, index=True)
    actor_uid = Column(String(64), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False)
    type = Column(String(50), nullable=False)
    post_id = Column(String(64), nullable=False, default="")
    comment_id = Column(String(64), nullable=False, default="")
    read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    actor = relationship("UserProfile", foreign_keys=[actor_uid])
