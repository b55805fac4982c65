"""Friend requests and accepted friendships."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String

from app.db.session import Base
from app.utils.dates import utcnow

REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"


def friendship_id(uid_a: str, uid_b: str) -> str:
    """Same id for both directions of a pair."""
    return "_".join(sorted([uid_a, uid_b]))


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    from_uid = Column(String(64), ForeignKey("auth_accounts.uid", ondelete="CASCADE"), nullable=False, index=True)
    to_uid = Column(String(64), ForeignKey("auth_accounts.uid", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default=REQUEST_PENDING)  # pending | accepted
    created_at = Column(DateTime, default=utcnow)
    responded_at = Column(DateTime, nullable=True)


class Friendship(Base):
    """Undirected edge; user_a_uid < user_b_uid and id is their join."""
    __tablename__ = "friendships"

    id = Column(String(160), primary_key=True)
    user_a_uid = Column(String(64), ForeignKey("auth_accounts.uid", ondelete="CASCADE"), nullable=False, index=True)
    user_b_uid = Column(String(64), ForeignKey("auth_accounts.uid", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    @property
    def users(self) -> tuple[str, str]:
        return (self.user_a_uid, self.user_b_uid)

    def other(self, uid: str) -> str:
        return self.user_b_uid if self.user_a_uid == uid else self.user_a_uid
