"""SQLAlchemy declarative base and model imports for Alembic."""
from app.db.session import Base  # noqa: F401
from app.models.user import AuthAccount, UserProfile  # noqa: F401
from app.models.address import AddressReservation  # noqa: F401
from app.models.friendship import FriendRequest, Friendship  # noqa: F401
from app.models.post import Post  # noqa: F401
from app.models.engagement import PostLike  # noqa: F401
from app.models.comment import Comment  # noqa: F401
from app.models.notification import Notification  # noqa: F401

__all__ = ["Base", "AuthAccount", "UserProfile", "AddressReservation", "FriendRequest", "Friendship", "Post", "PostLike", "Comment", "Notification"]
