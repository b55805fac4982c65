from app.models.user import AuthAccount, UserProfile
from app.models.address import AddressReservation
from app.models.friendship import FriendRequest, Friendship
from app.models.post import Post
from app.models.engagement import PostLike
from app.models.comment import Comment, CommentState
from app.models.notification import Notification

__all__ = [
    "AuthAccount",
    "UserProfile",
    "AddressReservation",
    "FriendRequest",
    "Friendship",
    "Post",
    "PostLike",
    "Comment",
    "CommentState",
    "Notification",
]
