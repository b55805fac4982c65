from app.schemas.user import (
    SignUpRequest,
    SignInRequest,
    UserUpdate,
    UserResponse,
    UserPublic,
    Token,
)
from app.schemas.post import PostCreate, PostResponse, PostPage
from app.schemas.comment import CommentCreate, CommentResponse, CommentThreadResponse
from app.schemas.notification import NotificationResponse
from app.schemas.friends import FriendRequestResponse, FriendshipResponse
