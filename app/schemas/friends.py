"""Pydantic schemas for friend requests and friendships."""
from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.user import UserPublic


class FriendRequestCreate(BaseModel):
    address: str = Field(..., min_length=1)


class FriendRequestResponse(BaseModel):
    id: str
    from_uid: str
    to_uid: str
    status: str
    created_at: datetime
    responded_at: datetime | None = None
    from_user: UserPublic | None = None
    to_user: UserPublic | None = None

    model_config = {"from_attributes": True}


class FriendRequestsResponse(BaseModel):
    incoming: list[FriendRequestResponse]
    outgoing: list[FriendRequestResponse]


class FriendshipResponse(BaseModel):
    id: str
    users: tuple[str, str]
    created_at: datetime
