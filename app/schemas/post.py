"""Pydantic schemas for Post."""
from datetime import datetime

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    content: str = Field(..., min_length=1)


class PostResponse(BaseModel):
    id: str
    author_uid: str
    author_address: str
    author_display_name: str | None = None
    content: str
    like_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    is_liked: bool = False

    model_config = {"from_attributes": True}


class PostPage(BaseModel):
    posts: list[PostResponse]
    next_cursor: str | None = None


class LikeToggleResponse(BaseModel):
    post_id: str
    liked: bool
    like_count: int
