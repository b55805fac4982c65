"""Pydantic schemas for Comment."""
from datetime import datetime

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    parent_comment_id: str | None = None


class CommentResponse(BaseModel):
    id: str
    post_id: str
    author_uid: str
    author_address: str
    content: str
    parent_comment_id: str = ""
    root_comment_id: str
    reply_count: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class CommentThreadResponse(BaseModel):
    roots: list[CommentResponse]
    replies_by_parent_id: dict[str, list[CommentResponse]]
