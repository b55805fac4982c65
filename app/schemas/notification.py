"""Pydantic schemas for Notification."""
from datetime import datetime

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    recipient_uid: str
    actor_uid: str
    actor_address: str | None = None
    actor_display_name: str | None = None
    type: str
    post_id: str = ""
    comment_id: str = ""
    read: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    count: int
