"""Notifications API."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.models.user import UserProfile
from app.schemas.notification import NotificationResponse, UnreadCountResponse
from app.services.notification_service import (
    get_notification,
    get_notifications,
    get_unread_count,
    mark_all_read,
    mark_read,
    notification_to_response,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await get_notifications(db, current_user.uid, skip=skip, limit=limit)
    return [notification_to_response(n) for n in rows]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await get_unread_count(db, current_user.uid)
    return UnreadCountResponse(count=count)


@router.post("/mark-all-read")
async def mark_all_as_read(
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await mark_all_read(db, current_user.uid)
    return {"updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_one_as_read(
    notification_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await mark_read(db, notification_id, recipient_uid=current_user.uid)
    return notification_to_response(await get_notification(db, notification_id))
