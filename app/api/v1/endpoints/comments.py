"""Comment removal: by the author, or hidden/deleted by the post owner."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.models.user import UserProfile
from app.schemas.comment import CommentResponse
from app.services.comment_service import (
    comment_to_response,
    delete_for_post_owner,
    delete_own_comment,
    hide_for_post_owner,
)

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}", response_model=CommentResponse)
async def delete_comment(
    comment_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return comment_to_response(await delete_own_comment(db, comment_id, current_user.uid))


@router.post("/{comment_id}/hide", response_model=CommentResponse)
async def hide_comment(
    comment_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return comment_to_response(await hide_for_post_owner(db, comment_id, current_user.uid))


@router.post("/{comment_id}/owner-delete", response_model=CommentResponse)
async def owner_delete_comment(
    comment_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return comment_to_response(await delete_for_post_owner(db, comment_id, current_user.uid))
