"""Posts, likes and the feed."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.models.user import UserProfile
from app.schemas.comment import CommentCreate, CommentResponse, CommentThreadResponse
from app.schemas.post import LikeToggleResponse, PostCreate, PostResponse
from app.services.comment_service import comment_to_response, create_comment, get_thread, thread_to_response
from app.services.post_service import (
    create_post,
    delete_own_post,
    get_feed_posts,
    get_liked_post_ids,
    get_post,
    has_user_liked_post,
    post_to_response,
    toggle_like,
)

router = APIRouter(prefix="/posts", tags=["posts"])


async def _live_post_or_404(db: AsyncSession, post_id: str):
    post = await get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.get("", response_model=list[PostResponse])
async def list_feed(
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    posts = await get_feed_posts(db, current_user.uid)
    liked_ids = await get_liked_post_ids(db, current_user.uid, [p.id for p in posts])
    return [post_to_response(p, is_liked=p.id in liked_ids) for p in posts]


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    data: PostCreate,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await create_post(db, current_user.uid, current_user.address, data.content)
    post = await _live_post_or_404(db, post.id)
    return post_to_response(post, is_liked=False)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post_endpoint(
    post_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await _live_post_or_404(db, post_id)
    return post_to_response(post, is_liked=await has_user_liked_post(db, post_id, current_user.uid))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post_endpoint(
    post_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await delete_own_post(db, post_id, current_user.uid)
    return None


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def like_post(
    post_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    liked, post = await toggle_like(db, post_id, current_user.uid)
    return LikeToggleResponse(post_id=post.id, liked=liked, like_count=post.like_count or 0)


@router.get("/{post_id}/comments", response_model=CommentThreadResponse)
async def list_comments(
    post_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _live_post_or_404(db, post_id)
    return thread_to_response(await get_thread(db, post_id))


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment_endpoint(
    post_id: str,
    data: CommentCreate,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await create_comment(
        db,
        actor_uid=current_user.uid,
        post_id=post_id,
        content=data.content,
        parent_comment_id=data.parent_comment_id,
    )
    return comment_to_response(comment)
