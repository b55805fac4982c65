"""Friends and friend requests."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.models.user import UserProfile
from app.schemas.friends import FriendRequestCreate, FriendRequestResponse, FriendRequestsResponse, FriendshipResponse
from app.schemas.user import UserPublic
from app.services.friendship_service import (
    accept_request_by_id,
    friendship_to_response,
    get_friends_response,
    get_profiles,
    get_requests_response,
    remove_friend,
    request_to_response,
    send_request_to_address,
)

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=list[UserPublic])
async def list_friends(
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_friends_response(db, current_user.uid)


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
async def unfriend(
    uid: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await remove_friend(db, current_user.uid, uid)
    return None


@router.get("/requests", response_model=FriendRequestsResponse)
async def list_requests(
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_requests_response(db, current_user.uid)


@router.post("/requests", response_model=FriendRequestResponse, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    data: FriendRequestCreate,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    request = await send_request_to_address(db, current_user.uid, data.address)
    profiles = await get_profiles(db, {request.from_uid, request.to_uid})
    return request_to_response(request, profiles)


@router.post("/requests/{request_id}/accept", response_model=FriendshipResponse)
async def accept_friend_request(
    request_id: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    friendship = await accept_request_by_id(db, request_id, current_user.uid)
    return friendship_to_response(friendship)
