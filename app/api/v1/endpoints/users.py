"""User profile and @ddress endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.errors import ValidationFailed
from app.models.user import UserProfile
from app.schemas.post import PostPage
from app.schemas.user import AddressChangeRequest, AddressLookupResponse, UserPublic, UserResponse, UserUpdate
from app.services.auth_service import profile_to_response
from app.services.post_service import get_liked_post_ids, get_profile_posts_page, post_to_response
from app.services.profile_service import change_address, get_profile_by_address, lookup, update_profile_fields
from app.utils.address import normalize_address, validate_address

router = APIRouter(prefix="/users", tags=["users"])
addresses_router = APIRouter(prefix="/addresses", tags=["users"])


@addresses_router.get("/{handle}", response_model=AddressLookupResponse)
async def lookup_address(
    handle: str,
    db: AsyncSession = Depends(get_db),
):
    normalized = normalize_address(handle)
    try:
        validate_address(normalized)
    except ValidationFailed:
        return AddressLookupResponse(address=normalized, available=False)
    uid = await lookup(db, normalized)
    return AddressLookupResponse(address=normalized, available=uid is None, uid=uid)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserProfile = Depends(get_current_user)):
    return profile_to_response(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await update_profile_fields(
        db,
        current_user.uid,
        display_name=data.display_name,
        bio=data.bio,
        theme=data.theme,
    )
    return profile_to_response(profile)


@router.put("/me/address", response_model=UserResponse)
async def change_my_address(
    data: AddressChangeRequest,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await change_address(db, current_user.uid, data.address)
    return profile_to_response(profile)


@router.get("/{address}", response_model=UserPublic)
async def get_user_by_address(
    address: str,
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await get_profile_by_address(db, address)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No user found with that @ddress")
    return UserPublic.model_validate(profile)


@router.get("/{address}/posts", response_model=PostPage)
async def get_user_posts(
    address: str,
    cursor: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=50),
    current_user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await get_profile_by_address(db, address)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No user found with that @ddress")
    posts, next_cursor = await get_profile_posts_page(db, profile.uid, cursor=cursor, page_size=limit)
    liked_ids = await get_liked_post_ids(db, current_user.uid, [p.id for p in posts])
    return PostPage(
        posts=[post_to_response(p, is_liked=p.id in liked_ids) for p in posts],
        next_cursor=next_cursor,
    )
