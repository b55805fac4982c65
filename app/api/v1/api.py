"""V1 API router aggregation."""
from fastapi import APIRouter

from app.api.v1.endpoints import auth, comments, friends, notifications, posts, realtime, users

api_router = APIRouter(prefix="/v1")
api_router.include_router(auth.router)
api_router.include_router(users.addresses_router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
api_router.include_router(comments.router)
api_router.include_router(friends.router)
api_router.include_router(notifications.router)
api_router.include_router(realtime.router)
