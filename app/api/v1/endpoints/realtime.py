"""WebSocket endpoints that stream live query snapshots.

Every message is ``{"type": "snapshot", "data": ...}`` carrying the complete current
result. Clients may send ``ping`` and get ``pong`` back; anything else is ignored.
"""
import asyncio
import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import authenticate_websocket
from app.core.config import settings
from app.services.comment_service import get_thread, thread_to_response
from app.services.friendship_service import get_friends_response, get_requests_response
from app.services.notification_service import get_notifications, get_unread_count, notification_to_response
from app.services.post_service import get_feed_posts, get_liked_post_ids, get_post, has_user_liked_post, post_to_response
from app.services.realtime import (
    Subscription,
    comments_topic,
    friend_requests_topic,
    friendships_topic,
    live_queries,
    notifications_topic,
    post_topic,
    posts_topic,
)

router = APIRouter(prefix="/ws", tags=["realtime"])
logger = logging.getLogger(__name__)


async def _receive_loop(websocket: WebSocket) -> None:
    while True:
        try:
            raw = await websocket.receive_text()
        except WebSocketDisconnect:
            return
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            payload = {"type": raw}
        if not isinstance(payload, dict):
            continue
        if str(payload.get("type") or "").lower() == "ping":
            await websocket.send_json({"type": "pong"})


async def _pump(websocket: WebSocket, subscription: Subscription) -> None:
    async for snapshot in subscription:
        await websocket.send_json({"type": "snapshot", "data": snapshot})


async def _accept(websocket: WebSocket, token: str | None) -> str | None:
    uid = await authenticate_websocket(token)
    if uid is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None
    await websocket.accept()
    return uid


async def _stream(websocket: WebSocket, subscription: Subscription) -> None:
    """Serve one subscription until the client leaves or the stream fails."""
    logger.info("Socket %s connected from %s", sorted(subscription.topics), websocket.client)
    receiver = asyncio.create_task(_receive_loop(websocket))
    pump = asyncio.create_task(_pump(websocket, subscription))
    try:
        await asyncio.wait({receiver, pump}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        subscription.cancel()
        for task in (receiver, pump):
            task.cancel()
        results = await asyncio.gather(receiver, pump, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception) and not isinstance(result, WebSocketDisconnect):
                logger.warning("Socket %s closed on error: %r", sorted(subscription.topics), result)
        logger.info("Socket %s disconnected from %s", sorted(subscription.topics), websocket.client)


@router.websocket("/feed")
async def feed_stream(websocket: WebSocket, token: str | None = Query(None)) -> None:
    uid = await _accept(websocket, token)
    if uid is None:
        return

    async def query(db: AsyncSession) -> list[dict]:
        posts = await get_feed_posts(db, uid)
        liked_ids = await get_liked_post_ids(db, uid, [p.id for p in posts])
        return [post_to_response(p, is_liked=p.id in liked_ids).model_dump(mode="json") for p in posts]

    subscription = live_queries.subscribe(
        [posts_topic(), friendships_topic(uid)],
        query,
        refresh_every=settings.REALTIME_CLOCK_TICK_SECONDS,
    )
    await _stream(websocket, subscription)


@router.websocket("/posts/{post_id}")
async def post_stream(websocket: WebSocket, post_id: str, token: str | None = Query(None)) -> None:
    uid = await _accept(websocket, token)
    if uid is None:
        return

    async def query(db: AsyncSession) -> dict | None:
        post = await get_post(db, post_id)
        if post is None:
            return None
        return post_to_response(post, is_liked=await has_user_liked_post(db, post_id, uid)).model_dump(mode="json")

    await _stream(websocket, live_queries.subscribe([post_topic(post_id)], query))


@router.websocket("/posts/{post_id}/comments")
async def comments_stream(websocket: WebSocket, post_id: str, token: str | None = Query(None)) -> None:
    if await _accept(websocket, token) is None:
        return

    async def query(db: AsyncSession) -> dict:
        return thread_to_response(await get_thread(db, post_id)).model_dump(mode="json")

    await _stream(websocket, live_queries.subscribe([comments_topic(post_id)], query))


@router.websocket("/notifications")
async def notifications_stream(websocket: WebSocket, token: str | None = Query(None)) -> None:
    uid = await _accept(websocket, token)
    if uid is None:
        return

    async def query(db: AsyncSession) -> list[dict]:
        rows = await get_notifications(db, uid)
        return [notification_to_response(n).model_dump(mode="json") for n in rows]

    await _stream(websocket, live_queries.subscribe([notifications_topic(uid)], query))


@router.websocket("/notifications/unread-count")
async def unread_count_stream(websocket: WebSocket, token: str | None = Query(None)) -> None:
    uid = await _accept(websocket, token)
    if uid is None:
        return

    async def query(db: AsyncSession) -> dict:
        return {"count": await get_unread_count(db, uid)}

    await _stream(websocket, live_queries.subscribe([notifications_topic(uid)], query))


@router.websocket("/friends")
async def friends_stream(websocket: WebSocket, token: str | None = Query(None)) -> None:
    uid = await _accept(websocket, token)
    if uid is None:
        return

    async def query(db: AsyncSession) -> list[dict]:
        return [friend.model_dump(mode="json") for friend in await get_friends_response(db, uid)]

    await _stream(websocket, live_queries.subscribe([friendships_topic(uid)], query))


@router.websocket("/friend-requests")
async def friend_requests_stream(websocket: WebSocket, token: str | None = Query(None)) -> None:
    uid = await _accept(websocket, token)
    if uid is None:
        return

    async def query(db: AsyncSession) -> dict:
        return (await get_requests_response(db, uid)).model_dump(mode="json")

    await _stream(websocket, live_queries.subscribe([friend_requests_topic(uid)], query))
