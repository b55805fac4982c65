"""Live query hub and the WebSocket snapshot streams."""
import asyncio

import pytest
from fastapi import WebSocketDisconnect

from app.core.security import create_access_token
from app.services.post_service import create_post
from app.services.realtime import LiveQueryHub
from conftest import auth_headers, run


async def _next(stream):
    return await anext(stream, None)


def test_hub_pushes_changed_snapshots_only():
    async def scenario():
        hub = LiveQueryHub()
        values = iter([1, 1, 2])

        async def query(db):
            return next(values)

        subscription = hub.subscribe(["t"], query)
        stream = subscription.__aiter__()
        assert await stream.__anext__() == 1
        assert hub.subscriber_count("t") == 1

        hub.publish("t")
        pending = asyncio.ensure_future(_next(stream))
        await asyncio.sleep(0.05)
        assert not pending.done()

        hub.publish("other")
        await asyncio.sleep(0.05)
        assert not pending.done()

        hub.publish("t")
        assert await asyncio.wait_for(pending, timeout=1) == 2

        subscription.cancel()
        subscription.cancel()
        assert subscription.cancelled
        assert hub.subscriber_count("t") == 0
        assert await _next(stream) is None

    asyncio.run(scenario())


def test_cancel_ends_a_waiting_stream():
    async def scenario():
        hub = LiveQueryHub()

        async def query(db):
            return "same"

        subscription = hub.subscribe(["a", "b"], query)
        stream = subscription.__aiter__()
        assert await stream.__anext__() == "same"
        pending = asyncio.ensure_future(_next(stream))
        await asyncio.sleep(0.05)
        subscription.cancel()
        assert await asyncio.wait_for(pending, timeout=1) is None
        assert hub.subscriber_count("a") == hub.subscriber_count("b") == 0

    asyncio.run(scenario())


def test_clock_tick_requeries_without_writes():
    async def scenario():
        hub = LiveQueryHub()
        values = iter(["before", "after"])

        async def query(db):
            return next(values)

        subscription = hub.subscribe(["feed"], query, refresh_every=0.05)
        stream = subscription.__aiter__()
        assert await stream.__anext__() == "before"
        assert await asyncio.wait_for(stream.__anext__(), timeout=1) == "after"
        subscription.cancel()

    asyncio.run(scenario())


def test_socket_rejects_bad_tokens(client, make_user):
    unverified = make_user("alice", verified=False)
    for token in ("garbage", create_access_token(unverified)):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/api/v1/ws/notifications?token={token}") as ws:
                ws.receive_json()


def test_unread_count_stream(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    post = run(lambda db: create_post(db, alice, "alice", "watch this"))
    token = create_access_token(alice)

    with client.websocket_connect(f"/api/v1/ws/notifications/unread-count?token={token}") as ws:
        assert ws.receive_json() == {"type": "snapshot", "data": {"count": 0}}
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

        client.post(f"/api/v1/posts/{post.id}/like", headers=auth_headers(bob))
        assert ws.receive_json() == {"type": "snapshot", "data": {"count": 1}}


def test_post_stream_reports_deletion(client, make_user):
    alice = make_user("alice")
    post = run(lambda db: create_post(db, alice, "alice", "short lived"))
    token = create_access_token(alice)

    with client.websocket_connect(f"/api/v1/ws/posts/{post.id}?token={token}") as ws:
        first = ws.receive_json()
        assert first["data"]["content"] == "short lived"
        client.delete(f"/api/v1/posts/{post.id}", headers=auth_headers(alice))
        assert ws.receive_json() == {"type": "snapshot", "data": None}


def test_feed_stream_follows_the_friend_graph(client, make_user):
    alice = make_user("alice")
    carol = make_user("carol")
    post = run(lambda db: create_post(db, carol, "carol", "postcard from carol"))
    token = create_access_token(alice)

    with client.websocket_connect(f"/api/v1/ws/feed?token={token}") as ws:
        assert ws.receive_json() == {"type": "snapshot", "data": []}

        response = client.post("/api/v1/friends/requests", json={"address": "alice"}, headers=auth_headers(carol))
        assert response.status_code == 201
        request_id = response.json()["id"]
        response = client.post(f"/api/v1/friends/requests/{request_id}/accept", headers=auth_headers(alice))
        assert response.status_code == 200

        snapshot = ws.receive_json()
        assert snapshot["type"] == "snapshot"
        assert [p["id"] for p in snapshot["data"]] == [post.id]
        assert snapshot["data"][0]["author_address"] == "carol"
