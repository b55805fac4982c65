"""Notification outbox: creation rules, reads and the HTTP surface."""
import logging

from app.models.notification import POST_LIKED
from app.services.notification_service import enqueue, enqueue_best_effort, get_unread_count, mark_all_read
from app.services.post_service import create_post
from conftest import auth_headers, run


def test_no_self_notifications(make_user):
    alice = make_user("alice")
    created = run(lambda db: enqueue(db, recipient_uid=alice, actor_uid=alice, notification_type=POST_LIKED))
    assert created is None
    assert run(lambda db: get_unread_count(db, alice)) == 0


def test_best_effort_enqueue_swallows_failures(make_user, monkeypatch):
    from app.services import notification_service

    alice = make_user("alice")
    bob = make_user("bob")

    async def broken(db, **kwargs):
        raise RuntimeError("outbox down")

    monkeypatch.setattr(notification_service, "enqueue", broken)
    result = run(lambda db: enqueue_best_effort(recipient_uid=alice, actor_uid=bob, notification_type=POST_LIKED))
    assert result is None


def test_mark_all_read(make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    for _ in range(2):
        run(lambda db: enqueue(db, recipient_uid=alice, actor_uid=bob, notification_type=POST_LIKED))
    assert run(lambda db: get_unread_count(db, alice)) == 2
    assert run(lambda db: mark_all_read(db, alice)) == 2
    assert run(lambda db: get_unread_count(db, alice)) == 0
    assert run(lambda db: mark_all_read(db, alice)) == 0


def test_notification_endpoints(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    post = run(lambda db: create_post(db, alice, "alice", "like me"))
    client.post(f"/api/v1/posts/{post.id}/like", headers=auth_headers(bob))

    response = client.get("/api/v1/notifications", headers=auth_headers(alice))
    notifications = response.json()
    assert len(notifications) == 1
    note = notifications[0]
    assert note["type"] == POST_LIKED
    assert note["actor_address"] == "bob"
    assert note["post_id"] == post.id
    assert note["read"] is False

    assert client.get("/api/v1/notifications/unread-count", headers=auth_headers(alice)).json() == {"count": 1}

    response = client.patch(f"/api/v1/notifications/{note['id']}/read", headers=auth_headers(bob))
    assert response.status_code == 403

    response = client.patch(f"/api/v1/notifications/{note['id']}/read", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["read"] is True
    response = client.patch(f"/api/v1/notifications/{note['id']}/read", headers=auth_headers(alice))
    assert response.json()["read"] is True

    assert client.get("/api/v1/notifications/unread-count", headers=auth_headers(alice)).json() == {"count": 0}
    assert client.post("/api/v1/notifications/mark-all-read", headers=auth_headers(alice)).json() == {"updated": 0}
    assert client.patch("/api/v1/notifications/missing/read", headers=auth_headers(alice)).status_code == 404


def test_committed_notification_schedules_a_push(make_user, caplog):
    alice = make_user("alice")
    bob = make_user("bob")
    caplog.set_level(logging.INFO, logger="app.workers.notifications")

    created = run(lambda db: enqueue(db, recipient_uid=alice, actor_uid=bob, notification_type=POST_LIKED))
    assert created is not None
    pushes = [r.getMessage() for r in caplog.records if r.name == "app.workers.notifications"]
    assert len(pushes) == 1
    assert pushes[0].startswith(f"Push to {alice}: stamp - ")
