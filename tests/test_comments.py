"""Comment threads, reply fan-out and per-comment moderation."""
from datetime import datetime, timedelta

import pytest

from app.core.errors import Forbidden, Gone, Mismatch, NotFound
from app.models.comment import Comment, CommentState
from app.models.notification import COMMENT_REPLIED, POST_COMMENTED
from app.services.comment_service import (
    build_thread,
    create_comment,
    delete_for_post_owner,
    delete_own_comment,
    get_thread,
    hide_for_post_owner,
)
from app.services.notification_service import get_notifications
from app.services.post_service import create_post, delete_own_post
from conftest import auth_headers, run


@pytest.fixture
def people(make_user):
    return make_user("alice"), make_user("bob"), make_user("carol")


def _comment(db, actor, post_id, text, parent=None):
    return create_comment(db, actor_uid=actor, post_id=post_id, content=text, parent_comment_id=parent)


def test_replies_point_at_parent_and_root(people):
    alice, bob, carol = people
    post = run(lambda db: create_post(db, alice, "alice", "post"))

    root = run(lambda db: _comment(db, bob, post.id, "root"))
    assert root.parent_comment_id == ""
    assert root.root_comment_id == root.id
    assert root.author_address == "bob"

    reply = run(lambda db: _comment(db, carol, post.id, "reply", root.id))
    assert reply.parent_comment_id == root.id
    assert reply.root_comment_id == root.id

    nested = run(lambda db: _comment(db, alice, post.id, "nested", reply.id))
    assert nested.parent_comment_id == reply.id
    assert nested.root_comment_id == root.id

    thread = run(lambda db: get_thread(db, post.id))
    assert [c.id for c in thread.roots] == [root.id]
    assert thread.roots[0].reply_count == 1
    assert [c.id for c in thread.replies_by_parent_id[root.id]] == [reply.id]
    assert [c.id for c in thread.replies_by_parent_id[reply.id]] == [nested.id]


def test_comment_fan_out_notifications(people):
    alice, bob, carol = people
    post = run(lambda db: create_post(db, alice, "alice", "post"))
    root = run(lambda db: _comment(db, bob, post.id, "root"))
    reply = run(lambda db: _comment(db, carol, post.id, "reply", root.id))

    to_alice = {(n.type, n.actor_uid, n.comment_id) for n in run(lambda db: get_notifications(db, alice))}
    assert to_alice == {(POST_COMMENTED, bob, root.id), (POST_COMMENTED, carol, reply.id)}

    to_bob = [(n.type, n.actor_uid, n.comment_id) for n in run(lambda db: get_notifications(db, bob))]
    assert to_bob == [(COMMENT_REPLIED, carol, reply.id)]


def test_replying_to_the_post_author_sends_one_notification(people):
    alice, bob, _ = people
    post = run(lambda db: create_post(db, alice, "alice", "post"))
    root = run(lambda db: _comment(db, alice, post.id, "my own root"))
    run(lambda db: _comment(db, bob, post.id, "reply", root.id))

    assert [n.type for n in run(lambda db: get_notifications(db, alice))] == [COMMENT_REPLIED]


def test_hiding_a_comment_keeps_its_replies_visible(people):
    alice, bob, carol = people
    post = run(lambda db: create_post(db, alice, "alice", "post"))
    root = run(lambda db: _comment(db, bob, post.id, "root"))
    reply = run(lambda db: _comment(db, carol, post.id, "reply", root.id))

    hidden = run(lambda db: hide_for_post_owner(db, root.id, alice))
    assert hidden.state is CommentState.HIDDEN_BY_OWNER
    run(lambda db: hide_for_post_owner(db, root.id, alice))

    thread = run(lambda db: get_thread(db, post.id))
    assert thread.roots == []
    assert [c.id for c in thread.replies_by_parent_id[root.id]] == [reply.id]

    with pytest.raises(Gone):
        run(lambda db: _comment(db, carol, post.id, "too late", root.id))


def test_moderation_permissions(people):
    alice, bob, carol = people
    post = run(lambda db: create_post(db, alice, "alice", "post"))
    root = run(lambda db: _comment(db, bob, post.id, "root"))

    with pytest.raises(Forbidden):
        run(lambda db: hide_for_post_owner(db, root.id, bob))
    with pytest.raises(Forbidden):
        run(lambda db: delete_own_comment(db, root.id, carol))
    with pytest.raises(NotFound):
        run(lambda db: delete_for_post_owner(db, "missing", alice))

    deleted = run(lambda db: delete_own_comment(db, root.id, bob))
    assert deleted.state is CommentState.DELETED_BY_AUTHOR
    again = run(lambda db: delete_own_comment(db, root.id, bob))
    assert again.deleted_by_author is True

    removed = run(lambda db: delete_for_post_owner(db, root.id, alice))
    assert removed.state is CommentState.DELETED_BY_OWNER


def test_comment_targets_are_checked(people):
    alice, bob, _ = people
    post = run(lambda db: create_post(db, alice, "alice", "post"))
    other = run(lambda db: create_post(db, alice, "alice", "other"))
    root = run(lambda db: _comment(db, bob, post.id, "root"))

    with pytest.raises(Mismatch):
        run(lambda db: _comment(db, bob, other.id, "wrong post", root.id))
    with pytest.raises(NotFound):
        run(lambda db: _comment(db, bob, post.id, "no parent", "missing"))
    with pytest.raises(NotFound):
        run(lambda db: _comment(db, bob, "missing", "no post"))

    run(lambda db: delete_own_post(db, other.id, alice))
    with pytest.raises(Gone):
        run(lambda db: _comment(db, bob, other.id, "on a deleted post"))


def test_build_thread_orders_oldest_first_and_skips_removed():
    t0 = datetime(2026, 1, 1, 12, 0, 0)

    def make(cid, parent="", minutes=0, **flags):
        return Comment(
            id=cid,
            post_id="p",
            author_uid="u",
            author_address="u",
            content=cid,
            parent_comment_id=parent,
            root_comment_id=parent or cid,
            reply_count=0,
            hidden_by_post_owner=flags.get("hidden", False),
            deleted_by_author=flags.get("deleted", False),
            deleted_by_post_owner=False,
            created_at=t0 + timedelta(minutes=minutes),
        )

    thread = build_thread([
        make("b", minutes=2),
        make("a", minutes=1),
        make("gone", minutes=0, deleted=True),
        make("r2", parent="a", minutes=4),
        make("r1", parent="a", minutes=3),
        make("r3", parent="gone", minutes=5),
    ])
    assert [c.id for c in thread.roots] == ["a", "b"]
    assert [c.id for c in thread.replies_by_parent_id["a"]] == ["r1", "r2"]
    assert [c.id for c in thread.replies_by_parent_id["gone"]] == ["r3"]


def test_comment_endpoints(client, people):
    alice, bob, _ = people
    post = run(lambda db: create_post(db, alice, "alice", "post"))

    response = client.post(f"/api/v1/posts/{post.id}/comments", json={"content": "nice"}, headers=auth_headers(bob))
    assert response.status_code == 201
    comment = response.json()
    assert comment["root_comment_id"] == comment["id"]

    response = client.get(f"/api/v1/posts/{post.id}/comments", headers=auth_headers(alice))
    assert [c["id"] for c in response.json()["roots"]] == [comment["id"]]

    response = client.post(f"/api/v1/comments/{comment['id']}/hide", headers=auth_headers(bob))
    assert response.status_code == 403

    response = client.post(f"/api/v1/comments/{comment['id']}/owner-delete", headers=auth_headers(alice))
    assert response.status_code == 200

    response = client.get(f"/api/v1/posts/{post.id}/comments", headers=auth_headers(alice))
    assert response.json() == {"roots": [], "replies_by_parent_id": {}}

    response = client.post(
        f"/api/v1/posts/{post.id}/comments",
        json={"content": "reply", "parent_comment_id": comment["id"]},
        headers=auth_headers(bob),
    )
    assert response.status_code == 410
