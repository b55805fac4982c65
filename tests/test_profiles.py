"""Profiles, the @ddress registry and the address-change cooldown."""
from datetime import datetime, timedelta

import pytest

from app.core.errors import AlreadyTaken, CooldownActive
from app.services.profile_service import (
    can_change_address,
    change_address,
    get_profile,
    get_profile_by_address,
    lookup,
)
from conftest import auth_headers, run

T0 = datetime(2026, 3, 1, 9, 30, 0)


def test_cooldown_boundary():
    assert can_change_address(None, T0)
    assert not can_change_address(T0, T0 + timedelta(days=6, hours=23))
    assert can_change_address(T0, T0 + timedelta(days=7))


def test_change_address_moves_the_reservation(make_user):
    alice = make_user("alice")

    profile = run(lambda db: change_address(db, alice, "@Alice_Ink", now=T0))
    assert profile.address == "alice_ink"
    assert profile.address_last_changed_at == T0
    assert run(lambda db: lookup(db, "alice")) is None
    assert run(lambda db: lookup(db, "alice_ink")) == alice
    assert run(lambda db: get_profile_by_address(db, "alice_ink")).uid == alice


def test_second_change_waits_for_the_cooldown(make_user):
    alice = make_user("alice")
    run(lambda db: change_address(db, alice, "alice_ink", now=T0))

    with pytest.raises(CooldownActive) as excinfo:
        run(lambda db: change_address(db, alice, "alice_two", now=T0 + timedelta(days=6)))
    assert excinfo.value.next_allowed_at == T0 + timedelta(days=7)
    assert excinfo.value.to_payload()["next_allowed_at"] == (T0 + timedelta(days=7)).isoformat()
    assert run(lambda db: lookup(db, "alice_two")) is None

    later = T0 + timedelta(days=7, seconds=1)
    profile = run(lambda db: change_address(db, alice, "alice_two", now=later))
    assert profile.address == "alice_two"
    assert run(lambda db: lookup(db, "alice_ink")) is None


def test_unchanged_address_is_a_no_op(make_user):
    alice = make_user("alice")
    run(lambda db: change_address(db, alice, "alice_ink", now=T0))
    profile = run(lambda db: change_address(db, alice, "@ALICE_INK", now=T0 + timedelta(days=1)))
    assert profile.address_last_changed_at == T0


def test_taken_address_is_rejected(make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    with pytest.raises(AlreadyTaken):
        run(lambda db: change_address(db, bob, "alice"))
    assert run(lambda db: lookup(db, "bob")) == bob
    assert run(lambda db: lookup(db, "alice")) == alice
    assert run(lambda db: get_profile(db, bob)).address_last_changed_at is None


def test_address_endpoints(client, make_user):
    alice = make_user("alice")

    response = client.get("/api/v1/addresses/@Alice")
    assert response.json() == {"address": "alice", "available": False, "uid": alice}
    response = client.get("/api/v1/addresses/fresh_name")
    assert response.json() == {"address": "fresh_name", "available": True, "uid": None}
    assert client.get("/api/v1/addresses/x").json()["available"] is False

    response = client.put("/api/v1/users/me/address", json={"address": "alice_ink"}, headers=auth_headers(alice))
    assert response.status_code == 200
    me = response.json()
    assert me["address"] == "alice_ink"
    assert me["next_address_change_at"] is not None

    response = client.put("/api/v1/users/me/address", json={"address": "alice_two"}, headers=auth_headers(alice))
    assert response.status_code == 409
    assert "next_allowed_at" in response.json()


def test_update_profile_fields(client, make_user):
    alice = make_user("alice")
    response = client.patch(
        "/api/v1/users/me",
        json={"display_name": " Alice Ink ", "bio": "stamps", "theme": "theme:nope"},
        headers=auth_headers(alice),
    )
    assert response.status_code == 200
    me = response.json()
    assert me["display_name"] == "Alice Ink"
    assert me["bio"] == "stamps"
    assert me["theme"] == "theme:linen"

    response = client.get("/api/v1/users/alice", headers=auth_headers(alice))
    assert response.json()["display_name"] == "Alice Ink"
    assert "email" not in response.json()
