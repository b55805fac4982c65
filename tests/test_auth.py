"""Sign-up, e-mail verification, sign-in and the verified-email route guard."""
import pytest

from app.core.errors import AlreadyTaken, Conflict
from app.core.security import create_email_verification_token, create_refresh_token
from app.services import auth_service
from app.services.auth_service import SignUpFailed, get_account_by_email
from app.services.profile_service import lookup
from conftest import PASSWORD, auth_headers, run


def _sign_up_payload(address="alice", email="alice@example.com", **overrides):
    payload = {
        "display_name": "Alice",
        "address": address,
        "email": email,
        "password": PASSWORD,
        "confirm_password": PASSWORD,
    }
    payload.update(overrides)
    return payload


def test_sign_up_then_verify_unlocks_the_app(client):
    response = client.post("/api/v1/auth/sign-up", json=_sign_up_payload(address="@Alice"))
    assert response.status_code == 201
    body = response.json()
    assert body["address"] == "alice"
    uid = body["uid"]

    assert run(lambda db: lookup(db, "alice")) == uid

    response = client.get("/api/v1/users/me", headers=auth_headers(uid))
    assert response.status_code == 403

    token = create_email_verification_token(uid, "alice@example.com")
    response = client.post("/api/v1/auth/verify-email", json={"token": token})
    assert response.status_code == 200
    assert response.json() == {"uid": uid, "email_verified": True}

    response = client.get("/api/v1/users/me", headers=auth_headers(uid))
    assert response.status_code == 200
    me = response.json()
    assert me["address"] == "alice"
    assert me["email_verified"] is True
    assert me["post_count"] == 0
    assert me["theme"] == "theme:linen"


def test_sign_up_rejects_taken_address(client, make_user):
    make_user("alice")
    response = client.post("/api/v1/auth/sign-up", json=_sign_up_payload(email="other@example.com"))
    assert response.status_code == 409
    assert response.json()["detail"] == "That @ddress is already taken. Try another."


def test_sign_up_rejects_mismatched_passwords(client):
    response = client.post("/api/v1/auth/sign-up", json=_sign_up_payload(confirm_password="something-else"))
    assert response.status_code == 422
    assert response.json()["detail"] == "Passwords do not match"
    assert run(lambda db: get_account_by_email(db, "alice@example.com")) is None


def test_duplicate_email_reserves_nothing(client, make_user):
    make_user("alice")
    response = client.post("/api/v1/auth/sign-up", json=_sign_up_payload(address="alice_two"))
    assert response.status_code == 409
    assert run(lambda db: lookup(db, "alice_two")) is None


def test_sign_up_removes_account_when_profile_fails(monkeypatch):
    async def failing_profile(db, **kwargs):
        raise AlreadyTaken()

    monkeypatch.setattr(auth_service, "create_initial_profile", failing_profile)
    with pytest.raises(AlreadyTaken):
        run(lambda db: auth_service.sign_up(
            db,
            display_name="Alice",
            address="alice",
            email="alice@example.com",
            password=PASSWORD,
            confirm_password=PASSWORD,
        ))
    assert run(lambda db: get_account_by_email(db, "alice@example.com")) is None


def test_sign_up_warns_when_cleanup_fails(monkeypatch):
    async def failing_profile(db, **kwargs):
        raise AlreadyTaken()

    async def failing_delete(db, uid):
        raise Conflict("cleanup failed")

    monkeypatch.setattr(auth_service, "create_initial_profile", failing_profile)
    monkeypatch.setattr(auth_service, "delete_account", failing_delete)
    with pytest.raises(SignUpFailed) as excinfo:
        run(lambda db: auth_service.sign_up(
            db,
            display_name="Alice",
            address="alice",
            email="alice@example.com",
            password=PASSWORD,
            confirm_password=PASSWORD,
        ))
    assert "may still exist" in excinfo.value.detail
    assert excinfo.value.status_code == 409


def test_sign_in_and_refresh(client, make_user):
    uid = make_user("alice")

    response = client.post("/api/v1/auth/sign-in", json={"email": "alice@example.com", "password": "wrong-password"})
    assert response.status_code == 401

    response = client.post("/api/v1/auth/sign-in", json={"email": "Alice@Example.com", "password": PASSWORD})
    assert response.status_code == 200
    tokens = response.json()
    assert tokens["user"]["uid"] == uid
    assert tokens["token_type"] == "bearer"

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": create_refresh_token(uid)})
    assert response.status_code == 200
    assert response.json()["user"]["address"] == "alice"


def test_verification_token_is_bound_to_the_email(client, make_user):
    uid = make_user("alice", verified=False)
    token = create_email_verification_token(uid, "someone-else@example.com")
    response = client.post("/api/v1/auth/verify-email", json={"token": token})
    assert response.status_code == 401


def test_reload_reports_verified_flag(client, make_user):
    uid = make_user("alice", verified=False)
    response = client.post("/api/v1/auth/reload", headers=auth_headers(uid))
    assert response.status_code == 200
    assert response.json() == {"uid": uid, "email_verified": False}


def test_routes_require_a_token(client):
    assert client.get("/api/v1/posts").status_code == 401
