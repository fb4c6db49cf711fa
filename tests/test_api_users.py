"""
tests/test_api_users.py -- Integration tests for the /users endpoints.

Coverage:
  - GET /users/{id}: 200 payload, 400 non-numeric id or out-of-range id, 404 unknown id
  - DELETE /users/{id}: 200 then 404 on repeat, 400 non-numeric or out-of-range id
  - GET /users: full list plus resolved current user, storage failures
  - identity degrades to anonymous (no cookie, tampered cookie, deleted user)
  - GET / redirects to /users
  - end-to-end signup -> login -> read -> logout -> anonymous
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from auth.store import UserStore
from core.errors import StorageError

COOKIE_NAME = "accounts-api"


@pytest.fixture
def seeded(client: TestClient) -> TestClient:
    """Client with two accounts: alice (id 1) and bob (id 2). Not logged in."""
    for username, email in (("alice", "a@x.com"), ("bob", "b@x.com")):
        resp = client.post("/signup", json={"username": username, "email": email, "password": "pw1"})
        assert resp.status_code == 201
    return client


def _assert_no_credentials(payload: dict) -> None:
    assert "password" not in payload
    assert "hashed_password" not in payload
    assert "salt" not in payload


class TestGetUser:
    def test_get_user_returns_payload(self, seeded: TestClient) -> None:
        resp = seeded.get("/users/1")
        assert resp.status_code == 200
        user = resp.json()["user"]
        assert user["id"] == 1
        assert user["username"] == "alice"
        assert user["email"] == "a@x.com"
        assert user["created_at"]
        _assert_no_credentials(user)

    def test_non_numeric_id_is_400(self, seeded: TestClient) -> None:
        resp = seeded.get("/users/abc")
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid id type"

    def test_id_beyond_64_bits_is_400(self, seeded: TestClient) -> None:
        resp = seeded.get("/users/99999999999999999999999")
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid id type"

    def test_unknown_id_is_404(self, seeded: TestClient) -> None:
        resp = seeded.get("/users/999")
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "Couldn't find user with id 999"


class TestDeleteUser:
    def test_delete_twice(self, seeded: TestClient, user_store: UserStore) -> None:
        first = seeded.delete("/users/1")
        assert first.status_code == 200
        assert first.json() == {"status": "user deleted"}
        assert user_store.get_by_id(1) is None

        second = seeded.delete("/users/1")
        assert second.status_code == 404
        assert second.json()["error"]["code"] == "not_found"

    def test_delete_non_numeric_id_is_400(self, seeded: TestClient) -> None:
        assert seeded.delete("/users/one").status_code == 400

    def test_delete_id_beyond_64_bits_is_400(self, seeded: TestClient, user_store: UserStore) -> None:
        resp = seeded.delete("/users/99999999999999999999999")
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid id type"
        assert len(user_store.list_users()) == 2

    def test_deleted_user_is_gone_from_list(self, seeded: TestClient) -> None:
        seeded.delete("/users/2")
        users = seeded.get("/users").json()["users"]
        assert [u["id"] for u in users] == [1]


class TestListUsers:
    def test_list_anonymous(self, seeded: TestClient) -> None:
        resp = seeded.get("/users")
        assert resp.status_code == 200
        data = resp.json()
        assert [u["username"] for u in data["users"]] == ["alice", "bob"]
        assert data["current_user"] == {"authenticated": False, "user": None}
        for user in data["users"]:
            _assert_no_credentials(user)

    def test_list_empty(self, client: TestClient) -> None:
        data = client.get("/users").json()
        assert data["users"] == []

    def test_list_with_session_resolves_current_user(self, seeded: TestClient) -> None:
        seeded.post("/login", json={"email": "b@x.com", "password": "pw1"})
        current = seeded.get("/users").json()["current_user"]
        assert current["authenticated"] is True
        assert current["user"]["id"] == 2
        assert current["user"]["username"] == "bob"
        _assert_no_credentials(current["user"])

    def test_tampered_cookie_is_anonymous(self, seeded: TestClient) -> None:
        seeded.cookies.set(COOKIE_NAME, "eyJ1c2VyIjoiYWxpY2UifQ.forged.signature")
        resp = seeded.get("/users")
        assert resp.status_code == 200
        assert resp.json()["current_user"]["authenticated"] is False

    def test_user_deleted_after_login_is_anonymous(self, seeded: TestClient) -> None:
        seeded.post("/login", json={"email": "a@x.com", "password": "pw1"})
        assert seeded.get("/users").json()["current_user"]["authenticated"] is True
        seeded.delete("/users/1")
        assert seeded.get("/users").json()["current_user"] == {"authenticated": False, "user": None}

    def test_list_storage_failure_is_500(self, seeded: TestClient, user_store: UserStore, monkeypatch) -> None:
        def _boom():
            raise StorageError("list_users failed")

        monkeypatch.setattr(user_store, "list_users", _boom)
        resp = seeded.get("/users")
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "storage_error"

    def test_identity_lookup_failure_is_anonymous(
        self, seeded: TestClient, user_store: UserStore, monkeypatch
    ) -> None:
        assert seeded.post("/login", json={"email": "b@x.com", "password": "pw1"}).status_code == 202

        def _boom(username):
            raise StorageError("get_by_username failed")

        monkeypatch.setattr(user_store, "get_by_username", _boom)
        resp = seeded.get("/users")
        assert resp.status_code == 200
        data = resp.json()
        assert data["current_user"] == {"authenticated": False, "user": None}
        assert [u["username"] for u in data["users"]] == ["alice", "bob"]


def test_root_redirects_to_users(client: TestClient) -> None:
    resp = client.get("/")
    assert resp.status_code == 308
    assert resp.headers["location"] == "/users"


def test_unknown_route_uses_error_envelope(client: TestClient) -> None:
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"


def test_end_to_end_session_flow(client: TestClient) -> None:
    """signup -> login -> read with cookie -> logout -> anonymous."""
    assert client.post("/signup", json={"email": "a@x.com", "password": "pw1"}).status_code == 201

    login = client.post("/login", json={"email": "a@x.com", "password": "pw1"})
    assert login.status_code == 202

    resp = client.get("/users/1")
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == login.json()["user"]["username"]

    assert client.post("/logout").status_code == 200
    assert client.get("/users").json()["current_user"]["authenticated"] is False


def test_end_to_end_with_username(client: TestClient) -> None:
    client.post("/signup", json={"username": "alice", "email": "a@x.com", "password": "pw1"})
    assert client.post("/login", json={"email": "a@x.com", "password": "pw1"}).status_code == 202
    assert client.get("/users").json()["current_user"]["user"]["username"] == "alice"

    client.post("/logout")
    assert client.get("/users").json()["current_user"] == {"authenticated": False, "user": None}
