from datetime import datetime, timedelta

import pytest

from yuki.core.config import settings
from yuki.core.deps import get_blob_store
from yuki.main import app
from yuki.services import handles
from yuki.services.handles import HandleService
from yuki.services.uploads import StoredBlob


class FakeBlobStore:
    def __init__(self):
        self.puts = []

    def put(self, name, content, content_type):
        self.puts.append((name, content, content_type))
        return StoredBlob(url=f"https://cdn.test/{name}", key=name)


@pytest.fixture()
def alice(make_user):
    return make_user(handle="alice", display_name="Alice", bio="hello")


@pytest.fixture()
def renamed(db, alice):
    HandleService(db, cooldown_days=0).claim_handle(alice, "alice_v2")
    return alice


@pytest.fixture()
def blob_store():
    store = FakeBlobStore()
    app.dependency_overrides[get_blob_store] = lambda: store
    return store


class TestPublicProfileApi:
    def test_active_handle(self, client, alice):
        response = client.get("/api/v1/profile/alice")

        assert response.status_code == 200
        body = response.json()
        assert body["handle"] == "@alice"
        assert body["displayName"] == "Alice"
        assert body["isPrivate"] is False
        assert "walletAddress" not in body

    def test_lookup_ignores_case_and_at(self, client, alice):
        assert client.get("/api/v1/profile/@ALICE").status_code == 200

    def test_old_handle_redirects(self, client, renamed):
        response = client.get("/api/v1/profile/alice", follow_redirects=False)

        assert response.status_code == 308
        assert response.headers["location"].endswith("/api/v1/profile/alice_v2")

    def test_unknown_handle(self, client):
        response = client.get("/api/v1/profile/nobody")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestProfilePages:
    def test_profile_page_is_public(self, client, alice):
        response = client.get("/alice", follow_redirects=False)

        assert response.status_code == 200
        assert response.json()["handle"] == "@alice"

    def test_profile_page_redirects_old_handle(self, client, renamed):
        response = client.get("/@alice", follow_redirects=False)

        assert response.status_code == 301
        assert response.headers["location"] == "/alice_v2"

    def test_protected_page_redirects_to_login(self, client):
        response = client.get("/settings", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/login?redirect_url=%2Fsettings"

    def test_reserved_page_is_not_a_profile(self, client, auth_headers, alice):
        response = client.get("/admin", headers=auth_headers(alice), follow_redirects=False)

        assert response.status_code == 404


class TestMyProfile:
    def test_requires_identity(self, client):
        assert client.get("/api/v1/profile/me").status_code == 401

    def test_full_profile(self, client, auth_headers, alice):
        body = client.get("/api/v1/profile/me", headers=auth_headers(alice)).json()

        assert body["id"] == alice.id
        assert body["walletAddress"] == alice.wallet_address
        assert body["canChangeUsername"] is True
        assert body["daysUntilUsernameChange"] == 0

    def test_update_fields(self, client, auth_headers, alice):
        response = client.patch(
            "/api/v1/profile/me",
            json={"displayName": "Alice L", "avatarUrl": "https://cdn.test/a.png", "isPrivate": True},
            headers=auth_headers(alice),
        )

        assert response.status_code == 200
        profile = response.json()["profile"]
        assert profile["displayName"] == "Alice L"
        assert profile["avatarUrl"] == "https://cdn.test/a.png"
        assert profile["isPrivate"] is True
        # Untouched fields survive
        assert profile["bio"] == "hello"

    def test_explicit_null_clears_field(self, client, auth_headers, alice):
        response = client.patch("/api/v1/profile/me", json={"bio": None}, headers=auth_headers(alice))

        assert response.json()["profile"]["bio"] is None

    def test_bio_too_long(self, client, auth_headers, alice):
        response = client.patch("/api/v1/profile/me", json={"bio": "x" * 161}, headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_change_username(self, client, auth_headers, make_user):
        user = make_user()

        response = client.patch("/api/v1/profile/me", json={"username": "Carol_1"}, headers=auth_headers(user))

        assert response.status_code == 200
        profile = response.json()["profile"]
        assert profile["handle"] == "@Carol_1"
        assert profile["canChangeUsername"] is False
        assert profile["daysUntilUsernameChange"] == settings.handle_change_cooldown_days

    def test_username_cooldown(self, client, auth_headers, make_user):
        user = make_user(handle="carol", username_last_changed=datetime.utcnow() - timedelta(days=1))

        response = client.patch("/api/v1/profile/me", json={"username": "carol_new"}, headers=auth_headers(user))

        assert response.status_code == 400
        assert response.json()["code"] == "RATE_LIMITED"
        assert response.json()["daysRemaining"] == settings.handle_change_cooldown_days - 1

    def test_username_taken(self, client, auth_headers, alice, make_user):
        user = make_user()

        response = client.patch("/api/v1/profile/me", json={"username": "ALICE"}, headers=auth_headers(user))

        assert response.status_code == 409
        assert response.json()["code"] == "TAKEN"


class TestHandleCheck:
    @pytest.mark.parametrize(
        "handle, reason",
        [("ab", handles.TOO_SHORT), ("bad-name", handles.INVALID_CHARS), ("settings", handles.RESERVED)],
    )
    def test_rejections(self, client, handle, reason):
        body = client.post("/api/v1/profile/handle-check", json={"handle": handle}).json()

        assert body["available"] is False
        assert body["reason"] == reason
        assert body["message"]

    def test_taken(self, client, alice):
        body = client.post("/api/v1/profile/handle-check", json={"handle": "Alice"}).json()

        assert body == {
            "available": False,
            "handle": "@Alice",
            "reason": handles.TAKEN,
            "message": handles.REASON_MESSAGES[handles.TAKEN],
        }

    def test_own_handle_is_available_to_its_holder(self, client, auth_headers, alice):
        body = client.post(
            "/api/v1/profile/handle-check", json={"handle": "alice"}, headers=auth_headers(alice)
        ).json()

        assert body["available"] is True


class TestUpload:
    def test_upload_avatar(self, client, auth_headers, alice, blob_store):
        response = client.post(
            "/api/v1/profile/upload",
            files={"file": ("me.png", b"\x89PNG....", "image/png")},
            data={"type": "avatar"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 200
        assert response.json()["url"] == f"https://cdn.test/avatar-{alice.id}-me.png"
        assert blob_store.puts[0][2] == "image/png"

    def test_non_image_is_rejected(self, client, auth_headers, alice, blob_store):
        response = client.post(
            "/api/v1/profile/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            data={"type": "avatar"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"
        assert blob_store.puts == []

    def test_unknown_type_is_rejected(self, client, auth_headers, alice, blob_store):
        response = client.post(
            "/api/v1/profile/upload",
            files={"file": ("me.png", b"\x89PNG", "image/png")},
            data={"type": "cover"},
            headers=auth_headers(alice),
        )

        assert response.json()["code"] == "INVALID_TYPE"

    def test_too_large(self, client, auth_headers, alice, blob_store, monkeypatch):
        monkeypatch.setattr(settings, "max_avatar_bytes", 8)

        response = client.post(
            "/api/v1/profile/upload",
            files={"file": ("me.png", b"\x89PNG" * 4, "image/png")},
            data={"type": "avatar"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "FILE_TOO_LARGE"

    def test_requires_identity(self, client, blob_store):
        response = client.post(
            "/api/v1/profile/upload",
            files={"file": ("me.png", b"\x89PNG", "image/png")},
            data={"type": "avatar"},
        )

        assert response.status_code == 401
