import pytest

from yuki.core.errors import Conflict, NotFound, ValidationError
from yuki.services.contacts import ContactService


@pytest.fixture()
def alice(make_user):
    return make_user(handle="alice", display_name="Alice")


@pytest.fixture()
def bob(make_user):
    return make_user(handle="bob", display_name="Bob")


class TestContactService:
    def test_add_contact_by_handle(self, db, alice, bob):
        contact = ContactService(db).add_contact(alice, "@Bob", nickname="Bobby")

        assert contact.owner_user_id == alice.id
        assert contact.contact_user_id == bob.id
        assert contact.nickname == "Bobby"
        assert contact.contact_user.username == "@bob"

    def test_unknown_handle(self, db, alice):
        with pytest.raises(NotFound) as exc_info:
            ContactService(db).add_contact(alice, "ghost")

        assert exc_info.value.code == "USER_NOT_FOUND"

    def test_cannot_add_self(self, db, alice):
        with pytest.raises(ValidationError) as exc_info:
            ContactService(db).add_contact(alice, "alice")

        assert exc_info.value.code == "CANNOT_ADD_SELF"

    def test_duplicate_contact(self, db, alice, bob):
        service = ContactService(db)
        service.add_contact(alice, "bob")

        with pytest.raises(Conflict) as exc_info:
            service.add_contact(alice, "bob")

        assert exc_info.value.code == "CONTACT_EXISTS"

    def test_contacts_are_per_owner(self, db, alice, bob):
        service = ContactService(db)
        service.add_contact(alice, "bob")

        assert service.list_contacts(bob) == []
        assert [c.contact_user_id for c in service.list_contacts(alice)] == [bob.id]

    def test_list_is_newest_first(self, db, alice, bob, make_user):
        make_user(handle="carol")
        service = ContactService(db)
        service.add_contact(alice, "bob")
        service.add_contact(alice, "carol")

        handles = [c.contact_user.username for c in service.list_contacts(alice)]

        assert handles == ["@carol", "@bob"]

    def test_remove_contact(self, db, alice, bob):
        service = ContactService(db)
        service.add_contact(alice, "bob")

        service.remove_contact(alice, bob.id)

        assert service.list_contacts(alice) == []

    def test_remove_missing_contact(self, db, alice, bob):
        with pytest.raises(NotFound) as exc_info:
            ContactService(db).remove_contact(alice, bob.id)

        assert exc_info.value.code == "CONTACT_NOT_FOUND"


class TestContactEndpoints:
    def test_requires_identity(self, client):
        response = client.get("/api/v1/contacts")

        assert response.status_code == 401

    def test_add_list_remove(self, client, auth_headers, alice, bob):
        headers = auth_headers(alice)

        created = client.post("/api/v1/contacts", json={"username": "bob", "nickname": "B"}, headers=headers)
        listed = client.get("/api/v1/contacts", headers=headers)
        removed = client.delete("/api/v1/contacts", params={"userId": bob.id}, headers=headers)
        after = client.get("/api/v1/contacts", headers=headers)

        assert created.status_code == 200
        contact = created.json()["contact"]
        assert contact["userId"] == bob.id
        assert contact["displayName"] == "Bob"
        assert contact["walletAddress"] == bob.wallet_address
        assert contact["nickname"] == "B"
        assert [c["userId"] for c in listed.json()["contacts"]] == [bob.id]
        assert removed.json() == {"success": True}
        assert after.json()["contacts"] == []

    def test_duplicate_is_409(self, client, auth_headers, alice, bob):
        headers = auth_headers(alice)
        client.post("/api/v1/contacts", json={"username": "bob"}, headers=headers)

        response = client.post("/api/v1/contacts", json={"username": "bob"}, headers=headers)

        assert response.status_code == 409
        assert response.json()["code"] == "CONTACT_EXISTS"

    def test_unknown_user_is_404(self, client, auth_headers, alice):
        response = client.post("/api/v1/contacts", json={"username": "ghost"}, headers=auth_headers(alice))

        assert response.status_code == 404

    def test_nickname_too_long(self, client, auth_headers, alice, bob):
        response = client.post(
            "/api/v1/contacts",
            json={"username": "bob", "nickname": "x" * 51},
            headers=auth_headers(alice),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
