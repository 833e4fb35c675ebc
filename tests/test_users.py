"""Tests for the user directory."""

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from errors import NotFound, ValidationError


class TestSyncOnLogin:
    def test_first_sync_creates_user(self, users, db):
        result = users.sync_on_login("Ana@X.com", "Ana", "ana.png")

        assert result["upsertedId"] is not None
        user = db["users"].find_one({"email": "ana@x.com"})
        assert user["role"] == "User"
        assert user["displayName"] == "Ana"
        assert user["photoURL"] == "ana.png"
        assert user["createdAt"] is not None
        assert user["lastLogin"] is not None

    def test_resync_preserves_role_and_created_at(self, users, db):
        users.sync_on_login("ana@x.com", "Ana", "ana.png")
        first = db["users"].find_one({"email": "ana@x.com"})
        users.set_role(str(first["_id"]), "admin")

        result = users.sync_on_login("ana@x.com", "Ana B.", "new.png")

        assert result["matchedCount"] == 1
        assert result["upsertedId"] is None
        user = db["users"].find_one({"email": "ana@x.com"})
        assert user["role"] == "Admin"
        assert user["createdAt"] == first["createdAt"]
        assert user["displayName"] == "Ana B."
        assert user["photoURL"] == "new.png"
        assert db["users"].count_documents({}) == 1

    def test_requires_email(self, users):
        with pytest.raises(ValidationError):
            users.sync_on_login("", "Nobody", None)

    def test_concurrent_first_login_retries_as_update(self, users, db, monkeypatch):
        real_update_one = users.collection.update_one
        calls = []

        def racing_update_one(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                db["users"].insert_one({"email": "ana@x.com", "role": "User"})
                raise DuplicateKeyError("E11000 duplicate key error")
            return real_update_one(*args, **kwargs)

        monkeypatch.setattr(users.collection, "update_one", racing_update_one)
        result = users.sync_on_login("ana@x.com", "Ana", None)

        assert len(calls) == 2
        assert result["matchedCount"] == 1
        assert db["users"].count_documents({"email": "ana@x.com"}) == 1
        assert db["users"].find_one({"email": "ana@x.com"})["displayName"] == "Ana"


class TestEnsureUser:
    def test_creates_missing_user(self, users, db):
        result = users.ensure_user("Bo@x.com", "Bo", "bo.png")

        assert result["upsertedId"] is not None
        user = db["users"].find_one({"email": "bo@x.com"})
        assert user["displayName"] == "Bo"
        assert user["photoURL"] == "bo.png"
        assert user["role"] == "User"

    def test_leaves_existing_profile_alone(self, users, db):
        users.sync_on_login("bo@x.com", "Bo Real", "real.png")
        before = db["users"].find_one({"email": "bo@x.com"})

        result = users.ensure_user("bo@x.com", "Alias", "")

        assert result["upsertedId"] is None
        assert db["users"].find_one({"email": "bo@x.com"}) == before


class TestListAll:
    def test_artwork_counts(self, users, make_art):
        make_art()
        make_art(title="Two")
        make_art(title="Three", userEmail="bo@x.com", userName="Bo")
        users.sync_on_login("cy@x.com", "Cy", None)

        counts = {u["email"]: u["artworkCount"] for u in users.list_all()}
        assert counts == {"ana@x.com": 2, "bo@x.com": 1, "cy@x.com": 0}


class TestRoles:
    def test_is_admin(self, users, db):
        users.sync_on_login("ana@x.com", "Ana", None)
        user_id = str(db["users"].find_one({"email": "ana@x.com"})["_id"])

        assert users.is_admin("ana@x.com") is False
        users.set_role(user_id, "ADMIN")
        assert users.is_admin("Ana@x.com") is True

    def test_is_admin_for_unknown_user(self, users):
        assert users.is_admin("ghost@x.com") is False
        assert users.is_admin(None) is False

    def test_set_role_rejects_unknown_role(self, users, db):
        users.sync_on_login("ana@x.com", "Ana", None)
        user_id = str(db["users"].find_one({"email": "ana@x.com"})["_id"])
        with pytest.raises(ValidationError):
            users.set_role(user_id, "superuser")

    def test_set_role_unknown_user(self, users):
        with pytest.raises(NotFound):
            users.set_role(str(ObjectId()), "Admin")

    def test_set_role_malformed_id(self, users):
        with pytest.raises(ValidationError):
            users.set_role("bad", "Admin")


class TestDelete:
    def test_delete_keeps_artworks(self, users, make_art, db):
        make_art()
        user_id = str(db["users"].find_one({"email": "ana@x.com"})["_id"])

        assert users.delete(user_id)["deletedCount"] == 1
        assert db["users"].count_documents({}) == 0
        assert db["arts"].count_documents({"userEmail": "ana@x.com"}) == 1
