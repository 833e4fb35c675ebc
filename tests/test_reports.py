"""Tests for the report ledger."""

import pytest
from bson import ObjectId

from errors import ValidationError


class TestSubmit:
    def test_submit_stores_pending_report(self, reports, make_art, db):
        art = make_art()
        result = reports.submit(art["id"], "Mod@x.com", "copyright", art_title="Sunset")

        assert result["acknowledged"] is True
        stored = db["reports"].find_one({"_id": ObjectId(result["insertedId"])})
        assert stored["artworkId"] == ObjectId(art["id"])
        assert stored["reporterEmail"] == "mod@x.com"
        assert stored["status"] == "pending"
        assert stored["artTitle"] == "Sunset"

    @pytest.mark.parametrize("missing", ["artworkId", "reporterEmail", "reason"])
    def test_required_fields(self, reports, missing):
        fields = {"artworkId": str(ObjectId()), "reporterEmail": "a@x.com", "reason": "spam"}
        fields[missing] = ""
        with pytest.raises(ValidationError):
            reports.submit(fields["artworkId"], fields["reporterEmail"], fields["reason"])

    def test_malformed_artwork_id(self, reports):
        with pytest.raises(ValidationError):
            reports.submit("zzz", "a@x.com", "spam")


class TestListAndResolve:
    def test_list_newest_first(self, reports, make_art):
        art = make_art()
        reports.submit(art["id"], "a@x.com", "first")
        reports.submit(art["id"], "b@x.com", "second")

        assert [r["reason"] for r in reports.list_all()] == ["second", "first"]

    def test_resolve_removes_report(self, reports, make_art, db):
        art = make_art()
        report = reports.submit(art["id"], "a@x.com", "spam")

        assert reports.resolve(report["insertedId"])["deletedCount"] == 1
        assert db["reports"].count_documents({}) == 0
        assert reports.resolve(report["insertedId"])["deletedCount"] == 0

    def test_resolve_malformed_id(self, reports):
        with pytest.raises(ValidationError):
            reports.resolve("nope")
