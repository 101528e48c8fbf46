"""
Unit tests for organization seeding.
"""

import json

import pytest

from license_admin.seeding import load_members_file, seed_organization

MEMBERS = [
    {"email": "ann@acme.com", "firstName": "Ann", "lastName": "Lee", "role": "MEMBER", "department": None},
    {"email": "ben@acme.com", "firstName": None, "lastName": None, "role": "ADMIN", "department": "Post"},
]


class TestLoadMembersFile:
    def test_json(self, tmp_path):
        path = tmp_path / "members.json"
        path.write_text(json.dumps([{"email": " Ann@Acme.com ", "firstName": "Ann"}, {"firstName": "No Email"}]))

        members = load_members_file(path)

        assert members == [
            {"email": "ann@acme.com", "firstName": "Ann", "lastName": None, "role": "MEMBER", "department": None}
        ]

    def test_csv(self, tmp_path):
        path = tmp_path / "members.csv"
        path.write_text("email,firstName,lastName,role,department\nben@acme.com,Ben,,admin,Post\n,,,,\n")

        members = load_members_file(path)

        assert members == [
            {"email": "ben@acme.com", "firstName": "Ben", "lastName": None, "role": "ADMIN", "department": "Post"}
        ]

    def test_json_must_be_a_list(self, tmp_path):
        path = tmp_path / "members.json"
        path.write_text(json.dumps({"email": "ann@acme.com"}))

        with pytest.raises(ValueError, match="JSON list"):
            load_members_file(path)

    def test_unsupported_type(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported"):
            load_members_file(tmp_path / "members.xlsx")


class TestSeedOrganization:
    def test_creates_everything_and_balances(self, db):
        summary = seed_organization(db, "org-9", "Acme", "pro", "Owner@Acme.com", MEMBERS)

        assert summary["members_created"] == 2
        assert summary["licenses_created"] == 3
        assert summary["licenses_assigned"] == 3
        assert db.doc("organizations", "org-9")["tier"] == "PRO"

        owner = db.doc("users", summary["owner_id"])
        assert owner["email"] == "owner@acme.com"
        assert owner["role"] == "OWNER"
        assert owner["licenseId"] in db.docs("licenses")

        members = db.docs("teamMembers").values()
        assert {m["name"] for m in members} == {"Ann Lee", "ben@acme.com"}
        assert all(m["licenseId"] for m in members)
        assert all(lic["status"] == "ACTIVE" for lic in db.docs("licenses").values())

    def test_rerun_is_idempotent(self, db):
        seed_organization(db, "org-9", "Acme", "PRO", "owner@acme.com", MEMBERS)

        summary = seed_organization(db, "org-9", "Acme", "PRO", "owner@acme.com", MEMBERS)

        assert summary["members_created"] == 0
        assert summary["members_updated"] == 2
        assert summary["licenses_created"] == 0
        assert summary["licenses_assigned"] == 0
        assert len(db.docs("users")) == 1
        assert len(db.docs("licenses")) == 3

    def test_extra_licenses_stay_free(self, db):
        summary = seed_organization(db, "org-9", "Acme", "ENTERPRISE", "owner@acme.com", [], license_count=4)

        assert summary["licenses_created"] == 4
        assert summary["licenses_assigned"] == 1
        pending = [lic for lic in db.docs("licenses").values() if lic["status"] == "PENDING"]
        assert len(pending) == 3

    def test_dry_run(self, db):
        summary = seed_organization(db, "org-9", "Acme", "PRO", "owner@acme.com", MEMBERS, dry_run=True)

        assert summary["licenses_created"] == 3
        assert summary["licenses_assigned"] == 3
        assert db.docs("organizations") == {}
        assert db.docs("licenses") == {}
        assert db.commits == []
