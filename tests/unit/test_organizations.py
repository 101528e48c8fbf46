"""
Unit tests for organization-wide operations.
"""

import pytest

from license_admin.organizations import account_owners, move_organization, purge_organization
from license_admin.queries import org_records


class TestAccountOwners:
    def test_only_users_of_named_organizations(self, db):
        db.seed(
            "organizations",
            {
                "org-1": {"name": "Acme", "tier": "pro"},
                "org-2": {"name": "undefined"},
            },
        )
        db.seed(
            "users",
            {
                "u1": {"email": "one@example.com", "name": "One", "organizationId": "org-1", "firebaseUid": "fb1"},
                "u2": {"email": "two@example.com", "organizationId": "org-2"},
                "u3": {"email": "three@example.com"},
                "u4": {"organizationId": "org-1"},
            },
        )

        owners = account_owners(db)

        assert owners == [
            {
                "userId": "u1",
                "email": "one@example.com",
                "name": "One",
                "firebaseUid": "fb1",
                "organizationId": "org-1",
                "organizationName": "Acme",
                "tier": "PRO",
            }
        ]


class TestMoveOrganization:
    def test_moves_documents_except_kept(self, sample_org, org_id):
        sample_org.seed("teamMembers", {"tm-dan": {"email": "dan@example.com", "orgId": org_id}})

        moved = move_organization(
            sample_org,
            org_id,
            "org-2",
            collections=["teamMembers", "licenses"],
            keep_emails=["Alice@Example.com"],
        )

        assert moved == {"teamMembers": 3, "licenses": 5}
        assert sample_org.doc("teamMembers", "tm-alice")["organizationId"] == org_id
        assert sample_org.doc("teamMembers", "tm-bob")["organizationId"] == "org-2"
        dan = sample_org.doc("teamMembers", "tm-dan")
        assert dan["orgId"] == "org-2"
        assert "organizationId" not in dan
        assert {d["organizationId"] for d in sample_org.docs("licenses").values()} == {"org-2"}

    def test_dry_run(self, sample_org, org_id):
        moved = move_organization(sample_org, org_id, "org-2", collections=["teamMembers"], dry_run=True)

        assert moved == {"teamMembers": 3}
        assert sample_org.doc("teamMembers", "tm-bob")["organizationId"] == org_id

    def test_same_organization(self, sample_org, org_id):
        with pytest.raises(ValueError):
            move_organization(sample_org, org_id, org_id)


class TestPurgeOrganization:
    def test_deletes_all_but_kept(self, sample_org, org_id):
        deleted = purge_organization(sample_org, org_id, collections=["teamMembers"], keep_emails=["alice@example.com"])

        assert deleted == {"teamMembers": 2}
        assert list(sample_org.docs("teamMembers")) == ["tm-alice"]

    def test_default_collections(self, sample_org, org_id):
        deleted = purge_organization(sample_org, org_id, dry_run=True)

        assert deleted["licenses"] == 5
        assert deleted["users"] == 1
        assert deleted["projects"] == 0

    def test_org_records_reads_both_fields(self, db):
        db.seed(
            "payments",
            {
                "p1": {"organizationId": "org-1"},
                "p2": {"orgId": "org-1"},
                "p3": {"organizationId": "org-1", "orgId": "org-1"},
                "p4": {"orgId": "org-2"},
            },
        )

        assert sorted(r.id for r in org_records(db, "payments", "org-1")) == ["p1", "p2", "p3"]
