"""
Integration tests for license balancing against the Firestore emulator.

Covers the full flow:
1. Seed an organization with owner, team members and licenses
2. Break the balance (duplicate, orphaned and missing licenses)
3. Rebalance and read the result back through real queries

Requires Firestore emulator: firebase emulators:start --only firestore
"""

import pytest

from license_admin.balance import analyze_balance, apply_plan, load_org_state, plan_rebalance
from license_admin.batching import WriteOp, commit_in_batches, delete_collection
from license_admin.licenses import build_license
from license_admin.seeding import seed_organization
from license_admin.team_members import merge_collection

pytestmark = pytest.mark.integration

ORG_ID = "org-integration"


class TestLicensingFlow:
    def test_seed_then_rebalance(self, firestore_client):
        """Seeding leaves a balanced organization; drift is repaired by a rebalance."""
        members = [
            {"email": "ann@acme.com", "firstName": "Ann", "lastName": "Lee", "role": "MEMBER"},
            {"email": "ben@acme.com", "firstName": "Ben", "lastName": "Ray", "role": "MEMBER"},
        ]
        summary = seed_organization(firestore_client, ORG_ID, "Acme", "PRO", "owner@acme.com", members)
        assert summary["licenses_assigned"] == 3

        team, licenses = load_org_state(firestore_client, ORG_ID)
        assert analyze_balance(team, licenses).is_balanced

        # A newcomer without a license and a spare ENTERPRISE license
        firestore_client.collection("teamMembers").document("tm-cat").set(
            {"email": "cat@acme.com", "name": "Cat", "organizationId": ORG_ID, "status": "ACTIVE"}
        )
        firestore_client.collection("licenses").document("lic-spare").set(build_license(ORG_ID, "ENTERPRISE"))

        team, licenses = load_org_state(firestore_client, ORG_ID)
        report = analyze_balance(team, licenses)
        assert [m.member.id for m in report.unlicensed] == ["tm-cat"]

        apply_plan(firestore_client, plan_rebalance(report))

        spare = firestore_client.collection("licenses").document("lic-spare").get().to_dict()
        assert spare["assignedToEmail"] == "cat@acme.com"
        assert spare["assignedTo"]["userId"] == "tm-cat"
        cat = firestore_client.collection("teamMembers").document("tm-cat").get().to_dict()
        assert cat["licenseId"] == "lic-spare"

        team, licenses = load_org_state(firestore_client, ORG_ID)
        assert analyze_balance(team, licenses).is_balanced

    def test_batches_over_the_limit(self, firestore_client):
        ops = [
            WriteOp("set", firestore_client.collection("licenses").document(f"bulk-{i}"), {"organizationId": "bulk"})
            for i in range(620)
        ]

        assert commit_in_batches(firestore_client, ops) == 620
        assert delete_collection(firestore_client, "licenses") == 620

    def test_merge_legacy_collection(self, firestore_client):
        firestore_client.collection("teamMembers").document("t1").set({"email": "a@acme.com", "name": "Old"})
        firestore_client.collection("team_members").document("s1").set({"email": "A@acme.com", "name": "New"})
        firestore_client.collection("team_members").document("s2").set({"email": "b@acme.com"})

        counts = merge_collection(firestore_client, "team_members", "teamMembers", delete_source=True)

        assert counts == {"migrated": 1, "merged": 1, "skipped": 0, "deleted": 2}
        assert firestore_client.collection("teamMembers").document("t1").get().to_dict()["name"] == "New"
        assert list(firestore_client.collection("team_members").stream()) == []
