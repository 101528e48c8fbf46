"""
Unit tests for diagnostics and exports.
"""

import json
from datetime import UTC, datetime

from license_admin.reports import (
    check_relationships,
    collection_counts,
    export_organization,
    organization_report,
    print_organization_report,
)


class TestOrganizationReport:
    def test_report_contents(self, sample_org, org_id):
        report = organization_report(sample_org, org_id)

        assert report["organization_name"] == "Enterprise Media"
        assert report["tier"] == "ENTERPRISE"
        assert report["member_count"] == 3
        assert report["license_count"] == 5
        assert [r.id for r in report["balance"].orphaned] == ["lic-orphan"]
        assert report["stats"]["seat_capacity"] == 250
        assert report["stats"]["available_seats"] == 246

    def test_owner_license_is_exempt(self, sample_org, org_id):
        sample_org.seed(
            "licenses",
            {"lic-owner": {"tier": "ENTERPRISE", "organizationId": org_id, "assignedToEmail": "owner@example.com"}},
        )

        report = organization_report(sample_org, org_id)

        assert [r.id for r in report["balance"].exempt] == ["lic-owner"]
        assert "lic-owner" not in [r.id for r in report["balance"].orphaned]

    def test_explicit_capacity_and_missing_org(self, db):
        report = organization_report(db, "ghost", seat_capacity=10)

        assert report["organization_name"] is None
        assert report["tier"] is None
        assert report["stats"]["available_seats"] == 10

    def test_print(self, sample_org, org_id, capsys):
        print_organization_report(organization_report(sample_org, org_id))

        out = capsys.readouterr().out
        assert "📊 Organization: Enterprise Media (org-1)" in out
        assert "⚠️  alice@example.com - 2 licenses" in out
        assert "❌ bob@example.com - no license" in out
        assert "✅ Carol@Example.com - lic-carol (PRO, ACTIVE)" in out
        assert "lic-orphan (ENTERPRISE, ACTIVE) → gone@example.com" in out
        assert "💺 Seats: 4/250 used, 246 available" in out
        assert "Unbalanced: 1 without a license, 1 with several, 1 orphaned" in out


class TestRelationships:
    def test_counts_present_fields(self, sample_org):
        results = check_relationships(sample_org)

        assert results["teamMembers"] == {
            "sampled": 3,
            "fields": {"organizationId": 3, "email": 3, "userId": 1, "licenseId": 0},
        }
        licenses = results["licenses"]["fields"]
        assert licenses["assignedToUserId"] == 3
        assert licenses["assignedToEmail"] == 4
        assert results["projects"]["sampled"] == 0

    def test_collection_counts(self, sample_org):
        assert collection_counts(sample_org, ["licenses", "teamMembers", "empty"]) == {
            "licenses": 5,
            "teamMembers": 3,
            "empty": 0,
        }


class TestExportOrganization:
    def test_writes_json(self, sample_org, org_id, tmp_path):
        sample_org.store["licenses"]["lic-free"]["expiresAt"] = datetime(2026, 1, 1, tzinfo=UTC)
        path = tmp_path / "export.json"

        counts = export_organization(sample_org, org_id, path)

        assert counts == {"users": 1, "teamMembers": 3, "licenses": 5, "subscriptions": 0, "projects": 0}
        with open(path, encoding="utf-8") as f:
            exported = json.load(f)
        assert exported["organization"]["name"] == "Enterprise Media"
        free = next(lic for lic in exported["licenses"] if lic["id"] == "lic-free")
        assert free["expiresAt"] == "2026-01-01T00:00:00+00:00"
