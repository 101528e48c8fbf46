"""
Read-only diagnostics and exports.
"""

import json
import logging
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Iterable

from google.cloud import firestore

from license_admin import config
from license_admin.balance import BalanceReport, analyze_balance, load_org_state
from license_admin.licenses import license_stats
from license_admin.queries import get_record, org_records
from license_admin.records import Record, get_assignee, license_tier

logger = logging.getLogger(__name__)

# Fields that tie a document to the rest of the data model
RELATIONSHIP_FIELDS = {
    config.USERS: ["organizationId", "firebaseUid", "email"],
    config.TEAM_MEMBERS: ["organizationId", "email", "userId", "licenseId"],
    config.LICENSES: ["organizationId", "assignedToUserId", "assignedToEmail", "subscriptionId"],
    config.SUBSCRIPTIONS: ["organizationId", "userId", "firebaseUid", "userEmail"],
    config.PAYMENTS: ["organizationId", "userId", "firebaseUid", "subscriptionId"],
    config.INVOICES: ["organizationId", "userId", "firebaseUid", "subscriptionId"],
    config.PROJECTS: ["organizationId", "ownerId", "teamMembers"],
    config.PROJECT_ASSIGNMENTS: ["projectId", "userId", "role"],
}

EXPORT_COLLECTIONS = [
    config.USERS,
    config.TEAM_MEMBERS,
    config.LICENSES,
    config.SUBSCRIPTIONS,
    config.PROJECTS,
]


def organization_report(db: firestore.Client, org_id: str, seat_capacity: int | None = None) -> dict:
    """
    Balance and license statistics of one organization.

    Account owners of the organization are exempt from the orphan check.
    Enterprise organizations default to the enterprise seat capacity.
    """
    org = get_record(db, config.ORGANIZATIONS, org_id)
    members, licenses = load_org_state(db, org_id)

    owners = [u for u in org_records(db, config.USERS, org_id) if u.get("role") in ("OWNER", "ADMIN")]
    exempt = {value for u in owners for value in (u.id, u.get("firebaseUid"), u.get("email")) if value}

    tier = license_tier(org.data) if org else None
    if seat_capacity is None and tier == "ENTERPRISE":
        seat_capacity = config.ENTERPRISE_SEAT_CAPACITY

    return {
        "organization_id": org_id,
        "organization_name": org.get("name") if org else None,
        "tier": tier,
        "member_count": len(members),
        "license_count": len(licenses),
        "balance": analyze_balance(members, licenses, exempt=exempt),
        "stats": license_stats(licenses, seat_capacity=seat_capacity),
    }


def _license_label(license_record: Record) -> str:
    return f"{license_record.id} ({license_tier(license_record.data)}, {license_record.get('status')})"


def print_organization_report(report: dict) -> None:
    balance: BalanceReport = report["balance"]
    stats = report["stats"]

    print(f"📊 Organization: {report['organization_name'] or 'Unknown'} ({report['organization_id']})")
    print("=" * 80)
    print(f"Tier: {report['tier'] or 'n/a'}")
    print(f"Team members: {report['member_count']}")
    print(f"Licenses: {report['license_count']}")
    print("=" * 80)

    print("")
    print("👥 Team members:")
    for entry in balance.members:
        if len(entry.licenses) == 1:
            print(f"   ✅ {entry.label} - {_license_label(entry.licenses[0])}")
        elif not entry.licenses:
            print(f"   ❌ {entry.label} - no license")
        else:
            print(f"   ⚠️  {entry.label} - {len(entry.licenses)} licenses")
            for license_record in entry.licenses:
                print(f"      └─ {_license_label(license_record)}")

    if balance.orphaned:
        print("")
        print("🔗 Orphaned licenses (assigned to someone outside the team):")
        for license_record in balance.orphaned:
            assignee = get_assignee(license_record.data)
            print(f"   ❌ {_license_label(license_record)} → {assignee.email or assignee.user_id}")

    if balance.exempt:
        print("")
        print("👑 Account owner licenses:")
        for license_record in balance.exempt:
            assignee = get_assignee(license_record.data)
            print(f"   ✅ {_license_label(license_record)} → {assignee.email or assignee.user_id}")

    if balance.unassigned:
        print("")
        print(f"📦 Unassigned licenses: {len(balance.unassigned)}")

    print("")
    print("📈 License stats:")
    print(f"   ├─ Active: {stats['active']}")
    print(f"   ├─ Assigned: {stats['assigned']}")
    print(f"   ├─ Available: {stats['unassigned']}")
    print(f"   ├─ Pending reuse: {stats['pending']}")
    print(f"   ├─ Suspended: {stats['suspended']}")
    print(f"   ├─ Expiring within 30 days: {stats['expiring_soon']}")
    print(f"   └─ By tier: {', '.join(f'{k}={v}' for k, v in sorted(stats['by_tier'].items())) or 'none'}")
    if "seat_capacity" in stats:
        print(f"   💺 Seats: {stats['assigned']}/{stats['seat_capacity']} used, {stats['available_seats']} available")

    print("")
    if balance.is_balanced:
        print("✅ Every team member holds exactly one license")
    else:
        print(
            f"⚠️  Unbalanced: {len(balance.unlicensed)} without a license, "
            f"{len(balance.over_licensed)} with several, {len(balance.orphaned)} orphaned"
        )
    print("=" * 80)


def check_relationships(db: firestore.Client, sample: int = 5) -> dict[str, dict]:
    """
    Sample each collection and count how many documents carry each relationship field.

    Returns:
        {collection: {"sampled": n, "fields": {field: present_count}}}
    """
    results = {}
    for collection, fields in RELATIONSHIP_FIELDS.items():
        docs = [doc.to_dict() or {} for doc in db.collection(collection).limit(sample).stream()]
        present = {}
        for field_name in fields:
            if field_name.startswith("assignedTo"):
                attr = "user_id" if field_name == "assignedToUserId" else "email"
                present[field_name] = sum(
                    1 for d in docs if get_assignee(d) is not None and getattr(get_assignee(d), attr)
                )
            else:
                present[field_name] = sum(1 for d in docs if d.get(field_name) not in (None, "", []))
        results[collection] = {"sampled": len(docs), "fields": present}
    return results


def collection_counts(db: firestore.Client, names: Iterable[str]) -> dict[str, int]:
    counts = {}
    for name in names:
        counts[name] = sum(1 for _ in db.collection(name).stream())
    return counts


def _jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if hasattr(value, "path") and hasattr(value, "id"):
        return value.path
    return value


def export_organization(db: firestore.Client, org_id: str, path: str | Path) -> dict[str, int]:
    """
    Dump an organization's documents to a JSON file.

    Returns:
        Exported document count per collection
    """
    org = get_record(db, config.ORGANIZATIONS, org_id)
    export = {
        "organization": _jsonable({"id": org_id, **org.data}) if org else {"id": org_id},
        "exported_at": datetime.now(UTC).isoformat(),
    }
    counts = {}
    for collection in EXPORT_COLLECTIONS:
        records = org_records(db, collection, org_id)
        export[collection] = [_jsonable({"id": r.id, **r.data}) for r in records]
        counts[collection] = len(records)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(export, f, ensure_ascii=False, indent=2)

    logger.info("Organization exported", extra={"organization_id": org_id, "path": str(path), "event": "org_exported"})
    return counts
