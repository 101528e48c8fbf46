"""
Seed an organization with an owner, team members and licenses.
"""

import csv
import json
import logging
from pathlib import Path

from google.cloud import firestore

from license_admin import config
from license_admin.balance import analyze_balance, apply_plan, load_org_state, plan_rebalance
from license_admin.batching import WriteOp, commit_in_batches
from license_admin.licenses import build_license
from license_admin.queries import find_by_email, get_record
from license_admin.records import ACTIVE, display_name, normalize_email

logger = logging.getLogger(__name__)

MEMBER_FIELDS = ("email", "firstName", "lastName", "role", "department")


def load_members_file(path: str | Path) -> list[dict]:
    """
    Read team members from a JSON list or a CSV file.

    CSV columns: email, firstName, lastName, role, department. Rows without an
    e-mail are dropped.

    Raises:
        ValueError: unsupported file type or malformed JSON content
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        with open(path, encoding="utf-8") as f:
            rows = json.load(f)
        if not isinstance(rows, list):
            raise ValueError(f"{path} must contain a JSON list of members")
    elif path.suffix.lower() == ".csv":
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
    else:
        raise ValueError(f"Unsupported members file: {path} (use .json or .csv)")

    members = []
    for row in rows:
        member = {key: (row.get(key) or "").strip() or None for key in MEMBER_FIELDS}
        if not member["email"]:
            continue
        member["email"] = normalize_email(member["email"])
        member["role"] = (member["role"] or "MEMBER").upper()
        members.append(member)
    return members


def seed_organization(
    db: firestore.Client,
    org_id: str,
    name: str,
    tier: str,
    owner_email: str,
    members: list[dict],
    license_count: int = 0,
    dry_run: bool = False,
) -> dict:
    """
    Create or merge an organization with its owner, team members and licenses.

    Existing documents are merged, never replaced, so re-running is safe. At
    least one license exists per person afterwards; the owner and every member
    then hold exactly one.

    Returns:
        Summary counts (members_created, members_updated, licenses_created, licenses_assigned)
    """
    tier = tier.upper()
    summary = {
        "organization_id": org_id,
        "owner_id": None,
        "members_created": 0,
        "members_updated": 0,
        "licenses_created": 0,
        "licenses_assigned": 0,
    }
    ops = []

    org_ref = db.collection(config.ORGANIZATIONS).document(org_id)
    org_data = {
        "name": name,
        "tier": tier,
        "status": ACTIVE,
        "ownerEmail": owner_email,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }
    if get_record(db, config.ORGANIZATIONS, org_id) is None:
        org_data["createdAt"] = firestore.SERVER_TIMESTAMP
    ops.append(WriteOp("set", org_ref, org_data, merge=True))

    owners = find_by_email(db, config.USERS, owner_email)
    owner_ref = owners[0].ref if owners else db.collection(config.USERS).document()
    owner_data = {
        "email": normalize_email(owner_email),
        "organizationId": org_id,
        "role": "OWNER",
        "isAccountOwner": True,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }
    if not owners:
        owner_data["createdAt"] = firestore.SERVER_TIMESTAMP
    ops.append(WriteOp("set", owner_ref, owner_data, merge=True))
    summary["owner_id"] = owner_ref.id

    for member in members:
        existing = find_by_email(db, config.TEAM_MEMBERS, member["email"], org_id)
        data = {k: v for k, v in member.items() if v is not None}
        data.update(
            {
                "name": display_name(member),
                "status": ACTIVE,
                "organizationId": org_id,
                "orgId": org_id,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )
        if existing:
            ops.append(WriteOp("set", existing[0].ref, data, merge=True))
            summary["members_updated"] += 1
        else:
            data["createdAt"] = firestore.SERVER_TIMESTAMP
            ops.append(WriteOp("set", db.collection(config.TEAM_MEMBERS).document(), data))
            summary["members_created"] += 1

    _, current_licenses = load_org_state(db, org_id)
    wanted = max(license_count, len(members) + 1)
    missing = max(0, wanted - len(current_licenses))
    for _ in range(missing):
        ref = db.collection(config.LICENSES).document()
        body = build_license(org_id, tier, notes=f"Seeded for {name}")
        body["id"] = ref.id
        ops.append(WriteOp("set", ref, body))
    summary["licenses_created"] = missing

    if dry_run:
        summary["licenses_assigned"] = len(members) + 1
        return summary

    commit_in_batches(db, ops)

    team, licenses = load_org_state(db, org_id)
    owner = get_record(db, config.USERS, owner_ref.id)
    report = analyze_balance([owner, *team], licenses)
    plan = plan_rebalance(report, release_orphans=False)
    apply_plan(db, plan)
    summary["licenses_assigned"] = len(plan.assignments)

    logger.info("Organization seeded", extra={**summary, "event": "organization_seeded"})
    return summary
