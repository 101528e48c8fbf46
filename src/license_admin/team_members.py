"""
Team member repairs: duplicates, mismatched user ids, collection drift.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from google.cloud import firestore

from license_admin import config
from license_admin.batching import WriteOp, commit_in_batches
from license_admin.queries import find_by_email, org_records
from license_admin.records import (
    ACTIVE,
    Record,
    assignee_fields,
    display_name,
    get_assignee,
    load,
    member_ids,
    normalize_email,
    to_datetime,
)

logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    keeper: Record
    duplicates: list[Record]
    merged: dict = field(default_factory=dict)


def _is_licensed(record: Record) -> bool:
    return bool(record.get("licenseId") or record.get("assignedLicenseKey"))


def _keeper_rank(record: Record) -> tuple:
    active = str(record.get("status") or "").upper() == ACTIVE
    licensed = _is_licensed(record)
    updated = to_datetime(record.get("updatedAt"))
    return (active and licensed, licensed, updated.timestamp() if updated else 0.0)


def plan_member_dedupe(members: Iterable[Record]) -> list[DuplicateGroup]:
    """
    Find team members sharing an e-mail and choose the record to keep.

    Preference: active and licensed, then licensed, then most recently
    updated, then first seen. Fields the keeper lacks are filled from the
    duplicates.
    """
    groups: dict[str, list[Record]] = defaultdict(list)
    for member in members:
        email = normalize_email(member.get("email"))
        if email:
            groups[email].append(member)

    plan = []
    for group in groups.values():
        if len(group) < 2:
            continue

        keeper = max(group, key=_keeper_rank)
        duplicates = [m for m in group if m.id != keeper.id]

        merged = {}
        for duplicate in duplicates:
            for key, value in duplicate.data.items():
                if key == "id" or value in (None, ""):
                    continue
                if keeper.data.get(key) in (None, "") and key not in merged:
                    merged[key] = value

        plan.append(DuplicateGroup(keeper, duplicates, merged))
    return plan


def dedupe_members(db: firestore.Client, org_id: str, dry_run: bool = False) -> list[DuplicateGroup]:
    """
    Remove duplicate team members of an organization.

    Licenses assigned to a removed duplicate are re-pointed at the keeper.
    """
    plan = plan_member_dedupe(org_records(db, config.TEAM_MEMBERS, org_id))
    if dry_run or not plan:
        return plan

    licenses = org_records(db, config.LICENSES, org_id)
    ops = []

    for group in plan:
        keeper = group.keeper
        if group.merged:
            ops.append(WriteOp("update", keeper.ref, {**group.merged, "updatedAt": firestore.SERVER_TIMESTAMP}))

        dropped_ids = set()
        for duplicate in group.duplicates:
            dropped_ids |= member_ids(duplicate)
            ops.append(WriteOp("delete", duplicate.ref))
        dropped_ids -= member_ids(keeper)

        keeper_id = keeper.get("userId") or keeper.get("firebaseUid") or keeper.id
        for license_record in licenses:
            assignee = get_assignee(license_record.data)
            if assignee is not None and assignee.user_id in dropped_ids:
                ops.append(
                    WriteOp(
                        "update",
                        license_record.ref,
                        assignee_fields(keeper_id, keeper.get("email"), display_name(keeper.data)),
                    )
                )

    commit_in_batches(db, ops)
    logger.info(
        "Duplicate team members removed",
        extra={
            "organization_id": org_id,
            "groups": len(plan),
            "deleted": sum(len(g.duplicates) for g in plan),
            "event": "members_deduped",
        },
    )
    return plan


def expected_ids(user: Record) -> tuple[str, str]:
    """(userId, firebaseUid) a team member linked to this user should carry."""
    return user.id, user.get("firebaseUid") or user.id


def plan_user_id_relink(members: Iterable[Record], users_by_email: dict[str, Record]) -> list[tuple[Record, Record]]:
    """Team members whose userId / firebaseUid disagree with the user of the same e-mail."""
    mismatched = []
    for member in members:
        email = normalize_email(member.get("email"))
        user = users_by_email.get(email) if email else None
        if user is None:
            continue
        user_id, firebase_uid = expected_ids(user)
        if member.get("userId") != user_id or member.get("firebaseUid") != firebase_uid:
            mismatched.append((member, user))
    return mismatched


def relink_user_ids(
    db: firestore.Client,
    org_id: str,
    dry_run: bool = False,
) -> tuple[list[tuple[Record, Record]], list[Record]]:
    """
    Point team members and their licenses at the right users document.

    Returns:
        (relinked (member, user) pairs, licenses whose assignee id was rewritten)
    """
    users_by_email: dict[str, Record] = {}
    for user in load(db.collection(config.USERS)):
        email = normalize_email(user.get("email"))
        if email:
            users_by_email.setdefault(email, user)

    mismatched = plan_user_id_relink(org_records(db, config.TEAM_MEMBERS, org_id), users_by_email)

    ops = []
    fixed_licenses = []
    licenses = org_records(db, config.LICENSES, org_id)

    for member, user in mismatched:
        user_id, firebase_uid = expected_ids(user)
        ops.append(
            WriteOp(
                "update",
                member.ref,
                {"userId": user_id, "firebaseUid": firebase_uid, "updatedAt": firestore.SERVER_TIMESTAMP},
            )
        )

        valid_ids = {user_id, firebase_uid}
        email = normalize_email(member.get("email"))
        for license_record in licenses:
            assignee = get_assignee(license_record.data)
            if assignee is None or normalize_email(assignee.email) != email:
                continue
            if assignee.user_id in valid_ids:
                continue
            ops.append(
                WriteOp(
                    "update",
                    license_record.ref,
                    assignee_fields(firebase_uid, assignee.email, assignee.name or display_name(member.data)),
                )
            )
            fixed_licenses.append(license_record)

    if not dry_run:
        commit_in_batches(db, ops)
    return mismatched, fixed_licenses


def sync_org_members(db: firestore.Client, org_id: str, dry_run: bool = False) -> tuple[list[str], list[str]]:
    """
    Upsert the organization's active orgMembers into teamMembers, keyed by e-mail.

    E-mails are compared case-insensitively. Repeated orgMembers for one e-mail
    are merged into a single team member.

    Returns:
        (created e-mails, updated e-mails)
    """
    query = (
        db.collection(config.ORG_MEMBERS)
        .where(filter=firestore.FieldFilter("orgId", "==", org_id))
        .where(filter=firestore.FieldFilter("status", "==", ACTIVE))
    )

    targets = {}
    for member in org_records(db, config.TEAM_MEMBERS, org_id):
        email = normalize_email(member.get("email"))
        if email:
            targets.setdefault(email, member.ref)

    created, updated = [], []
    seen = set()
    ops = []
    for org_member in load(query):
        email = normalize_email(org_member.get("email"))
        if not email:
            continue

        ref = targets.get(email)
        if ref is None:
            existing = find_by_email(db, config.TEAM_MEMBERS, org_member.get("email"))
            if existing:
                ref = existing[0].ref

        data = {
            "email": org_member.get("email"),
            "name": display_name(org_member.data),
            "firstName": org_member.get("firstName"),
            "lastName": org_member.get("lastName"),
            "role": org_member.get("role") or "MEMBER",
            "status": ACTIVE,
            "organizationId": org_id,
            "orgId": org_id,
            "department": org_member.get("department"),
            "userId": org_member.get("userId"),
            "firebaseUid": org_member.get("firebaseUid"),
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        data = {k: v for k, v in data.items() if v is not None}

        if ref is not None:
            if email in seen:
                # keep the e-mail as first written
                data.pop("email")
            else:
                updated.append(org_member.get("email"))
            ops.append(WriteOp("set", ref, data, merge=True))
        else:
            data["createdAt"] = firestore.SERVER_TIMESTAMP
            ref = db.collection(config.TEAM_MEMBERS).document()
            ops.append(WriteOp("set", ref, data, merge=True))
            created.append(org_member.get("email"))

        targets[email] = ref
        seen.add(email)

    if not dry_run:
        commit_in_batches(db, ops)
    return created, updated


def merge_collection(
    db: firestore.Client,
    source: str,
    target: str,
    delete_source: bool = False,
    dry_run: bool = False,
) -> dict[str, int]:
    """
    Fold a legacy collection (e.g. ``team_members``) into its canonical one.

    Documents are matched by e-mail. On an e-mail collision the incoming fields
    win but the existing e-mail and createdAt are kept; an id collision without
    an e-mail match is skipped; documents without e-mail are skipped.
    With ``delete_source`` only migrated and merged documents are removed from
    the source; skipped ones stay there for manual review.

    Returns:
        Counts of migrated, merged, skipped and deleted documents
    """
    target_records = load(db.collection(target))
    by_email = {}
    for record in target_records:
        email = normalize_email(record.get("email"))
        if email:
            by_email.setdefault(email, record)
    target_ids = {r.id for r in target_records}

    counts = {"migrated": 0, "merged": 0, "skipped": 0, "deleted": 0}
    ops = []
    moved = []

    for record in load(db.collection(source)):
        email = normalize_email(record.get("email"))
        if not email:
            logger.warning("Skipping document without email", extra={"collection": source, "doc_id": record.id})
            counts["skipped"] += 1
            continue

        existing = by_email.get(email)
        if existing is not None:
            merged = {**existing.data, **record.data}
            merged["email"] = existing.get("email") or record.get("email")
            merged["createdAt"] = existing.get("createdAt") or record.get("createdAt") or firestore.SERVER_TIMESTAMP
            merged["updatedAt"] = record.get("updatedAt") or existing.get("updatedAt") or firestore.SERVER_TIMESTAMP
            ops.append(WriteOp("set", existing.ref, merged))
            existing.data = merged
            moved.append(record)
            counts["merged"] += 1
            continue

        if record.id in target_ids:
            logger.warning("Skipping document with conflicting id", extra={"collection": source, "doc_id": record.id})
            counts["skipped"] += 1
            continue

        ref = db.collection(target).document(record.id)
        ops.append(WriteOp("set", ref, dict(record.data)))
        by_email[email] = Record(record.id, dict(record.data), ref)
        target_ids.add(record.id)
        moved.append(record)
        counts["migrated"] += 1

    if dry_run:
        counts["deleted"] = len(moved) if delete_source else 0
        return counts

    commit_in_batches(db, ops)
    if delete_source:
        counts["deleted"] = commit_in_batches(db, [WriteOp("delete", r.ref) for r in moved])
    logger.info("Collection merged", extra={"source": source, "target": target, **counts, "event": "collection_merged"})
    return counts
