"""
License assignment, release and cleanup operations.
"""

import logging
import secrets
import string
from collections import defaultdict
from datetime import UTC, datetime, timedelta
from typing import Iterable

from google.cloud import firestore

from license_admin import config
from license_admin.balance import (
    Action,
    RebalancePlan,
    analyze_balance,
    apply_plan,
    is_assignable,
)
from license_admin.batching import WriteOp, commit_in_batches
from license_admin.queries import find_by_email, find_member, get_record, in_org, org_records
from license_admin.records import (
    PENDING,
    Record,
    assignment_fields,
    best_first,
    get_assignee,
    has_real_key,
    is_assigned,
    license_tier,
    load,
    member_license_fields,
    normalize_email,
    release_fields,
    tier_features,
    to_datetime,
)

logger = logging.getLogger(__name__)

KEY_ALPHABET = string.ascii_uppercase + string.digits
EXPIRING_SOON_DAYS = 30


class InsufficientLicensesError(RuntimeError):
    """No free license is left to hand out."""


def generate_license_key(tier: str) -> str:
    """Random key such as ``ENT-7K2Q-9XDA-M3PL``."""
    prefix = (tier or "BASIC").upper()[:3]
    groups = ["".join(secrets.choice(KEY_ALPHABET) for _ in range(4)) for _ in range(3)]
    return "-".join([prefix, *groups])


def build_license(
    org_id: str,
    tier: str,
    key: str | None = None,
    subscription_id: str | None = None,
    expires_at: datetime | None = None,
    notes: str | None = None,
) -> dict:
    """Body of a new, unassigned license document."""
    tier = tier.upper()
    return {
        "key": key or generate_license_key(tier),
        "tier": tier,
        "type": tier,
        "status": PENDING,
        "organizationId": org_id,
        "subscriptionId": subscription_id,
        "features": tier_features(tier),
        "assignedTo": None,
        "assignedToUserId": None,
        "assignedToEmail": None,
        "assignedToName": None,
        "expiresAt": expires_at,
        "notes": notes,
        "createdAt": firestore.SERVER_TIMESTAMP,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }


def held_licenses(member: Record, licenses: Iterable[Record]) -> list[Record]:
    """Licenses attributed to one member, best first."""
    report = analyze_balance([member], licenses)
    return best_first(report.members[0].licenses)


def assign_license(
    db: firestore.Client,
    org_id: str,
    email: str,
    license_id: str | None = None,
    tier: str | None = None,
    dry_run: bool = False,
) -> tuple[Record, Record, bool]:
    """
    Give a team member a license.

    A member that already holds a license keeps it and nothing is written.

    Args:
        db: Firestore client
        org_id: Organization the member and license belong to
        email: Member e-mail
        license_id: Specific license to assign, otherwise the best free one
        tier: Only consider free licenses of this tier
        dry_run: Plan without writing

    Returns:
        (member, license, changed)

    Raises:
        LookupError: member or license not found
        ValueError: the requested license is taken or not assignable
        InsufficientLicensesError: no free license left
    """
    member = find_member(db, org_id, email)
    licenses = org_records(db, config.LICENSES, org_id)

    held = held_licenses(member, licenses)
    if held:
        return member, held[0], False

    if license_id:
        chosen = next((r for r in licenses if r.id == license_id), None)
        if chosen is None:
            raise LookupError(f"License {license_id} not found in organization {org_id}")
        if is_assigned(chosen.data):
            assignee = get_assignee(chosen.data)
            raise ValueError(f"License {license_id} is already assigned to {assignee.email or assignee.user_id}")
        if not is_assignable(chosen):
            raise ValueError(f"License {license_id} has status {chosen.get('status')} and cannot be assigned")
    else:
        pool = [
            r
            for r in licenses
            if not is_assigned(r.data) and is_assignable(r) and (tier is None or license_tier(r.data) == tier.upper())
        ]
        if not pool:
            raise InsufficientLicensesError(
                f"No unassigned {tier.upper() + ' ' if tier else ''}licenses left in organization {org_id}"
            )
        chosen = best_first(pool)[0]

    plan = RebalancePlan(actions=[Action("assign", chosen, member, "requested")])
    apply_plan(db, plan, dry_run=dry_run)

    logger.info(
        "License assigned",
        extra={"license_id": chosen.id, "email": email, "dry_run": dry_run, "event": "license_assigned"},
    )
    return member, chosen, True


def transfer_license(
    db: firestore.Client,
    org_id: str,
    from_email: str,
    to_email: str,
    dry_run: bool = False,
) -> Record:
    """
    Move the license held by one member to another.

    Raises:
        LookupError: a member is missing or the source holds no license
        ValueError: the target already holds a license
    """
    source = find_member(db, org_id, from_email)
    target = find_member(db, org_id, to_email)
    licenses = org_records(db, config.LICENSES, org_id)

    if held_licenses(target, licenses):
        raise ValueError(f"{to_email} already holds a license")

    held = held_licenses(source, licenses)
    if not held:
        raise LookupError(f"{from_email} does not hold a license")

    moving = held[0]
    plan = RebalancePlan(
        actions=[
            Action("release", moving, source, "transfer"),
            Action("assign", moving, target, "transfer"),
        ]
    )
    apply_plan(db, plan, dry_run=dry_run)

    logger.info(
        "License transferred",
        extra={"license_id": moving.id, "from": from_email, "to": to_email, "event": "license_transferred"},
    )
    return moving


def release_license(db: firestore.Client, license_id: str, dry_run: bool = False) -> Record:
    """
    Unassign one license and clear member back-links that point at it.

    Returns:
        The license as it was before the release

    Raises:
        LookupError: license not found
    """
    license_record = get_record(db, config.LICENSES, license_id)
    if license_record is None:
        raise LookupError(f"License {license_id} not found")

    ops = [WriteOp("update", license_record.ref, release_fields())]
    linked = load(db.collection(config.TEAM_MEMBERS).where(filter=firestore.FieldFilter("licenseId", "==", license_id)))
    for member in linked:
        ops.append(WriteOp("update", member.ref, member_license_fields(None)))

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info(
            "License released",
            extra={"license_id": license_id, "back_links": len(linked), "event": "license_released"},
        )
    return license_record


def plan_license_dedupe(licenses: Iterable[Record]) -> list[tuple[Record, list[Record]]]:
    """
    Group assigned licenses by assignee and pick one to keep per group.

    The keeper is the best-ranked license with a real key, or the best-ranked
    one when none has a key.

    Returns:
        (keeper, duplicates) for every assignee holding more than one license
    """
    groups: dict[str, list[Record]] = defaultdict(list)
    for license_record in licenses:
        assignee = get_assignee(license_record.data)
        if assignee is None:
            continue
        group_key = normalize_email(assignee.email) or assignee.user_id
        groups[group_key].append(license_record)

    plan = []
    for group in groups.values():
        if len(group) < 2:
            continue
        ordered = best_first(group)
        keeper = next((r for r in ordered if has_real_key(r.data)), ordered[0])
        plan.append((keeper, [r for r in ordered if r.id != keeper.id]))
    return plan


def dedupe_licenses(db: firestore.Client, org_id: str, dry_run: bool = False) -> list[tuple[Record, list[Record]]]:
    """Delete duplicate licenses of an organization (see plan_license_dedupe)."""
    plan = plan_license_dedupe(org_records(db, config.LICENSES, org_id))
    if not dry_run:
        ops = [WriteOp("delete", dup.ref) for _, dups in plan for dup in dups]
        commit_in_batches(db, ops)
    return plan


def reset_owner_licenses(
    db: firestore.Client,
    owners: list[dict],
    org_id: str | None = None,
    dry_run: bool = False,
) -> tuple[int, int]:
    """
    Replace every license in scope with exactly one license per account owner.

    Args:
        db: Firestore client
        owners: Account owners (see organizations.account_owners)
        org_id: Limit the reset to one organization
        dry_run: Plan without writing

    Returns:
        (deleted, created)
    """
    if org_id is not None:
        owners = [o for o in owners if o["organizationId"] == org_id]

    existing = org_records(db, config.LICENSES, org_id)
    ops = [WriteOp("delete", r.ref) for r in existing]

    for owner in owners:
        ref = db.collection(config.LICENSES).document()
        body = build_license(
            owner["organizationId"],
            owner.get("tier") or "BASIC",
            notes=f"Account owner license for {owner.get('organizationName')}",
        )
        body["id"] = ref.id
        body.update(
            assignment_fields(
                owner.get("firebaseUid") or owner["userId"],
                owner["email"],
                owner.get("name"),
            )
        )
        ops.append(WriteOp("set", ref, body))

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info(
            "Owner licenses reset",
            extra={"deleted": len(existing), "created": len(owners), "event": "owner_licenses_reset"},
        )
    return len(existing), len(owners)


def link_licenses_to_users(
    db: firestore.Client,
    org_id: str | None = None,
    dry_run: bool = False,
) -> tuple[list[tuple[Record, Record]], list[Record]]:
    """
    Write the license back-link onto the users document of each assignee.

    The user is found by the assignee id first, then by e-mail.

    Returns:
        (linked (license, user) pairs, licenses whose user could not be found)
    """
    active = load(db.collection(config.LICENSES).where(filter=firestore.FieldFilter("status", "==", "ACTIVE")))

    linked = []
    unresolved = []
    for license_record in active:
        if not in_org(license_record, org_id):
            continue
        assignee = get_assignee(license_record.data)
        if assignee is None:
            continue

        user = get_record(db, config.USERS, assignee.user_id) if assignee.user_id else None
        if user is None and assignee.email:
            matches = find_by_email(db, config.USERS, assignee.email)
            user = matches[0] if matches else None

        if user is None:
            unresolved.append(license_record)
        else:
            linked.append((license_record, user))

    if not dry_run:
        ops = [
            WriteOp(
                "update",
                user.ref,
                {
                    "licenseId": license_record.id,
                    "licenseType": license_tier(license_record.data),
                    "licenseStatus": license_record.get("status"),
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            for license_record, user in linked
        ]
        commit_in_batches(db, ops)

    return linked, unresolved


def license_stats(
    licenses: Iterable[Record],
    seat_capacity: int | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Counts shown on the licenses dashboard.

    ``unassigned`` counts ACTIVE licenses without an assignee; released licenses
    waiting in the pool (PENDING, no assignee) are counted under ``pending``.
    ``available_seats`` is only set when a seat capacity is given.
    """
    now = now or datetime.now(UTC)
    soon = now + timedelta(days=EXPIRING_SOON_DAYS)

    stats = {
        "total": 0,
        "active": 0,
        "assigned": 0,
        "unassigned": 0,
        "pending": 0,
        "suspended": 0,
        "expiring_soon": 0,
        "by_tier": defaultdict(int),
    }

    for license_record in licenses:
        status = str(license_record.get("status") or "").upper()
        stats["total"] += 1
        stats["by_tier"][license_tier(license_record.data)] += 1

        if status == "ACTIVE":
            stats["active"] += 1
        if status == "SUSPENDED":
            stats["suspended"] += 1

        if is_assigned(license_record.data):
            stats["assigned"] += 1
        elif status == "ACTIVE":
            stats["unassigned"] += 1
        elif status == "PENDING":
            stats["pending"] += 1

        expires = to_datetime(license_record.get("expiresAt"))
        if expires is not None and now <= expires <= soon:
            stats["expiring_soon"] += 1

    stats["by_tier"] = dict(stats["by_tier"])
    if seat_capacity is not None:
        stats["seat_capacity"] = seat_capacity
        stats["available_seats"] = max(0, seat_capacity - stats["assigned"])
    return stats
