"""
The one-license-per-team-member invariant.

Team members and licenses are linked only by fields on the license documents
(and, loosely, a back-link on the member). Nothing enforces the 1:1 relationship
in the database, so it drifts: members end up with two licenses, licenses stay
assigned to people who left the team, and new members get none. This module
measures the drift and plans the writes that restore the balance.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from google.cloud import firestore

from license_admin import config
from license_admin.batching import WriteOp, commit_in_batches
from license_admin.queries import org_records
from license_admin.records import (
    Record,
    assignment_fields,
    best_first,
    display_name,
    get_assignee,
    member_ids,
    member_license_fields,
    normalize_email,
    release_fields,
)

logger = logging.getLogger(__name__)

# Licenses in these states are never handed out again
UNASSIGNABLE_STATUSES = {"SUSPENDED", "REVOKED", "EXPIRED", "CANCELLED", "CANCELED"}


@dataclass
class MemberLicenses:
    member: Record
    licenses: list[Record] = field(default_factory=list)

    @property
    def email(self) -> str | None:
        return self.member.get("email")

    @property
    def name(self) -> str:
        return display_name(self.member.data)

    @property
    def label(self) -> str:
        return self.email or self.member.id


@dataclass
class BalanceReport:
    members: list[MemberLicenses]
    orphaned: list[Record]
    exempt: list[Record]
    unassigned: list[Record]

    @property
    def unlicensed(self) -> list[MemberLicenses]:
        return [m for m in self.members if not m.licenses]

    @property
    def over_licensed(self) -> list[MemberLicenses]:
        return [m for m in self.members if len(m.licenses) > 1]

    @property
    def assigned_count(self) -> int:
        return sum(len(m.licenses) for m in self.members) + len(self.orphaned) + len(self.exempt)

    @property
    def total_licenses(self) -> int:
        return self.assigned_count + len(self.unassigned)

    @property
    def is_balanced(self) -> bool:
        return all(len(m.licenses) == 1 for m in self.members) and not self.orphaned


@dataclass
class Action:
    kind: str  # "assign", "release" or "link"
    license: Record
    member: Record | None = None
    reason: str = ""


@dataclass
class RebalancePlan:
    actions: list[Action] = field(default_factory=list)
    shortfall: list[Record] = field(default_factory=list)

    @property
    def releases(self) -> list[Action]:
        return [a for a in self.actions if a.kind == "release"]

    @property
    def assignments(self) -> list[Action]:
        return [a for a in self.actions if a.kind == "assign"]

    @property
    def is_empty(self) -> bool:
        return not self.actions


def is_assignable(license_record: Record) -> bool:
    status = str(license_record.get("status") or "").upper()
    return status not in UNASSIGNABLE_STATUSES


def analyze_balance(
    members: Iterable[Record],
    licenses: Iterable[Record],
    exempt: Iterable[str] = (),
) -> BalanceReport:
    """
    Attribute every assigned license to at most one team member.

    A license matches a member by assignee user id first (doc id, userId or
    firebaseUid), then by e-mail. Assigned licenses that match nobody are
    orphaned, unless the assignee id or e-mail is listed in ``exempt``
    (typically the account owner, who holds a license without being a team member).

    Args:
        members: Team member records of one organization
        licenses: License records of the same organization
        exempt: User ids or e-mails allowed to hold a license without membership

    Returns:
        BalanceReport
    """
    entries = [MemberLicenses(member) for member in members]

    by_id: dict[str, MemberLicenses] = {}
    by_email: dict[str, MemberLicenses] = {}
    for entry in entries:
        for member_id in member_ids(entry.member):
            by_id.setdefault(member_id, entry)
        email = normalize_email(entry.email)
        if email:
            by_email.setdefault(email, entry)

    exempt_keys = {normalize_email(value) or value for value in exempt if value}

    orphaned: list[Record] = []
    exempt_licenses: list[Record] = []
    unassigned: list[Record] = []

    for license_record in licenses:
        assignee = get_assignee(license_record.data)
        if assignee is None:
            unassigned.append(license_record)
            continue

        email = normalize_email(assignee.email)
        owner = None
        if assignee.user_id and assignee.user_id in by_id:
            owner = by_id[assignee.user_id]
        elif email and email in by_email:
            owner = by_email[email]

        if owner is not None:
            owner.licenses.append(license_record)
        elif assignee.user_id in exempt_keys or (email and email in exempt_keys):
            exempt_licenses.append(license_record)
        else:
            orphaned.append(license_record)

    return BalanceReport(entries, orphaned, exempt_licenses, unassigned)


def plan_rebalance(report: BalanceReport, release_orphans: bool = True) -> RebalancePlan:
    """
    Plan the writes that give every team member exactly one license.

    Members holding several licenses keep the best one (highest tier, latest
    expiry); the extras are released. Orphaned licenses are released too.
    Free licenses, previously unassigned ones first, then go to members
    without a license in member order. Members that cannot be served end up
    in ``shortfall``.
    """
    plan = RebalancePlan()
    freed: list[Record] = []

    for entry in report.members:
        if not entry.licenses:
            continue
        ordered = best_first(entry.licenses)
        kept = ordered[0]
        for extra in ordered[1:]:
            plan.actions.append(Action("release", extra, entry.member, "duplicate"))
            freed.append(extra)
        if entry.member.get("licenseId") != kept.id:
            plan.actions.append(Action("link", kept, entry.member, "back-link"))

    if release_orphans:
        for license_record in report.orphaned:
            plan.actions.append(Action("release", license_record, None, "orphaned"))
            freed.append(license_record)

    pool = best_first(r for r in report.unassigned if is_assignable(r))
    pool += best_first(r for r in freed if is_assignable(r))

    for entry in report.unlicensed:
        if not pool:
            plan.shortfall.append(entry.member)
            continue
        plan.actions.append(Action("assign", pool.pop(0), entry.member, "unlicensed"))

    return plan


def plan_writes(plan: RebalancePlan) -> list[WriteOp]:
    """Translate a plan into Firestore write operations, in plan order."""
    ops: list[WriteOp] = []
    for action in plan.actions:
        member = action.member
        if action.kind == "release":
            ops.append(WriteOp("update", action.license.ref, release_fields()))
            if member is not None and member.get("licenseId") == action.license.id:
                ops.append(WriteOp("update", member.ref, member_license_fields(None)))
        elif action.kind == "assign":
            user_id = member.get("userId") or member.get("firebaseUid") or member.id
            ops.append(
                WriteOp(
                    "update",
                    action.license.ref,
                    assignment_fields(user_id, member.get("email"), display_name(member.data)),
                )
            )
            ops.append(WriteOp("update", member.ref, member_license_fields(action.license)))
        elif action.kind == "link":
            ops.append(WriteOp("update", member.ref, member_license_fields(action.license)))
        else:
            raise ValueError(f"Unknown action: {action.kind}")
    return ops


def apply_plan(db: firestore.Client, plan: RebalancePlan, dry_run: bool = False) -> int:
    """Commit a rebalance plan. Returns the number of writes (0 on dry run)."""
    ops = plan_writes(plan)
    if dry_run or not ops:
        return 0

    written = commit_in_batches(db, ops)
    logger.info(
        "Rebalance applied",
        extra={
            "releases": len(plan.releases),
            "assignments": len(plan.assignments),
            "writes": written,
            "event": "rebalance_applied",
        },
    )
    return written


def load_org_state(db: firestore.Client, org_id: str) -> tuple[list[Record], list[Record]]:
    """Team members and licenses of one organization."""
    return org_records(db, config.TEAM_MEMBERS, org_id), org_records(db, config.LICENSES, org_id)
