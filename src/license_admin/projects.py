"""
Project team bookkeeping.

Projects carry two denormalized arrays that the dashboard renders:
``teamAssignments`` (full assignment entries) and ``teamMembers`` (user ids or
small maps). Both are derived from ``projectAssignments``.
"""

import logging

from google.cloud import firestore

from license_admin import config
from license_admin.batching import WriteOp, commit_in_batches
from license_admin.queries import get_record
from license_admin.records import Record, load

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_ROLE = "DO_ER"


def _is_active(assignment: Record) -> bool:
    if assignment.get("isActive") is False:
        return False
    status = assignment.get("status")
    return status is None or str(status).upper() == "ACTIVE"


def _references(entry, user_id: str, email: str | None) -> bool:
    if isinstance(entry, str):
        return entry == user_id
    if isinstance(entry, dict):
        return user_id in (entry.get("userId"), entry.get("id")) or (email is not None and entry.get("email") == email)
    return False


def sync_project_team_arrays(
    db: firestore.Client,
    user_id: str | None = None,
    dry_run: bool = False,
) -> list[str]:
    """
    Make every project list the users actively assigned to it.

    Args:
        db: Firestore client
        user_id: Only process assignments of this user
        dry_run: Plan without writing

    Returns:
        Ids of the projects that were (or would be) updated
    """
    query = db.collection(config.PROJECT_ASSIGNMENTS)
    if user_id:
        query = query.where(filter=firestore.FieldFilter("userId", "==", user_id))
    assignments = [a for a in load(query) if _is_active(a)]

    projects: dict[str, Record] = {}
    pending: dict[str, dict] = {}

    for assignment in assignments:
        project_id = assignment.get("projectId")
        assignee = assignment.get("userId")
        if not project_id or not assignee:
            continue

        if project_id not in projects:
            project = get_record(db, config.PROJECTS, project_id)
            if project is None:
                logger.warning("Project not found", extra={"project_id": project_id, "event": "project_missing"})
                continue
            projects[project_id] = project
        project = projects[project_id]

        update = pending.setdefault(
            project_id,
            {
                "teamAssignments": list(project.get("teamAssignments") or []),
                "teamMembers": list(project.get("teamMembers") or []),
                "changed": False,
            },
        )
        email = assignment.get("email") or assignment.get("userEmail")

        if not any(_references(e, assignee, email) for e in update["teamAssignments"]):
            entry = {
                "id": assignee,
                "userId": assignee,
                "email": email,
                "role": assignment.get("role") or DEFAULT_PROJECT_ROLE,
                "assignedAt": assignment.get("assignedAt"),
                "assignedBy": assignment.get("assignedBy"),
                "isActive": True,
            }
            update["teamAssignments"].append({k: v for k, v in entry.items() if v is not None})
            update["changed"] = True

        if not any(_references(e, assignee, email) for e in update["teamMembers"]):
            update["teamMembers"].append(assignee)
            update["changed"] = True

    changed = {pid: u for pid, u in pending.items() if u["changed"]}
    if not dry_run:
        ops = [
            WriteOp(
                "update",
                projects[pid].ref,
                {
                    "teamAssignments": u["teamAssignments"],
                    "teamMembers": u["teamMembers"],
                    "lastUpdated": firestore.SERVER_TIMESTAMP,
                    "updatedBy": "system-team-sync",
                },
            )
            for pid, u in changed.items()
        ]
        commit_in_batches(db, ops)
    return list(changed)


def migrate_project_team_members(
    db: firestore.Client,
    delete_source: bool = False,
    dry_run: bool = False,
) -> dict[str, int]:
    """
    Copy legacy ``projectTeamMembers`` documents into ``projectAssignments``.

    ``teamMemberId`` becomes ``userId``; the role defaults to DO_ER. An
    assignment that already exists for the same project and user is skipped.
    With ``delete_source`` only copied documents and those already present
    as assignments are deleted; documents missing a project or user stay.

    Returns:
        Counts of migrated, skipped and deleted documents
    """
    existing = {
        (a.get("projectId"), a.get("userId")) for a in load(db.collection(config.PROJECT_ASSIGNMENTS))
    }

    counts = {"migrated": 0, "skipped": 0, "deleted": 0}
    ops = []
    legacy = load(db.collection(config.PROJECT_TEAM_MEMBERS))

    covered = []
    for record in legacy:
        user_id = record.get("teamMemberId") or record.get("userId")
        project_id = record.get("projectId")
        if not user_id or not project_id:
            logger.warning("Skipping project member without project or user", extra={"doc_id": record.id})
            counts["skipped"] += 1
            continue
        if (project_id, user_id) in existing:
            covered.append(record)
            counts["skipped"] += 1
            continue

        data = {k: v for k, v in record.data.items() if k != "teamMemberId"}
        data.update(
            {
                "userId": user_id,
                "projectId": project_id,
                "role": record.get("role") or DEFAULT_PROJECT_ROLE,
                "isActive": record.get("isActive", True),
                "assignedAt": record.get("assignedAt") or firestore.SERVER_TIMESTAMP,
                "migratedFrom": config.PROJECT_TEAM_MEMBERS,
            }
        )
        ops.append(WriteOp("set", db.collection(config.PROJECT_ASSIGNMENTS).document(record.id), data))
        existing.add((project_id, user_id))
        covered.append(record)
        counts["migrated"] += 1

    if delete_source:
        ops.extend(WriteOp("delete", r.ref) for r in covered)
        counts["deleted"] = len(covered)

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info("Project team members migrated", extra={**counts, "event": "project_members_migrated"})
    return counts
