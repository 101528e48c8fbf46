"""
Organization-wide operations: account owners, moving and purging tenant data.
"""

import logging
from typing import Iterable

from google.cloud import firestore

from license_admin import config
from license_admin.batching import WriteOp, commit_in_batches
from license_admin.queries import ORG_FIELDS, org_records
from license_admin.records import Record, display_name, load, normalize_email

logger = logging.getLogger(__name__)


def _has_real_name(org: Record) -> bool:
    name = org.get("name")
    return isinstance(name, str) and name.strip() not in ("", "undefined", "null")


def account_owners(db: firestore.Client) -> list[dict]:
    """
    Users whose organization exists and has a real name.

    Each owner is a dict with userId, email, name, firebaseUid, organizationId,
    organizationName and tier (the organization's tier, BASIC when unset).
    """
    organizations = {org.id: org for org in load(db.collection(config.ORGANIZATIONS)) if _has_real_name(org)}

    owners = []
    for user in load(db.collection(config.USERS)):
        org = organizations.get(user.get("organizationId"))
        if org is None or not user.get("email"):
            continue
        owners.append(
            {
                "userId": user.id,
                "email": user.get("email"),
                "name": display_name(user.data),
                "firebaseUid": user.get("firebaseUid"),
                "organizationId": org.id,
                "organizationName": org.get("name"),
                "tier": str(org.get("tier") or "BASIC").upper(),
            }
        )
    return owners


def _is_kept(record: Record, keep: set[str]) -> bool:
    email = normalize_email(record.get("email") or record.get("userEmail"))
    return email is not None and email in keep


def move_organization(
    db: firestore.Client,
    source_org: str,
    target_org: str,
    collections: Iterable[str] | None = None,
    keep_emails: Iterable[str] = (),
    dry_run: bool = False,
) -> dict[str, int]:
    """
    Re-home an organization's documents under another organization id.

    Documents whose e-mail is in ``keep_emails`` stay where they are.

    Returns:
        Moved document count per collection

    Raises:
        ValueError: source and target are the same organization
    """
    if source_org == target_org:
        raise ValueError("Source and target organization must differ")

    keep = {normalize_email(e) for e in keep_emails if normalize_email(e)}
    moved = {}
    ops = []

    for collection in collections or config.ORG_SCOPED_COLLECTIONS:
        count = 0
        for record in org_records(db, collection, source_org):
            if _is_kept(record, keep):
                continue
            update = {"updatedAt": firestore.SERVER_TIMESTAMP}
            for field_name in ORG_FIELDS:
                if record.get(field_name) == source_org:
                    update[field_name] = target_org
            ops.append(WriteOp("update", record.ref, update))
            count += 1
        moved[collection] = count

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info(
            "Organization moved",
            extra={"source": source_org, "target": target_org, "moved": moved, "event": "organization_moved"},
        )
    return moved


def purge_organization(
    db: firestore.Client,
    org_id: str,
    collections: Iterable[str] | None = None,
    keep_emails: Iterable[str] = (),
    dry_run: bool = False,
) -> dict[str, int]:
    """
    Delete an organization's documents, keeping those whose e-mail is listed.

    Returns:
        Deleted document count per collection
    """
    keep = {normalize_email(e) for e in keep_emails if normalize_email(e)}
    deleted = {}
    ops = []

    for collection in collections or config.ORG_SCOPED_COLLECTIONS:
        doomed = [r for r in org_records(db, collection, org_id) if not _is_kept(r, keep)]
        ops.extend(WriteOp("delete", r.ref) for r in doomed)
        deleted[collection] = len(doomed)

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info(
            "Organization purged",
            extra={"organization_id": org_id, "deleted": deleted, "event": "organization_purged"},
        )
    return deleted
