"""
Placeholder documents that make empty collections visible in the Firebase console.
"""

import logging
from datetime import UTC, datetime
from typing import Iterable

from google.cloud import firestore

from license_admin.batching import WriteOp, commit_in_batches

logger = logging.getLogger(__name__)

PLACEHOLDER_ID = "_placeholder"

# Collections the admin dashboard reads from
ADMIN_COLLECTIONS = [
    "payments",
    "system_health",
    "analytics",
    "usage_analytics",
    "settings",
    "notifications",
    "audit_logs",
    "webhook_events",
    "websocket_servers",
    "websocket_sessions",
    "user_memory_profiles",
    "user_direct_reports",
    "sdk_versions",
    "servers",
    "setup_checklists",
    "setup_profiles",
    "scheduler_events",
    "scheduler_tasks",
    "scheduler_event_assignments",
    "saved_project_paths",
    "review_approvals",
    "review_assignments",
    "review_notes",
    "review_sections",
    "qc_activities",
    "qc_checklist_items",
    "qc_findings",
    "qc_reports",
    "qc_sessions",
    "reports",
    "realtime_presence",
    "privacy_consents",
    "production_roles",
    "production_sessions",
    "notes",
    "messages",
    "media_files",
    "lifecycle_rules",
    "license_delivery_logs",
    "invoice_attachments",
    "invoice_payments",
    "inventory_items",
    "datasets",
    "custom_roles",
    "contacts",
    "chats",
    "call_sheets",
    "budgets",
    "assets",
    "agents",
    "activities",
    "schemas",
]


def placeholder_document(collection: str) -> dict:
    return {
        "_placeholder": True,
        "collection": collection,
        "note": "Placeholder document to make collection visible in console",
        "createdAt": datetime.now(UTC).isoformat(),
    }


def is_empty(db: firestore.Client, collection: str) -> bool:
    return not list(db.collection(collection).limit(1).stream())


def add_placeholders(
    db: firestore.Client,
    collections: Iterable[str] | None = None,
    dry_run: bool = False,
) -> tuple[list[str], list[str]]:
    """
    Add a placeholder document to every empty collection.

    Returns:
        (collections that got a placeholder, collections skipped because they hold data)
    """
    added, skipped = [], []
    ops = []
    for collection in collections or ADMIN_COLLECTIONS:
        if not is_empty(db, collection):
            skipped.append(collection)
            continue
        ref = db.collection(collection).document(PLACEHOLDER_ID)
        ops.append(WriteOp("set", ref, placeholder_document(collection)))
        added.append(collection)

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info(
            "Placeholders added",
            extra={"added": len(added), "skipped": len(skipped), "event": "placeholders_added"},
        )
    return added, skipped


def remove_placeholders(
    db: firestore.Client,
    collections: Iterable[str] | None = None,
    dry_run: bool = False,
) -> dict[str, int]:
    """Delete placeholder documents. Returns the count removed per collection."""
    removed = {}
    ops = []
    for collection in collections or ADMIN_COLLECTIONS:
        query = db.collection(collection).where(filter=firestore.FieldFilter("_placeholder", "==", True))
        refs = [doc.reference for doc in query.stream()]
        if refs:
            removed[collection] = len(refs)
            ops.extend(WriteOp("delete", ref) for ref in refs)

    if not dry_run:
        commit_in_batches(db, ops)
    return removed
