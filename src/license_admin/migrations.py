"""
Single-field migrations over a whole collection.
"""

import logging
from typing import Any

from google.cloud import firestore

from license_admin.batching import WriteOp, commit_in_batches
from license_admin.records import load

logger = logging.getLogger(__name__)


def rename_field(
    db: firestore.Client,
    collection: str,
    old: str,
    new: str,
    dry_run: bool = False,
    overwrite: bool = False,
) -> dict[str, int]:
    """
    Move a field to a new name in every document of a collection.

    Documents that already carry the new field keep their value unless
    ``overwrite``; the old field is removed either way.

    Returns:
        Counts of renamed, dropped (old removed, new kept) and skipped documents
    """
    if old == new:
        raise ValueError("Old and new field names must differ")

    counts = {"renamed": 0, "dropped": 0, "skipped": 0}
    ops = []
    for record in load(db.collection(collection)):
        if old not in record.data:
            counts["skipped"] += 1
            continue

        update = {old: firestore.DELETE_FIELD, "updatedAt": firestore.SERVER_TIMESTAMP}
        if new in record.data and not overwrite:
            counts["dropped"] += 1
        else:
            update[new] = record.data[old]
            counts["renamed"] += 1
        ops.append(WriteOp("update", record.ref, update))

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info(
            "Field renamed",
            extra={"collection": collection, "old": old, "new": new, **counts, "event": "field_renamed"},
        )
    return counts


def backfill_field(
    db: firestore.Client,
    collection: str,
    field: str,
    value: Any,
    dry_run: bool = False,
) -> dict[str, int]:
    """Set ``field`` to ``value`` on every document that lacks it."""
    counts = {"updated": 0, "skipped": 0}
    ops = []
    for record in load(db.collection(collection)):
        if field in record.data:
            counts["skipped"] += 1
            continue
        ops.append(WriteOp("update", record.ref, {field: value}))
        counts["updated"] += 1

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info(
            "Field backfilled",
            extra={"collection": collection, "field": field, **counts, "event": "field_backfilled"},
        )
    return counts
