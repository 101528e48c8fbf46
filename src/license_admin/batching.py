"""
Batched Firestore writes.

Firestore caps a write batch at 500 operations; everything that writes more
than a handful of documents goes through here.
"""

import logging
from typing import Any, Iterable, NamedTuple

from google.cloud import firestore

from license_admin import config

logger = logging.getLogger(__name__)


class WriteOp(NamedTuple):
    kind: str  # "set", "update" or "delete"
    ref: Any
    data: dict | None = None
    merge: bool = False


def _batch_size(batch_size: int | None) -> int:
    size = batch_size or config.FIRESTORE_BATCH_SIZE
    return max(1, min(size, config.MAX_BATCH_SIZE))


def commit_in_batches(db: firestore.Client, ops: Iterable[WriteOp], batch_size: int | None = None) -> int:
    """
    Apply write operations in batches.

    Args:
        db: Firestore client
        ops: Write operations in the order they should be applied
        batch_size: Writes per batch (capped at 500)

    Returns:
        Number of writes committed
    """
    size = _batch_size(batch_size)
    written = 0
    pending = 0
    batch = db.batch()

    for op in ops:
        if op.kind == "set":
            if op.merge:
                batch.set(op.ref, op.data, merge=True)
            else:
                batch.set(op.ref, op.data)
        elif op.kind == "update":
            batch.update(op.ref, op.data)
        elif op.kind == "delete":
            batch.delete(op.ref)
        else:
            raise ValueError(f"Unknown write operation: {op.kind}")

        pending += 1
        if pending == size:
            batch.commit()
            written += pending
            logger.info("Batch committed", extra={"writes": pending, "total": written, "event": "batch_committed"})
            batch = db.batch()
            pending = 0

    if pending:
        batch.commit()
        written += pending
        logger.info("Batch committed", extra={"writes": pending, "total": written, "event": "batch_committed"})

    return written


def delete_query(db: firestore.Client, query, batch_size: int | None = None) -> int:
    """Delete every document matched by a query, one page at a time."""
    size = _batch_size(batch_size)
    deleted = 0

    while True:
        docs = list(query.limit(size).stream())
        if not docs:
            break

        batch = db.batch()
        for doc in docs:
            batch.delete(doc.reference)
        batch.commit()
        deleted += len(docs)

        logger.info("Deleted page", extra={"deleted": deleted, "event": "documents_deleted"})

        if len(docs) < size:
            break

    return deleted


def delete_collection(db: firestore.Client, collection_name: str, batch_size: int | None = None) -> int:
    """Delete all documents in a collection using batch operations."""
    return delete_query(db, db.collection(collection_name), batch_size)
