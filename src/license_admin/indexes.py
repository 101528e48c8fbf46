"""
Composite index definitions for the dashboard queries (firestore.indexes.json).
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _index(collection: str, *fields: tuple[str, str]) -> dict:
    return {
        "collectionGroup": collection,
        "queryScope": "COLLECTION",
        "fields": [{"fieldPath": path, "order": order} for path, order in fields],
    }


ASC = "ASCENDING"
DESC = "DESCENDING"

REQUIRED_INDEXES = [
    _index("teamMembers", ("assignedToUserId", ASC), ("status", ASC)),
    _index("teamMembers", ("organizationId", ASC), ("status", ASC)),
    _index("projects", ("organizationId", ASC), ("isActive", ASC)),
    _index("projects", ("organizationId", ASC), ("lastAccessedAt", DESC)),
    _index("licenses", ("organizationId", ASC), ("status", ASC)),
    _index("licenses", ("firebaseUid", ASC), ("status", ASC)),
    _index("licenses", ("availableForAssignment", ASC), ("organizationId", ASC)),
    _index("subscriptions", ("firebaseUid", ASC), ("status", ASC)),
    _index("subscriptions", ("organizationId", ASC), ("status", ASC)),
    _index("payments", ("firebaseUid", ASC), ("createdAt", DESC)),
    _index("payments", ("organizationId", ASC), ("createdAt", DESC)),
    _index("invoices", ("firebaseUid", ASC), ("createdAt", DESC)),
    _index("invoices", ("organizationId", ASC), ("status", ASC)),
    _index("orgMembers", ("orgId", ASC), ("status", ASC)),
    _index("projectAssignments", ("userId", ASC), ("isActive", ASC)),
]


def _index_key(index: dict) -> tuple:
    fields = tuple((f.get("fieldPath"), f.get("order") or f.get("arrayConfig")) for f in index.get("fields", []))
    return index.get("collectionGroup"), index.get("queryScope", "COLLECTION"), fields


def build_index_config(existing: dict | None = None) -> tuple[dict, int]:
    """
    Merge the required indexes into an existing index configuration.

    Returns:
        (configuration, number of indexes added)
    """
    config = {"indexes": [], "fieldOverrides": []}
    if existing:
        config["indexes"] = list(existing.get("indexes", []))
        config["fieldOverrides"] = list(existing.get("fieldOverrides", []))

    seen = {_index_key(index) for index in config["indexes"]}
    added = 0
    for index in REQUIRED_INDEXES:
        key = _index_key(index)
        if key in seen:
            continue
        config["indexes"].append(index)
        seen.add(key)
        added += 1
    return config, added


def write_index_config(path: str | Path, dry_run: bool = False) -> tuple[dict, int]:
    """Write (or update in place) a firestore.indexes.json file."""
    path = Path(path)
    existing = None
    if path.exists():
        with open(path, encoding="utf-8") as f:
            existing = json.load(f)

    config, added = build_index_config(existing)
    if not dry_run:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
            f.write("\n")
        logger.info(
            "Index configuration written", extra={"path": str(path), "added": added, "event": "indexes_written"}
        )
    return config, added
