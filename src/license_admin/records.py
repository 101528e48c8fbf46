"""
Helpers for reading the loosely-structured licensing documents.

Documents in this database were written by several generations of the app and
by earlier maintenance scripts, so the same fact can live under different
field names. Everything here reads defensively and writes both shapes.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Iterable

from google.cloud import firestore

ACTIVE = "ACTIVE"
PENDING = "PENDING"
SUSPENDED = "SUSPENDED"

TIER_RANK = {"ENTERPRISE": 3, "PRO": 2, "PROFESSIONAL": 2, "BASIC": 1}

_EPOCH = datetime.min.replace(tzinfo=UTC)

TIER_FEATURES = {
    "BASIC": [
        "basic",
        "projects.create",
        "files.basic",
        "basic_dashboard",
        "basic_projects",
        "basic_reports",
    ],
    "PRO": [
        "basic",
        "pro",
        "projects.create",
        "projects.collaborate",
        "files.advanced",
        "reports.basic",
        "basic_dashboard",
        "basic_projects",
        "basic_reports",
        "advanced_analytics",
        "team_collaboration",
        "api_access",
    ],
    "ENTERPRISE": [
        "basic",
        "pro",
        "enterprise",
        "projects.create",
        "projects.collaborate",
        "files.advanced",
        "reports.advanced",
        "integrations.custom",
        "security.enhanced",
        "basic_dashboard",
        "basic_projects",
        "basic_reports",
        "advanced_analytics",
        "team_collaboration",
        "api_access",
        "custom_integrations",
        "priority_support",
        "advanced_security",
    ],
}


@dataclass
class Record:
    """A Firestore document snapshot reduced to id, data and reference."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)
    ref: Any = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class Assignee:
    user_id: str | None
    email: str | None
    name: str | None = None


def load(query) -> list[Record]:
    """Stream a query or collection into a list of Records."""
    records = []
    for doc in query.stream():
        records.append(Record(doc.id, doc.to_dict() or {}, doc.reference))
    return records


def normalize_email(email: Any) -> str | None:
    if not isinstance(email, str):
        return None
    email = email.strip().lower()
    return email or None


def display_name(data: dict) -> str:
    name = data.get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()
    full = f"{data.get('firstName') or ''} {data.get('lastName') or ''}".strip()
    return full or data.get("email") or "Unknown"


def member_ids(record: Record) -> set[str]:
    """Every id a user or team member can be referenced by."""
    ids = {record.id}
    for key in ("userId", "firebaseUid", "uid"):
        value = record.get(key)
        if isinstance(value, str) and value:
            ids.add(value)
    return ids


def get_assignee(license_data: dict) -> Assignee | None:
    """
    Read who a license is assigned to.

    Accepts the nested ``assignedTo`` map and the flat ``assignedTo*`` fields;
    nested values win when both are present.
    """
    nested = license_data.get("assignedTo")
    if not isinstance(nested, dict):
        nested = {}

    user_id = nested.get("userId") or license_data.get("assignedToUserId")
    email = nested.get("email") or license_data.get("assignedToEmail")
    name = nested.get("name") or license_data.get("assignedToName")

    if not user_id and not email:
        return None
    return Assignee(user_id=user_id or None, email=email or None, name=name or None)


def is_assigned(license_data: dict) -> bool:
    return get_assignee(license_data) is not None


def license_tier(license_data: dict) -> str:
    return str(license_data.get("tier") or license_data.get("type") or "BASIC").upper()


def has_real_key(license_data: dict) -> bool:
    key = license_data.get("key")
    return isinstance(key, str) and key.strip() not in ("", "undefined", "null")


def to_datetime(value: Any) -> datetime | None:
    """Best-effort conversion of stored timestamps (Timestamp, ISO string, epoch ms)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=UTC)
    if isinstance(value, dict) and "_seconds" in value:
        return datetime.fromtimestamp(value["_seconds"], tz=UTC)
    return None


def license_rank(record: Record) -> tuple[int, datetime]:
    """Sort key, higher is better: tier first, then the latest expiry."""
    tier = TIER_RANK.get(license_tier(record.data), 0)
    expires = to_datetime(record.get("expiresAt")) or _EPOCH
    return tier, expires


def best_first(licenses: Iterable[Record]) -> list[Record]:
    return sorted(licenses, key=license_rank, reverse=True)


def tier_features(tier: str | None) -> list[str]:
    tier = (tier or "BASIC").upper()
    if tier == "PROFESSIONAL":
        tier = "PRO"
    return list(TIER_FEATURES.get(tier, TIER_FEATURES["BASIC"]))


def assignee_fields(user_id: str | None, email: str | None, name: str | None = None) -> dict:
    """Assignee of a license in both the nested and the flat shape."""
    return {
        "assignedTo": {"userId": user_id, "email": email, "name": name},
        "assignedToUserId": user_id,
        "assignedToEmail": email,
        "assignedToName": name,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }


def assignment_fields(user_id: str | None, email: str | None, name: str | None = None) -> dict:
    """License fields for assigning it to someone new."""
    fields = assignee_fields(user_id, email, name)
    fields["status"] = ACTIVE
    fields["assignedAt"] = firestore.SERVER_TIMESTAMP
    return fields


def release_fields() -> dict:
    """License fields for returning it to the pool."""
    return {
        "assignedTo": None,
        "assignedToUserId": None,
        "assignedToEmail": None,
        "assignedToName": None,
        "assignedAt": None,
        "status": PENDING,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }


def member_license_fields(license_record: Record | None) -> dict:
    """Back-link fields written on a team member for the license it holds."""
    if license_record is None:
        return {
            "licenseId": None,
            "assignedLicenseKey": None,
            "licenseType": None,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
    return {
        "licenseId": license_record.id,
        "assignedLicenseKey": license_record.get("key"),
        "licenseType": license_tier(license_record.data),
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }
