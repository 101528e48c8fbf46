"""
Lookups shared by the maintenance scripts.
"""

from google.cloud import firestore

from license_admin import config
from license_admin.records import Record, load, normalize_email

ORG_FIELDS = ("organizationId", "orgId")


def in_org(record: Record, org_id: str | None) -> bool:
    """True when the document belongs to the organization (either field name)."""
    if org_id is None:
        return True
    return any(record.get(field_name) == org_id for field_name in ORG_FIELDS)


def org_records(db: firestore.Client, collection: str, org_id: str | None = None) -> list[Record]:
    """
    All documents of a collection, optionally limited to one organization.

    Older documents carry the organization as ``orgId`` only, so both field
    names are queried and the results merged by document id.
    """
    if org_id is None:
        return load(db.collection(collection))

    found: dict[str, Record] = {}
    for field_name in ORG_FIELDS:
        query = db.collection(collection).where(filter=firestore.FieldFilter(field_name, "==", org_id))
        for record in load(query):
            found.setdefault(record.id, record)
    return list(found.values())


def find_by_email(
    db: firestore.Client,
    collection: str,
    email: str,
    org_id: str | None = None,
) -> list[Record]:
    """
    Documents in a collection with the given e-mail.

    Stored e-mails are not consistently lower-cased, so both the value as
    given and its normalized form are queried.
    """
    candidates = [email]
    normalized = normalize_email(email)
    if normalized and normalized != email:
        candidates.append(normalized)

    found: dict[str, Record] = {}
    for candidate in candidates:
        query = db.collection(collection).where(filter=firestore.FieldFilter("email", "==", candidate))
        for record in load(query):
            if in_org(record, org_id):
                found.setdefault(record.id, record)
    return list(found.values())


def find_member(db: firestore.Client, org_id: str, email: str) -> Record:
    """
    The team member with this e-mail, falling back to the users collection.

    Raises:
        LookupError: when neither collection has a matching document
    """
    members = find_by_email(db, config.TEAM_MEMBERS, email, org_id)
    if members:
        return members[0]

    users = find_by_email(db, config.USERS, email, org_id)
    if users:
        return users[0]

    raise LookupError(f"No team member or user with email {email} in organization {org_id}")


def get_record(db: firestore.Client, collection: str, doc_id: str) -> Record | None:
    ref = db.collection(collection).document(doc_id)
    snapshot = ref.get()
    if not snapshot.exists:
        return None
    return Record(snapshot.id, snapshot.to_dict() or {}, ref)
