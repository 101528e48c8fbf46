"""
Billing document repairs.
"""

import logging

from google.cloud import firestore

from license_admin import config
from license_admin.batching import WriteOp, commit_in_batches
from license_admin.queries import find_by_email, get_record, org_records
from license_admin.records import Record, license_tier

logger = logging.getLogger(__name__)

BILLING_COLLECTIONS = [config.SUBSCRIPTIONS, config.PAYMENTS, config.INVOICES]
EMAIL_FIELDS = ("userEmail", "email", "customerEmail")

DEFAULT_SEAT_MINIMUMS = {"PRO": 10, "ENTERPRISE": 50}


def needs_link(record: Record) -> bool:
    return not record.get("firebaseUid") or not record.get("userEmail")


def resolve_user(db: firestore.Client, record: Record) -> Record | None:
    """The users document a billing record belongs to: by userId, then by e-mail."""
    user_id = record.get("userId")
    if user_id:
        user = get_record(db, config.USERS, user_id)
        if user is not None:
            return user

    for field_name in EMAIL_FIELDS:
        email = record.get(field_name)
        if email:
            matches = find_by_email(db, config.USERS, email)
            if matches:
                return matches[0]
    return None


def link_billing_records(
    db: firestore.Client,
    org_id: str | None = None,
    dry_run: bool = False,
) -> tuple[list[tuple[str, str]], list[tuple[str, str]]]:
    """
    Fill in firebaseUid / userEmail / userId on subscriptions, payments and invoices.

    Returns:
        (linked, unresolved) as lists of (collection, doc id)
    """
    linked, unresolved = [], []
    ops = []

    for collection in BILLING_COLLECTIONS:
        for record in org_records(db, collection, org_id):
            if not needs_link(record):
                continue

            user = resolve_user(db, record)
            if user is None:
                unresolved.append((collection, record.id))
                continue

            ops.append(
                WriteOp(
                    "update",
                    record.ref,
                    {
                        "userId": user.id,
                        "firebaseUid": user.get("firebaseUid") or user.id,
                        "userEmail": user.get("email"),
                        "updatedAt": firestore.SERVER_TIMESTAMP,
                    },
                )
            )
            linked.append((collection, record.id))

    if not dry_run:
        commit_in_batches(db, ops)
        logger.info(
            "Billing records linked",
            extra={"linked": len(linked), "unresolved": len(unresolved), "event": "billing_linked"},
        )
    return linked, unresolved


def enforce_seat_minimums(
    db: firestore.Client,
    minimums: dict[str, int] | None = None,
    dry_run: bool = False,
) -> list[tuple[Record, int, int]]:
    """
    Raise subscription seat counts to the minimum of their tier.

    Returns:
        (subscription, old seats, new seats) for every subscription raised
    """
    minimums = {k.upper(): v for k, v in (minimums or DEFAULT_SEAT_MINIMUMS).items()}

    raised = []
    for subscription in org_records(db, config.SUBSCRIPTIONS):
        tier = license_tier(subscription.data)
        if tier == "PROFESSIONAL":
            tier = "PRO"
        minimum = minimums.get(tier)
        if minimum is None:
            continue
        seats = int(subscription.get("seats") or 0)
        if seats < minimum:
            raised.append((subscription, seats, minimum))

    if not dry_run:
        ops = [
            WriteOp("update", sub.ref, {"seats": new, "updatedAt": firestore.SERVER_TIMESTAMP})
            for sub, _, new in raised
        ]
        commit_in_batches(db, ops)
    return raised
