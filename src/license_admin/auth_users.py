"""
Firebase Auth accounts and their users documents.
"""

import logging

from firebase_admin import auth
from google.cloud import firestore

from license_admin import config
from license_admin.clients import get_firebase_app

logger = logging.getLogger(__name__)


def ensure_auth_user(
    email: str,
    password: str | None = None,
    display_name: str | None = None,
) -> tuple[auth.UserRecord, bool]:
    """
    Get the Firebase Auth user for an e-mail, creating it when missing.

    Returns:
        (user record, created)
    """
    app = get_firebase_app()
    try:
        return auth.get_user_by_email(email, app=app), False
    except auth.UserNotFoundError:
        kwargs = {"email": email, "email_verified": True}
        if password:
            kwargs["password"] = password
        if display_name:
            kwargs["display_name"] = display_name
        user = auth.create_user(app=app, **kwargs)
        logger.info("Auth user created", extra={"uid": user.uid, "email": email, "event": "auth_user_created"})
        return user, True


def set_role_claims(uid: str, claims: dict) -> dict:
    """Merge custom claims into the user's existing claims. Returns the new claims."""
    app = get_firebase_app()
    user = auth.get_user(uid, app=app)
    merged = {**(user.custom_claims or {}), **claims}
    auth.set_custom_user_claims(uid, merged, app=app)
    logger.info("Custom claims set", extra={"uid": uid, "claims": merged, "event": "claims_set"})
    return merged


def mark_email_verified(uid: str) -> None:
    auth.update_user(uid, email_verified=True, app=get_firebase_app())


def set_password(uid: str, password: str) -> None:
    """
    Raises:
        ValueError: password shorter than Firebase's six character minimum
    """
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters")
    auth.update_user(uid, password=password, app=get_firebase_app())


def sync_user_document(
    db: firestore.Client,
    user_record: auth.UserRecord,
    organization_id: str | None = None,
    role: str | None = None,
    dry_run: bool = False,
) -> dict:
    """
    Create or merge ``users/{uid}`` from a Firebase Auth user.

    The legacy ``emailVerified`` field is replaced by ``isEmailVerified``.

    Returns:
        The fields written
    """
    ref = db.collection(config.USERS).document(user_record.uid)
    snapshot = ref.get()
    existing = snapshot.to_dict() if snapshot.exists else {}

    data = {
        "email": user_record.email,
        "firebaseUid": user_record.uid,
        "isEmailVerified": bool(user_record.email_verified or existing.get("emailVerified")),
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }
    if user_record.display_name and not existing.get("name"):
        data["name"] = user_record.display_name
    if organization_id:
        data["organizationId"] = organization_id
    if role:
        data["role"] = role.upper()
    if not snapshot.exists:
        data["createdAt"] = firestore.SERVER_TIMESTAMP
    if "emailVerified" in existing:
        data["emailVerified"] = firestore.DELETE_FIELD

    if not dry_run:
        ref.set(data, merge=True)
        logger.info("User document synced", extra={"uid": user_record.uid, "event": "user_doc_synced"})
    return data
