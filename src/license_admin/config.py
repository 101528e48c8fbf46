"""
Environment-driven settings shared by the maintenance scripts.
"""

import os

GCP_PROJECT_ID = os.environ.get("GCP_PROJECT_ID", "backbone-logic")
API_BASE_URL = os.environ.get(
    "API_BASE_URL",
    f"https://us-central1-{GCP_PROJECT_ID}.cloudfunctions.net/api",
)
API_ID_TOKEN = os.environ.get("API_ID_TOKEN")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
USE_CLOUD_LOGGING = os.environ.get("USE_CLOUD_LOGGING", "").lower() in ("1", "true", "yes")

# Firestore rejects batches with more than 500 writes
MAX_BATCH_SIZE = 500
FIRESTORE_BATCH_SIZE = min(int(os.environ.get("FIRESTORE_BATCH_SIZE", MAX_BATCH_SIZE)), MAX_BATCH_SIZE)

# Seats bundled with the enterprise plan
ENTERPRISE_SEAT_CAPACITY = int(os.environ.get("ENTERPRISE_SEAT_CAPACITY", 250))

# Canonical collection names
USERS = "users"
TEAM_MEMBERS = "teamMembers"
LICENSES = "licenses"
ORGANIZATIONS = "organizations"
ORG_MEMBERS = "orgMembers"
SUBSCRIPTIONS = "subscriptions"
PAYMENTS = "payments"
INVOICES = "invoices"
PROJECTS = "projects"
PROJECT_ASSIGNMENTS = "projectAssignments"
PROJECT_TEAM_MEMBERS = "projectTeamMembers"

ORG_SCOPED_COLLECTIONS = [
    USERS,
    TEAM_MEMBERS,
    LICENSES,
    SUBSCRIPTIONS,
    PAYMENTS,
    INVOICES,
    PROJECTS,
]


def require_api_token(token: str | None = None) -> str:
    """Return the HTTP API token or fail with instructions."""
    token = token or API_ID_TOKEN
    if not token:
        raise ValueError(
            "API_ID_TOKEN environment variable is required. "
            "Copy a Firebase ID token from a logged-in session "
            "(await firebase.auth().currentUser.getIdToken()) and export it, "
            "or pass --token."
        )
    return token
