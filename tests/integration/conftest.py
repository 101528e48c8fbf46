"""
Pytest configuration for integration tests.

Integration tests run against the Firestore emulator:
`firebase emulators:start --only firestore` and export
FIRESTORE_EMULATOR_HOST=localhost:8080. Without it they are skipped.
"""

import os
from unittest.mock import Mock, patch

import pytest
from google.cloud import firestore

EMULATOR_HOST = os.environ.get("FIRESTORE_EMULATOR_HOST")
PROJECT_ID = "licensing-admin-test"

os.environ["GCP_PROJECT_ID"] = PROJECT_ID

LICENSING_COLLECTIONS = [
    "users",
    "teamMembers",
    "team_members",
    "licenses",
    "organizations",
    "orgMembers",
    "subscriptions",
    "projects",
    "projectAssignments",
    "projectTeamMembers",
]

# Global patches that need to be active during module import
_patches = []


def pytest_configure(config):
    """
    Pytest hook called before test collection begins.

    Note: We do NOT mock the Firestore client here because integration tests
    need a real client connected to the emulator.
    """
    auth_patch = patch("google.auth.default")
    mock_auth = auth_patch.start()
    mock_credentials = Mock()
    mock_credentials.token = "fake-token"
    mock_credentials.universe_domain = "googleapis.com"
    mock_auth.return_value = (mock_credentials, "fake-project-id")
    _patches.append(auth_patch)

    logging_patch = patch("google.cloud.logging.Client")
    mock_logging = logging_patch.start()
    mock_logging.return_value = Mock()
    _patches.append(logging_patch)


def pytest_unconfigure(config):
    for p in _patches:
        p.stop()
    _patches.clear()


def pytest_collection_modifyitems(config, items):
    if EMULATOR_HOST:
        return
    skip = pytest.mark.skip(reason="FIRESTORE_EMULATOR_HOST not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def firestore_client():
    """Firestore client connected to the emulator."""
    yield firestore.Client(project=PROJECT_ID)


@pytest.fixture(autouse=True)
def clean_firestore(request):
    """Empty the licensing collections before each test."""
    if not EMULATOR_HOST:
        yield
        return

    client = request.getfixturevalue("firestore_client")
    for collection_name in LICENSING_COLLECTIONS:
        for doc in client.collection(collection_name).stream():
            doc.reference.delete()
    yield
