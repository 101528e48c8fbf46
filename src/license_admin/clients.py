"""
Client construction and logging setup for the maintenance scripts.
"""

import logging

import firebase_admin
from google.cloud import firestore
from google.cloud import logging as cloud_logging

from license_admin import config

logger = logging.getLogger(__name__)


def setup_logging(level: str | None = None) -> None:
    """Send log records to Cloud Logging when enabled, otherwise to stderr."""
    level = (level or config.LOG_LEVEL).upper()

    if config.USE_CLOUD_LOGGING:
        logging_client = cloud_logging.Client(project=config.GCP_PROJECT_ID)
        logging_client.setup_logging(log_level=getattr(logging, level, logging.INFO))
    else:
        logging.basicConfig(
            level=getattr(logging, level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def get_db(project: str | None = None) -> firestore.Client:
    """Firestore client for the target project."""
    project = project or config.GCP_PROJECT_ID
    logger.debug("Creating Firestore client", extra={"project": project, "event": "firestore_client"})
    return firestore.Client(project=project)


def get_firebase_app(project: str | None = None) -> firebase_admin.App:
    """
    Return the default Firebase Admin app, initializing it on first use.

    Uses Application Default Credentials (gcloud auth application-default login).
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        project = project or config.GCP_PROJECT_ID
        return firebase_admin.initialize_app(options={"projectId": project})
