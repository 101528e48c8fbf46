"""
Argument and prompt conventions shared by the scripts in scripts/.
"""

import argparse
import logging

from google.cloud import firestore

from license_admin import config
from license_admin.clients import get_db, setup_logging

logger = logging.getLogger(__name__)


def build_parser(description: str, writes: bool = True) -> argparse.ArgumentParser:
    """ArgumentParser with --project, --log-level and, for writing scripts, --dry-run and -y."""
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--project", default=config.GCP_PROJECT_ID, help="GCP / Firebase project id")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level (default: INFO)")
    if writes:
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Preview only, don't update Firestore",
        )
        parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation prompt")
    return parser


def start(args: argparse.Namespace) -> firestore.Client:
    """Configure logging and return the Firestore client for ``--project``."""
    setup_logging(args.log_level)
    return get_db(args.project)


def confirm(args: argparse.Namespace, prompt: str = "Continue?") -> bool:
    """Ask before writing. Dry runs and -y/--yes skip the question."""
    if getattr(args, "dry_run", False):
        print("\n⚠️  Dry run: nothing will be written")
        return True
    if getattr(args, "yes", False):
        return True
    answer = input(f"\n{prompt} [y/N]: ")
    if answer.strip().lower() != "y":
        print("❌ Cancelled")
        return False
    return True


def fail(message: str, exc: Exception) -> int:
    """Report an exception that stopped a script and return the exit code."""
    print(f"❌ {message}: {exc}")
    logger.error(message, exc_info=True, extra={"event": "script_failed"})
    return 1


def dry_run_footer(args: argparse.Namespace) -> None:
    if getattr(args, "dry_run", False):
        print("\n⚠️  This was a dry run. Re-run without --dry-run to apply.")
