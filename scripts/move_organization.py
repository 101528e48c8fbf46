#!/usr/bin/env python3
"""
Move an organization's data to another organization id, or purge it.

Usage:
    # Move everything from one org id to another, leaving the owner where they are
    python scripts/move_organization.py move --source default-org --target enterprise-media-org \
        --keep-email enterprise.user@example.com

    # Delete an old organization's documents
    python scripts/move_organization.py purge --source old-org-id --dry-run
"""

import sys

from license_admin import config
from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.organizations import move_organization, purge_organization


def main():
    parser = build_parser("Move or purge organization data")
    parser.add_argument("action", choices=["move", "purge"])
    parser.add_argument("--source", required=True, help="Organization id to move from / purge")
    parser.add_argument("--target", help="Organization id to move to (move)")
    parser.add_argument(
        "--collections",
        nargs="+",
        default=config.ORG_SCOPED_COLLECTIONS,
        help="Collections to process",
    )
    parser.add_argument("--keep-email", nargs="*", default=[], help="Documents with these e-mails are left alone")
    args = parser.parse_args()

    if args.action == "move" and not args.target:
        parser.error("move needs --target")

    try:
        db = start(args)
        if args.action == "move":
            print(f"🚚 {args.source} → {args.target}")
        else:
            print(f"🗑️  Purging {args.source}")
            print("WARNING: This action cannot be undone!")
        print(f"  Collections: {', '.join(args.collections)}")
        if args.keep_email:
            print(f"  Keeping: {', '.join(args.keep_email)}")

        if not confirm(args, f"{args.action.capitalize()} organization data?"):
            return 0

        if args.action == "move":
            counts = move_organization(
                db, args.source, args.target, args.collections, keep_emails=args.keep_email, dry_run=args.dry_run
            )
        else:
            counts = purge_organization(
                db, args.source, args.collections, keep_emails=args.keep_email, dry_run=args.dry_run
            )

        verb = "moved" if args.action == "move" else "deleted"
        print("")
        for collection, count in counts.items():
            print(f"  ✅ {collection}: {count} documents {verb}")
        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail(f"Organization {args.action} failed", e)


if __name__ == "__main__":
    sys.exit(main())
