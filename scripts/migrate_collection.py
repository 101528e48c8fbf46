#!/usr/bin/env python3
"""
Merge a legacy collection into its canonical camelCase one.

Documents are matched by e-mail: collisions are merged into the existing
document, new ones are copied under the same id, documents without e-mail
are skipped. With --delete-source the copied and merged documents are removed
from the legacy collection; skipped ones are left there.

Usage:
    python scripts/migrate_collection.py --source team_members --target teamMembers --dry-run
    python scripts/migrate_collection.py --source team_members --target teamMembers --delete-source
"""

import sys

from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.team_members import merge_collection


def main():
    parser = build_parser("Merge a legacy collection into the canonical one")
    parser.add_argument("--source", required=True, help="Legacy collection (e.g. team_members)")
    parser.add_argument("--target", required=True, help="Canonical collection (e.g. teamMembers)")
    parser.add_argument("--delete-source", action="store_true", help="Delete merged documents from the source")
    args = parser.parse_args()

    if args.source == args.target:
        print("❌ Source and target must differ")
        return 1

    try:
        db = start(args)
        print(f"📦 {args.source} → {args.target}")
        if args.delete_source:
            print(f"WARNING: merged documents will be deleted from {args.source}")
        if not confirm(args, "Merge collections?"):
            return 0

        counts = merge_collection(db, args.source, args.target, delete_source=args.delete_source, dry_run=args.dry_run)
        print("\n✅ Migration complete:")
        print(f"   Migrated: {counts['migrated']} documents")
        print(f"   Merged: {counts['merged']} documents")
        print(f"   Skipped: {counts['skipped']} documents")
        if args.delete_source:
            print(f"   Deleted from {args.source}: {counts['deleted']} documents")
            if counts["skipped"]:
                print(f"   ⚠️  {counts['skipped']} skipped documents left in {args.source}")
        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Collection migration failed", e)


if __name__ == "__main__":
    sys.exit(main())
