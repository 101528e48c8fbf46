#!/usr/bin/env python3
"""
Add placeholder documents so empty admin collections show up in the Firebase console.

Usage:
    # Preview
    python scripts/seed_placeholders.py --dry-run

    # Add placeholders to the admin dashboard collections
    python scripts/seed_placeholders.py

    # Only some collections
    python scripts/seed_placeholders.py --collections payments audit_logs

    # Remove placeholders again
    python scripts/seed_placeholders.py --remove
"""

import sys

from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.placeholders import ADMIN_COLLECTIONS, add_placeholders, remove_placeholders


def main():
    parser = build_parser("Add or remove placeholder documents in admin collections")
    parser.add_argument("--collections", nargs="+", help="Collections to process (default: admin collections)")
    parser.add_argument("--remove", action="store_true", help="Delete placeholder documents instead")
    args = parser.parse_args()

    collections = args.collections or ADMIN_COLLECTIONS

    try:
        db = start(args)
        print(f"📋 Collections to process: {len(collections)}")

        if args.remove:
            if not confirm(args, f"Delete placeholder documents from {len(collections)} collections?"):
                return 0
            removed = remove_placeholders(db, collections, dry_run=args.dry_run)
            for collection, count in removed.items():
                print(f"  🗑️  {collection}: {count}")
            print(f"\n✅ Placeholders removed: {sum(removed.values())}")
        else:
            if not confirm(args, f"Add placeholders to empty collections among {len(collections)}?"):
                return 0
            added, skipped = add_placeholders(db, collections, dry_run=args.dry_run)
            for collection in added:
                print(f"  📝 {collection}")
            print("\n🎯 Summary:")
            print(f"  ✅ Placeholders added: {len(added)}")
            print(f"  ⏭️  Skipped (already has data): {len(skipped)}")

        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Placeholder seeding failed", e)


if __name__ == "__main__":
    sys.exit(main())
