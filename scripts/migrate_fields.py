#!/usr/bin/env python3
"""
Rename or backfill a field across whole collections.

Usage:
    # emailVerified → isEmailVerified on users
    python scripts/migrate_fields.py rename --collections users --old emailVerified --new isEmailVerified

    # Set a default where the field is missing (value is parsed as JSON when possible)
    python scripts/migrate_fields.py backfill --collections licenses --field availableForAssignment --value true
"""

import json
import sys

from tqdm import tqdm

from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.migrations import backfill_field, rename_field


def parse_value(raw: str):
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def main():
    parser = build_parser("Rename or backfill a Firestore field")
    parser.add_argument("action", choices=["rename", "backfill"])
    parser.add_argument("--collections", nargs="+", required=True, help="Collections to migrate")
    parser.add_argument("--old", help="Field to rename (rename)")
    parser.add_argument("--new", help="New field name (rename)")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite an existing new field (rename)")
    parser.add_argument("--field", help="Field to set (backfill)")
    parser.add_argument("--value", help="Value to set, JSON or plain string (backfill)")
    args = parser.parse_args()

    if args.action == "rename" and not (args.old and args.new):
        parser.error("rename needs --old and --new")
    if args.action == "backfill" and (not args.field or args.value is None):
        parser.error("backfill needs --field and --value")

    try:
        db = start(args)
        if args.action == "rename":
            print(f"✏️  {args.old} → {args.new} in {', '.join(args.collections)}")
        else:
            print(f"➕ {args.field} = {parse_value(args.value)!r} where missing in {', '.join(args.collections)}")

        if not confirm(args, "Run the migration?"):
            return 0

        results = {}
        for collection in tqdm(args.collections, desc="Migrating"):
            if args.action == "rename":
                results[collection] = rename_field(
                    db, collection, args.old, args.new, dry_run=args.dry_run, overwrite=args.overwrite
                )
            else:
                results[collection] = backfill_field(
                    db, collection, args.field, parse_value(args.value), dry_run=args.dry_run
                )

        print("\n✅ Migration complete:")
        for collection, counts in results.items():
            print(f"   {collection}: " + ", ".join(f"{k} {v}" for k, v in counts.items()))
        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Field migration failed", e)


if __name__ == "__main__":
    sys.exit(main())
