#!/usr/bin/env python3
"""
Write the composite indexes the dashboard needs into firestore.indexes.json.

An existing file is merged: indexes already present are not duplicated.

Usage:
    python scripts/write_indexes.py --path firestore.indexes.json
    firebase deploy --only firestore:indexes
"""

import argparse
import sys

from license_admin.indexes import write_index_config


def main():
    parser = argparse.ArgumentParser(description="Write firestore.indexes.json")
    parser.add_argument("--path", default="firestore.indexes.json", help="Index file to write")
    parser.add_argument("--dry-run", action="store_true", help="Print the result instead of writing it")
    args = parser.parse_args()

    try:
        config, added = write_index_config(args.path, dry_run=args.dry_run)
    except Exception as e:
        print(f"❌ Failed to write {args.path}: {e}")
        return 1

    print(f"📊 Indexes in configuration: {len(config['indexes'])} ({added} added)")
    if args.dry_run:
        print(f"\n⚠️  Dry run: {args.path} was not written")
    else:
        print(f"✅ Wrote {args.path}")
        print("")
        print("🔄 Next step:")
        print("  firebase deploy --only firestore:indexes")
    return 0


if __name__ == "__main__":
    sys.exit(main())
