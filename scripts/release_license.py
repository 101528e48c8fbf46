#!/usr/bin/env python3
"""
Unassign a license (e.g. one orphaned on a user who left the team).

Usage:
    python scripts/release_license.py --license-id abc123 --dry-run
    python scripts/release_license.py --license-id abc123
"""

import sys

from license_admin import config
from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.licenses import release_license
from license_admin.queries import get_record
from license_admin.records import get_assignee, license_tier


def main():
    parser = build_parser("Release one license back to the pool")
    parser.add_argument("--license-id", required=True, help="License document id")
    args = parser.parse_args()

    try:
        db = start(args)
        license_record = get_record(db, config.LICENSES, args.license_id)
        if license_record is None:
            print(f"❌ License not found: {args.license_id}")
            return 1

        assignee = get_assignee(license_record.data)
        print("🎫 License:")
        print(f"  ID: {license_record.id}")
        print(f"  Tier: {license_tier(license_record.data)}")
        print(f"  Status: {license_record.get('status')}")
        print(f"  Assigned to: {(assignee.email or assignee.user_id) if assignee else '-'}")

        if assignee is None:
            print("\n⏭️  License is not assigned; nothing to do")
            return 0

        if not confirm(args, "Release this license?"):
            return 0

        release_license(db, args.license_id, dry_run=args.dry_run)
        print("\n✅ License released (status PENDING)")
        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("License release failed", e)


if __name__ == "__main__":
    sys.exit(main())
