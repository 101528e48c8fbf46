#!/usr/bin/env python3
"""
Replace all licenses with exactly one license per account owner.

An account owner is a user whose organization exists and has a real name.
Each owner gets one license of their organization's tier.

WARNING: deletes every license in scope, including team member licenses.

Usage:
    python scripts/reset_owner_licenses.py --dry-run
    python scripts/reset_owner_licenses.py --org-id enterprise-media-org
"""

import sys

from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.licenses import reset_owner_licenses
from license_admin.organizations import account_owners


def main():
    parser = build_parser("Create exactly one license per account owner")
    parser.add_argument("--org-id", help="Only reset this organization")
    args = parser.parse_args()

    try:
        db = start(args)
        owners = account_owners(db)
        if args.org_id:
            owners = [o for o in owners if o["organizationId"] == args.org_id]

        print(f"👑 Account owners: {len(owners)}")
        for owner in owners:
            print(f"  {owner['email']} ({owner['tier']}) - {owner['organizationName']}")

        print("\nWARNING: existing licenses in scope will be deleted!")
        if not confirm(args, "Reset licenses?"):
            return 0

        deleted, created = reset_owner_licenses(db, owners, org_id=args.org_id, dry_run=args.dry_run)
        print(f"\n🗑️  Licenses deleted: {deleted}")
        print(f"✅ Licenses created: {created}")
        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Owner license reset failed", e)


if __name__ == "__main__":
    sys.exit(main())
