#!/usr/bin/env python3
"""
Assign a license to a team member, or move one between members.

Usage:
    # Best free license of the organization
    python scripts/assign_license.py --org-id enterprise-media-org --email lissa@example.com

    # A specific license / a specific tier
    python scripts/assign_license.py --org-id enterprise-media-org --email lissa@example.com --license-id abc123
    python scripts/assign_license.py --org-id enterprise-media-org --email lissa@example.com --tier PRO

    # Transfer the license held by one member to another
    python scripts/assign_license.py --org-id enterprise-media-org \
        --from-email old.member@example.com --email new.member@example.com
"""

import sys

from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.licenses import InsufficientLicensesError, assign_license, transfer_license
from license_admin.records import license_tier


def main():
    parser = build_parser("Assign a license to a team member")
    parser.add_argument("--org-id", required=True, help="Organization id")
    parser.add_argument("--email", required=True, help="Member receiving the license")
    parser.add_argument("--license-id", help="Specific license to assign")
    parser.add_argument("--tier", choices=["BASIC", "PRO", "PROFESSIONAL", "ENTERPRISE"], help="Only use this tier")
    parser.add_argument("--from-email", help="Transfer the license held by this member instead")
    args = parser.parse_args()

    try:
        db = start(args)

        if args.from_email:
            print(f"🔄 Transfer: {args.from_email} → {args.email}")
            if not confirm(args, "Transfer the license?"):
                return 0
            moved = transfer_license(db, args.org_id, args.from_email, args.email, dry_run=args.dry_run)
            print(f"✅ License {moved.id} ({license_tier(moved.data)}) now belongs to {args.email}")
            dry_run_footer(args)
            return 0

        print(f"🎫 Assigning a license to {args.email} in {args.org_id}")
        if not confirm(args, "Assign the license?"):
            return 0

        member, license_record, changed = assign_license(
            db,
            args.org_id,
            args.email,
            license_id=args.license_id,
            tier=args.tier,
            dry_run=args.dry_run,
        )
        if changed:
            print(f"✅ Assigned {license_record.id} ({license_tier(license_record.data)}) to {args.email}")
        else:
            print(f"⏭️  {args.email} already holds license {license_record.id}; nothing changed")
        dry_run_footer(args)
        return 0
    except InsufficientLicensesError as e:
        print(f"❌ {e}")
        print("💡 Create licenses first or release unused ones (scripts/rebalance_licenses.py)")
        return 1
    except Exception as e:
        return fail("License assignment failed", e)


if __name__ == "__main__":
    sys.exit(main())
