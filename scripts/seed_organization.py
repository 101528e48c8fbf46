#!/usr/bin/env python3
"""
Seed an organization with its owner, team members and licenses.

Re-running is safe: existing documents are merged and only missing licenses
are created. Afterwards the owner and every member hold exactly one license.

Usage:
    python scripts/seed_organization.py \
        --org-id enterprise-media-org \
        --name "Enterprise Media Solutions" \
        --tier ENTERPRISE \
        --owner-email enterprise.user@example.com \
        --members-file members.csv \
        --licenses 250
"""

import sys

from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.seeding import load_members_file, seed_organization


def main():
    parser = build_parser("Seed an organization, its owner, team members and licenses")
    parser.add_argument("--org-id", required=True, help="Organization document id")
    parser.add_argument("--name", required=True, help="Organization display name")
    parser.add_argument("--tier", default="ENTERPRISE", choices=["BASIC", "PRO", "ENTERPRISE"])
    parser.add_argument("--owner-email", required=True, help="Account owner e-mail")
    parser.add_argument("--members-file", help="JSON or CSV file with email, firstName, lastName, role, department")
    parser.add_argument("--licenses", type=int, default=0, help="Total licenses the organization should have")
    args = parser.parse_args()

    try:
        members = load_members_file(args.members_file) if args.members_file else []

        print("🏢 Organization seed:")
        print(f"  ID: {args.org_id}")
        print(f"  Name: {args.name}")
        print(f"  Tier: {args.tier}")
        print(f"  Owner: {args.owner_email}")
        print(f"  Team members: {len(members)}")
        print(f"  Licenses: at least {max(args.licenses, len(members) + 1)}")

        if not confirm(args, "Seed this organization?"):
            return 0

        db = start(args)
        summary = seed_organization(
            db,
            args.org_id,
            args.name,
            args.tier,
            args.owner_email,
            members,
            license_count=args.licenses,
            dry_run=args.dry_run,
        )

        print("")
        print("✅ Organization seeded")
        print(f"  👤 Owner user: {summary['owner_id']}")
        print(f"  👥 Team members created: {summary['members_created']}, updated: {summary['members_updated']}")
        print(f"  🎫 Licenses created: {summary['licenses_created']}")
        print(f"  🔗 Licenses assigned: {summary['licenses_assigned']}")
        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Organization seeding failed", e)


if __name__ == "__main__":
    sys.exit(main())
