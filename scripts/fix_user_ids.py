#!/usr/bin/env python3
"""
Repair the links between users, team members and licenses.

Steps (all by default, or pick with --steps):
    orgmembers  upsert active orgMembers into teamMembers
    relink      fix team member / license userId + firebaseUid from the users collection
    licenses    write licenseId / licenseType / licenseStatus onto the users documents

Usage:
    python scripts/fix_user_ids.py --org-id enterprise-media-org --dry-run
    python scripts/fix_user_ids.py --org-id enterprise-media-org --steps relink licenses
"""

import sys

from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.licenses import link_licenses_to_users
from license_admin.team_members import relink_user_ids, sync_org_members

STEPS = ["orgmembers", "relink", "licenses"]


def main():
    parser = build_parser("Relink user ids across users, teamMembers and licenses")
    parser.add_argument("--org-id", required=True, help="Organization id")
    parser.add_argument("--steps", nargs="+", choices=STEPS, default=STEPS, help="Steps to run")
    args = parser.parse_args()

    try:
        db = start(args)
        print(f"🔧 Repairing user links in {args.org_id}: {', '.join(args.steps)}")
        if not confirm(args, "Run the repair?"):
            return 0

        if "orgmembers" in args.steps:
            created, updated = sync_org_members(db, args.org_id, dry_run=args.dry_run)
            print("\n👥 orgMembers → teamMembers:")
            for email in created:
                print(f"  ➕ {email}")
            print(f"  ✅ created {len(created)}, updated {len(updated)}")

        if "relink" in args.steps:
            relinked, fixed_licenses = relink_user_ids(db, args.org_id, dry_run=args.dry_run)
            print("\n🔗 User ids:")
            for member, user in relinked:
                print(f"  {member.get('email')}: {member.get('userId')} → {user.id}")
            print(f"  ✅ team members fixed: {len(relinked)}, licenses fixed: {len(fixed_licenses)}")

        if "licenses" in args.steps:
            linked, unresolved = link_licenses_to_users(db, args.org_id, dry_run=args.dry_run)
            print("\n🎫 License → user links:")
            print(f"  ✅ linked: {len(linked)}")
            for license_record in unresolved:
                print(f"  ⚠️  no user for license {license_record.id}")

        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("User id repair failed", e)


if __name__ == "__main__":
    sys.exit(main())
