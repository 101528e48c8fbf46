#!/usr/bin/env python3
"""
Remove duplicate team members and duplicate licenses of an organization.

Team members are duplicates when they share an e-mail; the active, licensed,
most recently updated one is kept and missing fields are merged into it.
Licenses are duplicates when one person holds several; the one with a real
key (else the best tier / latest expiry) is kept.

Usage:
    python scripts/dedupe_records.py --org-id enterprise-media-org --dry-run
    python scripts/dedupe_records.py --org-id enterprise-media-org --only members
"""

import sys

from license_admin import config
from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.licenses import dedupe_licenses, plan_license_dedupe
from license_admin.queries import org_records
from license_admin.team_members import dedupe_members, plan_member_dedupe


def main():
    parser = build_parser("Remove duplicate team members and licenses")
    parser.add_argument("--org-id", required=True, help="Organization id")
    parser.add_argument("--only", choices=["members", "licenses"], help="Only dedupe one kind of record")
    args = parser.parse_args()

    try:
        db = start(args)
        do_members = args.only in (None, "members")
        do_licenses = args.only in (None, "licenses")

        member_plan = plan_member_dedupe(org_records(db, config.TEAM_MEMBERS, args.org_id)) if do_members else []
        license_plan = plan_license_dedupe(org_records(db, config.LICENSES, args.org_id)) if do_licenses else []

        if member_plan:
            print("👥 Duplicate team members:")
            for group in member_plan:
                print(f"  ✅ keep {group.keeper.id} ({group.keeper.get('email')})")
                for dup in group.duplicates:
                    print(f"     🗑️  delete {dup.id}")
                if group.merged:
                    print(f"     ➕ merge fields: {', '.join(sorted(group.merged))}")
        if license_plan:
            print("🎫 Duplicate licenses:")
            for keeper, dups in license_plan:
                print(f"  ✅ keep {keeper.id} (key {keeper.get('key')})")
                for dup in dups:
                    print(f"     🗑️  delete {dup.id}")

        if not member_plan and not license_plan:
            print("✅ No duplicates found")
            return 0

        if not confirm(args, "Delete the duplicates?"):
            return 0

        if member_plan:
            dedupe_members(db, args.org_id, dry_run=args.dry_run)
        if license_plan:
            dedupe_licenses(db, args.org_id, dry_run=args.dry_run)

        print("\n🎯 Summary:")
        print(f"  Team members removed: {sum(len(g.duplicates) for g in member_plan)}")
        print(f"  Licenses removed: {sum(len(d) for _, d in license_plan)}")
        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Deduplication failed", e)


if __name__ == "__main__":
    sys.exit(main())
