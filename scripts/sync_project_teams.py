#!/usr/bin/env python3
"""
Keep project team arrays in line with projectAssignments.

Usage:
    # Add missing users to projects' teamAssignments / teamMembers
    python scripts/sync_project_teams.py arrays --dry-run
    python scripts/sync_project_teams.py arrays --user-id g8dkre0woUWYDvj6jeARh1ekeBa2

    # Copy legacy projectTeamMembers into projectAssignments
    python scripts/sync_project_teams.py migrate --delete-source
"""

import sys

from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.projects import migrate_project_team_members, sync_project_team_arrays


def main():
    parser = build_parser("Synchronize project team data")
    parser.add_argument("action", choices=["arrays", "migrate"])
    parser.add_argument("--user-id", help="Only this user's assignments (arrays)")
    parser.add_argument("--delete-source", action="store_true", help="Delete projectTeamMembers afterwards (migrate)")
    args = parser.parse_args()

    try:
        db = start(args)
        if not confirm(args, "Update project team data?"):
            return 0

        if args.action == "arrays":
            updated = sync_project_team_arrays(db, user_id=args.user_id, dry_run=args.dry_run)
            for project_id in updated:
                print(f"  ✅ {project_id}")
            if updated:
                print(f"\n🎉 Updated {len(updated)} projects with team assignments")
            else:
                print("\n✅ All projects already have correct team assignments")
        else:
            counts = migrate_project_team_members(db, delete_source=args.delete_source, dry_run=args.dry_run)
            print("\n✅ projectTeamMembers migration complete:")
            print(f"   Migrated: {counts['migrated']}")
            print(f"   Skipped: {counts['skipped']}")
            print(f"   Deleted: {counts['deleted']}")

        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Project team sync failed", e)


if __name__ == "__main__":
    sys.exit(main())
