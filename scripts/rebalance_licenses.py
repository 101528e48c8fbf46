#!/usr/bin/env python3
"""
Restore the one-license-per-team-member balance of an organization.

Members holding several licenses keep the best one (highest tier, latest
expiry), orphaned licenses are released, and free licenses go to members
without one.

Usage:
    # Report and plan only
    python scripts/rebalance_licenses.py --org-id enterprise-media-org --dry-run

    # Apply; the account owner keeps their license without being a team member
    python scripts/rebalance_licenses.py --org-id enterprise-media-org \
        --exempt enterprise.user@example.com

    # Leave orphaned licenses alone
    python scripts/rebalance_licenses.py --org-id enterprise-media-org --keep-orphans

Exit code is 2 when some members could not get a license.
"""

import sys

from license_admin.balance import analyze_balance, apply_plan, load_org_state, plan_rebalance
from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.records import display_name


def print_plan(plan) -> None:
    if plan.is_empty and not plan.shortfall:
        print("\n✅ Nothing to do: every team member holds exactly one license")
        return

    print("\n📋 Planned changes:")
    for action in plan.actions:
        who = action.member.get("email") or action.member.id if action.member else "-"
        if action.kind == "release":
            print(f"  🔓 release {action.license.id} ({action.reason}) from {who}")
        elif action.kind == "assign":
            print(f"  🎫 assign  {action.license.id} → {who} ({display_name(action.member.data)})")
        else:
            print(f"  🔗 link    {action.license.id} on {who}")

    if plan.shortfall:
        print(f"\n⚠️  Not enough free licenses for {len(plan.shortfall)} member(s):")
        for member in plan.shortfall:
            print(f"  ❌ {member.get('email') or member.id}")


def main():
    parser = build_parser("Give every team member exactly one license")
    parser.add_argument("--org-id", required=True, help="Organization id")
    parser.add_argument(
        "--exempt", nargs="*", default=[], help="User ids or e-mails allowed a license without being a member"
    )
    parser.add_argument("--keep-orphans", action="store_true", help="Don't release orphaned licenses")
    args = parser.parse_args()

    try:
        db = start(args)
        print(f"🔍 Loading team members and licenses of {args.org_id}...")
        members, licenses = load_org_state(db, args.org_id)

        report = analyze_balance(members, licenses, exempt=args.exempt)
        print("\n📊 Current state:")
        print(f"  Team members: {len(report.members)}")
        print(f"  Licenses: {report.total_licenses} ({report.assigned_count} assigned, {len(report.unassigned)} free)")
        print(f"  ❌ Without license: {len(report.unlicensed)}")
        print(f"  ⚠️  With several licenses: {len(report.over_licensed)}")
        print(f"  🔗 Orphaned licenses: {len(report.orphaned)}")

        plan = plan_rebalance(report, release_orphans=not args.keep_orphans)
        print_plan(plan)
        if plan.is_empty:
            return 2 if plan.shortfall else 0

        if not confirm(args, f"Apply {len(plan.actions)} change(s)?"):
            return 0

        written = apply_plan(db, plan, dry_run=args.dry_run)
        if not args.dry_run:
            print(f"\n✅ Rebalance applied ({written} writes)")
            members, licenses = load_org_state(db, args.org_id)
            after = analyze_balance(members, licenses, exempt=args.exempt)
            if after.is_balanced:
                print("🎉 Perfect 1:1 balance")
            else:
                print(f"⚠️  Still unbalanced: {len(after.unlicensed)} member(s) without a license")

        dry_run_footer(args)
        return 0 if not plan.shortfall else 2
    except Exception as e:
        return fail("Rebalance failed", e)


if __name__ == "__main__":
    sys.exit(main())
