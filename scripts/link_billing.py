#!/usr/bin/env python3
"""
Link subscriptions, payments and invoices to their users and enforce seat minimums.

Usage:
    python scripts/link_billing.py --org-id enterprise-media-org --dry-run
    python scripts/link_billing.py --seats-only --min-seats PRO=10 ENTERPRISE=50
"""

import sys

from license_admin.billing import DEFAULT_SEAT_MINIMUMS, enforce_seat_minimums, link_billing_records
from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start
from license_admin.records import license_tier


def parse_minimums(values: list[str]) -> dict[str, int]:
    minimums = {}
    for value in values:
        tier, _, seats = value.partition("=")
        if not seats.isdigit():
            raise ValueError(f"Invalid seat minimum '{value}', expected TIER=SEATS")
        minimums[tier.upper()] = int(seats)
    return minimums


def main():
    parser = build_parser("Repair billing linkage and subscription seat counts")
    parser.add_argument("--org-id", help="Only this organization (linking)")
    parser.add_argument("--seats-only", action="store_true", help="Skip linking, only enforce seat minimums")
    parser.add_argument("--skip-seats", action="store_true", help="Skip seat minimums")
    parser.add_argument("--min-seats", nargs="+", default=[], help="TIER=SEATS (default PRO=10 ENTERPRISE=50)")
    args = parser.parse_args()

    try:
        minimums = {**DEFAULT_SEAT_MINIMUMS, **parse_minimums(args.min_seats)}
        db = start(args)
        if not confirm(args, "Update billing records?"):
            return 0

        if not args.seats_only:
            linked, unresolved = link_billing_records(db, args.org_id, dry_run=args.dry_run)
            print("💳 Billing linkage:")
            print(f"  ✅ linked: {len(linked)}")
            for collection, doc_id in unresolved:
                print(f"  ⚠️  no user found for {collection}/{doc_id}")

        if not args.skip_seats:
            raised = enforce_seat_minimums(db, minimums, dry_run=args.dry_run)
            print("\n💺 Seat minimums:")
            for subscription, old, new in raised:
                print(f"  📈 {subscription.id} ({license_tier(subscription.data)}): {old} → {new} seats")
            if not raised:
                print("  ✅ All subscriptions meet their minimum")

        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Billing repair failed", e)


if __name__ == "__main__":
    sys.exit(main())
