#!/usr/bin/env python3
"""
Diagnostic reports.

Usage:
    # License / team member balance of one organization
    python scripts/org_report.py --org-id enterprise-media-org

    # Relationship fields present on sampled documents
    python scripts/org_report.py --relationships --sample 10

    # Document counts
    python scripts/org_report.py --counts users teamMembers licenses
"""

import sys

from tqdm import tqdm

from license_admin import config
from license_admin.cli import build_parser, fail, start
from license_admin.reports import (
    check_relationships,
    collection_counts,
    organization_report,
    print_organization_report,
)


def print_relationships(results: dict) -> None:
    print("🔗 Relationship fields (present / sampled):")
    for collection, result in results.items():
        sampled = result["sampled"]
        if not sampled:
            print(f"  ⏭️  {collection}: empty")
            continue
        print(f"  📁 {collection}")
        for field_name, present in result["fields"].items():
            marker = "✅" if present == sampled else ("⚠️ " if present else "❌")
            print(f"     {marker} {field_name}: {present}/{sampled}")


def main():
    parser = build_parser("Licensing database diagnostics", writes=False)
    parser.add_argument("--org-id", help="Organization to report on")
    parser.add_argument("--seats", type=int, help="Seat capacity to compare against")
    parser.add_argument("--relationships", action="store_true", help="Check relationship fields")
    parser.add_argument("--sample", type=int, default=5, help="Documents sampled per collection")
    parser.add_argument("--counts", nargs="*", help="Count documents in these collections (default: main ones)")
    args = parser.parse_args()

    if not (args.org_id or args.relationships or args.counts is not None):
        parser.error("pass --org-id, --relationships or --counts")

    try:
        db = start(args)

        if args.org_id:
            report = organization_report(db, args.org_id, seat_capacity=args.seats)
            print_organization_report(report)

        if args.relationships:
            print("")
            print_relationships(check_relationships(db, sample=args.sample))

        if args.counts is not None:
            names = args.counts or [*config.ORG_SCOPED_COLLECTIONS, config.ORGANIZATIONS, config.ORG_MEMBERS]
            counts = {}
            for name in tqdm(names, desc="Counting"):
                counts.update(collection_counts(db, [name]))
            print("\n📊 Document counts:")
            for name, count in counts.items():
                print(f"  {name}: {count}")

        return 0
    except Exception as e:
        return fail("Report failed", e)


if __name__ == "__main__":
    sys.exit(main())
