#!/usr/bin/env python3
"""
Export an organization's users, team members, licenses, subscriptions and projects to JSON.

Usage:
    python scripts/export_org_data.py --org-id enterprise-media-org
    python scripts/export_org_data.py --org-id enterprise-media-org --output backup.json
"""

import os
import sys

from license_admin.cli import build_parser, fail, start
from license_admin.reports import export_organization


def main():
    parser = build_parser("Export organization data to JSON", writes=False)
    parser.add_argument("--org-id", required=True, help="Organization id")
    parser.add_argument("--output", help="Output file (default: <org-id>_data.json)")
    args = parser.parse_args()

    filename = args.output or f"{args.org_id}_data.json"

    try:
        db = start(args)
        print(f"📦 Exporting {args.org_id}...")
        counts = export_organization(db, args.org_id, filename)
    except Exception as e:
        return fail("Export failed", e)

    print("")
    print(f"✅ Exported to {filename}")
    print("")
    print("📊 Documents:")
    for collection, count in counts.items():
        print(f"  {collection}: {count}")
    print("")
    print(f"📁 File size: {os.path.getsize(filename) / 1024:.2f} KB")
    return 0


if __name__ == "__main__":
    sys.exit(main())
