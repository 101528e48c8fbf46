#!/usr/bin/env python3
"""
Create or repair a Firebase Auth user and its users document.

Usage:
    # Make sure the account exists, is verified, and has admin claims
    python scripts/manage_auth_user.py --email enterprise.user@example.com \
        --org-id enterprise-media-org --role ENTERPRISE_ADMIN --verify \
        --claims '{"role": "ENTERPRISE_ADMIN", "isTeamMember": false}'

    # Reset the password (prompted when the value is omitted)
    python scripts/manage_auth_user.py --email enterprise.user@example.com --password
"""

import getpass
import json
import sys

from license_admin.auth_users import (
    ensure_auth_user,
    mark_email_verified,
    set_password,
    set_role_claims,
    sync_user_document,
)
from license_admin.cli import build_parser, confirm, dry_run_footer, fail, start


def main():
    parser = build_parser("Create or repair a Firebase Auth user")
    parser.add_argument("--email", required=True, help="User e-mail")
    parser.add_argument("--name", help="Display name for a new account")
    parser.add_argument("--org-id", help="Organization written on the users document")
    parser.add_argument("--role", help="Role written on the users document")
    parser.add_argument("--claims", help="Custom claims as a JSON object (merged into existing claims)")
    parser.add_argument("--verify", action="store_true", help="Mark the e-mail as verified")
    parser.add_argument("--password", nargs="?", const="", help="Set the password (prompted when no value)")
    parser.add_argument("--no-sync", action="store_true", help="Don't touch the users document")
    args = parser.parse_args()

    try:
        claims = json.loads(args.claims) if args.claims else None
        if claims is not None and not isinstance(claims, dict):
            raise ValueError("--claims must be a JSON object")

        password = args.password
        if password == "":
            password = getpass.getpass("New password: ")

        db = start(args)
        print(f"👤 Firebase Auth user: {args.email}")
        if not confirm(args, "Apply the changes?"):
            return 0
        if args.dry_run:
            print("  (Auth changes are skipped in a dry run)")
            return 0

        user, created = ensure_auth_user(args.email, password=password, display_name=args.name)
        print(f"  {'➕ created' if created else '✅ found'} uid {user.uid}")

        if claims:
            merged = set_role_claims(user.uid, claims)
            print(f"  🔑 claims: {merged}")
        if args.verify:
            mark_email_verified(user.uid)
            print("  ✅ e-mail verified")
        if password and not created:
            set_password(user.uid, password)
            print("  🔒 password updated")

        if not args.no_sync:
            data = sync_user_document(db, user, organization_id=args.org_id, role=args.role)
            print(f"  📄 users/{user.uid} synced ({', '.join(sorted(data))})")

        dry_run_footer(args)
        return 0
    except Exception as e:
        return fail("Auth user update failed", e)


if __name__ == "__main__":
    sys.exit(main())
