#!/usr/bin/env python3
"""
Smoke-test team member creation through the deployed HTTP API.

Counts available licenses and team members, creates a throwaway team member,
and checks that exactly one license was consumed and one member added.

Requires a Firebase ID token of an organization admin:
    export API_ID_TOKEN=$(...)   # await firebase.auth().currentUser.getIdToken()

Usage:
    python scripts/api_smoke_test.py --org-id enterprise-media-org
    python scripts/api_smoke_test.py --org-id enterprise-media-org --base-url http://localhost:5001/demo/us-central1/api
"""

import argparse
import logging
import sys

from license_admin import config
from license_admin.api_client import ApiError, LicensingApiClient, run_team_member_smoke_test
from license_admin.clients import setup_logging

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Team member creation smoke test")
    parser.add_argument("--org-id", required=True, help="Organization id")
    parser.add_argument("--base-url", default=config.API_BASE_URL, help="API root URL")
    parser.add_argument("--token", help="Firebase ID token (default: $API_ID_TOKEN)")
    parser.add_argument("--email", help="E-mail of the test member (default: generated)")
    parser.add_argument("--license-type", default="PROFESSIONAL", help="License type requested")
    args = parser.parse_args()

    setup_logging()

    try:
        client = LicensingApiClient(args.base_url, args.token)
        print(f"🧪 Testing team member creation against {client.base_url}")
        result = run_team_member_smoke_test(client, args.org_id, email=args.email, license_type=args.license_type)
    except ValueError as e:
        print(f"❌ {e}")
        return 1
    except ApiError as e:
        print(f"❌ API call failed: {e}")
        return 1
    except RuntimeError as e:
        print(f"⚠️  {e}")
        return 1

    print("")
    print(f"📧 Test member: {result.email}")
    print(f"🎫 Available licenses: {result.available_before} → {result.available_after}")
    print(f"👥 Team members: {result.members_before} → {result.members_after}")
    print(f"  {'✅' if result.license_consumed else '❌'} one license consumed")
    print(f"  {'✅' if result.member_added else '❌'} one member added")
    print("")
    if result.passed:
        print("🎉 Team member creation works")
        return 0

    logger.warning("Smoke test failed", extra={"response": result.response, "event": "smoke_test_failed"})
    print("❌ Team member creation did not have the expected effect")
    return 1


if __name__ == "__main__":
    sys.exit(main())
