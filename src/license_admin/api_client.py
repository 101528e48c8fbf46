"""
Client for the deployed licensing HTTP API (Cloud Functions).
"""

import logging
import time
from dataclasses import dataclass

import requests

from license_admin import config
from license_admin.records import get_assignee

logger = logging.getLogger(__name__)

AVAILABLE_STATUSES = ("ACTIVE", "PENDING")


class ApiError(RuntimeError):
    """The API answered with a non-2xx status."""

    def __init__(self, method: str, path: str, status_code: int, body: str):
        super().__init__(f"{method} {path} failed with {status_code}: {body[:200]}")
        self.status_code = status_code
        self.body = body


class LicensingApiClient:
    def __init__(self, base_url: str | None = None, token: str | None = None, timeout: int = 30):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.token = config.require_api_token(token)
        self.timeout = timeout

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _check(self, method: str, path: str, response: requests.Response) -> dict:
        if not 200 <= response.status_code < 300:
            logger.warning(f"API error on {method} {path}: {response.status_code} {response.text}")
            raise ApiError(method, path, response.status_code, response.text)
        return response.json()

    def _get(self, path: str, params: dict | None = None) -> dict:
        response = requests.get(f"{self.base_url}{path}", headers=self._headers(), params=params, timeout=self.timeout)
        return self._check("GET", path, response)

    def _post(self, path: str, payload: dict) -> dict:
        response = requests.post(f"{self.base_url}{path}", headers=self._headers(), json=payload, timeout=self.timeout)
        return self._check("POST", path, response)

    def list_licenses(self, org_id: str | None = None) -> list[dict]:
        params = {"organizationId": org_id} if org_id else None
        return self._get("/licenses", params).get("data") or []

    def list_team_members(self, org_id: str | None = None) -> list[dict]:
        params = {"organizationId": org_id} if org_id else None
        return self._get("/team-members", params).get("data") or []

    def create_team_member(self, payload: dict) -> dict:
        return self._post("/team-members/create", payload)


def available_licenses(licenses: list[dict]) -> list[dict]:
    """Licenses the API would hand to a new team member."""
    return [
        lic
        for lic in licenses
        if str(lic.get("status") or "").upper() in AVAILABLE_STATUSES and get_assignee(lic) is None
    ]


@dataclass
class SmokeTestResult:
    email: str
    available_before: int
    available_after: int
    members_before: int
    members_after: int
    response: dict

    @property
    def license_consumed(self) -> bool:
        return self.available_after == self.available_before - 1

    @property
    def member_added(self) -> bool:
        return self.members_after == self.members_before + 1

    @property
    def passed(self) -> bool:
        return bool(self.response.get("success", True)) and self.license_consumed and self.member_added


def run_team_member_smoke_test(
    client: LicensingApiClient,
    org_id: str,
    email: str | None = None,
    license_type: str = "PROFESSIONAL",
) -> SmokeTestResult:
    """
    Create a throwaway team member through the API and check the side effects.

    Raises:
        RuntimeError: no license is available, so creation cannot be tested
        ApiError: an API call failed
    """
    email = email or f"test.team.member.{int(time.time() * 1000)}@example.com"

    available_before = len(available_licenses(client.list_licenses(org_id)))
    if available_before == 0:
        raise RuntimeError(f"No available licenses in organization {org_id}; cannot test team member creation")
    members_before = len(client.list_team_members(org_id))

    response = client.create_team_member(
        {
            "email": email,
            "firstName": "Test",
            "lastName": "TeamMember",
            "department": "Engineering",
            "role": "MEMBER",
            "licenseType": license_type,
            "organizationId": org_id,
            "sendWelcomeEmail": False,
        }
    )

    return SmokeTestResult(
        email=email,
        available_before=available_before,
        available_after=len(available_licenses(client.list_licenses(org_id))),
        members_before=members_before,
        members_after=len(client.list_team_members(org_id)),
        response=response,
    )
