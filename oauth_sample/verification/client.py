"""
Veteran status client.

Calls the veteran verification endpoint with the user's access token and
returns a ``VerificationResult`` describing either the status value or the
reason the call failed.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class VerificationFailure(str, enum.Enum):
    """Why a veteran status lookup did not produce a value."""
    UNAUTHORIZED = "unauthorized"
    BAD_STATUS = "bad_status"
    MALFORMED_RESPONSE = "malformed_response"
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class VerificationResult:
    """Veteran status value, or the failure that prevented reading it."""
    veteran_status: Any = None
    failure: Optional[VerificationFailure] = None
    upstream_status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def extract_veteran_status(payload: Any) -> Any:
    """
    Pull ``data.attributes.veteran_status`` out of a decoded response body.

    Raises:
        ValueError: If any level of the path is missing
    """
    try:
        return payload["data"]["attributes"]["veteran_status"]
    except (KeyError, TypeError) as e:
        raise ValueError("Response missing data.attributes.veteran_status") from e


class VeteranStatusClient:
    """Single-shot client for the veteran status endpoint."""

    def __init__(self, http_client: httpx.AsyncClient, status_url: str):
        """
        Args:
            http_client: Shared client; its timeout bounds every call
            status_url: Full URL of the veteran status endpoint
        """
        self._http_client = http_client
        self._status_url = status_url

    async def fetch_status(self, access_token: str) -> VerificationResult:
        """
        Look up the veteran status for the holder of ``access_token``.

        Exactly one GET is issued; there are no retries.
        """
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            response = await self._http_client.get(self._status_url, headers=headers)
        except httpx.TimeoutException:
            logger.error("Veteran status request timeout")
            return VerificationResult(failure=VerificationFailure.TIMEOUT)
        except httpx.HTTPError as e:
            logger.error(f"Veteran status network error: {type(e).__name__}")
            return VerificationResult(failure=VerificationFailure.UNREACHABLE)

        if response.status_code in (401, 403):
            logger.warning(f"Veteran status service rejected token: {response.status_code}")
            return VerificationResult(
                failure=VerificationFailure.UNAUTHORIZED,
                upstream_status=response.status_code,
            )

        if response.status_code != 200:
            logger.warning(f"Veteran status service error: {response.status_code}")
            return VerificationResult(
                failure=VerificationFailure.BAD_STATUS,
                upstream_status=response.status_code,
            )

        try:
            veteran_status = extract_veteran_status(response.json())
        except ValueError as e:
            logger.warning(f"Malformed veteran status response: {e}")
            return VerificationResult(
                failure=VerificationFailure.MALFORMED_RESPONSE,
                upstream_status=response.status_code,
            )

        return VerificationResult(veteran_status=veteran_status, upstream_status=200)
