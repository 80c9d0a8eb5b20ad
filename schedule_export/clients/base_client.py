from typing import Any, Dict, Optional

import httpx
from loguru import logger

DEFAULT_HEADERS = {
    "User-Agent": "schedule-export/1.0",
    "Accept": "application/json",
}


class ServiceError(Exception):
    """Custom exception for remote service errors."""

    pass


class AuthenticationError(ServiceError):
    """Exception raised for authentication failures (401, 403)."""

    pass


class RateLimitError(ServiceError):
    """Exception raised for rate limit errors (429)."""

    pass


class BaseClient:
    """Synchronous JSON client shared by the remote services.

    Every transport or status problem surfaces as a ``ServiceError`` so callers
    only need to handle a single exception family.
    """

    service_name: str = "unknown"

    def __init__(self, client: Optional[httpx.Client] = None):
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(30.0),
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
        )

    def _make_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Makes an HTTP request and maps failures onto the ServiceError family."""
        logger.debug(f"Making {method} request to {self.service_name}: {url}")
        try:
            response = self.client.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_data,
            )
        except httpx.RequestError as e:
            logger.warning(f"Request error for {self.service_name}: {e}")
            raise ServiceError(f"Request to {self.service_name} failed: {e}") from e

        if response.status_code in {401, 403}:
            logger.warning(
                f"Authentication error ({response.status_code}) for {self.service_name}. Check the API key."
            )
            raise AuthenticationError(
                f"Authentication failed ({response.status_code}) for {self.service_name}"
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            logger.warning(
                f"Rate limit hit (429) for {self.service_name}. Retry-After: {retry_after}"
            )
            raise RateLimitError(f"Rate limited by {self.service_name}")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"HTTP error during request for {self.service_name}: {e.response.status_code}"
            )
            raise ServiceError(f"HTTP error: {e.response.status_code}") from e

        logger.debug(f"Request successful: {response.status_code} for {url}")
        return response

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            logger.debug(f"Raw response content: {response.text[:200]}")
            raise ServiceError(f"Malformed JSON from {self.service_name}") from e
        if not isinstance(payload, dict):
            raise ServiceError(f"Unexpected payload type from {self.service_name}")
        return payload

    def close(self) -> None:
        """Closes the underlying HTTP client."""
        self.client.close()
        logger.debug(f"Closed HTTP client for {self.service_name}")
