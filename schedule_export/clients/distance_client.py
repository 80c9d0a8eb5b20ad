import math
from typing import Optional

import httpx
from loguru import logger

from .base_client import BaseClient, ServiceError


class DistanceClient(BaseClient):
    """Client for a Distance Matrix style driving-time lookup."""

    service_name = "distance"

    def __init__(self, api_key: str, api_url: str, client: Optional[httpx.Client] = None):
        super().__init__(client)
        if not api_key:
            raise ServiceError("Missing distance API key configuration.")
        self.api_key = api_key
        self.api_url = api_url

    def driving_minutes(self, origin: str, destination: str) -> int:
        """Returns the driving time between two addresses in whole minutes, rounded up.

        Raises:
            ServiceError: On transport errors or any non-OK status
                (REQUEST_DENIED, OVER_QUERY_LIMIT, ZERO_RESULTS, ...).
        """
        params = {
            "origins": origin,
            "destinations": destination,
            "mode": "driving",
            "language": "de",
            "key": self.api_key,
        }
        response = self._make_request("GET", self.api_url, params=params)
        body = self._json(response)

        status = body.get("status")
        if status != "OK":
            raise ServiceError(
                f"Distance lookup failed with status {status}: {body.get('error_message', '')}"
            )

        try:
            element = body["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise ServiceError("Distance response without elements") from e

        element_status = element.get("status")
        if element_status != "OK":
            raise ServiceError(f"Distance element status {element_status}")

        try:
            seconds = float(element["duration"]["value"])
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceError("Distance response without duration") from e

        distance_text = element.get("distance", {}).get("text", "?")
        minutes = math.ceil(seconds / 60)
        logger.debug(f"{origin} -> {destination}: {distance_text}, {minutes} min")
        return max(minutes, 0)
