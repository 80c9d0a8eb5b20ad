from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Tuple

from loguru import logger

from schedule_export.clients.base_client import ServiceError
from schedule_export.clients.distance_client import DistanceClient
from schedule_export.models.state import ServiceState
from .locations import (
    KNOWN_CITIES,
    UNKNOWN_LOCATION,
    city_from_location,
    normalize_location,
)

DEFAULT_TRAVEL_MINUTES = 90

# One-way driving minutes, looked up in both directions
STATIC_TRAVEL_MINUTES: Dict[Tuple[str, str], int] = {
    ("Oberweißbach", "Rudolstadt"): 45,
    ("Oberweißbach", "Saalfeld"): 45,
    ("Oberweißbach", "Bad Blankenburg"): 45,
    ("Oberweißbach", "Großbreitenbach"): 45,
    ("Oberweißbach", "Ilmenau"): 45,
    ("Oberweißbach", "Arnstadt"): 50,
    ("Oberweißbach", "Pößneck"): 60,
    ("Oberweißbach", "Sonneberg"): 60,
    ("Oberweißbach", "Erfurt"): 70,
    ("Oberweißbach", "Suhl"): 70,
    ("Oberweißbach", "Jena"): 75,
    ("Oberweißbach", "Weimar"): 75,
    ("Oberweißbach", "Gotha"): 80,
    ("Oberweißbach", "Gera"): 90,
    ("Jena", "Weimar"): 45,
    ("Jena", "Gera"): 45,
    ("Jena", "Rudolstadt"): 45,
    ("Jena", "Erfurt"): 50,
    ("Erfurt", "Weimar"): 45,
    ("Erfurt", "Gotha"): 45,
    ("Erfurt", "Arnstadt"): 45,
    ("Gera", "Suhl"): 120,
}


class DistanceProvider(ABC):
    """Driving time between two normalized locations."""

    @abstractmethod
    def travel_minutes(self, origin: str, destination: str) -> int:
        """Returns one-way travel minutes (>= 0). Never raises."""
        pass


class StaticDistanceProvider(DistanceProvider):
    """Looks up city pairs in a fixed table, falling back to a default."""

    def __init__(
        self,
        table: Mapping[Tuple[str, str], int] = STATIC_TRAVEL_MINUTES,
        default_minutes: int = DEFAULT_TRAVEL_MINUTES,
    ):
        self.table = table
        self.default_minutes = default_minutes

    @staticmethod
    def _canonical_city(location: str) -> Optional[str]:
        city = city_from_location(location)
        if city is None:
            return None
        # "Jena-Lobeda" is looked up as "Jena"
        for known_city, _ in KNOWN_CITIES:
            if known_city in city:
                return known_city
        return city

    def travel_minutes(self, origin: str, destination: str) -> int:
        origin_city = self._canonical_city(origin)
        destination_city = self._canonical_city(destination)
        if origin_city and destination_city:
            minutes = self.table.get((origin_city, destination_city))
            if minutes is None:
                minutes = self.table.get((destination_city, origin_city))
            if minutes is not None:
                return minutes

        logger.debug(
            f"No static travel time for {origin} -> {destination}, using {self.default_minutes} min"
        )
        return self.default_minutes


class RemoteDistanceProvider(DistanceProvider):
    """Asks the distance service, then hands over to the wrapped provider."""

    def __init__(
        self,
        inner: DistanceProvider,
        client: DistanceClient,
        state: ServiceState,
    ):
        self.inner = inner
        self.client = client
        self.state = state

    def travel_minutes(self, origin: str, destination: str) -> int:
        if UNKNOWN_LOCATION in (origin, destination):
            return self.inner.travel_minutes(origin, destination)

        self.state.distance_calls += 1
        try:
            return self.client.driving_minutes(origin, destination)
        except ServiceError as e:
            self.state.distance_failures += 1
            logger.warning(
                f"Distance lookup {origin} -> {destination} failed, using local estimate: {e}"
            )
        return self.inner.travel_minutes(origin, destination)


class TravelEstimator:
    """Estimates travel minutes between two free-text venues."""

    def __init__(self, provider: Optional[DistanceProvider] = None):
        self.provider = provider or StaticDistanceProvider()

    def estimate(self, origin_venue: str, destination_venue: str) -> int:
        origin = normalize_location(origin_venue)
        destination = normalize_location(destination_venue)
        if origin == destination:
            return 0

        minutes = self.provider.travel_minutes(origin, destination)
        logger.debug(f"Travel {origin} -> {destination}: {minutes} min")
        return max(int(minutes), 0)
