"""
Location classifier: maps a location identifier to STORE, DC or UNKNOWN.

Resolution order (first match wins):
1. Exact match in the known-locations table
2. Pattern rules on the identifier's shape
3. Configured store/DC prefixes

The classification is a best-effort heuristic, not a master-data lookup.
"""

import re
from collections.abc import Mapping

from pydantic import BaseModel

from src.core.models import LocationType
from src.observability import metrics
from src.observability.logger import get_logger

from .location_map import LocationMap

logger = get_logger(__name__)

# Evaluated in order; [0-9] keeps matching to ASCII digits
PATTERN_RULES: tuple[tuple[re.Pattern, LocationType], ...] = (
    (re.compile(r"2[0-9]{3}"), LocationType.STORE),
    (re.compile(r"9[0-9]{2}"), LocationType.DC),
    (re.compile(r"1[0-9]{3}"), LocationType.DC),
)


class CacheStatistics(BaseModel):
    enabled: bool
    size: int
    known_locations: int


class LocationClassifier:
    """
    Classifies location identifiers, caching results per trimmed identifier.

    The known-locations table and the cache are injected so a single pair
    can be shared by the live stream and the cutover in one process.
    """

    def __init__(
        self,
        known_locations: LocationMap | None = None,
        cache: LocationMap | None = None,
        cache_enabled: bool = True,
        store_prefix: str = "23",
        dc_prefix: str = "9",
    ):
        """
        Initialize classifier.

        Args:
            known_locations: Exact-match table (mutable at runtime)
            cache: Read-through classification cache
            cache_enabled: Whether classify() reads and writes the cache
            store_prefix: Fallback prefix identifying stores
            dc_prefix: Fallback prefix identifying distribution centers
        """
        self.known_locations = known_locations if known_locations is not None else LocationMap()
        self.cache = cache if cache is not None else LocationMap()
        self.cache_enabled = cache_enabled
        self.store_prefix = store_prefix
        self.dc_prefix = dc_prefix

        logger.info(
            f"LocationClassifier initialized with {len(self.known_locations)} known locations "
            f"(cache enabled: {cache_enabled})"
        )

    def classify(self, location_id: str | None) -> LocationType:
        """
        Classify a location identifier.

        Args:
            location_id: Identifier as found in the movement message

        Returns:
            LocationType; blank or missing identifiers yield UNKNOWN
        """
        if location_id is None or not location_id.strip():
            logger.warning(f"Invalid location ID provided: {location_id!r}")
            return LocationType.UNKNOWN

        key = location_id.strip()

        if self.cache_enabled:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Location type found in cache: {key} -> {cached.value}")
                return cached

        location_type = self._determine(key)

        if self.cache_enabled:
            self.cache.put(key, location_type)
            metrics.set_gauge(metrics.location_cache_size, len(self.cache))

        logger.debug(f"Determined location type: {key} -> {location_type.value}")
        return location_type

    def _determine(self, location_id: str) -> LocationType:
        known = self.known_locations.get(location_id)
        if known is not None:
            return known

        by_pattern = self._match_pattern(location_id)
        if by_pattern is not LocationType.UNKNOWN:
            return by_pattern

        return self._match_prefix(location_id)

    @staticmethod
    def _match_pattern(location_id: str) -> LocationType:
        for pattern, location_type in PATTERN_RULES:
            if pattern.fullmatch(location_id):
                return location_type
        return LocationType.UNKNOWN

    def _match_prefix(self, location_id: str) -> LocationType:
        if self.store_prefix and location_id.startswith(self.store_prefix):
            return LocationType.STORE
        if self.dc_prefix and location_id.startswith(self.dc_prefix):
            return LocationType.DC
        return LocationType.UNKNOWN

    def add_known_location(self, location_id: str | None, location_type: LocationType) -> None:
        """Register (or overwrite) a known location; also refreshes its cache entry."""
        if location_id is None or not location_id.strip() or location_type is None:
            logger.warning(f"Ignoring known location with blank id or type: {location_id!r}")
            return

        key = location_id.strip()
        self.known_locations.put(key, location_type)
        if self.cache_enabled:
            self.cache.put(key, location_type)

        logger.info(f"Added known location: {key} -> {location_type.value}")

    def add_known_locations(self, locations: Mapping[str, LocationType]) -> None:
        """Bulk variant of add_known_location."""
        if not locations:
            return

        entries = {
            location_id.strip(): location_type
            for location_id, location_type in locations.items()
            if location_id and location_id.strip() and location_type is not None
        }
        self.known_locations.put_all(entries)
        if self.cache_enabled:
            self.cache.put_all(entries)

        logger.info(f"Added {len(entries)} known locations")

    def is_store(self, location_id: str | None) -> bool:
        return self.classify(location_id) == LocationType.STORE

    def is_distribution_center(self, location_id: str | None) -> bool:
        return self.classify(location_id) == LocationType.DC

    def is_unknown(self, location_id: str | None) -> bool:
        return self.classify(location_id) == LocationType.UNKNOWN

    def is_valid_movement(self, source_location: str | None, destination_location: str | None) -> bool:
        """
        Advisory plausibility check for a movement between two locations.

        Only store-to-store is rejected. UNKNOWN on either side gets the
        benefit of the doubt; DC-to-DC transfers are accepted.
        """
        source_type = self.classify(source_location)
        destination_type = self.classify(destination_location)

        if LocationType.UNKNOWN in (source_type, destination_type):
            return True

        if source_type == LocationType.STORE and destination_type == LocationType.STORE:
            logger.warning(
                f"Invalid store-to-store movement detected: {source_location} -> {destination_location}"
            )
            return False

        return True

    def clear_cache(self) -> None:
        if not self.cache_enabled:
            logger.info("Location type cache is disabled, nothing to clear")
            return
        self.cache.clear()
        metrics.set_gauge(metrics.location_cache_size, 0)
        logger.info("Location type cache cleared")

    def cache_statistics(self) -> CacheStatistics:
        return CacheStatistics(
            enabled=self.cache_enabled,
            size=len(self.cache),
            known_locations=len(self.known_locations),
        )
