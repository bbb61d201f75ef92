"""
Location classification (store / distribution center / unknown).
"""

from .classifier import CacheStatistics, LocationClassifier
from .known_locations import DEFAULT_KNOWN_LOCATIONS, KnownLocationsLoader, create_location_classifier
from .location_map import LocationMap

__all__ = [
    "LocationClassifier",
    "CacheStatistics",
    "LocationMap",
    "KnownLocationsLoader",
    "DEFAULT_KNOWN_LOCATIONS",
    "create_location_classifier",
]
