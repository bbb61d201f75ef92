"""
Known-locations seed loading.

Loads the classifier's exact-match table from YAML and builds the
classifier from LocationSettings.
"""

from pathlib import Path

import yaml

from src.config import LocationSettings
from src.core.models import LocationType
from src.observability.logger import get_logger

from .classifier import LocationClassifier
from .location_map import LocationMap

logger = get_logger(__name__)

DEFAULT_KNOWN_LOCATIONS: dict[str, LocationType] = {
    "2352": LocationType.STORE,
    "2353": LocationType.STORE,
    "2354": LocationType.STORE,
    "2355": LocationType.STORE,
    "960": LocationType.DC,
    "961": LocationType.DC,
    "962": LocationType.DC,
    "1001": LocationType.DC,
    "1002": LocationType.DC,
    "1003": LocationType.DC,
}

SECTION_TYPES = {
    "stores": LocationType.STORE,
    "distribution_centers": LocationType.DC,
}


class KnownLocationsLoader:
    """
    Loads known locations from a YAML file.

    Expected YAML format:
    ```yaml
    stores:
      - "2352"
    distribution_centers:
      - "960"
    ```
    """

    def __init__(self, config_path: str | Path):
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Known locations file not found: {config_path}")

    def load(self) -> dict[str, LocationType]:
        """
        Parse the file into an id -> LocationType mapping.

        Raises:
            ValueError: If the file has an unknown section or a non-list section
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError("Known locations file must contain a mapping")

        locations: dict[str, LocationType] = {}
        for section, ids in config.items():
            location_type = SECTION_TYPES.get(section)
            if location_type is None:
                raise ValueError(
                    f"Unknown section '{section}'. Expected one of: {', '.join(SECTION_TYPES)}"
                )
            if not isinstance(ids, list):
                raise ValueError(f"Section '{section}' must be a list of location ids")

            for location_id in ids:
                # YAML turns unquoted 960 into an int
                locations[str(location_id).strip()] = location_type

        return locations


def create_location_classifier(settings: LocationSettings | None = None) -> LocationClassifier:
    """
    Factory building a classifier seeded with known locations.

    Args:
        settings: Location settings (defaults apply when None)

    Returns:
        LocationClassifier owning a fresh known-locations table and cache
    """
    settings = settings or LocationSettings()

    if settings.known_locations_file and Path(settings.known_locations_file).exists():
        seed = KnownLocationsLoader(settings.known_locations_file).load()
        logger.info(f"Loaded {len(seed)} known locations from {settings.known_locations_file}")
    else:
        if settings.known_locations_file:
            logger.warning(
                f"Known locations file {settings.known_locations_file} not found, using built-in seed"
            )
        seed = dict(DEFAULT_KNOWN_LOCATIONS)

    return LocationClassifier(
        known_locations=LocationMap(seed),
        cache=LocationMap(),
        cache_enabled=settings.cache_enabled,
        store_prefix=settings.default_store_prefix,
        dc_prefix=settings.default_dc_prefix,
    )
