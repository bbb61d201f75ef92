"""
Movement direction resolution.

The feed's "destination" field names the originally planned recipient no
matter which way the goods moved. For reverse (store to DC) flows the
reported source/destination locations must therefore be swapped back to
recover the true origin and destination.
"""

from collections.abc import Callable
from datetime import datetime, timezone

from src.core.locations import LocationClassifier
from src.core.models import (
    FlowDirection,
    LocationType,
    MovementType,
    RawMovement,
    ResolvedMovement,
)
from src.observability.logger import get_logger

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MovementResolver:
    """
    Decides NORMAL vs REVERSE for a raw movement and maps its endpoints.

    resolve() is total: inconclusive classifications default to NORMAL.
    """

    def __init__(self, classifier: LocationClassifier, clock: Callable[[], datetime] = _utc_now):
        """
        Args:
            classifier: Location classifier used for the primary rule
            clock: Source of processed_at timestamps
        """
        self.classifier = classifier
        self.clock = clock

    def detect_movement_type(self, raw: RawMovement) -> MovementType:
        source_type = self.classifier.classify(raw.source_location)
        destination_type = self.classifier.classify(raw.destination_location)

        logger.debug(
            f"Source {raw.source_location} is type {source_type.value}, "
            f"destination {raw.destination_location} is type {destination_type.value}"
        )

        if source_type == LocationType.STORE and destination_type == LocationType.DC:
            logger.info(
                f"Detected REVERSE movement from store {raw.source_location} "
                f"to DC {raw.destination_location}"
            )
            return MovementType.REVERSE

        # Fallback when classification is inconclusive
        if raw.destination is not None and raw.destination in raw.servicing_nodes:
            logger.info("Detected REVERSE movement via servicing nodes check")
            return MovementType.REVERSE

        return MovementType.NORMAL

    def resolve(self, raw: RawMovement) -> ResolvedMovement:
        """
        Resolve a raw movement.

        Repeated calls with the same input and classifier state return equal
        results apart from processed_at, which comes from the clock.

        Args:
            raw: Movement as received

        Returns:
            ResolvedMovement with true origin/destination and flow direction
        """
        movement_type = self.detect_movement_type(raw)

        if movement_type == MovementType.REVERSE:
            return ResolvedMovement(
                raw=raw,
                movement_type=movement_type,
                actual_origin=raw.destination_location,
                actual_destination=raw.source_location,
                flow_direction=FlowDirection.STORE_TO_DC,
                processed_at=self.clock(),
            )

        return ResolvedMovement(
            raw=raw,
            movement_type=movement_type,
            actual_origin=raw.source_location,
            actual_destination=raw.destination_location,
            flow_direction=FlowDirection.DC_TO_STORE,
            processed_at=self.clock(),
        )
