"""
Checks on the resolved origin/destination of a movement.
"""

import re
from collections.abc import Callable
from typing import Any

from src.core.locations import LocationClassifier
from src.core.models import LocationType, MovementType, ResolvedMovement

from .base_validator import BaseMovementCheck, is_blank

# 3-4 ASCII digits
LOCATION_ID_PATTERN = re.compile(r"[0-9]{3,4}")


def is_valid_location_format(location_id: str | None) -> bool:
    if is_blank(location_id):
        return False
    return LOCATION_ID_PATTERN.fullmatch(location_id) is not None


class SameEndpointCheck(BaseMovementCheck):
    """Fails when actual origin and actual destination are identical."""

    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("actual_origin", parameters)

    def validate(self, movement: ResolvedMovement) -> None:
        origin = movement.actual_origin
        if origin is not None and origin == movement.actual_destination:
            self.fail(f"Origin and destination cannot be the same: {origin}")

    @property
    def rule_type(self) -> str:
        return "distinct_endpoints"


class LocationFormatCheck(BaseMovementCheck):
    """
    Validates that a location id has the 3-4 digit format.

    Unlike most checks a missing value fails here too.

    Parameters:
    - label: "origin" or "destination", used in the message
    """

    def __init__(
        self,
        field_name: str,
        accessor: Callable[[ResolvedMovement], str | None],
        parameters: dict[str, Any] | None = None,
    ):
        super().__init__(field_name, parameters)
        self.accessor = accessor
        self.label = self.parameters.get("label", field_name)

    def validate(self, movement: ResolvedMovement) -> None:
        value = self.accessor(movement)
        if not is_valid_location_format(value):
            self.fail(f"Invalid {self.label} location format: {value}")

    @property
    def rule_type(self) -> str:
        return "location_format"


class LocationConsistencyCheck(BaseMovementCheck):
    """
    Strict-mode heuristic: endpoints must look right for the movement type.

    Works on the identifier shape only (stores start with "2"), without
    consulting the classifier.
    """

    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("movement_type", parameters)

    def validate(self, movement: ResolvedMovement) -> None:
        origin = movement.actual_origin
        destination = movement.actual_destination
        if is_blank(origin) or is_blank(destination):
            return

        origin_looks_like_store = origin.startswith("2")
        destination_looks_like_store = destination.startswith("2")

        if movement.movement_type == MovementType.NORMAL:
            if origin_looks_like_store and destination_looks_like_store:
                self.fail("Normal movement should be DC to Store, but both look like stores")
        elif movement.movement_type == MovementType.REVERSE:
            if not origin_looks_like_store and destination_looks_like_store:
                self.fail("Reverse movement should be Store to DC, but origin doesn't look like store")

    @property
    def rule_type(self) -> str:
        return "location_consistency"


class KnownLocationTypeCheck(BaseMovementCheck):
    """
    Rejects endpoints the classifier cannot place (UNKNOWN).

    Only installed when unknown locations are disallowed.
    """

    def __init__(
        self,
        field_name: str,
        accessor: Callable[[ResolvedMovement], str | None],
        classifier: LocationClassifier,
        parameters: dict[str, Any] | None = None,
    ):
        super().__init__(field_name, parameters)
        self.accessor = accessor
        self.classifier = classifier

    def validate(self, movement: ResolvedMovement) -> None:
        value = self.accessor(movement)
        if is_blank(value):
            return
        if self.classifier.classify(value) == LocationType.UNKNOWN:
            self.fail(f"Unknown location type: {value}")

    @property
    def rule_type(self) -> str:
        return "known_location_type"
