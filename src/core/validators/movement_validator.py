"""
Movement validator orchestrating the business-rule checks.

The validator builds its checks once, applies them to each resolved
movement in a fixed order and collects every failure into a single
ValidationResult. Failures are data, never exceptions.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from src.config import ValidationSettings
from src.core.locations import LocationClassifier
from src.core.models import (
    MOVEMENT_NULL,
    VALIDATION_FAILED,
    ResolvedMovement,
    ValidationResult,
    ValidationSummary,
)
from src.observability.logger import get_logger

from .base_validator import BaseMovementCheck, ValidationError
from .location_checks import (
    KnownLocationTypeCheck,
    LocationConsistencyCheck,
    LocationFormatCheck,
    SameEndpointCheck,
)
from .movement_checks import (
    FlowDirectionCheck,
    ReverseDestinationServicedCheck,
    ServicingNodesFormatCheck,
    ServicingNodesRequiredCheck,
    ServicingNodesUniqueCheck,
)
from .required_field_validator import RequiredFieldCheck
from .timestamp_checks import TimestampRequiredCheck, TimestampWindowCheck

logger = get_logger(__name__)

MESSAGE_SEPARATOR = "; "


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MovementValidator:
    """
    Applies all movement checks and accumulates their failures.

    Order of checks (and therefore of messages in the joined result):
    required fields, distinct endpoints, endpoint format, strict-mode
    consistency, known location types, timestamp, flow direction,
    servicing nodes.
    """

    def __init__(
        self,
        strict_mode: bool = False,
        max_future_hours: int = 24,
        max_past_days: int = 365,
        allow_unknown_locations: bool = True,
        classifier: LocationClassifier | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Args:
            strict_mode: Enable the identifier-shape consistency heuristic
            max_future_hours: Accepted timestamp skew into the future
            max_past_days: Oldest accepted timestamp
            allow_unknown_locations: When False and a classifier is given,
                                     endpoints classifying UNKNOWN are rejected
            classifier: Location classifier (only consulted for unknown-location checks)
            clock: Source of "now" for the timestamp window
        """
        self.strict_mode = strict_mode
        self.max_future_hours = max_future_hours
        self.max_past_days = max_past_days
        self.allow_unknown_locations = allow_unknown_locations
        self.classifier = classifier
        self.clock = clock
        self.checks: list[BaseMovementCheck] = []
        self._build_checks()

    def _build_checks(self) -> None:
        required = [
            ("destination", lambda m: m.raw.destination, "Destination"),
            ("source_location", lambda m: m.raw.source_location, "Source location"),
            ("destination_location", lambda m: m.raw.destination_location, "Destination location"),
            ("actual_origin", lambda m: m.actual_origin, "Actual origin"),
            ("actual_destination", lambda m: m.actual_destination, "Actual destination"),
            ("movement_type", lambda m: m.movement_type, "Movement type"),
        ]
        for field_name, accessor, label in required:
            self.checks.append(RequiredFieldCheck(field_name, accessor, {"label": label}))

        self.checks.append(SameEndpointCheck())
        self.checks.append(
            LocationFormatCheck("actual_origin", lambda m: m.actual_origin, {"label": "origin"})
        )
        self.checks.append(
            LocationFormatCheck(
                "actual_destination", lambda m: m.actual_destination, {"label": "destination"}
            )
        )

        if self.strict_mode:
            self.checks.append(LocationConsistencyCheck())

        if not self.allow_unknown_locations and self.classifier is not None:
            self.checks.append(
                KnownLocationTypeCheck("actual_origin", lambda m: m.actual_origin, self.classifier)
            )
            self.checks.append(
                KnownLocationTypeCheck(
                    "actual_destination", lambda m: m.actual_destination, self.classifier
                )
            )

        self.checks.append(TimestampRequiredCheck())
        self.checks.append(
            TimestampWindowCheck(
                {"max_future_hours": self.max_future_hours, "max_past_days": self.max_past_days},
                clock=self.clock,
            )
        )
        self.checks.append(FlowDirectionCheck())
        self.checks.append(ServicingNodesRequiredCheck())
        self.checks.append(ServicingNodesUniqueCheck())
        self.checks.append(ServicingNodesFormatCheck())
        self.checks.append(ReverseDestinationServicedCheck())

    def validate(self, movement: ResolvedMovement | None) -> ValidationResult:
        """
        Validate a resolved movement.

        Args:
            movement: Movement to validate (None yields MOVEMENT_NULL)

        Returns:
            ValidationResult; VALID when no check failed, otherwise
            VALIDATION_FAILED with every message joined by "; "
        """
        if movement is None:
            return ValidationResult.failure(MOVEMENT_NULL, "Movement cannot be null")

        errors: list[str] = []
        for check in self.checks:
            try:
                check.validate(movement)
            except ValidationError as e:
                errors.append(e.message)

        if not errors:
            return ValidationResult.success()

        message = MESSAGE_SEPARATOR.join(errors)
        logger.debug(f"Movement {movement.actual_origin} -> {movement.actual_destination} failed: {message}")
        return ValidationResult.failure(VALIDATION_FAILED, message)

    def validate_batch(self, movements: list[ResolvedMovement | None]) -> list[ValidationResult]:
        """Validate every movement; no early exit."""
        return [self.validate(movement) for movement in movements]

    def get_validation_summary(self, results: list[ValidationResult]) -> ValidationSummary:
        """
        Aggregate a list of results.

        Returns:
            ValidationSummary with counts and the valid percentage (0.0 for no results)
        """
        total = len(results)
        valid_count = sum(1 for r in results if r.valid)
        rate = (valid_count / total) * 100 if total else 0.0
        return ValidationSummary(
            total_validated=total,
            valid_count=valid_count,
            invalid_count=total - valid_count,
            validation_rate=rate,
        )

    def get_check_summary(self) -> dict[str, Any]:
        counts: dict[str, int] = {}
        for check in self.checks:
            counts[check.rule_type] = counts.get(check.rule_type, 0) + 1
        return {"total_checks": len(self.checks), "checks_by_type": counts}


def create_movement_validator(
    settings: ValidationSettings | None = None,
    classifier: LocationClassifier | None = None,
    clock: Callable[[], datetime] = _utc_now,
) -> MovementValidator:
    """Factory building a validator from ValidationSettings (defaults apply when None)."""
    settings = settings or ValidationSettings()
    return MovementValidator(
        strict_mode=settings.strict_mode,
        max_future_hours=settings.max_timestamp_future_hours,
        max_past_days=settings.max_timestamp_past_days,
        allow_unknown_locations=settings.allow_unknown_locations,
        classifier=classifier,
        clock=clock,
    )
