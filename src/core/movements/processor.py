"""
Movement processor: resolve, validate and turn a raw movement into a record.

Shared by the live stream sink and the cutover backfill, so both paths
produce identically shaped records and differ only in their flags.
"""

import uuid

from pydantic import BaseModel

from src.core.locations import LocationClassifier, create_location_classifier
from src.core.models import (
    DataSource,
    MovementRecord,
    RawMovement,
    ResolvedMovement,
    ValidationResult,
)
from src.core.validators import MovementValidator, create_movement_validator
from src.observability import metrics
from src.observability.logger import get_logger

from .resolver import MovementResolver

logger = get_logger(__name__)

VALIDATION_ERROR_MAX_LENGTH = 500


class ProcessedMovement(BaseModel):
    """Everything produced for one raw movement."""

    resolved: ResolvedMovement
    validation: ValidationResult
    record: MovementRecord

    class Config:
        frozen = True


class MovementProcessor:
    """
    Runs raw movements through the resolver and validator.

    Validation failures do not stop processing: the record is still
    built, carrying the failure code and message.
    """

    def __init__(
        self,
        classifier: LocationClassifier,
        resolver: MovementResolver,
        validator: MovementValidator,
    ):
        self.classifier = classifier
        self.resolver = resolver
        self.validator = validator

    def process(
        self,
        raw: RawMovement,
        data_source: DataSource,
        *,
        historical: bool = False,
        during_cutover: bool = False,
        correlation_id: str | None = None,
    ) -> ProcessedMovement:
        """
        Process one raw movement.

        Args:
            raw: Movement as received
            data_source: LIVE or HISTORICAL_API
            historical: Tag the record as historical
            during_cutover: Tag the record as written while live ingestion was paused
            correlation_id: Tracing id (a random one is generated when None)

        Returns:
            ProcessedMovement with the resolved movement, its verdict and the record
        """
        resolved = self.resolver.resolve(raw)
        validation = self.validator.validate(resolved)

        metadata = {}
        if not self.classifier.is_valid_movement(resolved.actual_origin, resolved.actual_destination):
            metadata["store_to_store"] = True
            metrics.increment_counter(
                metrics.store_to_store_movements_total, 1, data_source=data_source.value
            )

        error = validation.message
        if error and len(error) > VALIDATION_ERROR_MAX_LENGTH:
            error = error[:VALIDATION_ERROR_MAX_LENGTH]

        record = MovementRecord.from_raw(
            raw,
            is_historical=historical,
            processed_during_cutover=during_cutover,
            movement_type=resolved.movement_type,
            flow_direction=resolved.flow_direction,
            actual_origin=resolved.actual_origin,
            actual_destination=resolved.actual_destination,
            validation_status=validation.code,
            validation_error=error,
            data_source=data_source,
            correlation_id=correlation_id or uuid.uuid4().hex,
            metadata=metadata,
            processed_at=resolved.processed_at,
        )

        if not validation.valid:
            logger.warning(
                f"Movement failed validation: {validation.message}",
                extra={"correlation_id": record.correlation_id, "data_source": data_source.value},
            )

        metrics.record_movement_processed(
            data_source=data_source.value,
            movement_type=resolved.movement_type.value if resolved.movement_type else "UNKNOWN",
            validation_status=validation.code,
            valid=validation.valid,
        )

        return ProcessedMovement(resolved=resolved, validation=validation, record=record)

    def process_batch(
        self,
        raws: list[RawMovement],
        data_source: DataSource,
        *,
        historical: bool = False,
        during_cutover: bool = False,
    ) -> list[ProcessedMovement]:
        """Process a list of movements (1:1, order preserved)."""
        return [
            self.process(raw, data_source, historical=historical, during_cutover=during_cutover)
            for raw in raws
        ]


def create_movement_processor(settings, classifier: LocationClassifier | None = None) -> MovementProcessor:
    """
    Factory wiring classifier, resolver and validator from PipelineSettings.

    Args:
        settings: PipelineSettings
        classifier: Shared classifier (built from settings.location when None)
    """
    classifier = classifier or create_location_classifier(settings.location)
    return MovementProcessor(
        classifier=classifier,
        resolver=MovementResolver(classifier),
        validator=create_movement_validator(settings.validation, classifier=classifier),
    )
