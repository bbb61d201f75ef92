"""
MovementRecord model representing a movement as persisted in the record store.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from .data_source import DataSource
from .movement import FlowDirection, MovementType, RawMovement
from .validation_result import VALID


class MovementRecord(BaseModel):
    """
    Persisted movement: the raw fields plus resolution and validation outcome.

    is_historical is permanent once set; the record store never clears it
    when a live copy of the same movement arrives later.

    Attributes:
        record_id: Store-assigned primary key (None until saved)
        destination, source_location, destination_location, servicing_nodes,
        status, timestamp: Copied from the RawMovement
        is_historical: Fetched from the historical API
        processed_during_cutover: Written while live ingestion was paused
        movement_type: NORMAL or REVERSE
        flow_direction: DC_TO_STORE or STORE_TO_DC
        actual_origin: Origin after direction correction
        actual_destination: Destination after direction correction
        validation_status: Validation code (VALID, VALIDATION_FAILED, ...)
        validation_error: Joined validation messages, if any
        data_source: LIVE or HISTORICAL_API
        correlation_id: Kafka coordinates or generated id for tracing
        metadata: Free-form flags (e.g. store_to_store)
        processed_at: When the pipeline processed the movement
    """

    record_id: int | None = None
    destination: str | None = None
    source_location: str | None = None
    destination_location: str | None = None
    servicing_nodes: list[str | None] = Field(default_factory=list)
    status: str | None = None
    timestamp: datetime | None = None
    is_historical: bool = False
    processed_during_cutover: bool = False
    movement_type: MovementType | None = None
    flow_direction: FlowDirection | None = None
    actual_origin: str | None = None
    actual_destination: str | None = None
    validation_status: str | None = None
    validation_error: str | None = Field(None, max_length=500)
    data_source: DataSource = DataSource.LIVE
    correlation_id: str | None = Field(None, max_length=100)
    metadata: dict[str, Any] = Field(default_factory=dict)
    processed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_raw(cls, raw: RawMovement, **fields: Any) -> "MovementRecord":
        """Build a record carrying the raw movement's fields plus the given extras."""
        return cls(
            destination=raw.destination,
            source_location=raw.source_location,
            destination_location=raw.destination_location,
            servicing_nodes=list(raw.servicing_nodes),
            status=raw.status,
            timestamp=raw.timestamp,
            **fields,
        )

    def is_reverse_movement(self) -> bool:
        return self.movement_type == MovementType.REVERSE

    def is_validation_passed(self) -> bool:
        return self.validation_status == VALID

    def movement_direction_display(self) -> str:
        label = "Reverse" if self.is_reverse_movement() else "Normal"
        return f"{self.actual_origin} → {self.actual_destination} ({label})"

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "destination": "960",
                "source_location": "2352",
                "destination_location": "960",
                "servicing_nodes": ["960", "1001", "1002"],
                "status": "PLANNED",
                "timestamp": "2026-10-01T08:30:00Z",
                "is_historical": True,
                "processed_during_cutover": True,
                "movement_type": "REVERSE",
                "flow_direction": "STORE_TO_DC",
                "actual_origin": "960",
                "actual_destination": "2352",
                "validation_status": "VALID",
                "data_source": "HISTORICAL_API",
                "correlation_id": "5f0c1e2d9a8b4c7d8e6f5a4b3c2d1e0f"
            }
        }
