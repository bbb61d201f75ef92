"""
Movement models: raw feed/API input and its resolved (direction-corrected) form.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class MovementType(str, Enum):
    """Direction tag assigned by the resolver."""

    NORMAL = "NORMAL"  # DC to Store
    REVERSE = "REVERSE"  # Store to DC


class FlowDirection(str, Enum):
    """Physical direction goods moved in."""

    DC_TO_STORE = "DC_TO_STORE"
    STORE_TO_DC = "STORE_TO_DC"


class RawMovement(BaseModel):
    """
    A movement event exactly as reported by the feed or the historical API (immutable).

    Field aliases follow the external camelCase message schema, so payloads
    can be validated directly with ``RawMovement.model_validate(payload)``.

    Attributes:
        destination: Originally planned recipient (not necessarily where goods went)
        source_location: Location the feed reports as source
        destination_location: Location the feed reports as destination
        servicing_nodes: DCs capable of supplying the destination; duplicates and null entries are kept for validation to report
        status: Free-text status (PLANNED, IN_TRANSIT, ...)
        timestamp: When the movement was created/planned (UTC)
    """

    destination: str | None = None
    source_location: str | None = Field(None, alias="sourceLocation")
    destination_location: str | None = Field(None, alias="destinationLocation")
    servicing_nodes: list[str | None] = Field(default_factory=list, alias="servicingNodes")
    status: str | None = None
    timestamp: datetime | None = None

    @field_validator("servicing_nodes", mode="before")
    @classmethod
    def none_to_empty_nodes(cls, v):
        """Treat a null servicing node list as empty."""
        return [] if v is None else v

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v):
        """Naive timestamps are interpreted as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "destination": "960",
                "servicingNodes": ["960", "1001", "1002"],
                "sourceLocation": "2352",
                "destinationLocation": "960",
                "status": "PLANNED",
                "timestamp": "2026-10-01T08:30:00Z"
            }
        }


class ResolvedMovement(BaseModel):
    """
    A RawMovement with its direction resolved (one per RawMovement, immutable).

    For REVERSE movements the origin/destination are swapped back so that
    actual_origin/actual_destination reflect where the goods really moved.
    """

    raw: RawMovement
    movement_type: MovementType | None
    actual_origin: str | None
    actual_destination: str | None
    flow_direction: FlowDirection | None
    processed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_reverse(self) -> bool:
        return self.movement_type == MovementType.REVERSE

    class Config:
        frozen = True
