"""
Core data models for the movement classification and cutover pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .cutover_run import CutoverRun, CutoverState, DateFetchResult
from .data_source import DataSource
from .location_type import LocationType
from .movement import FlowDirection, MovementType, RawMovement, ResolvedMovement
from .movement_record import MovementRecord
from .validation_result import (
    MOVEMENT_NULL,
    VALID,
    VALIDATION_FAILED,
    ValidationResult,
    ValidationSummary,
)

__all__ = [
    "LocationType",
    "MovementType",
    "FlowDirection",
    "RawMovement",
    "ResolvedMovement",
    "ValidationResult",
    "ValidationSummary",
    "VALID",
    "VALIDATION_FAILED",
    "MOVEMENT_NULL",
    "DataSource",
    "MovementRecord",
    "CutoverState",
    "DateFetchResult",
    "CutoverRun",
]
