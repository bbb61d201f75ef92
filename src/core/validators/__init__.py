"""
Movement validation checks.

Provides the individual business-rule checks and the MovementValidator
that runs them and accumulates failures.
"""

from .base_validator import BaseMovementCheck, ValidationError
from .location_checks import (
    KnownLocationTypeCheck,
    LocationConsistencyCheck,
    LocationFormatCheck,
    SameEndpointCheck,
    is_valid_location_format,
)
from .movement_checks import (
    FlowDirectionCheck,
    ReverseDestinationServicedCheck,
    ServicingNodesFormatCheck,
    ServicingNodesRequiredCheck,
    ServicingNodesUniqueCheck,
)
from .movement_validator import MovementValidator, create_movement_validator
from .required_field_validator import RequiredFieldCheck
from .timestamp_checks import TimestampRequiredCheck, TimestampWindowCheck

__all__ = [
    "BaseMovementCheck",
    "ValidationError",
    "RequiredFieldCheck",
    "SameEndpointCheck",
    "LocationFormatCheck",
    "LocationConsistencyCheck",
    "KnownLocationTypeCheck",
    "TimestampRequiredCheck",
    "TimestampWindowCheck",
    "FlowDirectionCheck",
    "ServicingNodesRequiredCheck",
    "ServicingNodesUniqueCheck",
    "ServicingNodesFormatCheck",
    "ReverseDestinationServicedCheck",
    "MovementValidator",
    "create_movement_validator",
    "is_valid_location_format",
]
