"""
Live-feed ingestion control.
"""

from .controller import IngestionControlError, IngestionController, IngestionStatus, UnitInfo
from .registry import ConsumerRegistry, ConsumptionUnit

__all__ = [
    "ConsumptionUnit",
    "ConsumerRegistry",
    "IngestionController",
    "IngestionControlError",
    "IngestionStatus",
    "UnitInfo",
]
