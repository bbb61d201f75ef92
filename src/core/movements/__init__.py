"""
Movement direction resolution and processing.
"""

from .processor import MovementProcessor, ProcessedMovement, create_movement_processor
from .resolver import MovementResolver

__all__ = [
    "MovementResolver",
    "MovementProcessor",
    "ProcessedMovement",
    "create_movement_processor",
]
