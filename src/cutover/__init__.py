"""
Historical gap backfill (cutover).
"""

from .historical_client import HistoricalFetchError, HistoricalMovementClient
from .orchestrator import CutoverAbortedError, CutoverOrchestrator

__all__ = [
    "HistoricalMovementClient",
    "HistoricalFetchError",
    "CutoverOrchestrator",
    "CutoverAbortedError",
]
