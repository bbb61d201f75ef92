"""
DataSource enum identifying where a movement record came from.
"""

from enum import Enum


class DataSource(str, Enum):
    """
    Origin of a persisted movement record.

    LIVE: consumed from the Kafka movement feed
    HISTORICAL_API: backfilled from the historical REST API during cutover
    """

    LIVE = "LIVE"
    HISTORICAL_API = "HISTORICAL_API"
