"""
Movement record store.

Implements idempotent batch writes (INSERT ... ON CONFLICT UPDATE) and the
monitoring queries used by the admin CLI. A movement is identified by
(source_location, destination_location, timestamp); replaying the same
movement from the live feed and the historical API yields one row.
"""

import time
from abc import ABC, abstractmethod
from datetime import datetime

from psycopg import Error as PsycopgError
from psycopg.types.json import Jsonb
from pydantic import BaseModel

from src.core.models import MovementRecord
from src.observability import metrics
from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .schema_mgmt import TABLE_NAME

logger = get_logger(__name__)


class RecordStoreError(Exception):
    """A batch write failed; the whole batch was rolled back."""

    def __init__(self, message: str, batch_index: int | None = None):
        self.batch_index = batch_index
        super().__init__(message)


class MovementStatistics(BaseModel):
    total: int = 0
    historical: int = 0
    cutover: int = 0


class MovementRecordStore(ABC):
    """Persistence boundary of the pipeline."""

    @abstractmethod
    def save_batch(self, records: list[MovementRecord]) -> int:
        """
        Persist a batch atomically.

        Args:
            records: Records to insert or merge

        Returns:
            Number of records written

        Raises:
            RecordStoreError: If the batch could not be written
        """
        pass


COLUMNS = (
    "destination",
    "source_location",
    "destination_location",
    "servicing_nodes",
    "status",
    "timestamp",
    "is_historical",
    "processed_during_cutover",
    "movement_type",
    "flow_direction",
    "actual_origin",
    "actual_destination",
    "validation_status",
    "validation_error",
    "data_source",
    "correlation_id",
    "metadata",
    "processed_at",
)

# Historical flags are OR-ed so a later live copy never un-historicizes a row
UPSERT_QUERY = f"""
    INSERT INTO {TABLE_NAME} ({", ".join(COLUMNS)})
    VALUES ({", ".join(["%s"] * len(COLUMNS))})
    ON CONFLICT (source_location, destination_location, timestamp) DO UPDATE SET
        destination = EXCLUDED.destination,
        servicing_nodes = EXCLUDED.servicing_nodes,
        status = EXCLUDED.status,
        is_historical = {TABLE_NAME}.is_historical OR EXCLUDED.is_historical,
        processed_during_cutover = {TABLE_NAME}.processed_during_cutover OR EXCLUDED.processed_during_cutover,
        movement_type = EXCLUDED.movement_type,
        flow_direction = EXCLUDED.flow_direction,
        actual_origin = EXCLUDED.actual_origin,
        actual_destination = EXCLUDED.actual_destination,
        validation_status = EXCLUDED.validation_status,
        validation_error = EXCLUDED.validation_error,
        data_source = EXCLUDED.data_source,
        correlation_id = EXCLUDED.correlation_id,
        metadata = {TABLE_NAME}.metadata || EXCLUDED.metadata,
        processed_at = EXCLUDED.processed_at
"""

SELECT_COLUMNS = ", ".join(("record_id",) + COLUMNS)


def _to_params(record: MovementRecord) -> tuple:
    return (
        record.destination,
        record.source_location,
        record.destination_location,
        list(record.servicing_nodes),
        record.status,
        record.timestamp,
        record.is_historical,
        record.processed_during_cutover,
        record.movement_type.value if record.movement_type else None,
        record.flow_direction.value if record.flow_direction else None,
        record.actual_origin,
        record.actual_destination,
        record.validation_status,
        record.validation_error,
        record.data_source.value,
        record.correlation_id,
        Jsonb(record.metadata),
        record.processed_at,
    )


def _to_record(row: dict) -> MovementRecord:
    row = dict(row)
    row["servicing_nodes"] = row.get("servicing_nodes") or []
    row["metadata"] = row.get("metadata") or {}
    return MovementRecord.model_validate(row)


class PostgresMovementStore(MovementRecordStore):
    """
    Movement record store backed by PostgreSQL.

    Each save_batch() call is one transaction.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize movement store.

        Args:
            pool: Open database connection pool
        """
        self.pool = pool

    def save_batch(self, records: list[MovementRecord]) -> int:
        if not records:
            return 0

        data_source = records[0].data_source.value
        start = time.monotonic()
        try:
            with self.pool.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.executemany(UPSERT_QUERY, [_to_params(r) for r in records])
                conn.commit()
        except PsycopgError as e:
            metrics.record_store_batch(data_source, success=False)
            raise RecordStoreError(f"Failed to save batch of {len(records)} records: {e}") from e

        metrics.record_store_batch(data_source, success=True, duration_seconds=time.monotonic() - start)
        logger.debug(f"Saved {len(records)} movement records ({data_source})")
        return len(records)

    def find_existing_movement(
        self,
        source_location: str,
        destination_location: str,
        timestamp: datetime,
    ) -> MovementRecord | None:
        """Look up a movement by its identity (duplicate prevention)."""
        query = f"""
            SELECT {SELECT_COLUMNS}
            FROM {TABLE_NAME}
            WHERE source_location = %s AND destination_location = %s AND timestamp = %s
        """
        result = self.pool.execute_query(query, (source_location, destination_location, timestamp))
        return _to_record(result[0]) if result else None

    def find_by_timestamp_between(self, start: datetime, end: datetime) -> list[MovementRecord]:
        """Movements whose timestamp lies in [start, end], oldest first."""
        query = f"""
            SELECT {SELECT_COLUMNS}
            FROM {TABLE_NAME}
            WHERE timestamp BETWEEN %s AND %s
            ORDER BY timestamp
        """
        return [_to_record(row) for row in self.pool.execute_query(query, (start, end))]

    def find_cutover_records(self) -> list[MovementRecord]:
        query = f"""
            SELECT {SELECT_COLUMNS}
            FROM {TABLE_NAME}
            WHERE processed_during_cutover = TRUE
            ORDER BY timestamp
        """
        return [_to_record(row) for row in self.pool.execute_query(query)]

    def count_historical_cutover_records(self) -> int:
        query = f"""
            SELECT COUNT(*) AS count
            FROM {TABLE_NAME}
            WHERE is_historical = TRUE AND processed_during_cutover = TRUE
        """
        result = self.pool.execute_query(query)
        return result[0]["count"] if result else 0

    def get_movement_statistics(self) -> MovementStatistics:
        """
        Get movement statistics for monitoring.

        Returns:
            MovementStatistics with total, historical and cutover counts
        """
        query = f"""
            SELECT
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE is_historical = TRUE) AS historical,
                COUNT(*) FILTER (WHERE processed_during_cutover = TRUE) AS cutover
            FROM {TABLE_NAME}
        """
        result = self.pool.execute_query(query)
        return MovementStatistics(**result[0]) if result else MovementStatistics()

    def delete_old_historical_records(self, cutoff: datetime) -> int:
        """
        Delete historical records older than the cutoff.

        Returns:
            Number of rows deleted
        """
        deleted = self.pool.execute_command(
            f"DELETE FROM {TABLE_NAME} WHERE is_historical = TRUE AND timestamp < %s",
            (cutoff,),
        )
        logger.info(f"Deleted {deleted} historical records older than {cutoff.isoformat()}")
        return deleted
