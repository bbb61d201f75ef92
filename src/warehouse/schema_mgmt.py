"""
Schema management for the movement record store.

Creates the movement_record table and its indexes. Every statement is
idempotent, so ensure_schema() runs on each process start.
"""

from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

TABLE_NAME = "movement_record"

CREATE_TABLE = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        record_id BIGSERIAL PRIMARY KEY,
        destination VARCHAR(50),
        source_location VARCHAR(50),
        destination_location VARCHAR(50),
        servicing_nodes TEXT[] NOT NULL DEFAULT '{{}}',
        status VARCHAR(20),
        timestamp TIMESTAMPTZ,
        is_historical BOOLEAN NOT NULL DEFAULT FALSE,
        processed_during_cutover BOOLEAN NOT NULL DEFAULT FALSE,
        movement_type VARCHAR(20),
        flow_direction VARCHAR(20),
        actual_origin VARCHAR(50),
        actual_destination VARCHAR(50),
        validation_status VARCHAR(50),
        validation_error VARCHAR(500),
        data_source VARCHAR(20) NOT NULL,
        correlation_id VARCHAR(100),
        metadata JSONB NOT NULL DEFAULT '{{}}'::jsonb,
        processed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

# Unique key backing duplicate prevention; NULL endpoints never conflict
CREATE_UNIQUE_KEY = f"""
    CREATE UNIQUE INDEX IF NOT EXISTS uq_movement_identity
    ON {TABLE_NAME} (source_location, destination_location, timestamp)
"""

CREATE_INDEXES = [
    f"CREATE INDEX IF NOT EXISTS idx_source_destination ON {TABLE_NAME} (source_location, destination_location)",
    f"CREATE INDEX IF NOT EXISTS idx_timestamp ON {TABLE_NAME} (timestamp)",
    f"CREATE INDEX IF NOT EXISTS idx_destination ON {TABLE_NAME} (destination)",
    f"CREATE INDEX IF NOT EXISTS idx_historical ON {TABLE_NAME} (is_historical)",
    f"CREATE INDEX IF NOT EXISTS idx_cutover ON {TABLE_NAME} (processed_during_cutover)",
]


class MovementSchemaManager:
    """Owns the DDL of the movement record store."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def ensure_schema(self) -> None:
        """Create the table, unique key and indexes if they do not exist."""
        with self.pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(CREATE_TABLE)
                cur.execute(CREATE_UNIQUE_KEY)
                for statement in CREATE_INDEXES:
                    cur.execute(statement)
            conn.commit()

        logger.info(f"Schema for {TABLE_NAME} is up to date")

    def table_exists(self) -> bool:
        result = self.pool.execute_query(
            "SELECT to_regclass(%s) IS NOT NULL AS present",
            (TABLE_NAME,),
        )
        return bool(result and result[0]["present"])
