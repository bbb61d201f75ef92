"""
Movement sink for the live stream.

Each micro-batch is turned into RawMovements, processed as LIVE and
written to the record store as one batch using foreachBatch.
"""

import hashlib
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pyspark.sql import DataFrame

from src.core.models import DataSource, MovementRecord, RawMovement
from src.core.movements import MovementProcessor
from src.observability.logger import get_logger
from src.streaming.sources.kafka_source import KAFKA_METADATA_COLUMNS
from src.warehouse.movement_store import MovementRecordStore, RecordStoreError

logger = get_logger(__name__)


# max_length of MovementRecord.correlation_id
CORRELATION_ID_MAX_LENGTH = 100


def correlation_id_for(row: dict[str, Any]) -> str | None:
    """
    Kafka coordinates as topic:partition:offset (None outside Kafka).

    A topic too long to fit is replaced by its SHA-1 hex digest.
    """
    if row.get("topic") is None or row.get("offset") is None:
        return None
    topic = str(row["topic"])
    coordinates = f":{row.get('partition')}:{row['offset']}"
    if len(topic) + len(coordinates) > CORRELATION_ID_MAX_LENGTH:
        topic = hashlib.sha1(topic.encode("utf-8")).hexdigest()
    return f"{topic}{coordinates}"


class MovementSink:
    """
    Streaming sink writing processed live movements to the record store.

    A store failure is re-raised so Spark fails the micro-batch and
    replays it from the checkpoint.
    """

    def __init__(self, processor: MovementProcessor, store: MovementRecordStore):
        """
        Initialize movement sink.

        Args:
            processor: Shared movement processor
            store: Record store receiving one batch per micro-batch
        """
        self.processor = processor
        self.store = store
        self.total_records = 0
        self.total_batches = 0
        self.skipped_records = 0

    def write_batch(self, batch_df: DataFrame, batch_id: int) -> None:
        """
        Write a micro-batch (foreachBatch entry point).

        Args:
            batch_df: Batch DataFrame with movement and Kafka columns
            batch_id: Spark batch identifier
        """
        rows = [row.asDict(recursive=True) for row in batch_df.collect()]
        self.write_rows(rows, batch_id)

    def write_rows(self, rows: list[dict[str, Any]], batch_id: int) -> int:
        """
        Process and store already collected rows.

        Returns:
            Number of records written

        Raises:
            RecordStoreError: If the store rejected the batch
        """
        if not rows:
            logger.info(f"Batch {batch_id} is empty, skipping")
            return 0

        records: list[MovementRecord] = []
        for row in rows:
            correlation_id = correlation_id_for(row)
            payload = {k: v for k, v in row.items() if k not in KAFKA_METADATA_COLUMNS}
            try:
                raw = RawMovement.model_validate(payload)
            except PydanticValidationError as e:
                # Unparseable messages cannot be keyed, so they are not stored
                self.skipped_records += 1
                logger.error(
                    f"Skipping unparseable movement message: {e}",
                    extra={"correlation_id": correlation_id, "batch_id": batch_id},
                )
                continue

            processed = self.processor.process(raw, DataSource.LIVE, correlation_id=correlation_id)
            records.append(processed.record)

        try:
            written = self.store.save_batch(records)
        except RecordStoreError as e:
            logger.error(f"Failed to write batch {batch_id}: {e}", extra={"batch_id": batch_id}, exc_info=True)
            raise

        self.total_records += written
        self.total_batches += 1
        logger.info(f"Batch {batch_id} written: {written} records", extra={"batch_id": batch_id})
        return written

    def get_stats(self) -> dict[str, int]:
        return {
            "total_batches": self.total_batches,
            "total_records": self.total_records,
            "skipped_records": self.skipped_records,
        }


def create_movement_sink_writer(processor: MovementProcessor, store: MovementRecordStore):
    """
    Create a foreachBatch writer function.

    Returns:
        Function compatible with writeStream.foreachBatch()
    """
    sink = MovementSink(processor, store)

    def write_batch_wrapper(batch_df: DataFrame, batch_id: int):
        sink.write_batch(batch_df, batch_id)

    return write_batch_wrapper
