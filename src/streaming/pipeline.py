"""
Live movement streaming units.

Each Kafka topic is consumed by one Spark Structured Streaming query,
wrapped as a pausable consumption unit:

- pause stops the query but keeps its checkpoint (offsets are preserved)
- resume starts a new query on the same checkpoint, so no message is lost
- stop is permanent
"""

import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pyspark.sql import SparkSession
from pyspark.sql.streaming import StreamingQuery

from src.config import KafkaSettings
from src.core.movements import MovementProcessor
from src.ingestion.registry import ConsumptionUnit
from src.observability.logger import get_logger
from src.streaming.sinks.movement_sink import create_movement_sink_writer
from src.streaming.sources.kafka_source import KafkaSource
from src.warehouse.movement_store import MovementRecordStore

logger = get_logger(__name__)


class MovementStreamUnit(ConsumptionUnit):
    """
    A pausable streaming query over one movement topic.

    The query is built by query_factory, which is called on start and on
    every resume.
    """

    def __init__(self, unit_id: str, query_factory: Callable[[], StreamingQuery]):
        """
        Args:
            unit_id: Unit name (the topic)
            query_factory: Starts the streaming query and returns its handle
        """
        self._unit_id = unit_id
        self.query_factory = query_factory
        self.query: StreamingQuery | None = None
        self._lock = threading.Lock()
        self._started = False
        self._paused = False
        self._stopped = False

    @property
    def unit_id(self) -> str:
        return self._unit_id

    def start(self) -> None:
        """
        Start consuming.

        Raises:
            RuntimeError: If the unit was already started or has been stopped
        """
        with self._lock:
            if self._stopped:
                raise RuntimeError(f"Stream unit {self.unit_id} has been stopped")
            if self._started:
                raise RuntimeError(f"Stream unit {self.unit_id} is already running")
            self.query = self.query_factory()
            self._started = True
        logger.info(f"Stream unit {self.unit_id} started", extra={"unit_id": self.unit_id})

    def is_running(self) -> bool:
        return self._started and not self._stopped

    def is_pause_requested(self) -> bool:
        return self._paused

    def pause(self) -> None:
        with self._lock:
            if self._paused:
                logger.warning(f"Stream unit {self.unit_id} already paused", extra={"unit_id": self.unit_id})
                return
            if self.query is not None:
                self.query.stop()
                self.query = None
            self._paused = True
        logger.info(f"Stream unit {self.unit_id} paused", extra={"unit_id": self.unit_id})

    def resume(self) -> None:
        with self._lock:
            if self._stopped:
                logger.warning(
                    f"Stream unit {self.unit_id} has been stopped and cannot resume",
                    extra={"unit_id": self.unit_id},
                )
                return
            if not self._paused:
                logger.debug(f"Stream unit {self.unit_id} is not paused", extra={"unit_id": self.unit_id})
                return
            self.query = self.query_factory()
            self._paused = False
        logger.info(f"Stream unit {self.unit_id} resumed", extra={"unit_id": self.unit_id})

    def stop(self) -> None:
        with self._lock:
            if self.query is not None:
                self.query.stop()
                self.query = None
            self._stopped = True
            self._paused = False
        logger.info(f"Stream unit {self.unit_id} stopped", extra={"unit_id": self.unit_id})

    def await_termination(self, timeout_seconds: int | None = None) -> bool | None:
        query = self.query
        if query is None:
            return True
        if timeout_seconds:
            return query.awaitTermination(timeout_seconds)
        return query.awaitTermination()

    def get_status(self) -> dict[str, Any]:
        """
        Get current status of the unit.

        Returns:
            Dictionary with state flags and, while a query is active, its
            id and latest progress
        """
        status: dict[str, Any] = {
            "unit_id": self.unit_id,
            "running": self.is_running(),
            "paused": self.is_pause_requested(),
        }

        query = self.query
        if query is not None:
            status["query_id"] = str(query.id)
            status["active"] = query.isActive
            if query.recentProgress:
                latest = query.recentProgress[-1]
                status["latest_progress"] = {
                    "batch_id": latest.get("batchId"),
                    "num_input_rows": latest.get("numInputRows"),
                    "input_rows_per_second": latest.get("inputRowsPerSecond"),
                }

        return status


def create_stream_unit(
    spark: SparkSession,
    topic: str,
    settings: KafkaSettings,
    processor: MovementProcessor,
    store: MovementRecordStore,
) -> MovementStreamUnit:
    """
    Build a stream unit consuming one topic into the record store.

    Args:
        spark: Active Spark session
        topic: Kafka topic (also the unit id)
        settings: Kafka settings
        processor: Shared movement processor
        store: Record store

    Returns:
        MovementStreamUnit (not started)
    """
    checkpoint = Path(settings.checkpoint_location) / topic
    checkpoint.mkdir(parents=True, exist_ok=True)
    source = KafkaSource.from_settings(spark, topic, settings)
    writer = create_movement_sink_writer(processor, store)

    def start_query() -> StreamingQuery:
        return (
            source.read_stream()
            .writeStream
            .foreachBatch(writer)
            .option("checkpointLocation", str(checkpoint))
            .trigger(processingTime=settings.trigger_interval)
            .queryName(f"movements_{topic}")
            .start()
        )

    logger.info(f"Created stream unit for topic {topic} (checkpoint: {checkpoint})")
    return MovementStreamUnit(topic, start_query)
