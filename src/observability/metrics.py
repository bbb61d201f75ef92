"""
Prometheus metrics collection for the movement pipeline

Covers live movement processing, validation outcomes, the historical
backfill (fetches, store batches, cutover runs) and ingestion control.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


# Module registry (kept off the default registry so tests can import freely)
REGISTRY = CollectorRegistry()


# =======================
# MOVEMENT METRICS
# =======================

movements_processed_total = Counter(
    name="movement_pipeline_movements_processed_total",
    documentation="Total number of movements resolved and validated",
    labelnames=["data_source", "movement_type", "validation_status"],
    registry=REGISTRY,
)

validation_failures_total = Counter(
    name="movement_pipeline_validation_failures_total",
    documentation="Total number of movements that failed validation",
    labelnames=["data_source"],
    registry=REGISTRY,
)

store_to_store_movements_total = Counter(
    name="movement_pipeline_store_to_store_movements_total",
    documentation="Movements flagged by the store-to-store advisory check",
    labelnames=["data_source"],
    registry=REGISTRY,
)

location_cache_size = Gauge(
    name="movement_pipeline_location_cache_size",
    documentation="Number of cached location classifications",
    registry=REGISTRY,
)

# =======================
# RECORD STORE METRICS
# =======================

store_batches_total = Counter(
    name="movement_pipeline_store_batches_total",
    documentation="Record store batch writes",
    labelnames=["data_source", "status"],  # status: success, failure
    registry=REGISTRY,
)

store_write_duration_seconds = Histogram(
    name="movement_pipeline_store_write_duration_seconds",
    documentation="Time spent writing one batch to the record store",
    labelnames=["data_source"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0],
    registry=REGISTRY,
)

# =======================
# CUTOVER METRICS
# =======================

historical_fetches_total = Counter(
    name="movement_pipeline_historical_fetches_total",
    documentation="Historical API fetches, one per gap-window date",
    labelnames=["status"],  # status: success, failure
    registry=REGISTRY,
)

historical_records_fetched_total = Counter(
    name="movement_pipeline_historical_records_fetched_total",
    documentation="Raw movements returned by the historical API",
    registry=REGISTRY,
)

historical_fetch_duration_seconds = Histogram(
    name="movement_pipeline_historical_fetch_duration_seconds",
    documentation="Latency of a single-date historical fetch",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

cutover_runs_total = Counter(
    name="movement_pipeline_cutover_runs_total",
    documentation="Cutover orchestration runs",
    labelnames=["status"],  # status: success, failure
    registry=REGISTRY,
)

cutover_duration_seconds = Histogram(
    name="movement_pipeline_cutover_duration_seconds",
    documentation="Wall-clock duration of a cutover run",
    buckets=[1.0, 5.0, 30.0, 60.0, 300.0, 900.0, 1800.0, 3600.0],
    registry=REGISTRY,
)

cutover_failed_dates_total = Counter(
    name="movement_pipeline_cutover_failed_dates_total",
    documentation="Gap-window dates that could not be fetched",
    registry=REGISTRY,
)

# =======================
# INGESTION CONTROL METRICS
# =======================

ingestion_units_paused = Gauge(
    name="movement_pipeline_ingestion_units_paused",
    documentation="Consumption units currently paused",
    registry=REGISTRY,
)

ingestion_control_errors_total = Counter(
    name="movement_pipeline_ingestion_control_errors_total",
    documentation="Failed pause/resume/stop operations on consumption units",
    labelnames=["operation"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """Render all metrics in Prometheus text format"""
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    if labels:
        gauge.labels(**labels).set(value)
    else:
        gauge.set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    if labels:
        histogram.labels(**labels).observe(value)
    else:
        histogram.observe(value)


# =======================
# DOMAIN HELPERS
# =======================

def record_movement_processed(
    data_source: str,
    movement_type: str,
    validation_status: str,
    valid: bool,
) -> None:
    """
    Record one processed movement.

    Args:
        data_source: LIVE or HISTORICAL_API
        movement_type: NORMAL or REVERSE
        validation_status: Validation code stored on the record
        valid: Whether validation passed
    """
    increment_counter(
        movements_processed_total,
        1,
        data_source=data_source,
        movement_type=movement_type,
        validation_status=validation_status,
    )
    if not valid:
        increment_counter(validation_failures_total, 1, data_source=data_source)


def record_store_batch(data_source: str, success: bool, duration_seconds: float = 0.0) -> None:
    """Record one record-store batch write."""
    status = "success" if success else "failure"
    increment_counter(store_batches_total, 1, data_source=data_source, status=status)
    if duration_seconds > 0:
        observe_histogram(store_write_duration_seconds, duration_seconds, data_source=data_source)


def record_historical_fetch(success: bool, record_count: int = 0, duration_seconds: float = 0.0) -> None:
    """Record one single-date historical fetch."""
    increment_counter(historical_fetches_total, 1, status="success" if success else "failure")
    if record_count > 0:
        increment_counter(historical_records_fetched_total, record_count)
    if duration_seconds > 0:
        observe_histogram(historical_fetch_duration_seconds, duration_seconds)


def record_cutover_run(success: bool, duration_seconds: float, failed_dates: int) -> None:
    """Record a finalized cutover run."""
    increment_counter(cutover_runs_total, 1, status="success" if success else "failure")
    observe_histogram(cutover_duration_seconds, max(duration_seconds, 0.0))
    if failed_dates > 0:
        increment_counter(cutover_failed_dates_total, failed_dates)
