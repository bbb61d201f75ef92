"""
Unit tests for Prometheus metrics recording.
"""

from src.core.models import DataSource
from src.observability import metrics


def sample(name: str, **labels) -> float:
    return metrics.REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetrics:
    """Tests for the domain metric helpers"""

    def test_processing_counts_movements_and_failures(self, processor, raw_factory):
        processed_labels = {"data_source": "LIVE", "movement_type": "NORMAL", "validation_status": "VALIDATION_FAILED"}
        before_processed = sample("movement_pipeline_movements_processed_total", **processed_labels)
        before_failed = sample("movement_pipeline_validation_failures_total", data_source="LIVE")

        processor.process(raw_factory(servicing_nodes=[]), DataSource.LIVE)

        assert sample("movement_pipeline_movements_processed_total", **processed_labels) == before_processed + 1
        assert sample("movement_pipeline_validation_failures_total", data_source="LIVE") == before_failed + 1

    def test_cutover_run_metrics(self):
        before_runs = sample("movement_pipeline_cutover_runs_total", status="failure")
        before_dates = sample("movement_pipeline_cutover_failed_dates_total")

        metrics.record_cutover_run(success=False, duration_seconds=1.5, failed_dates=2)

        assert sample("movement_pipeline_cutover_runs_total", status="failure") == before_runs + 1
        assert sample("movement_pipeline_cutover_failed_dates_total") == before_dates + 2

    def test_generate_metrics_exposition(self):
        metrics.record_historical_fetch(success=True, record_count=3, duration_seconds=0.2)

        output = metrics.generate_metrics().decode("utf-8")

        assert "movement_pipeline_historical_fetches_total" in output
        assert "movement_pipeline_ingestion_units_paused" in output
