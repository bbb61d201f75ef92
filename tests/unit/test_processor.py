"""
Unit tests for the movement processor.
"""

from src.config import PipelineSettings
from src.core.models import VALID, VALIDATION_FAILED, DataSource, MovementType
from src.core.movements import MovementProcessor, create_movement_processor
from src.core.movements.processor import VALIDATION_ERROR_MAX_LENGTH


class TestProcess:
    """Tests for MovementProcessor.process"""

    def test_live_record(self, processor, raw_factory, fixed_now):
        raw = raw_factory()

        processed = processor.process(raw, DataSource.LIVE, correlation_id="movements:0:42")
        record = processed.record

        assert processed.validation.valid is True
        assert record.validation_status == VALID
        assert record.validation_error is None
        assert record.data_source == DataSource.LIVE
        assert record.is_historical is False
        assert record.processed_during_cutover is False
        assert record.correlation_id == "movements:0:42"
        assert record.movement_type == MovementType.NORMAL
        assert record.actual_origin == "960"
        assert record.actual_destination == "2352"
        assert record.processed_at == fixed_now
        assert record.metadata == {}

    def test_historical_flags(self, processor, raw_factory):
        processed = processor.process(
            raw_factory(),
            DataSource.HISTORICAL_API,
            historical=True,
            during_cutover=True,
        )

        assert processed.record.is_historical is True
        assert processed.record.processed_during_cutover is True
        assert processed.record.data_source == DataSource.HISTORICAL_API

    def test_correlation_id_generated(self, processor, raw_factory):
        first = processor.process(raw_factory(), DataSource.LIVE).record
        second = processor.process(raw_factory(), DataSource.LIVE).record

        assert first.correlation_id
        assert first.correlation_id != second.correlation_id

    def test_reverse_record(self, processor, raw_factory):
        raw = raw_factory(source_location="2352", destination_location="960", destination="960")

        record = processor.process(raw, DataSource.LIVE).record

        assert record.is_reverse_movement() is True
        assert record.source_location == "2352"
        assert record.actual_origin == "960"
        assert record.actual_destination == "2352"

    def test_invalid_movement_still_produces_record(self, processor, raw_factory):
        processed = processor.process(raw_factory(servicing_nodes=[]), DataSource.LIVE)

        assert processed.validation.valid is False
        assert processed.record.validation_status == VALIDATION_FAILED
        assert processed.record.validation_error == "Servicing nodes cannot be empty"

    def test_long_validation_error_truncated(self, processor, raw_factory):
        """Test a joined message longer than the column is cut, not rejected"""
        processed = processor.process(
            raw_factory(source_location="960", destination_location="960", servicing_nodes=["X" * 600]),
            DataSource.LIVE,
        )

        assert len(processed.validation.message) > VALIDATION_ERROR_MAX_LENGTH
        assert len(processed.record.validation_error) == VALIDATION_ERROR_MAX_LENGTH
        assert processed.validation.message.startswith(processed.record.validation_error)

    def test_store_to_store_flagged_in_metadata(self, processor, raw_factory):
        raw = raw_factory(source_location="2352", destination_location="2353", destination="2353")

        record = processor.process(raw, DataSource.LIVE).record

        assert record.metadata == {"store_to_store": True}
        assert record.validation_status == VALID


class TestProcessBatch:
    """Tests for MovementProcessor.process_batch"""

    def test_order_and_cardinality_preserved(self, processor, raw_factory, fixed_now):
        raws = [
            raw_factory(source_location="960"),
            raw_factory(source_location="961"),
            raw_factory(source_location="962"),
        ]

        processed = processor.process_batch(raws, DataSource.HISTORICAL_API, historical=True)

        assert [p.record.source_location for p in processed] == ["960", "961", "962"]
        assert all(p.record.is_historical for p in processed)
        assert all(not p.record.processed_during_cutover for p in processed)

    def test_empty_batch(self, processor):
        assert processor.process_batch([], DataSource.LIVE) == []


class TestFactory:
    """Tests for create_movement_processor"""

    def test_shares_classifier(self, classifier):
        processor = create_movement_processor(PipelineSettings(), classifier=classifier)

        assert isinstance(processor, MovementProcessor)
        assert processor.classifier is classifier
        assert processor.resolver.classifier is classifier
        assert processor.validator.classifier is classifier

    def test_builds_classifier_from_settings(self):
        processor = create_movement_processor(PipelineSettings())
        assert processor.classifier is processor.resolver.classifier
