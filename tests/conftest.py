"""
Pytest configuration and fixtures for movement-pipeline tests

This module provides shared fixtures for unit, integration, and E2E tests:
a fixed clock, wired pipeline components, in-memory fakes for the record
store, consumption units and the historical API, and a PostgreSQL
container for the record store.
"""
import threading
from collections.abc import Callable
from datetime import date, datetime, time, timezone
from typing import Generator

import pytest
from testcontainers.postgres import PostgresContainer

from src.config import CutoverSettings, LocationSettings, ValidationSettings
from src.core.locations import LocationClassifier, create_location_classifier
from src.core.models import MovementRecord, RawMovement
from src.core.movements import MovementProcessor, MovementResolver
from src.core.validators import MovementValidator, create_movement_validator
from src.cutover import HistoricalFetchError
from src.ingestion import ConsumerRegistry, ConsumptionUnit, IngestionController
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.movement_store import MovementRecordStore, RecordStoreError
from src.warehouse.schema_mgmt import MovementSchemaManager

FIXED_NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# MOVEMENT FIXTURES
# =======================

def make_raw(**overrides) -> RawMovement:
    """
    Build a well-formed NORMAL movement (DC 960 -> store 2352), with overrides.

    Overrides use the snake_case field names.
    """
    fields = {
        "destination": "2352",
        "source_location": "960",
        "destination_location": "2352",
        "servicing_nodes": ["960", "1001", "1002"],
        "status": "PLANNED",
        "timestamp": FIXED_NOW,
    }
    fields.update(overrides)
    return RawMovement(**fields)


@pytest.fixture
def raw_factory() -> Callable[..., RawMovement]:
    return make_raw


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def classifier() -> LocationClassifier:
    """Classifier seeded with the built-in known locations"""
    return create_location_classifier(LocationSettings())


@pytest.fixture
def resolver(classifier) -> MovementResolver:
    return MovementResolver(classifier, clock=lambda: FIXED_NOW)


@pytest.fixture
def validator() -> MovementValidator:
    return create_movement_validator(ValidationSettings(), clock=lambda: FIXED_NOW)


@pytest.fixture
def processor(classifier, resolver, validator) -> MovementProcessor:
    return MovementProcessor(classifier=classifier, resolver=resolver, validator=validator)


# =======================
# FAKES
# =======================

class InMemoryMovementStore(MovementRecordStore):
    """
    Record store keeping rows in a dict keyed by movement identity.

    Merges like the PostgreSQL store: historical flags are OR-ed.
    Batches whose call index is in fail_batches raise RecordStoreError.
    """

    def __init__(self, fail_batches: set[int] | None = None):
        self.rows: dict[tuple, MovementRecord] = {}
        self.batch_sizes: list[int] = []
        self.fail_batches = fail_batches or set()
        self._calls = 0
        self._lock = threading.Lock()

    def save_batch(self, records: list[MovementRecord]) -> int:
        with self._lock:
            call = self._calls
            self._calls += 1
            if call in self.fail_batches:
                raise RecordStoreError(f"Simulated failure for batch {call}")

            for record in records:
                key = (record.source_location, record.destination_location, record.timestamp)
                existing = self.rows.get(key)
                if existing is not None:
                    record = record.model_copy(update={
                        "is_historical": existing.is_historical or record.is_historical,
                        "processed_during_cutover": (
                            existing.processed_during_cutover or record.processed_during_cutover
                        ),
                    })
                self.rows[key] = record
            self.batch_sizes.append(len(records))
            return len(records)

    @property
    def records(self) -> list[MovementRecord]:
        return list(self.rows.values())


class FakeUnit(ConsumptionUnit):
    """Consumption unit recording calls; operations in fail_on raise RuntimeError."""

    def __init__(self, unit_id: str, running: bool = True, fail_on: set[str] | None = None):
        self._unit_id = unit_id
        self.running = running
        self.paused = False
        self.fail_on = fail_on or set()
        self.calls: list[str] = []

    @property
    def unit_id(self) -> str:
        return self._unit_id

    def is_running(self) -> bool:
        return self.running

    def is_pause_requested(self) -> bool:
        return self.paused

    def pause(self) -> None:
        self.calls.append("pause")
        if "pause" in self.fail_on:
            raise RuntimeError(f"{self.unit_id} refused to pause")
        self.paused = True

    def resume(self) -> None:
        self.calls.append("resume")
        if "resume" in self.fail_on:
            raise RuntimeError(f"{self.unit_id} refused to resume")
        self.paused = False

    def stop(self) -> None:
        self.calls.append("stop")
        if "stop" in self.fail_on:
            raise RuntimeError(f"{self.unit_id} refused to stop")
        self.running = False
        self.paused = False


class FakeFetchClient:
    """
    Historical API stand-in.

    Returns records_per_date movements per date (distinct timestamps on
    that date) and raises HistoricalFetchError for dates in fail_dates.
    Start/end events are recorded for concurrency assertions.
    """

    def __init__(self, records_per_date: int = 2, fail_dates: set[date] | None = None):
        self.records_per_date = records_per_date
        self.fail_dates = fail_dates or set()
        self.fetched: list[date] = []
        self.events: list[tuple[str, date]] = []
        self._lock = threading.Lock()

    def fetch(self, fetch_date: date) -> list[RawMovement]:
        with self._lock:
            self.fetched.append(fetch_date)
            self.events.append(("start", fetch_date))
        try:
            if fetch_date in self.fail_dates:
                raise HistoricalFetchError(fetch_date, "HTTP 503")
            return [
                make_raw(timestamp=datetime.combine(fetch_date, time(8, i), tzinfo=timezone.utc))
                for i in range(self.records_per_date)
            ]
        finally:
            with self._lock:
                self.events.append(("end", fetch_date))


@pytest.fixture
def memory_store() -> InMemoryMovementStore:
    return InMemoryMovementStore()


@pytest.fixture
def store_factory() -> Callable[..., InMemoryMovementStore]:
    return InMemoryMovementStore


@pytest.fixture
def unit_factory() -> Callable[..., FakeUnit]:
    return FakeUnit


@pytest.fixture
def fetch_client_factory() -> Callable[..., FakeFetchClient]:
    return FakeFetchClient


@pytest.fixture
def fake_units() -> list[FakeUnit]:
    return [FakeUnit("movements"), FakeUnit("movements-replay")]


@pytest.fixture
def controller(fake_units) -> IngestionController:
    return IngestionController(ConsumerRegistry(fake_units))


@pytest.fixture
def cutover_settings() -> CutoverSettings:
    return CutoverSettings(
        enabled=True,
        gap_days=30,
        base_url="http://historical-api.test/api",
        batch_size=10,
        parallel_processing=True,
        fetch_workers=5,
        parallel_window_days=7,
    )


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_movements"
    ) as postgres:
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="function")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Open a pool on the container with a fresh movement_record table

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_movements",
        user="test_pipeline",
        password="test_password",
        min_size=1,
        max_size=4,
    )
    pool.open()

    schema = MovementSchemaManager(pool)
    schema.ensure_schema()
    pool.execute_command("TRUNCATE TABLE movement_record RESTART IDENTITY")

    yield pool

    pool.close()
