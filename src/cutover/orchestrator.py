"""
Cutover orchestration.

On startup (when enabled) live ingestion is paused, the historical gap
window [today - gap_days, today) is fetched day by day from the
historical API, run through the movement processor and stored, and live
ingestion is resumed. Resume is always attempted, whatever failed before.

States: IDLE -> PAUSING -> FETCHING -> STORING -> VALIDATING -> RESUMING -> DONE,
with FAILED as the terminal state of any unsuccessful run.
"""

import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import date, datetime, timedelta, timezone

from src.config import CutoverSettings
from src.core.models import (
    CutoverRun,
    CutoverState,
    DataSource,
    DateFetchResult,
    MovementRecord,
    RawMovement,
    ValidationResult,
    ValidationSummary,
)
from src.core.movements import MovementProcessor
from src.ingestion import IngestionController
from src.observability import metrics
from src.observability.logger import get_logger, log_operation
from src.warehouse.movement_store import MovementRecordStore

from .historical_client import HistoricalMovementClient

logger = get_logger(__name__)


class CutoverAbortedError(Exception):
    """
    Pausing live ingestion failed, so the cutover never started.

    The compensating resume has already been attempted; `run` is the
    finalized failed CutoverRun.
    """

    def __init__(self, run: CutoverRun):
        self.run = run
        super().__init__(f"Cutover aborted while pausing ingestion: {run.error_message}")


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CutoverOrchestrator:
    """
    Runs one cutover at a time.

    Per-date fetch failures and per-batch store failures are recorded and
    processing continues. A failed date turns the run's success flag off;
    a failed batch only reduces the stored count.
    """

    def __init__(
        self,
        controller: IngestionController,
        fetch_client: HistoricalMovementClient,
        processor: MovementProcessor,
        store: MovementRecordStore,
        settings: CutoverSettings,
        today: Callable[[], date] = _today,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Args:
            controller: Ingestion controller over the live stream units
            fetch_client: Anything with fetch(date) -> list[RawMovement]
            processor: Movement processor (resolver + validator)
            store: Record store
            settings: Cutover settings (gap, batch size, parallelism)
            today: Source of the cutover date (window end, exclusive)
            clock: Source of run start/end times
        """
        self.controller = controller
        self.fetch_client = fetch_client
        self.processor = processor
        self.store = store
        self.settings = settings
        self.today = today
        self.clock = clock

        self.state = CutoverState.IDLE
        self.state_history: list[CutoverState] = [CutoverState.IDLE]
        self._run_lock = threading.Lock()

    def _transition(self, state: CutoverState) -> None:
        logger.info(f"Cutover state {self.state.value} -> {state.value}")
        self.state = state
        self.state_history.append(state)

    def gap_window(self) -> tuple[date, date]:
        """Return (start inclusive, end exclusive)."""
        end_date = self.today()
        return end_date - timedelta(days=self.settings.gap_days), end_date

    def run_on_startup(self) -> CutoverRun | None:
        """
        Startup hook: run the cutover if enabled. Never raises.

        Returns:
            The finalized run, or None when cutover is disabled
        """
        if not self.settings.enabled:
            logger.info("Normal startup mode. Skipping historical data processing.")
            return None

        logger.info("Cutover mode enabled. Starting historical data processing...")
        try:
            return self.perform_cutover()
        except CutoverAbortedError as e:
            logger.error(f"Cutover aborted: {e}")
            return e.run

    def perform_cutover(self) -> CutoverRun:
        """
        Run the whole cutover.

        Returns:
            Finalized CutoverRun (DONE or FAILED)

        Raises:
            CutoverAbortedError: If pausing ingestion failed
            RuntimeError: If a run is already in progress
        """
        if not self._run_lock.acquire(blocking=False):
            raise RuntimeError("A cutover run is already in progress")
        try:
            self.state = CutoverState.IDLE
            self.state_history = [CutoverState.IDLE]
            return self._perform()
        finally:
            self._run_lock.release()

    def _perform(self) -> CutoverRun:
        start_time = self.clock()
        start_monotonic = time.monotonic()
        start_date, end_date = self.gap_window()

        self._transition(CutoverState.PAUSING)
        try:
            self.controller.pause_all()
        except Exception as e:
            logger.error(f"Failed to pause ingestion, aborting cutover: {e}", exc_info=True)
            self._transition(CutoverState.RESUMING)
            self._resume_quietly()
            run = self._finalize(
                start_time,
                start_monotonic,
                success=False,
                error_message=str(e),
                start_date=start_date,
                end_date=end_date,
            )
            raise CutoverAbortedError(run) from e

        error_message: str | None = None
        failed_dates: set[date] = set()
        records_fetched = 0
        stored = 0
        summary: ValidationSummary | None = None

        try:
            self._transition(CutoverState.FETCHING)
            with log_operation(
                "Fetching gap window",
                logger=logger,
                start_date=start_date.isoformat(),
                end_date=end_date.isoformat(),
            ):
                results = self.fetch_window(start_date, end_date)

            raws: list[RawMovement] = []
            for result in results:
                if result.ok:
                    raws.extend(result.records)
                else:
                    failed_dates.add(result.fetch_date)
            records_fetched = len(raws)

            self._transition(CutoverState.STORING)
            with log_operation("Storing historical records", logger=logger, record_count=records_fetched):
                stored, validations = self.store_records(raws)

            self._transition(CutoverState.VALIDATING)
            summary = self.processor.validator.get_validation_summary(validations)
            logger.info(
                f"Validated {summary.total_validated} historical records: "
                f"{summary.valid_count} valid, {summary.invalid_count} invalid"
            )
        except Exception as e:
            logger.error(f"Cutover failed in state {self.state.value}: {e}", exc_info=True)
            error_message = str(e)

        self._transition(CutoverState.RESUMING)
        resume_error = self._resume_quietly()
        if error_message is None and resume_error is not None:
            error_message = f"Failed to resume ingestion: {resume_error}"

        success = error_message is None and not failed_dates
        return self._finalize(
            start_time,
            start_monotonic,
            success=success,
            error_message=error_message,
            start_date=start_date,
            end_date=end_date,
            records_fetched=records_fetched,
            total_records_processed=stored,
            failed_dates=frozenset(failed_dates),
            validation_summary=summary,
        )

    def _resume_quietly(self) -> Exception | None:
        try:
            self.controller.resume_all()
        except Exception as e:
            logger.error(f"Failed to resume ingestion after cutover: {e}", exc_info=True)
            return e
        return None

    def _finalize(self, start_time: datetime, start_monotonic: float, success: bool, **fields) -> CutoverRun:
        self._transition(CutoverState.DONE if success else CutoverState.FAILED)
        run = CutoverRun(
            start_time=start_time,
            end_time=self.clock(),
            state=self.state,
            success=success,
            **fields,
        )

        metrics.record_cutover_run(
            success=success,
            duration_seconds=time.monotonic() - start_monotonic,
            failed_dates=len(run.failed_dates),
        )

        if success:
            logger.info(
                f"Cutover completed successfully. Processed {run.total_records_processed} records "
                f"in {run.duration_ms} ms"
            )
        else:
            logger.error(
                f"Cutover finished with failures: {run.error_message or 'fetch failures'}; "
                f"failed dates: {sorted(d.isoformat() for d in run.failed_dates)}"
            )
        return run

    def fetch_window(self, start_date: date, end_date: date) -> list[DateFetchResult]:
        """
        Fetch every date in [start_date, end_date).

        Returns:
            One DateFetchResult per date, ordered by date
        """
        dates = [start_date + timedelta(days=i) for i in range((end_date - start_date).days)]
        if not dates:
            return []

        if self.settings.parallel_processing:
            results = self._fetch_parallel(dates)
        else:
            results = [self._fetch_date(d) for d in dates]

        return sorted(results, key=lambda r: r.fetch_date)

    def _fetch_parallel(self, dates: list[date]) -> list[DateFetchResult]:
        window = self.settings.parallel_window_days
        results: list[DateFetchResult] = []

        with ThreadPoolExecutor(
            max_workers=self.settings.fetch_workers, thread_name_prefix="cutover-fetch"
        ) as executor:
            for i in range(0, len(dates), window):
                sub_batch = dates[i:i + window]
                futures = [executor.submit(self._fetch_date, d) for d in sub_batch]
                # Barrier: the next sub-batch starts only once this one has fully joined
                wait(futures)
                results.extend(f.result() for f in futures)
                logger.debug(f"Fetched sub-batch {sub_batch[0]} .. {sub_batch[-1]}")

        return results

    def _fetch_date(self, fetch_date: date) -> DateFetchResult:
        try:
            records = self.fetch_client.fetch(fetch_date)
        except Exception as e:
            logger.error(
                f"Failed to fetch data for date {fetch_date}: {e}",
                extra={"fetch_date": fetch_date.isoformat()},
            )
            return DateFetchResult.failed(fetch_date, str(e))
        return DateFetchResult.success(fetch_date, records)

    def store_records(self, raws: list[RawMovement]) -> tuple[int, list[ValidationResult]]:
        """
        Process and store historical records in fixed-size batches.

        A batch that fails to process or store is logged and excluded from
        the stored count; later batches still run.

        Returns:
            (records stored, validation result of every processed record)
        """
        batch_size = self.settings.batch_size
        stored = 0
        validations: list[ValidationResult] = []

        for batch_index, offset in enumerate(range(0, len(raws), batch_size)):
            batch = raws[offset:offset + batch_size]
            try:
                processed = self.processor.process_batch(
                    batch,
                    DataSource.HISTORICAL_API,
                    historical=True,
                    during_cutover=True,
                )
                validations.extend(p.validation for p in processed)
                records: list[MovementRecord] = [p.record for p in processed]
                stored += self.store.save_batch(records)
            except Exception as e:
                logger.error(
                    f"Failed to process or store batch starting at index {offset}: {e}",
                    extra={"batch_index": batch_index},
                    exc_info=True,
                )
                continue

            logger.debug(f"Stored batch {batch_index} ({offset + len(batch)}/{len(raws)})")

        logger.info(f"Successfully processed and stored {stored} of {len(raws)} historical records")
        return stored, validations
