"""
Cutover run models: per-date fetch outcomes and the finalized run report (ephemeral).
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from .movement import RawMovement
from .validation_result import ValidationSummary


class CutoverState(str, Enum):
    """Orchestrator states; FAILED is reachable from any non-terminal state."""

    IDLE = "IDLE"
    PAUSING = "PAUSING"
    FETCHING = "FETCHING"
    STORING = "STORING"
    VALIDATING = "VALIDATING"
    RESUMING = "RESUMING"
    DONE = "DONE"
    FAILED = "FAILED"


class DateFetchResult(BaseModel):
    """
    Outcome of fetching one date of the gap window.

    Exactly one of records/error is meaningful: a failed fetch carries the
    error text and no records.
    """

    fetch_date: date
    records: list[RawMovement] = Field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, fetch_date: date, records: list[RawMovement]) -> "DateFetchResult":
        return cls(fetch_date=fetch_date, records=records)

    @classmethod
    def failed(cls, fetch_date: date, error: str) -> "DateFetchResult":
        return cls(fetch_date=fetch_date, error=error)

    class Config:
        frozen = True


class CutoverRun(BaseModel):
    """
    Report of one cutover orchestration (not persisted; logged and exported as metrics).

    Attributes:
        start_time: When the run started
        end_time: When the run finished
        state: Terminal state (DONE or FAILED)
        success: No phase raised and no date failed to fetch
        error_message: First phase error, if any
        start_date: Gap window start (inclusive)
        end_date: Gap window end (exclusive)
        records_fetched: Raw records returned by the historical API
        total_records_processed: Records successfully written to the store
        failed_dates: Dates whose fetch failed (not retried)
        validation_summary: Per-record validation outcome of the backfill
    """

    start_time: datetime
    end_time: datetime
    state: CutoverState
    success: bool
    error_message: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    records_fetched: int = Field(0, ge=0)
    total_records_processed: int = Field(0, ge=0)
    failed_dates: frozenset[date] = Field(default_factory=frozenset)
    validation_summary: ValidationSummary | None = None

    @property
    def duration_ms(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() * 1000)

    @property
    def validation_passed(self) -> bool:
        return self.validation_summary is not None and self.validation_summary.all_valid

    class Config:
        frozen = True
