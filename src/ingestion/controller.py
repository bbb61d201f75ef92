"""
Ingestion controller: pause/resume/status control over the live feed.

Used by the cutover orchestrator to keep live consumption quiet while the
historical gap is backfilled, and by operators for emergency stops.
"""

import threading

from pydantic import BaseModel

from src.observability import metrics
from src.observability.logger import get_logger

from .registry import ConsumerRegistry, ConsumptionUnit

logger = get_logger(__name__)


class IngestionControlError(Exception):
    """A consumption unit failed during a control operation."""

    def __init__(self, operation: str, unit_id: str | None = None, cause: Exception | None = None):
        self.operation = operation
        self.unit_id = unit_id
        target = f"unit '{unit_id}'" if unit_id else "all units"
        message = f"Failed to {operation} {target}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class IngestionStatus(BaseModel):
    total: int
    running: int
    paused: int
    all_active: bool


class UnitInfo(BaseModel):
    unit_id: str
    exists: bool
    running: bool = False
    paused: bool = False


class IngestionController:
    """
    Controls every consumption unit in a registry.

    pause/resume are idempotent. A failure on any unit aborts the call
    with IngestionControlError, so callers must expect partially paused
    states.
    """

    def __init__(self, registry: ConsumerRegistry):
        self.registry = registry
        self._lock = threading.Lock()
        self._listeners_active = True

    @property
    def listeners_active(self) -> bool:
        """Coarse flag set by pause_all/resume_all; not authoritative per unit."""
        return self._listeners_active

    def pause_all(self) -> None:
        """
        Pause every running unit.

        Raises:
            IngestionControlError: If any unit fails to pause
        """
        logger.info("Pausing all consumption units")
        with self._lock:
            unit_ids = self.registry.unit_ids()
            for unit_id in unit_ids:
                self._pause_unit(unit_id)
            self._listeners_active = False
        self._refresh_paused_gauge()
        logger.info(f"Paused {len(unit_ids)} consumption units")

    def resume_all(self) -> None:
        """
        Resume every unit; safe to call when nothing is paused.

        Raises:
            IngestionControlError: If any unit fails to resume
        """
        logger.info("Resuming all consumption units")
        with self._lock:
            unit_ids = self.registry.unit_ids()
            for unit_id in unit_ids:
                self._resume_unit(unit_id)
            self._listeners_active = True
        self._refresh_paused_gauge()
        logger.info(f"Resumed {len(unit_ids)} consumption units")

    def pause(self, unit_id: str) -> None:
        with self._lock:
            self._pause_unit(unit_id)
        self._refresh_paused_gauge()

    def resume(self, unit_id: str) -> None:
        with self._lock:
            self._resume_unit(unit_id)
        self._refresh_paused_gauge()

    def _pause_unit(self, unit_id: str) -> None:
        unit = self.registry.get(unit_id)
        if unit is None or not unit.is_running():
            logger.warning(f"Consumption unit not found or not running: {unit_id}", extra={"unit_id": unit_id})
            return
        if unit.is_pause_requested():
            logger.warning(f"Consumption unit already paused: {unit_id}", extra={"unit_id": unit_id})
            return

        self._control(unit, "pause", unit.pause)
        logger.debug(f"Paused consumption unit {unit_id}", extra={"unit_id": unit_id})

    def _resume_unit(self, unit_id: str) -> None:
        unit = self.registry.get(unit_id)
        if unit is None:
            logger.warning(f"Consumption unit not found: {unit_id}", extra={"unit_id": unit_id})
            return

        self._control(unit, "resume", unit.resume)
        logger.debug(f"Resumed consumption unit {unit_id}", extra={"unit_id": unit_id})

    def _control(self, unit: ConsumptionUnit, operation: str, action) -> None:
        try:
            action()
        except Exception as e:
            metrics.increment_counter(metrics.ingestion_control_errors_total, 1, operation=operation)
            logger.error(
                f"Failed to {operation} consumption unit {unit.unit_id}: {e}",
                extra={"unit_id": unit.unit_id, "operation": operation},
                exc_info=True,
            )
            raise IngestionControlError(operation, unit.unit_id, e) from e

    def status(self) -> IngestionStatus:
        units = self.registry.units()
        running = sum(1 for u in units if u.is_running() and not u.is_pause_requested())
        return IngestionStatus(
            total=len(units),
            running=running,
            paused=len(units) - running,
            all_active=running == len(units),
        )

    def unit_info(self, unit_id: str) -> UnitInfo:
        unit = self.registry.get(unit_id)
        if unit is None:
            return UnitInfo(unit_id=unit_id, exists=False)
        return UnitInfo(
            unit_id=unit_id,
            exists=True,
            running=unit.is_running(),
            paused=unit.is_pause_requested(),
        )

    def emergency_stop_all(self) -> None:
        """
        Hard-stop every running unit. Irreversible without a restart.

        Raises:
            IngestionControlError: If any unit fails to stop
        """
        logger.error("EMERGENCY: stopping all consumption units")
        with self._lock:
            stopped = 0
            for unit in self.registry.units():
                if unit.is_running():
                    logger.warning(f"Emergency stopping unit {unit.unit_id}", extra={"unit_id": unit.unit_id})
                    self._control(unit, "stop", unit.stop)
                    stopped += 1
            self._listeners_active = False
        self._refresh_paused_gauge()
        logger.error(f"Emergency stop completed for {stopped} consumption units")

    def _refresh_paused_gauge(self) -> None:
        paused = sum(1 for u in self.registry.units() if u.is_pause_requested())
        metrics.set_gauge(metrics.ingestion_units_paused, paused)
