"""
Registry of named, independently pausable message-consumption units.
"""

import threading
from abc import ABC, abstractmethod


class ConsumptionUnit(ABC):
    """
    One pausable consumer of the live movement feed.

    Implementations must tolerate pause() when already paused and
    resume() when already running.
    """

    @property
    @abstractmethod
    def unit_id(self) -> str:
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """True between start and stop; a paused unit is still running."""
        pass

    @abstractmethod
    def is_pause_requested(self) -> bool:
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def resume(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop permanently; a stopped unit cannot be resumed."""
        pass


class ConsumerRegistry:
    """Thread-safe lookup of consumption units by id, in registration order."""

    def __init__(self, units: list[ConsumptionUnit] | None = None):
        self._lock = threading.Lock()
        self._units: dict[str, ConsumptionUnit] = {}
        for unit in units or []:
            self.register(unit)

    def register(self, unit: ConsumptionUnit) -> None:
        with self._lock:
            if unit.unit_id in self._units:
                raise ValueError(f"Consumption unit already registered: {unit.unit_id}")
            self._units[unit.unit_id] = unit

    def unregister(self, unit_id: str) -> ConsumptionUnit | None:
        with self._lock:
            return self._units.pop(unit_id, None)

    def get(self, unit_id: str) -> ConsumptionUnit | None:
        with self._lock:
            return self._units.get(unit_id)

    def unit_ids(self) -> list[str]:
        with self._lock:
            return list(self._units)

    def units(self) -> list[ConsumptionUnit]:
        with self._lock:
            return list(self._units.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._units)
