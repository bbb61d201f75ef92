"""
Checks on the movement timestamp.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.models import ResolvedMovement

from .base_validator import BaseMovementCheck


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampRequiredCheck(BaseMovementCheck):
    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("timestamp", parameters)

    def validate(self, movement: ResolvedMovement) -> None:
        if movement.raw.timestamp is None:
            self.fail("Timestamp is required")

    @property
    def rule_type(self) -> str:
        return "required_field"


class TimestampWindowCheck(BaseMovementCheck):
    """
    Validates the timestamp lies within [now - max_past_days, now + max_future_hours].

    Parameters:
    - max_future_hours: Tolerance for clock skew / pre-planned movements (default 24)
    - max_past_days: Oldest accepted movement (default 365)
    """

    def __init__(
        self,
        parameters: dict[str, Any] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        super().__init__("timestamp", parameters)
        self.max_future = timedelta(hours=self.parameters.get("max_future_hours", 24))
        self.max_past = timedelta(days=self.parameters.get("max_past_days", 365))
        self.clock = clock

    def validate(self, movement: ResolvedMovement) -> None:
        timestamp = movement.raw.timestamp
        if timestamp is None:
            return

        now = self.clock()
        if timestamp > now + self.max_future:
            self.fail(f"Timestamp is too far in the future: {timestamp.isoformat()}")
        if timestamp < now - self.max_past:
            self.fail(f"Timestamp is too far in the past: {timestamp.isoformat()}")

    @property
    def rule_type(self) -> str:
        return "timestamp_window"
