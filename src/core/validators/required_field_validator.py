"""
RequiredFieldCheck - ensures a movement field is present and not blank.
"""

from collections.abc import Callable
from typing import Any

from src.core.models import ResolvedMovement

from .base_validator import BaseMovementCheck


class RequiredFieldCheck(BaseMovementCheck):
    """
    Validates that a field is present and, for strings, not blank.

    The value is read through an accessor so the check works for raw
    fields (movement.raw.destination) and resolved ones alike.

    Parameters:
    - label: Human-readable field name used in the message
    """

    def __init__(
        self,
        field_name: str,
        accessor: Callable[[ResolvedMovement], Any],
        parameters: dict[str, Any] | None = None,
    ):
        super().__init__(field_name, parameters)
        self.accessor = accessor
        self.label = self.parameters.get("label", field_name)

    def validate(self, movement: ResolvedMovement) -> None:
        value = self.accessor(movement)

        if value is None or (isinstance(value, str) and not value.strip()):
            self.fail(f"{self.label} is required")

    @property
    def rule_type(self) -> str:
        return "required_field"
