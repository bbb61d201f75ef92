"""
Base interface for movement validation checks.

Each check inspects one aspect of a resolved movement and raises
ValidationError when it fails; the MovementValidator runs every check and
collects the messages, so a check never has to know about the others.
"""

from abc import ABC, abstractmethod
from typing import Any

from src.core.models import ResolvedMovement


class ValidationError(Exception):
    """Raised when a validation check fails."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


class BaseMovementCheck(ABC):
    """
    Abstract base class for all movement checks.

    Checks for a value that is missing should usually pass and leave the
    failure to the matching required-field check, so one defect is not
    reported twice.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        """
        Initialize check.

        Args:
            field_name: Movement field the check is about (for error context)
            parameters: Check-specific parameters
        """
        self.field_name = field_name
        self.parameters = parameters or {}

    @abstractmethod
    def validate(self, movement: ResolvedMovement) -> None:
        """
        Validate a resolved movement.

        Args:
            movement: Movement to check

        Raises:
            ValidationError: If the check fails
        """
        pass

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""
        pass

    def fail(self, message: str) -> None:
        raise ValidationError(rule_name=self.rule_type, field_name=self.field_name, message=message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, params={self.parameters})"


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()
