"""
Checks on the resolved direction and the servicing node list.
"""

from typing import Any

from src.core.models import FlowDirection, MovementType, ResolvedMovement

from .base_validator import BaseMovementCheck
from .location_checks import is_valid_location_format

EXPECTED_FLOW = {
    MovementType.NORMAL: FlowDirection.DC_TO_STORE,
    MovementType.REVERSE: FlowDirection.STORE_TO_DC,
}


class FlowDirectionCheck(BaseMovementCheck):
    """NORMAL must flow DC_TO_STORE, REVERSE must flow STORE_TO_DC."""

    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("flow_direction", parameters)

    def validate(self, movement: ResolvedMovement) -> None:
        expected = EXPECTED_FLOW.get(movement.movement_type)
        if expected is None or movement.flow_direction == expected:
            return

        found = movement.flow_direction.value if movement.flow_direction else None
        label = "Normal" if movement.movement_type == MovementType.NORMAL else "Reverse"
        self.fail(f"{label} movement should have {expected.value} flow direction, but found: {found}")

    @property
    def rule_type(self) -> str:
        return "flow_direction"


class ServicingNodesRequiredCheck(BaseMovementCheck):
    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("servicing_nodes", parameters)

    def validate(self, movement: ResolvedMovement) -> None:
        if not movement.raw.servicing_nodes:
            self.fail("Servicing nodes cannot be empty")

    @property
    def rule_type(self) -> str:
        return "required_field"


class ServicingNodesUniqueCheck(BaseMovementCheck):
    """Duplicates are a data error; they are reported, never dropped."""

    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("servicing_nodes", parameters)

    def validate(self, movement: ResolvedMovement) -> None:
        nodes = movement.raw.servicing_nodes
        if nodes and len(set(nodes)) != len(nodes):
            self.fail("Duplicate servicing nodes found")

    @property
    def rule_type(self) -> str:
        return "unique_items"


class ServicingNodesFormatCheck(BaseMovementCheck):
    """Every node must be a 3-4 digit location id; only the first offender is reported."""

    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("servicing_nodes", parameters)

    def validate(self, movement: ResolvedMovement) -> None:
        for node in movement.raw.servicing_nodes:
            if not is_valid_location_format(node):
                self.fail(f"Invalid servicing node format: {node}")

    @property
    def rule_type(self) -> str:
        return "location_format"


class ReverseDestinationServicedCheck(BaseMovementCheck):
    """
    A REVERSE movement's raw destination must be one of its servicing nodes.

    Mirrors the resolver's servicing-node fallback so both agree on what a
    reverse flow looks like.
    """

    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("destination", parameters)

    def validate(self, movement: ResolvedMovement) -> None:
        nodes = movement.raw.servicing_nodes
        if movement.movement_type != MovementType.REVERSE or not nodes:
            return
        if movement.raw.destination not in nodes:
            self.fail("For reverse movements, destination should be in servicing nodes")

    @property
    def rule_type(self) -> str:
        return "reverse_consistency"
