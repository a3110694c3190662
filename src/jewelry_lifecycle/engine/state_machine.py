"""Jewelry state machine — one guarded edge per stage.

    MINED    --(cutting company)-->                  POLISHED
    POLISHED --(grading lab, sets certificate id)--> GRADED
    GRADED   --(jewelry maker)-->                    IN_STOCK
    IN_STOCK --(jewelry maker, sets new owner)-->    SOLD

Fail-closed: every stage has exactly one predecessor and one authority.
There are no skips, no rollbacks, and SOLD has no outgoing edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from jewelry_lifecycle.engine.errors import InvalidState, NotAuthorized, RolesNotAssigned
from jewelry_lifecycle.identity.addresses import same_address
from jewelry_lifecycle.models.jewelry import (
    JewelryRecord,
    JewelryStatus,
    Role,
    RoleAssignment,
)


@dataclass(frozen=True)
class Transition:
    """A single edge and the role allowed to take it."""
    source: JewelryStatus
    target: JewelryStatus
    authority: Role


# Keyed by target status: {to_state: edge}
_TRANSITIONS: dict[JewelryStatus, Transition] = {
    JewelryStatus.POLISHED: Transition(
        JewelryStatus.MINED, JewelryStatus.POLISHED, Role.CUTTING_COMPANY,
    ),
    JewelryStatus.GRADED: Transition(
        JewelryStatus.POLISHED, JewelryStatus.GRADED, Role.GRADING_LAB,
    ),
    JewelryStatus.IN_STOCK: Transition(
        JewelryStatus.GRADED, JewelryStatus.IN_STOCK, Role.JEWELRY_MAKER,
    ),
    JewelryStatus.SOLD: Transition(
        JewelryStatus.IN_STOCK, JewelryStatus.SOLD, Role.JEWELRY_MAKER,
    ),
}


class LifecycleStateMachine:
    """Validates jewelry transitions.

    Pure computation: never mutates the record. The registry applies
    the change once ``check`` returns without raising.
    """

    @staticmethod
    def edge_to(target: JewelryStatus) -> Transition:
        """Return the only edge leading into ``target``."""
        edge = _TRANSITIONS.get(target)
        if edge is None:
            raise InvalidState(f"No transition leads to {target.name}")
        return edge

    @staticmethod
    def check(
        record: JewelryRecord,
        target: JewelryStatus,
        caller: str,
        roles: Optional[RoleAssignment],
    ) -> Transition:
        """Authorize ``caller`` and verify the predecessor status.

        Authorization is checked before state, so an unauthorized caller
        gets NotAuthorized whatever stage the record is in.
        """
        edge = LifecycleStateMachine.edge_to(target)

        if roles is None:
            raise RolesNotAssigned()
        if not same_address(caller, roles.address_for(edge.authority)):
            raise NotAuthorized(f"{caller} is not the {edge.authority.value}")

        if record.status != edge.source:
            raise InvalidState(
                f"Invalid state for jewelry {record.jewelry_id}: "
                f"expected {edge.source.name}, got {record.status.name}"
            )
        return edge
