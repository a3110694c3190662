"""Lifecycle registry — the authoritative record set for tracked jewelry.

The registry owns three things:
- the admin address (the identity that deployed it),
- the role assignment, set exactly once,
- the append-only record set, keyed by sequential ids starting at 1.

Every operation takes the calling address first. Operations are atomic:
all inputs and guards are checked before anything is written, so a
failing call leaves the registry exactly as it was.

Guard order for transitions: NotFound, NotAuthorized, InvalidState.
``current_owner`` is the mining company from creation until the sale,
when it becomes the buyer. The staged transitions never touch it.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from jewelry_lifecycle.engine.errors import (
    NotAuthorized,
    NotFound,
    RolesAlreadyAssigned,
    RolesNotAssigned,
)
from jewelry_lifecycle.engine.state_machine import LifecycleStateMachine
from jewelry_lifecycle.identity.addresses import normalize_address, same_address
from jewelry_lifecycle.models.jewelry import (
    JewelryRecord,
    JewelryStatus,
    RoleAssignment,
)

logger = logging.getLogger(__name__)


class LifecycleRegistry:
    """Role-gated jewelry lifecycle tracker.

    Usage:
        registry = LifecycleRegistry(admin=deployer)
        registry.set_roles(deployer, mining, cutting, grading, maker)

        record = registry.create_jewelry(mining, "Diamond")
        registry.update_status_to_polished(cutting, record.jewelry_id)
        registry.generate_certificate(grading, record.jewelry_id, 12345)
        registry.update_status_to_in_stock(maker, record.jewelry_id)
        registry.transfer_ownership(maker, record.jewelry_id, buyer)

    A RoleAssignment may also be injected at construction, in which case
    ``set_roles`` is already closed.
    """

    def __init__(
        self,
        admin: str,
        roles: Optional[RoleAssignment] = None,
    ) -> None:
        self._admin = normalize_address(admin, "admin")
        self._roles = roles
        self._records: dict[int, JewelryRecord] = {}
        self._next_id = 1

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def roles(self) -> Optional[RoleAssignment]:
        return self._roles

    @property
    def jewelry_count(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Role assignment
    # ------------------------------------------------------------------

    def set_roles(
        self,
        caller: str,
        mining_company: str,
        cutting_company: str,
        grading_lab: str,
        jewelry_maker: str,
    ) -> RoleAssignment:
        """Assign the four role addresses. Admin only, once only."""
        if not same_address(caller, self._admin):
            raise NotAuthorized(f"{caller} is not the registry admin")
        if self._roles is not None:
            raise RolesAlreadyAssigned()
        roles = RoleAssignment.create(
            mining_company, cutting_company, grading_lab, jewelry_maker,
        )
        self._roles = roles
        logger.info("Roles assigned by %s", self._admin)
        return roles

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_jewelry(self, caller: str, description: str) -> JewelryRecord:
        """Register a newly mined piece. Mining company only."""
        roles = self._require_roles()
        if not same_address(caller, roles.mining_company):
            raise NotAuthorized(f"{caller} is not the mining_company")
        if not isinstance(description, str) or not description.strip():
            raise ValueError("Description must be a non-empty string")

        record = JewelryRecord(
            jewelry_id=self._next_id,
            description=description,
            status=JewelryStatus.MINED,
            current_owner=roles.mining_company,
        )
        self._records[record.jewelry_id] = record
        self._next_id += 1
        logger.info("Jewelry %d created: %s", record.jewelry_id, description)
        return replace(record)

    def update_status_to_polished(self, caller: str, jewelry_id: int) -> JewelryRecord:
        """MINED → POLISHED. Cutting company only."""
        return self._advance(caller, jewelry_id, JewelryStatus.POLISHED)

    def generate_certificate(
        self,
        caller: str,
        jewelry_id: int,
        certificate_id: int,
    ) -> JewelryRecord:
        """POLISHED → GRADED and attach the certificate id. Grading lab only."""
        if (
            isinstance(certificate_id, bool)
            or not isinstance(certificate_id, int)
            or certificate_id <= 0
        ):
            raise ValueError(f"Certificate id must be a positive integer, got {certificate_id!r}")
        return self._advance(
            caller, jewelry_id, JewelryStatus.GRADED,
            certificate_id=certificate_id,
        )

    def update_status_to_in_stock(self, caller: str, jewelry_id: int) -> JewelryRecord:
        """GRADED → IN_STOCK. Jewelry maker only."""
        return self._advance(caller, jewelry_id, JewelryStatus.IN_STOCK)

    def transfer_ownership(
        self,
        caller: str,
        jewelry_id: int,
        new_owner: str,
    ) -> JewelryRecord:
        """IN_STOCK → SOLD and hand the piece to ``new_owner``.

        Jewelry maker only: the maker sells what it put in stock.
        """
        owner = normalize_address(new_owner, "new owner")
        return self._advance(
            caller, jewelry_id, JewelryStatus.SOLD,
            current_owner=owner,
        )

    def jewelries(self, jewelry_id: int) -> JewelryRecord:
        """Return a copy of the record for ``jewelry_id``."""
        return replace(self._get(jewelry_id))

    def all_jewelries(self) -> list[JewelryRecord]:
        return [replace(r) for r in self._records.values()]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_state(self) -> dict[str, Any]:
        return {
            "admin": self._admin,
            "roles": self._roles.to_dict() if self._roles is not None else None,
            "next_id": self._next_id,
            "jewelries": [r.to_dict() for r in self._records.values()],
        }

    @staticmethod
    def from_state(state: dict[str, Any]) -> LifecycleRegistry:
        """Rebuild a registry from ``to_state`` output.

        Raises ValueError if ids are not the contiguous run 1..next_id-1.
        """
        roles_data = state.get("roles")
        registry = LifecycleRegistry(
            admin=state["admin"],
            roles=RoleAssignment.from_dict(roles_data) if roles_data else None,
        )
        records = [JewelryRecord.from_dict(d) for d in state.get("jewelries", [])]
        records.sort(key=lambda r: r.jewelry_id)
        expected = list(range(1, len(records) + 1))
        if [r.jewelry_id for r in records] != expected:
            raise ValueError("Stored jewelry ids are not sequential from 1")
        next_id = int(state.get("next_id", len(records) + 1))
        if next_id != len(records) + 1:
            raise ValueError(
                f"Stored next_id {next_id} does not follow {len(records)} records"
            )
        registry._records = {r.jewelry_id: r for r in records}
        registry._next_id = next_id
        return registry

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_roles(self) -> RoleAssignment:
        if self._roles is None:
            raise RolesNotAssigned()
        return self._roles

    def _get(self, jewelry_id: int) -> JewelryRecord:
        record = self._records.get(jewelry_id)
        if record is None:
            raise NotFound(jewelry_id)
        return record

    def _advance(
        self,
        caller: str,
        jewelry_id: int,
        target: JewelryStatus,
        **changes: Any,
    ) -> JewelryRecord:
        record = self._get(jewelry_id)
        edge = LifecycleStateMachine.check(record, target, caller, self._roles)
        updated = replace(record, status=edge.target, **changes)
        self._records[jewelry_id] = updated
        logger.info(
            "Jewelry %d: %s -> %s by %s",
            jewelry_id, edge.source.name, edge.target.name, caller,
        )
        return replace(updated)
