"""Jewelry models — lifecycle status, roles, and per-item records.

Lifecycle: MINED → POLISHED → GRADED → IN_STOCK → SOLD

Status codes are part of the external interface and must not change.
Code 4 is unused: SOLD keeps the value 5 that existing callers read.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from jewelry_lifecycle.identity.addresses import normalize_address, require_distinct


class JewelryStatus(enum.IntEnum):
    """Lifecycle stage of a jewelry record."""
    MINED = 0
    POLISHED = 1
    GRADED = 2
    IN_STOCK = 3
    SOLD = 5


class Role(str, enum.Enum):
    """Actors allowed to advance a record through one stage each."""
    MINING_COMPANY = "mining_company"
    CUTTING_COMPANY = "cutting_company"
    GRADING_LAB = "grading_lab"
    JEWELRY_MAKER = "jewelry_maker"


@dataclass(frozen=True)
class RoleAssignment:
    """The four role addresses of a registry.

    Immutable: a registry holds exactly one assignment for its lifetime.
    Use ``RoleAssignment.create`` to validate raw input.
    """
    mining_company: str
    cutting_company: str
    grading_lab: str
    jewelry_maker: str

    @staticmethod
    def create(
        mining_company: str,
        cutting_company: str,
        grading_lab: str,
        jewelry_maker: str,
    ) -> RoleAssignment:
        """Validate and normalise four distinct, non-zero addresses."""
        assignment = RoleAssignment(
            mining_company=normalize_address(mining_company, "mining company"),
            cutting_company=normalize_address(cutting_company, "cutting company"),
            grading_lab=normalize_address(grading_lab, "grading lab"),
            jewelry_maker=normalize_address(jewelry_maker, "jewelry maker"),
        )
        require_distinct(assignment.addresses())
        return assignment

    def address_for(self, role: Role) -> str:
        return getattr(self, role.value)

    def addresses(self) -> list[str]:
        return [self.address_for(role) for role in Role]

    def to_dict(self) -> dict[str, str]:
        return {role.value: self.address_for(role) for role in Role}

    @staticmethod
    def from_dict(data: dict[str, str]) -> RoleAssignment:
        return RoleAssignment.create(**{role.value: data[role.value] for role in Role})


@dataclass
class JewelryRecord:
    """A single tracked piece of jewelry.

    ``certificate_id`` stays 0 until the grading lab certifies the piece.
    """
    jewelry_id: int
    description: str
    status: JewelryStatus
    current_owner: str
    certificate_id: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "jewelry_id": self.jewelry_id,
            "description": self.description,
            "status": int(self.status),
            "status_name": self.status.name,
            "current_owner": self.current_owner,
            "certificate_id": self.certificate_id,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> JewelryRecord:
        return JewelryRecord(
            jewelry_id=int(data["jewelry_id"]),
            description=data["description"],
            status=JewelryStatus(int(data["status"])),
            current_owner=normalize_address(data["current_owner"], "current owner"),
            certificate_id=int(data.get("certificate_id", 0)),
        )

    def external_view(self) -> dict[str, Any]:
        """Field names as exposed by the ``jewelries`` getter."""
        return {
            "description": self.description,
            "status": int(self.status),
            "currentOwner": self.current_owner,
            "CAId": self.certificate_id,
        }
