"""Core data models for the jewelry lifecycle registry."""

from jewelry_lifecycle.models.jewelry import (
    JewelryRecord,
    JewelryStatus,
    Role,
    RoleAssignment,
)

__all__ = [
    "JewelryRecord",
    "JewelryStatus",
    "Role",
    "RoleAssignment",
]
