"""Lifecycle engine — state machine, guards, and the registry."""

from jewelry_lifecycle.engine.errors import (
    InvalidState,
    LifecycleError,
    NotAuthorized,
    NotFound,
    RolesAlreadyAssigned,
    RolesNotAssigned,
)
from jewelry_lifecycle.engine.registry import LifecycleRegistry
from jewelry_lifecycle.engine.state_machine import LifecycleStateMachine

__all__ = [
    "InvalidState",
    "LifecycleError",
    "LifecycleRegistry",
    "LifecycleStateMachine",
    "NotAuthorized",
    "NotFound",
    "RolesAlreadyAssigned",
    "RolesNotAssigned",
]
