"""Registry error taxonomy.

Every error aborts the operation before any state is touched. Input
validation problems (bad addresses, empty descriptions) are plain
ValueError; these classes cover the guards of the state machine.
"""

from __future__ import annotations


class LifecycleError(Exception):
    """Base class for registry guard failures."""


class NotAuthorized(LifecycleError):
    """The caller does not hold the authority the operation requires."""

    def __init__(self, detail: str = "") -> None:
        message = "Not authorized"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RolesNotAssigned(NotAuthorized):
    """No role assignment exists yet, so nobody is authorized."""

    def __init__(self) -> None:
        super().__init__("roles have not been assigned")


class InvalidState(LifecycleError):
    """The record is not in the status the transition starts from."""


class RolesAlreadyAssigned(InvalidState):
    """Roles are set once per registry."""

    def __init__(self) -> None:
        super().__init__("Roles already assigned")


class NotFound(LifecycleError):
    """No record exists for the requested jewelry id."""

    def __init__(self, jewelry_id: int) -> None:
        super().__init__(f"Jewelry not found: {jewelry_id}")
        self.jewelry_id = jewelry_id
