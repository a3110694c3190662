"""External method table — the registry's binding call surface.

Deployment scripts and other external callers address the registry by
these exact names and positional parameter lists. Each entry maps the
external name onto a LifecycleRegistry method and declares parameter
kinds so textual arguments (e.g. from the command line) can be coerced.

Parameter kinds:
    address — account address string, validated by the registry
    uint    — non-negative integer
    string  — free text
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from jewelry_lifecycle.engine.registry import LifecycleRegistry


@dataclass(frozen=True)
class MethodSpec:
    name: str
    attribute: str
    params: tuple[str, ...]
    mutating: bool = True


METHODS: dict[str, MethodSpec] = {
    spec.name: spec
    for spec in (
        MethodSpec("setRoles", "set_roles", ("address", "address", "address", "address")),
        MethodSpec("createJewelry", "create_jewelry", ("string",)),
        MethodSpec("updateStatusToPolished", "update_status_to_polished", ("uint",)),
        MethodSpec("generateCertificate", "generate_certificate", ("uint", "uint")),
        MethodSpec("updateStatusToInStock", "update_status_to_in_stock", ("uint",)),
        MethodSpec("transferOwnership", "transfer_ownership", ("uint", "address")),
        MethodSpec("jewelries", "jewelries", ("uint",), mutating=False),
    )
}


def lookup(name: str) -> MethodSpec:
    spec = METHODS.get(name)
    if spec is None:
        known = ", ".join(sorted(METHODS))
        raise ValueError(f"Unknown method: {name}. Known methods: [{known}]")
    return spec


def coerce_args(spec: MethodSpec, args: Sequence[Any]) -> list[Any]:
    """Convert ``args`` to the declared parameter kinds.

    Raises ValueError on a wrong argument count or an unparsable uint.
    """
    if len(args) != len(spec.params):
        raise ValueError(
            f"{spec.name} expects {len(spec.params)} argument(s), got {len(args)}"
        )
    coerced: list[Any] = []
    for kind, value in zip(spec.params, args):
        if kind == "uint":
            coerced.append(_to_uint(spec.name, value))
        else:
            coerced.append(value if isinstance(value, str) else str(value))
    return coerced


def call(registry: LifecycleRegistry, caller: str, name: str, args: Sequence[Any]) -> Any:
    """Invoke an external method on ``registry`` as ``caller``.

    Read-only methods ignore the caller. ``jewelries`` returns the
    external field view rather than a JewelryRecord.
    """
    spec = lookup(name)
    params = coerce_args(spec, args)
    method = getattr(registry, spec.attribute)
    if not spec.mutating:
        return method(*params).external_view()
    return method(caller, *params)


def _to_uint(method: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{method}: expected an unsigned integer, got {value!r}")
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(str(value).strip(), 0)
        except ValueError:
            raise ValueError(f"{method}: expected an unsigned integer, got {value!r}") from None
    if number < 0:
        raise ValueError(f"{method}: expected an unsigned integer, got {value!r}")
    return number
