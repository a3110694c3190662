"""Account addresses — validation and canonical form.

Roles, owners and callers are identified by Ethereum-style account
addresses (``0x`` followed by 40 hex digits). Every address entering the
registry is normalised to its EIP-55 checksum form so that comparisons
are exact string equality.

Rejected inputs:
- anything that is not a ``0x``-prefixed 20-byte hex string
- mixed-case input whose checksum does not verify
- the zero address (it can never sign a call)
"""

from __future__ import annotations

from typing import Iterable

from web3 import Web3


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def normalize_address(value: str, label: str = "address") -> str:
    """Return the checksum form of ``value``.

    Raises ValueError if the value is malformed or the zero address.
    """
    if not isinstance(value, str):
        raise ValueError(f"{label} must be a hex string, got {type(value).__name__}")
    candidate = value.strip()
    if not candidate.startswith(("0x", "0X")) or not Web3.is_address(candidate):
        raise ValueError(f"Invalid {label}: {value!r}")
    checksummed = Web3.to_checksum_address(candidate)
    if checksummed == ZERO_ADDRESS:
        raise ValueError(f"{label} must not be the zero address")
    return checksummed


def same_address(left: str, right: str) -> bool:
    """Compare two addresses regardless of letter case."""
    return left.lower() == right.lower()


def require_distinct(addresses: Iterable[str]) -> None:
    """Raise ValueError if any address appears more than once."""
    seen: set[str] = set()
    for address in addresses:
        key = address.lower()
        if key in seen:
            raise ValueError(f"Duplicate address: {address}")
        seen.add(key)
