"""Merkle tree over event hashes.

SHA-256 throughout. Leaves keep log order (the event log is already a
total order), and an odd node at any level is paired with itself.
Roots and leaves carry the ``sha256:`` prefix used by the event log.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

EMPTY_ROOT = "sha256:" + hashlib.sha256(b"").hexdigest()


@dataclass(frozen=True)
class MerkleProof:
    """Inclusion proof: sibling hashes from leaf to root."""
    leaf_hash: str
    index: int
    path: list[tuple[str, str]]  # (sibling_hash, "L" | "R")
    root: str

    def verify(self) -> bool:
        node = self.leaf_hash
        for sibling, side in self.path:
            node = _hash_pair(sibling, node) if side == "L" else _hash_pair(node, sibling)
        return node == self.root


class MerkleTree:
    """Builds the tree once from a fixed list of leaves.

    Usage:
        tree = MerkleTree(event_log.event_hashes())
        root = tree.root
        proof = tree.inclusion_proof(0)
    """

    def __init__(self, leaves: list[str]) -> None:
        self._levels: list[list[str]] = []
        if leaves:
            level = list(leaves)
            self._levels.append(level)
            while len(level) > 1:
                level = [
                    _hash_pair(level[i], level[i + 1] if i + 1 < len(level) else level[i])
                    for i in range(0, len(level), 2)
                ]
                self._levels.append(level)

    @property
    def leaf_count(self) -> int:
        return len(self._levels[0]) if self._levels else 0

    @property
    def root(self) -> str:
        if not self._levels:
            return EMPTY_ROOT
        return self._levels[-1][0]

    def inclusion_proof(self, index: int) -> MerkleProof:
        """Proof for the leaf at ``index``. Raises IndexError if out of range."""
        if not 0 <= index < self.leaf_count:
            raise IndexError(f"Leaf index out of range: {index}")
        path: list[tuple[str, str]] = []
        position = index
        for level in self._levels[:-1]:
            if position % 2 == 0:
                sibling = level[position + 1] if position + 1 < len(level) else level[position]
                path.append((sibling, "R"))
            else:
                path.append((level[position - 1], "L"))
            position //= 2
        return MerkleProof(
            leaf_hash=self._levels[0][index],
            index=index,
            path=path,
            root=self.root,
        )


def _hash_pair(left: str, right: str) -> str:
    combined = (left.removeprefix("sha256:") + right.removeprefix("sha256:")).encode("utf-8")
    return "sha256:" + hashlib.sha256(combined).hexdigest()
