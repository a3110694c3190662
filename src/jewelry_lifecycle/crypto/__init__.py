"""Cryptographic commitments over the registry audit trail."""

from jewelry_lifecycle.crypto.merkle import MerkleProof, MerkleTree

__all__ = ["MerkleProof", "MerkleTree"]
