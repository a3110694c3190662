"""Jewelry lifecycle registry — role-gated supply-chain tracking."""

__version__ = "0.1.0"
