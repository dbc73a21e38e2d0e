# MIT License (see LICENSE)
"""
Exception types raised by the chain solver and registry.

Out-of-range *values* are never errors (they are clamped). Only
out-of-range *indices* and missing chain ids are reported.
"""
from __future__ import annotations


class PendulumError(Exception):
    """Base class for all pendulum_sim errors."""


class ChainIndexError(PendulumError, IndexError):
    """A segment or node index is outside the chain's current size."""

    def __init__(self, kind: str, index: int, size: int) -> None:
        super().__init__(f"{kind} index {index} out of range for size {size}")
        self.kind = kind
        self.index = index
        self.size = size


class ChainNotFoundError(PendulumError, KeyError):
    """No live chain is registered under the requested id."""

    def __init__(self, chain_id: int) -> None:
        super().__init__(chain_id)
        self.chain_id = chain_id

    def __str__(self) -> str:
        return f"No pendulum #{self.chain_id} exists"
