# MIT License (see LICENSE)
"""
Diagnostics for checking solver health.

Used for verifying simulation correctness and debugging stability issues:
how far each rod is from its rest length, whether every coordinate is
finite, and the chain's mechanical energy. Without drag the relaxation
still bleeds some energy, so energy is a trend to watch, not a conserved
quantity.
"""
from __future__ import annotations
from typing import TYPE_CHECKING

import numpy as np

from ..constraints.solver import chain_constraints

if TYPE_CHECKING:
    from ..chain import PendulumChain


def segment_errors(chain: "PendulumChain") -> np.ndarray:
    """
    Absolute rod-length error per segment.

    Returns:
        Array of shape (N,) with |distance(i, i+1) - lengths[i]|.
    """
    if not chain.configured():
        return np.zeros(0, dtype=np.float64)
    pos = chain.positions()
    out = np.empty(chain.segment_count, dtype=np.float64)
    for k, c in enumerate(chain_constraints(chain.segment_lengths())):
        out[k] = abs(float(np.linalg.norm(pos[c.b] - pos[c.a])) - c.length)
    return out


def max_segment_error(chain: "PendulumChain") -> float:
    """Largest rod-length error across the chain (0 for an empty chain)."""
    errs = segment_errors(chain)
    return float(errs.max()) if errs.size else 0.0


def all_finite(chain: "PendulumChain") -> bool:
    """True when every current and previous node coordinate is finite."""
    return all(n.pos.is_finite() and n.prev_pos.is_finite() for n in chain.nodes)


def kinetic_energy(chain: "PendulumChain", dt_sub: float) -> float:
    """
    Kinetic energy from the implied Verlet velocity.

    T = Σ 0.5 * m * |(pos - prev_pos) / dt_sub|²

    Args:
        chain: Chain to measure.
        dt_sub: Substep length that produced prev_pos.
    """
    ke = 0.0
    for n in chain.nodes:
        if n.mass <= 0:
            continue
        ke += 0.5 * n.mass * n.velocity(dt_sub).length_squared()
    return ke


def potential_energy(chain: "PendulumChain") -> float:
    """Gravitational potential energy relative to the anchor height, V = Σ m g y."""
    return sum(n.mass * chain.gravity * n.pos.y for n in chain.nodes)
