# MIT License (see LICENSE)
"""
Distance-constraint relaxation for chains.

Each segment i constrains node i and node i+1 to sit exactly
lengths[i] apart. Rather than solving all segments at once, the solver
sweeps them in order and fixes each one locally (Gauss-Seidel), so a
correction made for segment i is already visible when segment i+1 is
processed.

Key concepts:
- Mass weighting: the positional correction is split between the two
  nodes in proportion to their inverse masses. A pinned node (inv_mass 0)
  absorbs none of it; a heavy node moves less than a light one.
- Fixed iteration count: the number of sweeps trades accuracy for cost.
  More sweeps converge closer to exact rod lengths but nothing here
  guarantees convergence within the budget.
- Order: every sweep runs forward from the anchor to the tip.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from ..constants import CONSTRAINT_EPS
from ..types import Node


@dataclass(frozen=True)
class DistanceConstraint:
    """
    Rod between two nodes of a chain.

    Attributes:
        a: Index of the node nearer the anchor.
        b: Index of the node nearer the tip.
        length: Rest length in simulation units.
    """
    a: int
    b: int
    length: float


def chain_constraints(lengths: Sequence[float]) -> list[DistanceConstraint]:
    """Constraints linking consecutive nodes for the given rest lengths."""
    return [DistanceConstraint(a=i, b=i + 1, length=float(L)) for i, L in enumerate(lengths)]


def relax_once(
    nodes: Sequence[Node],
    lengths: Sequence[float],
    eps: float = CONSTRAINT_EPS,
) -> None:
    """
    One forward sweep correcting every segment toward its rest length.

    Args:
        nodes: N+1 nodes (positions modified in-place).
        lengths: N rest lengths; lengths[i] links nodes[i] and nodes[i+1].
        eps: Pairs closer than this are skipped (no well-defined direction).
    """
    for i in range(len(nodes) - 1):
        a = nodes[i]
        b = nodes[i + 1]

        delta = b.pos - a.pos
        dist = delta.length()
        if dist < eps:
            continue

        w1 = a.inv_mass
        w2 = b.inv_mass
        w_sum = w1 + w2
        if w_sum == 0.0:
            continue

        # Signed deviation: positive when stretched, negative when compressed
        diff = dist - lengths[i]
        correction = delta * (diff / dist)

        a.pos = a.pos + correction * (w1 / w_sum)
        b.pos = b.pos - correction * (w2 / w_sum)


def relax_distance_constraints(
    nodes: Sequence[Node],
    lengths: Sequence[float],
    iters: int,
    eps: float = CONSTRAINT_EPS,
) -> None:
    """
    Run exactly iters relaxation sweeps over a chain.

    Args:
        nodes: N+1 nodes (positions modified in-place).
        lengths: N rest lengths.
        iters: Number of sweeps. More sweeps = smaller residual length
               error at proportionally higher cost.
        eps: Degenerate-distance threshold.
    """
    for _ in range(iters):
        relax_once(nodes, lengths, eps)
