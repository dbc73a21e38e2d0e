# MIT License (see LICENSE)
"""
Constraint relaxation for chains.

This subpackage provides:
    - DistanceConstraint: rod between two consecutive nodes.
    - relax_distance_constraints: fixed-iteration Gauss-Seidel sweeps.

Typical usage:
    from pendulum_sim.constraints import relax_distance_constraints

    relax_distance_constraints(chain.nodes, chain.segment_lengths(), iters=8)
"""
from .solver import (
    DistanceConstraint,
    chain_constraints,
    relax_once,
    relax_distance_constraints,
)

__all__ = [
    "DistanceConstraint",
    "chain_constraints",
    "relax_once",
    "relax_distance_constraints",
]
