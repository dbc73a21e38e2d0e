# MIT License (see LICENSE)
"""
Time-stepping for chain nodes.

Position-based dynamics keep velocity implicit: each node stores its
current and previous position, and the displacement between them is the
velocity carried into the next substep.

Available steps:
- verlet_step: semi-implicit (position) Verlet under constant acceleration.
- apply_drag: linear damping of the implied velocity.

Reference:
    Position Verlet: https://en.wikipedia.org/wiki/Verlet_integration#Basic_St%C3%B6rmer%E2%80%93Verlet
    Jakobsen, "Advanced Character Physics" (GDC 2001)
"""
from __future__ import annotations
from typing import Sequence

from ..types import Node, Vec2


def verlet_step(nodes: Sequence[Node], accel: Vec2, dt: float) -> None:
    """
    Advance every free node by one substep of position Verlet.

    The update is:
        x(t+dt) = x(t) + (x(t) - x(t-dt)) + a·dt²

    Pinned nodes (inv_mass == 0) are left untouched, which keeps the anchor
    at the local origin without a branch on node index.

    Args:
        nodes: Node sequence (modified in-place).
        accel: Constant acceleration, e.g. (0, -g).
        dt: Substep length in seconds.
    """
    step = accel * (dt * dt)
    for node in nodes:
        if node.inv_mass == 0.0:
            continue
        pos = node.pos
        node.pos = pos + (pos - node.prev_pos) + step
        node.prev_pos = pos


def apply_drag(nodes: Sequence[Node], drag: float, dt: float) -> None:
    """
    Damp the implied velocity of every node after the first.

    The displacement (pos - prev_pos) is scaled by max(0, 1 - drag·dt) by
    moving prev_pos toward pos. Node 0 is the anchor and carries no
    velocity.

    Args:
        nodes: Node sequence (modified in-place).
        drag: Linear drag coefficient (1/s). 0 disables damping.
        dt: Substep length in seconds.
    """
    if drag == 0.0:
        return
    factor = max(0.0, 1.0 - drag * dt)
    for node in nodes[1:]:
        velocity = (node.pos - node.prev_pos) * factor
        node.prev_pos = node.pos - velocity
