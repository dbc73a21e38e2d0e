# MIT License (see LICENSE)
"""
A single multi-link pendulum and its position-based solver.

The PendulumChain owns:
- The topology: N+1 nodes and N segment rest lengths, node 0 pinned at
  the local origin.
- Physical parameters: gravity, drag, substeps, relaxation iterations,
  scale (world units per simulation unit).
- The per-tick algorithm (advance):
    for each of `substeps` equal sub-intervals:
        1. Verlet-integrate every free node under (0, -gravity).
        2. Relax all distance constraints `iterations` times.
        3. Damp implied velocities by drag.

Structure:
    - Create a chain (1 segment by default).
    - reconfigure(), set_segment_length(), set_mass() to shape it.
    - reset_pose() to lay it out, activate it, call advance(dt) per tick.

The chain is not internally synchronized. The registry serializes ticks
and edits for the same chain.
"""
from __future__ import annotations
import logging

import numpy as np

from .appearance import Appearance
from .constants import (
    ANCHOR_MASS,
    DEFAULT_DRAG,
    DEFAULT_GRAVITY,
    DEFAULT_ITERATIONS,
    DEFAULT_LENGTH,
    DEFAULT_SCALE,
    DEFAULT_SUBSTEPS,
    INTERIOR_MASS,
    MAX_ITERATIONS,
    MAX_LENGTH,
    MAX_MASS,
    MAX_SUBSTEPS,
    MIN_DRAG,
    MIN_ITERATIONS,
    MIN_LENGTH,
    MIN_MASS,
    MIN_SCALE,
    MIN_SUBSTEPS,
    TERMINAL_MASS,
)
from .constraints.solver import relax_distance_constraints
from .core.integrators import apply_drag, verlet_step
from .core.invariants import all_finite
from .core.poses import layout_pose
from .errors import ChainIndexError
from .types import Anchor, Node, PoseKind, Vec2
from .util import clamp, clamp_int, f64

logger = logging.getLogger(__name__)


class PendulumChain:
    """
    One simulated chain: nodes, rest lengths, parameters and solver.

    Args:
        anchor: World attachment point (default: origin of "world").
        segments: Initial segment count. 0 builds an empty, unconfigured
                  chain; any positive count goes through reconfigure().
        appearance: Renderer settings (a fresh default when omitted).

    Attributes:
        nodes: Node list. Read freely; mutate only through the methods.
        appearance: Renderer-owned settings, ignored by the solver.
    """

    def __init__(
        self,
        anchor: Anchor | None = None,
        segments: int = 1,
        appearance: Appearance | None = None,
    ) -> None:
        self.nodes: list[Node] = []
        self._lengths: list[float] = []
        self._anchor = anchor if anchor is not None else Anchor()
        self._scale = DEFAULT_SCALE
        self._gravity = DEFAULT_GRAVITY
        self._drag = DEFAULT_DRAG
        self._substeps = DEFAULT_SUBSTEPS
        self._iterations = DEFAULT_ITERATIONS
        self._active = False
        self.appearance = appearance if appearance is not None else Appearance()
        if segments > 0:
            self.reconfigure(segments)

    def __repr__(self) -> str:
        return (
            f"PendulumChain(segments={self.segment_count}, active={self._active}, "
            f"anchor={self._anchor!r})"
        )

    # -------------------------------------------------------------------------
    # Parameters
    # -------------------------------------------------------------------------

    @property
    def anchor(self) -> Anchor:
        return self._anchor

    @anchor.setter
    def anchor(self, anchor: Anchor) -> None:
        self._anchor = anchor

    @property
    def active(self) -> bool:
        """Whether advance() moves the chain."""
        return self._active

    @active.setter
    def active(self, active: bool) -> None:
        self._active = bool(active)

    @property
    def gravity(self) -> float:
        """Downward acceleration in m/s². Not clamped."""
        return self._gravity

    @gravity.setter
    def gravity(self, value: float) -> None:
        self._gravity = float(value)

    @property
    def drag(self) -> float:
        """Linear drag coefficient, clamped to >= 0."""
        return self._drag

    @drag.setter
    def drag(self, value: float) -> None:
        self._drag = clamp(value, MIN_DRAG)

    @property
    def scale(self) -> float:
        """World units per simulation unit, clamped to >= 0.1."""
        return self._scale

    @scale.setter
    def scale(self, value: float) -> None:
        self._scale = clamp(value, MIN_SCALE)

    @property
    def substeps(self) -> int:
        """Sub-intervals per tick, clamped to [1, 80]."""
        return self._substeps

    @substeps.setter
    def substeps(self, value: int) -> None:
        self._substeps = clamp_int(value, MIN_SUBSTEPS, MAX_SUBSTEPS)

    @property
    def iterations(self) -> int:
        """Relaxation sweeps per substep, clamped to [1, 30]."""
        return self._iterations

    @iterations.setter
    def iterations(self, value: int) -> None:
        self._iterations = clamp_int(value, MIN_ITERATIONS, MAX_ITERATIONS)

    # -------------------------------------------------------------------------
    # Topology
    # -------------------------------------------------------------------------

    @property
    def segment_count(self) -> int:
        return len(self._lengths)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def configured(self) -> bool:
        """True when the chain has nodes and exactly one fewer segment."""
        return len(self.nodes) > 0 and len(self._lengths) == len(self.nodes) - 1

    def segment_length(self, index: int) -> float:
        self._check_segment(index)
        return self._lengths[index]

    def segment_lengths(self) -> tuple[float, ...]:
        return tuple(self._lengths)

    def mass_at(self, node_index: int) -> float:
        self._check_node(node_index)
        return self.nodes[node_index].mass

    def masses(self) -> tuple[float, ...]:
        return tuple(n.mass for n in self.nodes)

    def set_segment_length(self, index: int, length: float) -> float:
        """
        Set one rest length, clamped to [0.5, 3.0].

        Returns:
            The value actually stored.

        Raises:
            ChainIndexError: If index is not a valid segment index.
        """
        self._check_segment(index)
        value = clamp(length, MIN_LENGTH, MAX_LENGTH)
        if value != length:
            logger.debug("Segment %d length %r clamped to %.3f", index, length, value)
        self._lengths[index] = value
        return value

    def set_mass(self, node_index: int, mass: float) -> float:
        """
        Set one node's mass, clamped to [0.1, 25.0].

        Node 0 is the anchor: any value is ignored and its mass stays 0.

        Returns:
            The value actually stored.

        Raises:
            ChainIndexError: If node_index is not a valid node index.
        """
        self._check_node(node_index)
        node = self.nodes[node_index]
        if node_index == 0:
            node.set_mass(ANCHOR_MASS)
            return node.mass
        value = clamp(mass, MIN_MASS, MAX_MASS)
        if value != mass:
            logger.debug("Node %d mass %r clamped to %.3f", node_index, mass, value)
        node.set_mass(value)
        return value

    def reconfigure(self, segment_count: int) -> None:
        """
        Rebuild the chain with segment_count segments (at least 1).

        Masses and lengths are kept where old and new index ranges
        overlap. New nodes get 2.0 kg at the tip and 1.0 kg elsewhere, new
        segments 1.0 m. The chain is deactivated first and ends in the
        DOWN pose.
        """
        self._active = False
        target = max(1, int(segment_count))
        old_nodes = self.nodes
        old_lengths = self._lengths

        nodes: list[Node] = []
        for i in range(target + 1):
            if i == 0:
                mass = ANCHOR_MASS
            elif i < len(old_nodes):
                mass = old_nodes[i].mass
            elif i == target:
                mass = TERMINAL_MASS
            else:
                mass = INTERIOR_MASS
            nodes.append(Node(mass=mass))

        lengths = []
        for i in range(target):
            candidate = old_lengths[i] if i < len(old_lengths) else DEFAULT_LENGTH
            lengths.append(clamp(candidate, MIN_LENGTH, MAX_LENGTH))

        self.nodes = nodes
        self._lengths = lengths
        logger.debug("Reconfigured chain: %d -> %d segments", len(old_lengths), target)
        self.reset_pose(PoseKind.DOWN)

    # -------------------------------------------------------------------------
    # Pose
    # -------------------------------------------------------------------------

    def reset_pose(
        self,
        kind: PoseKind = PoseKind.DOWN,
        rng: np.random.Generator | None = None,
        rotation: float = 0.0,
    ) -> None:
        """
        Lay the chain out in a named pose with zero velocity.

        No-op when the chain is not configured.

        Args:
            kind: Layout to use.
            rng: Random source for RANDOMIZED; unused otherwise.
            rotation: Counterclockwise rotation of the layout about the
                      anchor, in radians.
        """
        if not self.configured():
            return
        positions = layout_pose(kind, self._lengths, rng=rng, rotation=rotation)
        for node, pos in zip(self.nodes, positions):
            node.place(pos)

    # -------------------------------------------------------------------------
    # Simulation
    # -------------------------------------------------------------------------

    def advance(self, dt: float) -> None:
        """
        Advance the chain by one external tick of dt seconds.

        No-op when inactive, unconfigured or dt <= 0.
        """
        if not self._active or not self.configured() or not dt > 0:
            return
        h = dt / self._substeps
        accel = Vec2(0.0, -self._gravity)

        for _ in range(self._substeps):
            verlet_step(self.nodes, accel, h)
            relax_distance_constraints(self.nodes, self._lengths, self._iterations)
            apply_drag(self.nodes, self._drag, h)

        if not all_finite(self):
            logger.warning("Non-finite chain state after advance; resetting to rest pose")
            self._active = False
            self.reset_pose(PoseKind.DOWN)

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def positions(self) -> np.ndarray:
        """Node positions in the local frame, shape (N+1, 2)."""
        return f64([(n.pos.x, n.pos.y) for n in self.nodes]).reshape(-1, 2)

    def world_positions(self) -> np.ndarray:
        """Node positions in world (x, y): anchor + local * scale, shape (N+1, 2)."""
        origin = f64([self._anchor.x, self._anchor.y])
        return origin + self.positions() * self._scale

    def tip(self) -> Vec2:
        """Local position of the terminal node."""
        if not self.nodes:
            return Vec2.ZERO
        return self.nodes[-1].pos

    def copy_parameters_from(self, other: PendulumChain) -> None:
        """Copy gravity, drag, substeps, iterations and scale from another chain."""
        self._gravity = other._gravity
        self._drag = other._drag
        self._substeps = other._substeps
        self._iterations = other._iterations
        self._scale = other._scale

    # -------------------------------------------------------------------------
    # Index checks
    # -------------------------------------------------------------------------

    def _check_segment(self, index: int) -> None:
        if not 0 <= index < len(self._lengths):
            raise ChainIndexError("segment", index, len(self._lengths))

    def _check_node(self, index: int) -> None:
        if not 0 <= index < len(self.nodes):
            raise ChainIndexError("node", index, len(self.nodes))
