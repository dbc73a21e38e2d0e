# MIT License (see LICENSE)
"""
Core value types for the pendulum chain simulation.

Defines the fundamental data structures:
- Vec2: immutable 2D vector with value semantics.
- Node: a point mass carrying current and previous position, so that
  velocity is implicit in the Verlet sense: v ≈ (pos - prev_pos) / dt.
- Anchor: the world-space point a chain hangs from.
- PoseKind: closed set of named initial layouts.

Positions stored on nodes are in the chain's local frame (simulation
units, +y up). The anchor and scale are applied only when producing world
coordinates for a renderer.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .constants import REGION_SIZE


# =============================================================================
# Vector
# =============================================================================

@dataclass(frozen=True)
class Vec2:
    """
    Immutable 2D vector.

    Attributes:
        x: Horizontal component.
        y: Vertical component (+y is up).
    """
    x: float = 0.0
    y: float = 0.0

    ZERO = None  # replaced below, after the class exists

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vec2:
        return Vec2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def length(self) -> float:
        """Magnitude of the vector."""
        return math.hypot(self.x, self.y)

    def length_squared(self) -> float:
        """Squared magnitude. Avoids sqrt when only comparing distances."""
        return self.x * self.x + self.y * self.y

    def normalized(self, eps: float = 1e-12) -> Vec2:
        """
        Unit vector in the same direction.

        Returns the zero vector if |v| < eps to avoid division by zero.
        """
        n = self.length()
        if n < eps:
            return Vec2.ZERO
        return self * (1.0 / n)

    def rotated(self, theta: float) -> Vec2:
        """Rotate counterclockwise by theta radians about the origin."""
        c, s = math.cos(theta), math.sin(theta)
        return Vec2(self.x * c - self.y * s, self.x * s + self.y * c)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    @classmethod
    def from_angle(cls, theta: float) -> Vec2:
        """Unit vector at theta radians counterclockwise from +x."""
        return cls(math.cos(theta), math.sin(theta))

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)


Vec2.ZERO = Vec2(0.0, 0.0)


# =============================================================================
# Node
# =============================================================================

@dataclass
class Node:
    """
    One point mass of a chain.

    Attributes:
        pos: Current position in the chain's local frame.
        prev_pos: Position one substep ago. pos - prev_pos is the implied
                  per-substep displacement (Verlet velocity).
        mass: Mass in kg. Use mass <= 0 for a pinned, immovable node.

    Note:
        inv_mass is the only thing the integrator and the constraint
        solver look at, so the anchor needs no special case in the hot
        loops.
    """
    pos: Vec2 = Vec2.ZERO
    prev_pos: Vec2 = Vec2.ZERO
    mass: float = 0.0

    def __post_init__(self) -> None:
        """Normalize non-positive masses to exactly 0 (pinned)."""
        self.set_mass(self.mass)

    def set_mass(self, mass: float) -> None:
        mass = float(mass)
        self.mass = mass if mass > 0.0 else 0.0

    @property
    def inv_mass(self) -> float:
        """Inverse mass (1/m). Returns 0 for pinned nodes (mass <= 0)."""
        return 0.0 if self.mass <= 0 else 1.0 / self.mass

    @property
    def pinned(self) -> bool:
        return self.mass <= 0

    def place(self, pos: Vec2) -> None:
        """Move to pos with zero implied velocity."""
        self.pos = pos
        self.prev_pos = pos

    def velocity(self, dt: float) -> Vec2:
        """Implied velocity over a step of dt seconds."""
        return (self.pos - self.prev_pos) * (1.0 / dt)


# =============================================================================
# Anchor and poses
# =============================================================================

@dataclass(frozen=True)
class Anchor:
    """
    World-space attachment point of a chain.

    Attributes:
        world: Name of the world/space the anchor lives in.
        x, y, z: World coordinates. The chain swings in the x-y plane.
    """
    world: str = "world"
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def region(self, size: int = REGION_SIZE) -> tuple[str, int, int]:
        """Key of the square (x, z) region containing this anchor."""
        return (self.world, math.floor(self.x / size), math.floor(self.z / size))


class PoseKind(Enum):
    """Named initial layouts for a chain."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    RANDOMIZED = "randomized"

    @classmethod
    def parse(cls, text: str) -> PoseKind:
        """
        Parse a pose name, case-insensitively.

        Accepts the member names plus the aliases "random" and "randomize".

        Raises:
            ValueError: If text names no pose.
        """
        key = text.strip().lower()
        if key in ("random", "randomize"):
            return cls.RANDOMIZED
        try:
            return cls(key)
        except ValueError:
            names = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown pose '{text}'; expected one of {names}") from None
