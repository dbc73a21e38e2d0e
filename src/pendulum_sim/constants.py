# MIT License (see LICENSE)
"""
Numeric domains and defaults shared by the chain solver and registry.

Every user-editable quantity has an inclusive clamp range. Setters never
reject out-of-range values; they pull them back into these bounds.
"""
from __future__ import annotations

# Segment rest length in simulation units (metres before scaling).
MIN_LENGTH: float = 0.5
MAX_LENGTH: float = 3.0
DEFAULT_LENGTH: float = 1.0

# Node mass in kg. The anchor (node 0) is always 0 and therefore pinned.
MIN_MASS: float = 0.1
MAX_MASS: float = 25.0
ANCHOR_MASS: float = 0.0
INTERIOR_MASS: float = 1.0
TERMINAL_MASS: float = 2.0

# Integration controls.
MIN_SUBSTEPS: int = 1
MAX_SUBSTEPS: int = 80
MIN_ITERATIONS: int = 1
MAX_ITERATIONS: int = 30
MIN_DRAG: float = 0.0
MIN_SCALE: float = 0.1

# Chain defaults on creation.
DEFAULT_SCALE: float = 2.0
DEFAULT_GRAVITY: float = 9.81
DEFAULT_DRAG: float = 0.01
DEFAULT_SUBSTEPS: int = 10
DEFAULT_ITERATIONS: int = 8

# Fixed external tick: 20 Hz.
DEFAULT_TICK_SECONDS: float = 0.05

# Pairs of constrained nodes closer than this are skipped in a relaxation
# pass instead of dividing by a near-zero distance.
CONSTRAINT_EPS: float = 1e-9

# Randomized pose: per-segment turn is TURN_FRACTION * U(-pi, pi) and each
# non-anchor node is jittered by up to POSE_JITTER on both axes.
RANDOM_TURN_FRACTION: float = 0.25
POSE_JITTER: float = 0.02

# Width of a readiness region in world units (x and z).
REGION_SIZE: int = 16

# Paired divergence probe defaults.
PAIR_MIN_SEGMENTS: int = 2
PAIR_DIVERGENCE: float = 1e-4

# Suggested cap on live chains for hosts that expose a create command.
MAX_CHAINS: int = 24
