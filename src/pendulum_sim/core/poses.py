# MIT License (see LICENSE)
"""
Initial layouts for a chain.

A pose is a list of N+1 local-frame positions, starting at the anchor
(origin), built by walking each segment's rest length along a direction.
Straight poses use one fixed direction; the randomized pose turns a
running angle by a bounded random amount before each segment and then
jitters every free node slightly.
"""
from __future__ import annotations
import math
from typing import Sequence

import numpy as np

from ..constants import POSE_JITTER, RANDOM_TURN_FRACTION
from ..types import PoseKind, Vec2

# Running angle of the randomized walk starts pointing straight down.
_DOWN_ANGLE = -math.pi / 2.0


def pose_direction(kind: PoseKind) -> Vec2 | None:
    """Fixed layout direction for a straight pose; None for RANDOMIZED."""
    match kind:
        case PoseKind.DOWN:
            return Vec2(0.0, -1.0)
        case PoseKind.UP:
            return Vec2(0.0, 1.0)
        case PoseKind.LEFT:
            return Vec2(-1.0, 0.0)
        case PoseKind.RIGHT:
            return Vec2(1.0, 0.0)
        case PoseKind.RANDOMIZED:
            return None
    raise ValueError(f"Unknown pose kind: {kind!r}")


def layout_pose(
    kind: PoseKind,
    lengths: Sequence[float],
    rng: np.random.Generator | None = None,
    rotation: float = 0.0,
) -> list[Vec2]:
    """
    Compute node positions for a pose.

    Args:
        kind: Which layout to build.
        lengths: Segment rest lengths (N values -> N+1 positions).
        rng: Random source for RANDOMIZED. Only RANDOMIZED draws from it.
        rotation: Extra counterclockwise rotation (radians) of the whole
                  layout about the anchor.

    Returns:
        Positions in the chain's local frame; positions[0] is the origin.
    """
    direction = pose_direction(kind)
    if direction is None and rng is None:
        rng = np.random.default_rng()

    positions = [Vec2.ZERO]
    angle = _DOWN_ANGLE
    for length in lengths:
        if direction is None:
            angle += RANDOM_TURN_FRACTION * float(rng.uniform(-math.pi, math.pi))
            step = Vec2.from_angle(angle)
        else:
            step = direction
        positions.append(positions[-1] + step * float(length))

    if direction is None:
        # Anchor stays exactly at the origin
        for i in range(1, len(positions)):
            jx, jy = rng.uniform(-POSE_JITTER, POSE_JITTER, size=2)
            positions[i] = positions[i] + Vec2(float(jx), float(jy))

    if rotation != 0.0:
        positions = [p.rotated(rotation) for p in positions]
    return positions
