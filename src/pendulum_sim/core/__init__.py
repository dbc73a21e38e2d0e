# MIT License (see LICENSE)
"""
Core time-stepping and diagnostics for chains.

This subpackage provides:
    - integrators: position Verlet step and drag.
    - poses: named initial layouts.
    - invariants: rod-length error, finiteness and energy diagnostics.
"""
from .integrators import verlet_step, apply_drag
from .poses import layout_pose, pose_direction
from .invariants import (
    segment_errors,
    max_segment_error,
    all_finite,
    kinetic_energy,
    potential_energy,
)

__all__ = [
    "verlet_step",
    "apply_drag",
    "layout_pose",
    "pose_direction",
    "segment_errors",
    "max_segment_error",
    "all_finite",
    "kinetic_energy",
    "potential_energy",
]
