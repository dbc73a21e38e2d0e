# MIT License (see LICENSE)
"""
Input/Output utilities for chain snapshots.

This subpackage provides:
    - JSON serialization: Save and load registries to/from JSON files.
    - Exact restore: a snapshot keeps current and previous positions, so
      a chain resumes mid-swing with the same implied velocity.

Typical usage:
    from pendulum_sim.io import save_registry, load_registry

    save_registry(registry, "pendulums.json")
    new_ids = load_registry("pendulums.json", other_registry)
"""
from .json_io import (
    load_registry,
    load_registry_raw,
    save_registry,
    registry_to_json,
    chain_to_json,
    chain_from_json,
)

__all__ = [
    # Loading
    "load_registry",
    "load_registry_raw",
    # Saving
    "save_registry",
    # Serialization
    "registry_to_json",
    "chain_to_json",
    "chain_from_json",
]
