# MIT License (see LICENSE)
"""
JSON snapshots of chains and registries.

A snapshot captures enough to rebuild a chain exactly, mid-swing
included: parameters, rest lengths, masses, current and previous node
positions, and appearance.

JSON Schema Overview:
---------------------
{
  "chains": [
    {
      "id": int,                     # Informational; ids are reassigned on load
      "anchor": {"world": str, "x": float, "y": float, "z": float},
      "scale": float,                # Default: 2.0
      "gravity": float,              # Default: 9.81
      "drag": float,                 # Default: 0.01
      "substeps": int,               # Default: 10
      "iterations": int,             # Default: 8
      "active": bool,                # Default: false
      "lengths": [float, ...],       # Required, N >= 1 values
      "masses": [float, ...],        # Required, N+1 values (masses[0] ignored)
      "positions": [[x, y], ...],    # Optional, N+1 points; DOWN pose if absent
      "prev_positions": [[x, y], ...],  # Optional; defaults to positions
      "appearance": {                # Optional
        "particle_style": str, "tip_trail": str, "trace_tip": bool,
        "show_nodes": bool, "node_size": float,
        "rod_color": [r, g, b] | null, "node_color": [r, g, b] | null
      }
    }
  ]
}

Out-of-range values are clamped on load exactly as the setters would;
structural problems (missing fields, mismatched list lengths) raise
ValueError.
"""
from __future__ import annotations
import json
import logging
import math
from typing import TYPE_CHECKING, Any

from ..appearance import Appearance, ParticleStyle, TipTrailStyle
from ..chain import PendulumChain
from ..types import Anchor, Vec2

if TYPE_CHECKING:
    from ..registry import ChainRegistry

logger = logging.getLogger(__name__)


def _points(raw: Any, count: int, field_name: str) -> list[Vec2]:
    if len(raw) != count:
        raise ValueError(f"'{field_name}' needs {count} points, got {len(raw)}")
    out = []
    for p in raw:
        x, y = float(p[0]), float(p[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"'{field_name}' contains a non-finite point: {p!r}")
        out.append(Vec2(x, y))
    return out


def appearance_to_json(look: Appearance) -> dict[str, Any]:
    return {
        "particle_style": look.particle_style.value,
        "tip_trail": look.tip_trail.value,
        "trace_tip": look.trace_tip,
        "show_nodes": look.show_nodes,
        "node_size": look.node_size,
        "rod_color": list(look.rod_color) if look.rod_color is not None else None,
        "node_color": list(look.node_color) if look.node_color is not None else None,
    }


def appearance_from_json(d: dict[str, Any]) -> Appearance:
    defaults = Appearance()
    try:
        particle_style = ParticleStyle(d.get("particle_style", defaults.particle_style.value))
        tip_trail = TipTrailStyle(d.get("tip_trail", defaults.tip_trail.value))
    except ValueError as exc:
        raise ValueError(f"Invalid appearance: {exc}") from exc
    return Appearance(
        particle_style=particle_style,
        tip_trail=tip_trail,
        trace_tip=bool(d.get("trace_tip", defaults.trace_tip)),
        show_nodes=bool(d.get("show_nodes", defaults.show_nodes)),
        node_size=float(d.get("node_size", defaults.node_size)),
        rod_color=d.get("rod_color"),
        node_color=d.get("node_color"),
    )


def chain_to_json(chain: PendulumChain, chain_id: int | None = None) -> dict[str, Any]:
    """Serialize one chain to a JSON-compatible dict."""
    a = chain.anchor
    result: dict[str, Any] = {}
    if chain_id is not None:
        result["id"] = chain_id
    result.update({
        "anchor": {"world": a.world, "x": a.x, "y": a.y, "z": a.z},
        "scale": chain.scale,
        "gravity": chain.gravity,
        "drag": chain.drag,
        "substeps": chain.substeps,
        "iterations": chain.iterations,
        "active": chain.active,
        "lengths": list(chain.segment_lengths()),
        "masses": list(chain.masses()),
        "positions": [[n.pos.x, n.pos.y] for n in chain.nodes],
        "prev_positions": [[n.prev_pos.x, n.prev_pos.y] for n in chain.nodes],
        "appearance": appearance_to_json(chain.appearance),
    })
    return result


def chain_from_json(d: dict[str, Any]) -> PendulumChain:
    """
    Build a chain from a snapshot dict.

    Raises:
        ValueError: If required fields are missing, of the wrong type or
            inconsistent.
    """
    if not isinstance(d, dict):
        raise ValueError(f"Chain definition must be an object, got {type(d).__name__}")
    try:
        return _parse_chain(d)
    except (TypeError, KeyError, IndexError, AttributeError) as exc:
        raise ValueError(f"Malformed chain definition: {exc}") from exc


def _parse_chain(d: dict[str, Any]) -> PendulumChain:
    if "lengths" not in d or "masses" not in d:
        raise ValueError("Chain definition requires 'lengths' and 'masses'.")
    lengths = [float(v) for v in d["lengths"]]
    masses = [float(v) for v in d["masses"]]
    if not lengths:
        raise ValueError("Chain definition needs at least one segment.")
    if len(masses) != len(lengths) + 1:
        raise ValueError(f"Expected {len(lengths) + 1} masses for {len(lengths)} segments, got {len(masses)}")

    anchor_data = d.get("anchor", {})
    anchor = Anchor(
        world=str(anchor_data.get("world", "world")),
        x=float(anchor_data.get("x", 0.0)),
        y=float(anchor_data.get("y", 0.0)),
        z=float(anchor_data.get("z", 0.0)),
    )
    chain = PendulumChain(anchor, segments=len(lengths),
                          appearance=appearance_from_json(d.get("appearance", {})))
    for i, length in enumerate(lengths):
        chain.set_segment_length(i, length)
    for i, mass in enumerate(masses):
        chain.set_mass(i, mass)

    if "scale" in d:
        chain.scale = float(d["scale"])
    if "gravity" in d:
        chain.gravity = float(d["gravity"])
    if "drag" in d:
        chain.drag = float(d["drag"])
    if "substeps" in d:
        chain.substeps = d["substeps"]
    if "iterations" in d:
        chain.iterations = d["iterations"]

    count = chain.node_count
    if "positions" in d:
        positions = _points(d["positions"], count, "positions")
        prev = _points(d.get("prev_positions", d["positions"]), count, "prev_positions")
        for i, node in enumerate(chain.nodes):
            # Anchor is pinned at the local origin whatever the file says
            if i == 0:
                node.place(Vec2.ZERO)
                continue
            node.pos = positions[i]
            node.prev_pos = prev[i]
    else:
        chain.reset_pose()

    chain.active = bool(d.get("active", False))
    return chain


def registry_to_json(registry: "ChainRegistry") -> dict[str, Any]:
    """Serialize every live chain of a registry."""
    chains = []
    for chain_id in registry.ids():
        try:
            with registry.editing(chain_id) as chain:
                chains.append(chain_to_json(chain, chain_id))
        except KeyError:
            # Removed between ids() and editing()
            continue
    return {"chains": chains}


def save_registry(registry: "ChainRegistry", path: str) -> None:
    """Write a registry snapshot to a JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(registry_to_json(registry), f, indent=2)
    logger.info("Saved %d pendulums to %s", len(registry), path)


def load_registry_raw(path: str) -> dict[str, Any]:
    """Read a snapshot file without building chains."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_registry(path: str, registry: "ChainRegistry") -> list[int]:
    """
    Add every chain in a snapshot file to registry.

    Chains get fresh ids from the registry (ids are never reused). All
    chains are parsed before any is added, so a bad file adds nothing.

    Returns:
        The new ids, in file order.

    Raises:
        FileNotFoundError: If the file cannot be found.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If a chain definition is malformed.
    """
    data = load_registry_raw(path)
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot must be an object, got {type(data).__name__}")
    chains = data.get("chains", [])
    if not isinstance(chains, list):
        raise ValueError("Snapshot 'chains' must be a list.")
    parsed = [chain_from_json(c) for c in chains]
    ids = []
    for loaded in parsed:
        chain_id = registry.create(loaded.anchor)
        with registry.editing(chain_id) as chain:
            _adopt(chain, loaded)
        ids.append(chain_id)
    logger.info("Loaded %d pendulums from %s", len(ids), path)
    return ids


def _adopt(target: PendulumChain, source: PendulumChain) -> None:
    """Copy all state of source into a registry-owned chain."""
    target.reconfigure(source.segment_count)
    target.copy_parameters_from(source)
    for i, length in enumerate(source.segment_lengths()):
        target.set_segment_length(i, length)
    for i, mass in enumerate(source.masses()):
        target.set_mass(i, mass)
    for dst, src in zip(target.nodes, source.nodes):
        dst.pos = src.pos
        dst.prev_pos = src.prev_pos
    target.appearance = source.appearance
    target.active = source.active
