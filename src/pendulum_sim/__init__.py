# MIT License (see LICENSE)
"""
pendulum_sim - Position-based simulation of multi-link pendulum chains.

Each chain is a row of point masses joined by fixed-length rods and
hung from a pinned anchor. Chains advance once per external tick using
position Verlet plus iterative distance-constraint relaxation. A registry
owns many independent chains and ticks them on a fixed schedule.

Main entry points:
    - ChainRegistry: Owns chains by id; creates, removes, ticks, pairs.
    - PendulumChain: One chain; its topology, parameters and solver.
    - Anchor, PoseKind, Vec2: Value types.
    - Appearance: Renderer settings attached to a chain.

Submodules:
    - constraints: Distance-constraint relaxation.
    - core: Integrators, poses and diagnostics.
    - scheduling: Scheduler protocol and reference schedulers.
    - renderer: Optional visualization adapters.
    - io: JSON snapshots.

Example:
    from pendulum_sim import ChainRegistry, Anchor

    registry = ChainRegistry()
    cid = registry.create(Anchor("world", 0.0, 64.0, 0.0))
    with registry.editing(cid) as chain:
        chain.reconfigure(3)
    registry.set_active(cid, True)
    registry.tick_all()
"""
from .chain import PendulumChain
from .registry import ChainRegistry
from .types import Anchor, Node, PoseKind, Vec2
from .appearance import Appearance, ParticleStyle, TipTrailStyle
from .errors import PendulumError, ChainIndexError, ChainNotFoundError

__all__ = [
    # Core simulation
    "ChainRegistry",
    "PendulumChain",
    # Value types
    "Anchor",
    "Node",
    "PoseKind",
    "Vec2",
    # Presentation
    "Appearance",
    "ParticleStyle",
    "TipTrailStyle",
    # Errors
    "PendulumError",
    "ChainIndexError",
    "ChainNotFoundError",
]
