# MIT License (see LICENSE)
"""
Rendering adapters for chain visualization.

This subpackage provides abstract and concrete renderer implementations:
    - RendererAdapter: Abstract base class defining the rendering interface.
    - DebugRenderer: Text/console output for debugging.
    - NullRenderer: No-op renderer for performance testing.
    - BufferedRenderer: Records per-chain frames for playback or export.

The solver has no rendering dependency; these adapters are optional.

Typical usage:
    from pendulum_sim.renderer import DebugRenderer

    registry = ChainRegistry(renderer=DebugRenderer())
    registry.tick_all()
"""
from .adapter import (
    RendererAdapter,
    DebugRenderer,
    NullRenderer,
    BufferedRenderer,
)

__all__ = [
    "RendererAdapter",
    "DebugRenderer",
    "NullRenderer",
    "BufferedRenderer",
]
