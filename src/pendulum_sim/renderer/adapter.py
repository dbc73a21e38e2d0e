# MIT License (see LICENSE)
"""
Renderer adapters for chain visualization.

This module provides an abstract base class for rendering and a few
concrete implementations. The solver has no rendering dependency; the
registry calls draw_chain() after every advance and release() when a
chain is removed.

Node positions handed to a renderer are finite for every configured
chain, and unchanged when a tick was skipped.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TextIO
import sys

import numpy as np

if TYPE_CHECKING:
    from ..chain import PendulumChain


class RendererAdapter(ABC):
    """
    Abstract base class for renderer implementations.

    Subclasses integrate with a graphics backend (particles, matplotlib,
    a web frontend...). Only draw_chain is required.

    Usage:
        renderer.begin_frame()
        for cid, chain in ...:
            renderer.draw_chain(cid, chain)
        renderer.end_frame()
    """

    def begin_frame(self) -> None:
        """Called before a sweep over all chains."""

    @abstractmethod
    def draw_chain(self, chain_id: int, chain: "PendulumChain") -> None:
        """
        Draw the current state of one chain.

        Args:
            chain_id: Registry id of the chain.
            chain: The chain; read positions via world_positions().
        """
        ...

    def end_frame(self) -> None:
        """Called after a sweep over all chains."""

    def release(self, chain_id: int) -> None:
        """Free anything held for a removed chain (trails, spawned entities)."""


class DebugRenderer(RendererAdapter):
    """
    Console/text renderer for development and testing.

    Example output:
        [1] 3 links active tip=(4.12, 58.30) style=weighted
        [2] 2 links idle tip=(10.50, 60.00) style=spark
    """

    def __init__(self, output: TextIO | None = None, verbose: bool = True):
        """
        Args:
            output: Output stream (defaults to sys.stdout).
            verbose: If True, also print every node position.
        """
        self.output = output or sys.stdout
        self.verbose = verbose
        self.frame = 0

    def begin_frame(self) -> None:
        self.output.write(f"=== Frame {self.frame} ===\n")

    def draw_chain(self, chain_id: int, chain: "PendulumChain") -> None:
        if not chain.configured():
            self.output.write(f"[{chain_id}] unconfigured\n")
            return
        pts = chain.world_positions()
        state = "active" if chain.active else "idle"
        tip = pts[-1]
        line = (
            f"[{chain_id}] {chain.segment_count} links {state} "
            f"tip=({tip[0]:.2f}, {tip[1]:.2f}) style={chain.appearance.particle_style.value}"
        )
        if self.verbose:
            line += " nodes=" + " ".join(f"({x:.2f},{y:.2f})" for x, y in pts)
        self.output.write(line + "\n")

    def end_frame(self) -> None:
        self.output.write("\n")
        self.output.flush()
        self.frame += 1

    def release(self, chain_id: int) -> None:
        self.output.write(f"[{chain_id}] removed\n")


class NullRenderer(RendererAdapter):
    """No-op renderer, for performance testing without drawing overhead."""

    def draw_chain(self, chain_id: int, chain: "PendulumChain") -> None:
        pass


class BufferedRenderer(RendererAdapter):
    """
    Renderer that records frames per chain for later retrieval.

    Each frame stores world-space node positions, the tip, and the node
    colours derived from the chain's appearance. When trace_tip is on,
    tip positions also accumulate into a bounded trail.

    Example:
        renderer = BufferedRenderer()
        registry = ChainRegistry(renderer=renderer)
        ...
        for frame in renderer.frames[cid]:
            print(frame["tip"])
    """

    def __init__(self, max_trail: int = 200):
        self.frames: dict[int, list[dict]] = {}
        self.trails: dict[int, list[tuple[float, float]]] = {}
        self.max_trail = max_trail

    def draw_chain(self, chain_id: int, chain: "PendulumChain") -> None:
        if not chain.configured():
            return
        pts: np.ndarray = chain.world_positions()
        look = chain.appearance
        tip = (float(pts[-1, 0]), float(pts[-1, 1]))
        self.frames.setdefault(chain_id, []).append({
            "positions": pts.tolist(),
            "tip": tip,
            "active": chain.active,
            "rod_rgb": look.rod_rgb(),
            "node_rgb": [look.node_rgb(n.mass) for n in chain.nodes] if look.show_nodes else [],
            "node_size": [look.node_scale(n.mass) for n in chain.nodes] if look.show_nodes else [],
        })
        if look.trace_tip:
            trail = self.trails.setdefault(chain_id, [])
            trail.append(tip)
            del trail[:-self.max_trail]

    def release(self, chain_id: int) -> None:
        self.frames.pop(chain_id, None)
        self.trails.pop(chain_id, None)

    def clear(self) -> None:
        """Drop all buffered frames and trails."""
        self.frames.clear()
        self.trails.clear()
