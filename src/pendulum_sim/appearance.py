# MIT License (see LICENSE)
"""
Renderer-owned presentation settings attached to a chain.

The solver never reads anything in this module. The settings travel with
the chain so that a renderer and a configuration layer can share them,
but physics code has no dependency on them.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .util import clamp

MIN_NODE_SIZE: float = 0.2
MAX_NODE_SIZE: float = 2.5

RGB = tuple[int, int, int]

# Default rod colour (warm amber).
ROD_RGB: RGB = (255, 200, 80)


class ParticleStyle(Enum):
    WEIGHTED = "weighted"
    SPARK = "spark"
    BUBBLE = "bubble"
    BUBBLE_COLUMN_UP = "bubble_column_up"
    BUBBLE_POP = "bubble_pop"


class TipTrailStyle(Enum):
    END_ROD = "end_rod"
    FALLING = "falling"
    CHERRY = "cherry"


def _rgb(value) -> RGB | None:
    if value is None:
        return None
    r, g, b = (int(clamp(c, 0, 255)) for c in value)
    return (r, g, b)


@dataclass
class Appearance:
    """
    Presentation settings for one chain.

    Attributes:
        particle_style: How rods and nodes are drawn.
        tip_trail: Trail effect left by the terminal node.
        trace_tip: Whether the tip trail is drawn at all.
        show_nodes: Whether nodes are drawn in addition to rods.
        node_size: Base node size, clamped to [0.2, 2.5].
        rod_color: Optional RGB override for rods.
        node_color: Optional RGB override for nodes (disables mass blend).
    """
    particle_style: ParticleStyle = ParticleStyle.WEIGHTED
    tip_trail: TipTrailStyle = TipTrailStyle.END_ROD
    trace_tip: bool = False
    show_nodes: bool = True
    node_size: float = 1.0
    rod_color: RGB | None = field(default=None)
    node_color: RGB | None = field(default=None)

    def __post_init__(self) -> None:
        self.node_size = clamp(self.node_size, MIN_NODE_SIZE, MAX_NODE_SIZE)
        self.rod_color = _rgb(self.rod_color)
        self.node_color = _rgb(self.node_color)

    def set_node_size(self, size: float) -> None:
        self.node_size = clamp(size, MIN_NODE_SIZE, MAX_NODE_SIZE)

    def rod_rgb(self) -> RGB:
        return self.rod_color if self.rod_color is not None else ROD_RGB

    def node_rgb(self, mass: float) -> RGB:
        """
        Node colour; heavier nodes shift from blue toward red.

        intensity = min(255, 60 + 8m)
        colour    = (intensity, 70, 255 - min(200, intensity))
        """
        if self.node_color is not None:
            return self.node_color
        intensity = int(min(255.0, 60.0 + max(0.0, mass) * 8.0))
        return (intensity, 70, 255 - min(200, intensity))

    def node_scale(self, mass: float) -> float:
        """Drawn node size: grows with mass, capped at 1.4x the base size."""
        return self.node_size * min(1.4, 0.3 + max(0.0, mass) * 0.05)
