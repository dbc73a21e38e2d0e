# MIT License (see LICENSE)
"""
Lightweight timing of tick phases.

The registry wraps each chain's advance and render calls in named
sections when a Profiler is attached, so hosts can see how tick cost
splits between the solver and the renderer.

Example:
    profiler = Profiler()
    registry = ChainRegistry(profiler=profiler)
    ...
    registry.tick_all()
    print(profiler.stats.summary()["advance"]["mean_ms"])
"""
from __future__ import annotations
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class ProfileStats:
    """
    Timing samples per section name.

    Sections may be recorded from several tick threads at once, so adds
    are serialized.
    """
    samples: dict[str, list[float]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, name: str, dt: float) -> None:
        """Record one sample (seconds) for a section."""
        with self._lock:
            self.samples.setdefault(name, []).append(dt)

    def reset(self) -> None:
        with self._lock:
            self.samples.clear()

    def summary(self) -> dict[str, dict[str, float]]:
        """
        Count, mean and max (in ms) per section.

        Returns:
            {name: {"n": count, "mean_ms": ..., "max_ms": ...}}
        """
        with self._lock:
            snapshot = {k: list(v) for k, v in self.samples.items()}
        out = {}
        for name, times in snapshot.items():
            n = len(times)
            out[name] = {
                "n": n,
                "mean_ms": 1e3 * (sum(times) / n),
                "max_ms": 1e3 * max(times),
            }
        return out


class Profiler:
    """Context-manager based section timer."""

    def __init__(self) -> None:
        self.stats = ProfileStats()

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Time the enclosed block under `name`, even if it raises."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.stats.add(name, time.perf_counter() - t0)
