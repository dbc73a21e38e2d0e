# MIT License (see LICENSE)
"""
The chain registry and its tick loop.

The ChainRegistry owns every live chain and manages:
- Identifier allocation: a counter starting at 1, never reused within a
  registry's lifetime, even after removal.
- Ticking, in one of two shapes:
    1. Sweep: the host calls tick_all(dt) from one clock.
    2. Per-chain: with a Scheduler attached, create() starts one
       fixed-rate task per chain, bound to the chain's anchor.
  Both shapes check readiness on every invocation, then advance the chain
  and hand it to the renderer.
- Exclusion: each chain has its own lock. Ticks and edits (editing(),
  set_active(), configure_pair()) for the same chain never interleave.
  Different chains share nothing, so there is no registry-wide lock
  around the solver.
- Teardown: remove() cancels the chain's task before dropping it, and
  releases renderer resources immediately.

Structure:
    - Host creates a ChainRegistry (optionally with scheduler/renderer).
    - create(anchor) returns an id.
    - Configure through editing(id) / set_active(id, True).
    - Drive with tick_all() or let the scheduler call tick_chain().
    - close() when done.
"""
from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator

from .chain import PendulumChain
from .constants import PAIR_DIVERGENCE, PAIR_MIN_SEGMENTS
from .errors import ChainNotFoundError
from .profiler import Profiler
from .renderer.adapter import RendererAdapter
from .scheduling import Scheduler, TaskHandle, always_ready
from .types import Anchor, PoseKind
from .util import tick_seconds as default_tick_seconds

logger = logging.getLogger(__name__)

ReadyPredicate = Callable[[Anchor], bool]


@dataclass
class _Entry:
    """Registry slot for one chain."""
    chain: PendulumChain
    lock: threading.RLock = field(default_factory=threading.RLock)
    task: TaskHandle | None = None
    removed: bool = False


class ChainRegistry:
    """
    Collection of independently simulated chains keyed by integer id.

    Args:
        scheduler: Optional substrate. When given, every created chain
                   gets its own fixed-rate task.
        renderer: Optional renderer notified after every advance and on
                  removal.
        ready: Default readiness predicate (default: always ready).
        tick_seconds: Tick period and default dt (default: 0.05 s, or
                      PENDULUM_SIM_TICK_SECONDS).
        capacity: Optional cap on live chains, checked by has_capacity().
        profiler: Optional Profiler timing the advance/render phases.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        renderer: RendererAdapter | None = None,
        ready: ReadyPredicate | None = None,
        tick_seconds: float | None = None,
        capacity: int | None = None,
        profiler: Profiler | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.renderer = renderer
        self.ready = ready if ready is not None else always_ready
        self.tick_seconds = float(tick_seconds) if tick_seconds is not None else default_tick_seconds()
        self.capacity = capacity
        self.profiler = profiler

        self._entries: dict[int, _Entry] = {}
        self._lock = threading.RLock()
        self._next_id = 1

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create(self, anchor: Anchor | None = None) -> int:
        """
        Create a 1-segment chain at anchor and start ticking it.

        Returns:
            The new chain id.
        """
        anchor = anchor if anchor is not None else Anchor()
        chain = PendulumChain(anchor)
        with self._lock:
            chain_id = self._next_id
            self._next_id += 1
            entry = _Entry(chain=chain)
            self._entries[chain_id] = entry
            if self.scheduler is not None:
                entry.task = self.scheduler.run_at_fixed_rate(
                    anchor,
                    lambda: self._scheduled_tick(chain_id),
                    self.tick_seconds,
                )
        logger.info("Created pendulum #%d at %s (%.1f, %.1f, %.1f)",
                    chain_id, anchor.world, anchor.x, anchor.y, anchor.z)
        return chain_id

    def remove(self, chain_id: int) -> bool:
        """
        Stop and drop a chain.

        The scheduled task is cancelled first; then, under the chain lock
        (so any in-flight tick finishes), the entry is dropped and the
        renderer releases whatever it holds for this id.

        Returns:
            False if no chain had that id.
        """
        with self._lock:
            entry = self._entries.get(chain_id)
            if entry is None:
                logger.warning("remove: no pendulum #%d", chain_id)
                return False
            if entry.task is not None:
                entry.task.cancel()
        with entry.lock:
            with self._lock:
                entry.removed = True
                self._entries.pop(chain_id, None)
            if self.renderer is not None:
                self.renderer.release(chain_id)
        logger.info("Removed pendulum #%d", chain_id)
        return True

    def close(self) -> None:
        """Remove every live chain."""
        for chain_id in self.ids():
            self.remove(chain_id)

    def __enter__(self) -> ChainRegistry:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, chain_id: int) -> PendulumChain | None:
        """The chain for chain_id, or None when absent."""
        with self._lock:
            entry = self._entries.get(chain_id)
        return entry.chain if entry is not None else None

    def require(self, chain_id: int) -> PendulumChain:
        """
        The chain for chain_id.

        Raises:
            ChainNotFoundError: If no live chain has that id.
        """
        chain = self.get(chain_id)
        if chain is None:
            raise ChainNotFoundError(chain_id)
        return chain

    def ids(self) -> list[int]:
        with self._lock:
            return sorted(self._entries)

    def chains(self) -> list[PendulumChain]:
        with self._lock:
            return [self._entries[i].chain for i in sorted(self._entries)]

    def __contains__(self, chain_id: object) -> bool:
        with self._lock:
            return chain_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def has_capacity(self, required: int = 1) -> bool:
        """True if `required` more chains fit under the capacity cap."""
        if self.capacity is None:
            return True
        return len(self) + required <= self.capacity

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    @contextmanager
    def editing(self, chain_id: int) -> Iterator[PendulumChain]:
        """
        Hold a chain's lock while the caller edits it.

        Usage:
            with registry.editing(cid) as chain:
                chain.reconfigure(3)
                chain.set_mass(3, 5.0)

        Raises:
            ChainNotFoundError: If no live chain has that id.
        """
        entry = self._entry(chain_id)
        with entry.lock:
            if entry.removed:
                raise ChainNotFoundError(chain_id)
            yield entry.chain

    def set_active(self, chain_id: int, active: bool) -> bool:
        """
        Start or freeze a chain.

        Returns:
            False if the id is absent, or activation was refused because
            the chain is not configured.
        """
        try:
            with self.editing(chain_id) as chain:
                if active and not chain.configured():
                    logger.warning("Pendulum #%d is not configured; not starting", chain_id)
                    return False
                chain.active = active
        except ChainNotFoundError:
            logger.warning("set_active: no pendulum #%d", chain_id)
            return False
        return True

    def configure_pair(
        self,
        id_a: int,
        id_b: int,
        divergence_delta: float = PAIR_DIVERGENCE,
        segments: int | None = None,
    ) -> bool:
        """
        Set up two chains as a sensitivity-to-initial-conditions probe.

        Both chains get chain A's physical parameters, segment lengths and
        masses (with `segments` segments, default A's count, at least 2).
        Both start balanced straight up; B is rotated by
        divergence_delta radians about its anchor. Both end inactive.

        Returns:
            False (and changes nothing) if either id is absent.
        """
        if id_a == id_b:
            logger.warning("configure_pair: pendulum #%d cannot pair with itself", id_a)
            return False
        with self._lock:
            entry_a = self._entries.get(id_a)
            entry_b = self._entries.get(id_b)
        if entry_a is None or entry_b is None:
            logger.warning("configure_pair: missing pendulum #%d or #%d", id_a, id_b)
            return False

        # Lock in id order so two concurrent pairings cannot deadlock
        first, second = (entry_a, entry_b) if id_a < id_b else (entry_b, entry_a)
        with first.lock, second.lock:
            if entry_a.removed or entry_b.removed:
                return False
            a, b = entry_a.chain, entry_b.chain
            count = max(PAIR_MIN_SEGMENTS, segments if segments is not None else a.segment_count)
            a.reconfigure(count)
            b.reconfigure(count)
            b.copy_parameters_from(a)
            for i, length in enumerate(a.segment_lengths()):
                b.set_segment_length(i, length)
            for i, mass in enumerate(a.masses()):
                b.set_mass(i, mass)
            a.reset_pose(PoseKind.UP)
            b.reset_pose(PoseKind.UP, rotation=divergence_delta)
        logger.info("Paired pendulums #%d and #%d (%d segments, delta=%g rad)",
                    id_a, id_b, count, divergence_delta)
        return True

    # -------------------------------------------------------------------------
    # Ticking
    # -------------------------------------------------------------------------

    def tick_chain(
        self,
        chain_id: int,
        dt: float | None = None,
        ready: ReadyPredicate | None = None,
    ) -> bool:
        """
        Advance and render one chain if it exists and its anchor is ready.

        Returns:
            True if the chain was ticked, False if it was absent, removed
            mid-call or not ready.
        """
        with self._lock:
            entry = self._entries.get(chain_id)
        if entry is None:
            return False
        ready = ready if ready is not None else self.ready
        if not ready(entry.chain.anchor):
            return False
        dt = self.tick_seconds if dt is None else dt

        with entry.lock:
            if entry.removed:
                return False
            self._advance_and_render(chain_id, entry.chain, dt)
        return True

    def tick_all(self, dt: float | None = None, ready: ReadyPredicate | None = None) -> list[int]:
        """
        Sweep every live chain once.

        A chain whose tick raises is logged and skipped; the sweep goes on.

        Returns:
            Ids of the chains that were ticked.
        """
        ticked = []
        if self.renderer is not None:
            self.renderer.begin_frame()
        for chain_id in self.ids():
            try:
                if self.tick_chain(chain_id, dt, ready):
                    ticked.append(chain_id)
            except Exception:
                logger.exception("Tick failed for pendulum #%d; skipped this tick", chain_id)
        if self.renderer is not None:
            self.renderer.end_frame()
        return ticked

    def _scheduled_tick(self, chain_id: int) -> None:
        """Body of a per-chain scheduled task."""
        try:
            self.tick_chain(chain_id)
        except Exception:
            logger.exception("Scheduled tick failed for pendulum #%d; skipped this tick", chain_id)

    def _advance_and_render(self, chain_id: int, chain: PendulumChain, dt: float) -> None:
        prof = self.profiler
        if prof:
            with prof.section("advance"):
                chain.advance(dt)
        else:
            chain.advance(dt)

        if self.renderer is None:
            return
        if prof:
            with prof.section("render"):
                self.renderer.draw_chain(chain_id, chain)
        else:
            self.renderer.draw_chain(chain_id, chain)

    def _entry(self, chain_id: int) -> _Entry:
        with self._lock:
            entry = self._entries.get(chain_id)
        if entry is None:
            raise ChainNotFoundError(chain_id)
        return entry
