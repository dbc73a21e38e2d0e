# MIT License (see LICENSE)
"""
Boundary between the chain registry and whatever clock drives it.

The registry never starts its own clock. A host hands it a Scheduler;
the registry asks for one fixed-rate task per chain, so each chain has
at most one tick in flight, and cancels that task when the chain is
removed.

Provided here:
    - Scheduler / TaskHandle: the protocols a host substrate implements.
    - ManualScheduler: runs every live task once per tick() call. Fully
      deterministic; used by tests and single-threaded sweep hosts.
    - ThreadedScheduler: one daemon thread per task, for headless hosts.
    - LoadedRegions: a readiness predicate over a set of region keys.
"""
from __future__ import annotations
import logging
import threading
import time
from typing import Callable, Iterable, Protocol

from .constants import REGION_SIZE
from .types import Anchor

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TaskHandle(Protocol):
    """A standing fixed-rate task that can be stopped."""

    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Substrate that runs a callback at a fixed rate near an anchor."""

    def run_at_fixed_rate(
        self,
        anchor: Anchor,
        callback: TickCallback,
        period: float,
    ) -> TaskHandle: ...


# =============================================================================
# Manual scheduler
# =============================================================================

class ManualTask:
    """Task registered with a ManualScheduler."""

    def __init__(self, anchor: Anchor, callback: TickCallback, period: float) -> None:
        self.anchor = anchor
        self.callback = callback
        self.period = period
        self.runs = 0
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ManualScheduler:
    """
    Scheduler driven explicitly by the host.

    Each call to tick() runs every live task exactly once, in creation
    order. Cancelled tasks are dropped and never run again, including a
    task cancelled by an earlier callback within the same tick.

    Example:
        scheduler = ManualScheduler()
        registry = ChainRegistry(scheduler=scheduler)
        cid = registry.create(Anchor())
        scheduler.tick(20)  # one simulated second at 20 Hz
    """

    def __init__(self) -> None:
        self._tasks: list[ManualTask] = []
        self.ticks = 0

    @property
    def tasks(self) -> list[ManualTask]:
        """Live (not cancelled) tasks."""
        return [t for t in self._tasks if not t.cancelled]

    def run_at_fixed_rate(self, anchor: Anchor, callback: TickCallback, period: float) -> ManualTask:
        task = ManualTask(anchor, callback, period)
        self._tasks.append(task)
        return task

    def tick(self, count: int = 1) -> None:
        """Run every live task count times."""
        for _ in range(count):
            for task in list(self._tasks):
                if task.cancelled:
                    continue
                task.callback()
                task.runs += 1
            self._tasks = [t for t in self._tasks if not t.cancelled]
            self.ticks += 1


# =============================================================================
# Threaded scheduler
# =============================================================================

class ThreadedTask:
    """
    A fixed-rate task running on its own daemon thread.

    Runs are scheduled against a monotonic deadline, so the rate does not
    drift by the callback's run time. A task that falls more than one
    period behind drops the missed runs instead of bursting to catch up.
    """

    def __init__(
        self,
        name: str,
        callback: TickCallback,
        period: float,
        on_cancel: Callable[["ThreadedTask"], None] | None = None,
    ) -> None:
        self.callback = callback
        self.period = period
        self.runs = 0
        self._on_cancel = on_cancel
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Stop after the current callback (if any) returns. Does not block."""
        if self._stop.is_set():
            return
        self._stop.set()
        if self._on_cancel is not None:
            self._on_cancel(self)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        deadline = time.monotonic() + self.period
        while not self._stop.wait(max(0.0, deadline - time.monotonic())):
            try:
                self.callback()
            except Exception:
                logger.exception("Scheduled task %s failed", self._thread.name)
            self.runs += 1
            deadline += self.period
            now = time.monotonic()
            if deadline < now - self.period:
                deadline = now


class ThreadedScheduler:
    """
    Scheduler that gives each task its own daemon thread.

    Tasks for different chains run in parallel. A single task never
    overlaps with itself because its thread runs callbacks one at a time.
    A cancelled task is forgotten immediately; its thread exits on its own.
    """

    def __init__(self) -> None:
        self._tasks: list[ThreadedTask] = []
        self._lock = threading.Lock()
        self._counter = 0

    @property
    def tasks(self) -> list[ThreadedTask]:
        """Live (not cancelled) tasks."""
        with self._lock:
            return list(self._tasks)

    def run_at_fixed_rate(self, anchor: Anchor, callback: TickCallback, period: float) -> ThreadedTask:
        with self._lock:
            self._counter += 1
            name = f"pendulum-tick-{self._counter}@{anchor.world}"
            task = ThreadedTask(name, callback, period, on_cancel=self._discard)
            self._tasks.append(task)
        task.start()
        return task

    def shutdown(self, timeout: float | None = 1.0) -> None:
        """Cancel every task and wait for their threads to finish."""
        with self._lock:
            tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            task.join(timeout)

    def _discard(self, task: ThreadedTask) -> None:
        with self._lock:
            self._tasks = [t for t in self._tasks if t is not task]


# =============================================================================
# Readiness
# =============================================================================

class LoadedRegions:
    """
    Readiness predicate: an anchor is ready when its region is loaded.

    Example:
        ready = LoadedRegions(region_size=16)
        ready.load(Anchor("world", 5, 64, 5).region(16))
        registry.tick_all(ready=ready)
    """

    def __init__(self, regions: Iterable[tuple[str, int, int]] = (), region_size: int = REGION_SIZE) -> None:
        self.region_size = region_size
        self._regions: set[tuple[str, int, int]] = set(regions)
        self._lock = threading.Lock()

    def load(self, region: tuple[str, int, int]) -> None:
        with self._lock:
            self._regions.add(region)

    def unload(self, region: tuple[str, int, int]) -> None:
        with self._lock:
            self._regions.discard(region)

    def load_anchor(self, anchor: Anchor) -> None:
        self.load(anchor.region(self.region_size))

    def __call__(self, anchor: Anchor) -> bool:
        with self._lock:
            return anchor.region(self.region_size) in self._regions


def always_ready(anchor: Anchor) -> bool:
    """Readiness predicate that accepts every anchor."""
    return True
