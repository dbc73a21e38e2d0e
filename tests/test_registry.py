import io

import numpy as np
import pytest

from pendulum_sim.errors import ChainNotFoundError
from pendulum_sim.profiler import Profiler
from pendulum_sim.registry import ChainRegistry
from pendulum_sim.renderer import BufferedRenderer, DebugRenderer, RendererAdapter
from pendulum_sim.scheduling import LoadedRegions, ManualScheduler
from pendulum_sim.types import Anchor, PoseKind


class CountingRenderer(RendererAdapter):
    """Counts draws per chain and remembers releases."""

    def __init__(self):
        self.draws: dict[int, int] = {}
        self.released: list[int] = []

    def draw_chain(self, chain_id, chain):
        self.draws[chain_id] = self.draws.get(chain_id, 0) + 1

    def release(self, chain_id):
        self.released.append(chain_id)


def swinging(registry, anchor=None, segments=2):
    cid = registry.create(anchor)
    with registry.editing(cid) as chain:
        chain.reconfigure(segments)
        chain.reset_pose(PoseKind.RIGHT)
    assert registry.set_active(cid, True)
    return cid


def test_ids_start_at_one_and_are_never_reused():
    registry = ChainRegistry()
    a = registry.create(Anchor())
    b = registry.create(Anchor())
    assert (a, b) == (1, 2)
    registry.remove(b)
    c = registry.create(Anchor())
    assert c == 3
    registry.remove(a)
    registry.remove(c)
    assert registry.create(Anchor()) == 4
    assert len(registry) == 1


def test_created_chain_is_default_and_idle():
    registry = ChainRegistry()
    cid = registry.create(Anchor("w", 1.0, 2.0, 3.0))
    chain = registry.get(cid)
    assert chain is not None
    assert chain.configured()
    assert chain.segment_count == 1
    assert not chain.active
    assert chain.anchor == Anchor("w", 1.0, 2.0, 3.0)


def test_remove_then_get_reports_not_found():
    registry = ChainRegistry()
    keep = swinging(registry)
    gone = swinging(registry)
    assert registry.remove(gone)

    assert registry.get(gone) is None
    assert gone not in registry
    with pytest.raises(ChainNotFoundError):
        registry.require(gone)
    with pytest.raises(KeyError):
        with registry.editing(gone):
            pass

    assert registry.tick_all() == [keep]
    assert not registry.remove(gone)


def test_tick_all_advances_active_chains_only():
    registry = ChainRegistry()
    moving = swinging(registry)
    idle = registry.create(Anchor())
    idle_before = registry.get(idle).positions()
    moving_before = registry.get(moving).positions()

    ticked = registry.tick_all(0.05)
    assert ticked == [moving, idle]
    assert np.array_equal(registry.get(idle).positions(), idle_before)
    assert not np.array_equal(registry.get(moving).positions(), moving_before)


def test_readiness_is_checked_every_tick():
    loaded = LoadedRegions(region_size=16)
    near = Anchor("w", 4.0, 64.0, 4.0)
    far = Anchor("w", 400.0, 64.0, 400.0)
    loaded.load_anchor(near)

    registry = ChainRegistry(ready=loaded)
    a = swinging(registry, near)
    b = swinging(registry, far)
    b_before = registry.get(b).positions()

    assert registry.tick_all() == [a]
    assert np.array_equal(registry.get(b).positions(), b_before)

    loaded.load_anchor(far)
    assert registry.tick_all() == [a, b]

    loaded.unload(near.region(16))
    assert registry.tick_all() == [b]

    # An explicit predicate overrides the default one for that call
    assert registry.tick_all(ready=lambda anchor: False) == []


def test_renderer_draws_and_releases():
    renderer = CountingRenderer()
    registry = ChainRegistry(renderer=renderer)
    a = swinging(registry)
    b = swinging(registry)
    registry.tick_all()
    registry.tick_all()
    assert renderer.draws == {a: 2, b: 2}

    registry.remove(a)
    assert renderer.released == [a]
    registry.tick_all()
    assert renderer.draws == {a: 2, b: 3}


def test_buffered_renderer_records_world_frames():
    renderer = BufferedRenderer()
    registry = ChainRegistry(renderer=renderer)
    cid = swinging(registry, Anchor("w", 10.0, 60.0, 0.0), segments=3)
    with registry.editing(cid) as chain:
        chain.appearance.trace_tip = True
    for _ in range(5):
        registry.tick_all()

    frames = renderer.frames[cid]
    assert len(frames) == 5
    assert len(frames[0]["positions"]) == 4
    assert frames[0]["positions"][0] == [10.0, 60.0]
    assert len(frames[0]["node_rgb"]) == 4
    assert len(renderer.trails[cid]) == 5

    registry.remove(cid)
    assert cid not in renderer.frames
    assert cid not in renderer.trails


def test_debug_renderer_output():
    out = io.StringIO()
    registry = ChainRegistry(renderer=DebugRenderer(out, verbose=False))
    cid = swinging(registry)
    registry.tick_all()
    text = out.getvalue()
    assert "=== Frame 0 ===" in text
    assert f"[{cid}] 2 links active" in text


def test_per_chain_scheduling_and_cancellation():
    scheduler = ManualScheduler()
    renderer = CountingRenderer()
    registry = ChainRegistry(scheduler=scheduler, renderer=renderer, tick_seconds=0.05)
    a = swinging(registry)
    b = swinging(registry)
    assert len(scheduler.tasks) == 2
    assert scheduler.tasks[0].period == 0.05

    scheduler.tick(3)
    assert renderer.draws == {a: 3, b: 3}

    registry.remove(a)
    assert len(scheduler.tasks) == 1
    scheduler.tick(2)
    assert renderer.draws == {a: 3, b: 5}


def test_scheduled_tick_respects_readiness():
    scheduler = ManualScheduler()
    loaded = LoadedRegions()
    renderer = CountingRenderer()
    registry = ChainRegistry(scheduler=scheduler, renderer=renderer, ready=loaded)
    anchor = Anchor("w", 0.0, 64.0, 0.0)
    cid = swinging(registry, anchor)

    scheduler.tick()
    assert renderer.draws == {}
    loaded.load_anchor(anchor)
    scheduler.tick()
    assert renderer.draws == {cid: 1}


def test_remove_from_inside_a_scheduled_tick():
    """A renderer that removes its chain mid-sweep does not break the tick."""
    scheduler = ManualScheduler()
    registry = ChainRegistry(scheduler=scheduler)

    class Remover(RendererAdapter):
        def draw_chain(self, chain_id, chain):
            registry.remove(chain_id)

    registry.renderer = Remover()
    a = swinging(registry)
    b = swinging(registry)
    scheduler.tick()
    assert len(registry) == 0
    assert scheduler.tasks == []
    scheduler.tick()
    assert registry.get(a) is None and registry.get(b) is None


def test_failing_chain_is_skipped_not_fatal(caplog):
    class Exploding(RendererAdapter):
        def draw_chain(self, chain_id, chain):
            if chain_id == 1:
                raise RuntimeError("boom")
            self.last = chain_id

    renderer = Exploding()
    scheduler = ManualScheduler()
    registry = ChainRegistry(renderer=renderer, scheduler=scheduler)
    swinging(registry)
    second = swinging(registry)

    assert registry.tick_all() == [second]
    assert renderer.last == second
    assert "Tick failed for pendulum #1" in caplog.text

    scheduler.tick()
    assert "Scheduled tick failed for pendulum #1" in caplog.text


def test_set_active_refuses_missing_and_unconfigured():
    registry = ChainRegistry()
    cid = registry.create(Anchor())
    assert not registry.set_active(999, True)
    with registry.editing(cid) as chain:
        chain.nodes.clear()
    assert not registry.set_active(cid, True)
    assert registry.set_active(cid, False)


def test_configure_pair_missing_id_is_noop():
    registry = ChainRegistry()
    a = registry.create(Anchor())
    before = registry.get(a).positions()
    assert not registry.configure_pair(a, 42)
    assert not registry.configure_pair(42, a)
    assert not registry.configure_pair(a, a)
    assert registry.get(a).segment_count == 1
    assert np.array_equal(registry.get(a).positions(), before)


def test_configure_pair_matches_structure():
    registry = ChainRegistry()
    a = registry.create(Anchor())
    b = registry.create(Anchor())
    with registry.editing(a) as chain:
        chain.reconfigure(3)
        chain.set_segment_length(1, 1.5)
        chain.set_mass(2, 4.0)
        chain.gravity = 12.0
        chain.substeps = 20
    with registry.editing(b) as chain:
        chain.reconfigure(5)
        chain.set_mass(1, 20.0)

    assert registry.configure_pair(a, b, divergence_delta=1e-4)
    ca, cb = registry.get(a), registry.get(b)
    assert cb.segment_lengths() == ca.segment_lengths() == (1.0, 1.5, 1.0)
    assert cb.masses() == ca.masses()
    assert cb.gravity == 12.0 and cb.substeps == 20
    assert not ca.active and not cb.active

    tip_gap = np.linalg.norm(ca.positions()[-1] - cb.positions()[-1])
    assert 0 < tip_gap < 1e-3


def test_configure_pair_has_at_least_two_segments():
    registry = ChainRegistry()
    a = registry.create(Anchor())
    b = registry.create(Anchor())
    assert registry.configure_pair(a, b)
    assert registry.get(a).segment_count == 2
    assert registry.get(b).segment_count == 2


def test_capacity():
    registry = ChainRegistry(capacity=2)
    assert registry.has_capacity(2)
    registry.create(Anchor())
    assert registry.has_capacity()
    assert not registry.has_capacity(2)
    registry.create(Anchor())
    assert not registry.has_capacity()
    assert ChainRegistry().has_capacity(1000)


def test_close_removes_everything():
    scheduler = ManualScheduler()
    renderer = CountingRenderer()
    with ChainRegistry(scheduler=scheduler, renderer=renderer) as registry:
        ids = [registry.create(Anchor()) for _ in range(3)]
    assert len(registry) == 0
    assert scheduler.tasks == []
    assert renderer.released == ids


def test_profiler_times_phases():
    prof = Profiler()
    registry = ChainRegistry(renderer=CountingRenderer(), profiler=prof)
    swinging(registry)
    swinging(registry)
    registry.tick_all()
    summary = prof.stats.summary()
    assert summary["advance"]["n"] == 2
    assert summary["render"]["n"] == 2
    assert summary["advance"]["max_ms"] >= summary["advance"]["mean_ms"] >= 0.0


def test_tick_seconds_from_environment(monkeypatch):
    monkeypatch.setenv("PENDULUM_SIM_TICK_SECONDS", "0.1")
    assert ChainRegistry().tick_seconds == 0.1
    monkeypatch.setenv("PENDULUM_SIM_TICK_SECONDS", "fast")
    assert ChainRegistry().tick_seconds == 0.05
    monkeypatch.setenv("PENDULUM_SIM_TICK_SECONDS", "-1")
    assert ChainRegistry().tick_seconds == 0.05
    assert ChainRegistry(tick_seconds=0.02).tick_seconds == 0.02
