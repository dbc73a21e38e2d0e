"""
Microbenchmark: time per registry sweep vs number of chains.
Run:
  python benchmarks/bench_steps.py
"""
import time
import numpy as np
from pendulum_sim import Anchor, ChainRegistry, PoseKind
from pendulum_sim.profiler import Profiler
from pendulum_sim.renderer import NullRenderer

def run(n: int, segments: int = 4, ticks: int = 100):
    prof = Profiler()
    registry = ChainRegistry(renderer=NullRenderer(), profiler=prof)

    rng = np.random.default_rng(12345)  # determinism
    for k in range(n):
        cid = registry.create(Anchor("world", 4.0 * k, 64.0, 0.0))
        with registry.editing(cid) as chain:
            chain.reconfigure(segments)
            chain.reset_pose(PoseKind.RANDOMIZED, rng)
        registry.set_active(cid, True)

    # warmup
    for _ in range(5):
        registry.tick_all()
    prof.stats.reset()

    t0 = time.perf_counter()
    for _ in range(ticks):
        registry.tick_all()
    t1 = time.perf_counter()

    per_tick = (t1 - t0) / ticks
    registry.close()
    return per_tick, prof.stats.summary()

if __name__ == "__main__":
    for n in [1, 10, 24, 50, 100]:
        per_tick, summary = run(n)
        print(f"N={n:4d}  sweep={1e3*per_tick:8.3f} ms  budget used={100*per_tick/0.05:6.1f}%")
        for k in ["advance", "render"]:
            if k in summary:
                print(" ", k, summary[k])
        print()
