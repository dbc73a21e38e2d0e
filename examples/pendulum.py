import logging

from pendulum_sim import Anchor, ChainRegistry, PoseKind
from pendulum_sim.core.invariants import max_segment_error
from pendulum_sim.renderer import DebugRenderer

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

registry = ChainRegistry(renderer=DebugRenderer(verbose=False))

cid = registry.create(Anchor("world", 0.0, 64.0, 0.0))
with registry.editing(cid) as chain:
    chain.reconfigure(3)
    chain.set_mass(3, 5.0)
    chain.reset_pose(PoseKind.RIGHT)
registry.set_active(cid, True)

for _ in range(40):
    registry.tick_all()

chain = registry.require(cid)
print("tip:", chain.tip(), "max rod error:", max_segment_error(chain))
registry.close()
