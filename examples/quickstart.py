"""
Quickstart Example - AEB CCR Sim

Demonstrates basic usage of the engine.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aebsim.sim.config import SimConfig
from aebsim.sim.engine import SimulationEngine
from aebsim.sim.runner import FixedStepRunner


def main():
    print("="*60)
    print("AEB CCR Sim - Quickstart Example")
    print("="*60 + "\n")

    # 1. Braking lead vehicle on a wet road
    config = SimConfig(kind="CCRb", weather="raining", surface="asphalt")
    engine = SimulationEngine(config, seed=7)
    print(f"Scenario: gap {engine.config.gap1:.0f} m, lead decel {engine.config.lead_decel_1:.1f} m/s²")
    print(f"Baseline friction mu0 = {engine.state.baseline.mu0:.3f}\n")

    # 2. Step manually
    ticks = int(round(engine.config.duration_s * engine.config.tick_rate_hz))
    was_active = False
    for _ in range(ticks):
        diag = engine.step()
        ego, lead = engine.state.vehicles[0], engine.state.vehicles[1]
        if diag.aeb_active and not was_active:
            print(f"  t={engine.state.time:.2f}s  AEB engaged, TTC = {diag.ttc:.2f}s")
        was_active = diag.aeb_active
        if engine.state.collided:
            break

    print(f"\nEgo speed: {ego.velocity * 3.6:.1f} km/h, lead speed: {lead.velocity * 3.6:.1f} km/h")
    for impact in engine.state.impact_log:
        print(f"  Impact {impact.pair} at t={impact.time:.2f}s, "
              f"{impact.relative_speed * 3.6:.1f} km/h, e={impact.restitution:.2f}")

    # 3. Drive from a host loop with uneven frame times
    engine.reset()
    runner = FixedStepRunner(engine)
    for frame_dt in [0.016, 0.034, 0.017, 0.05, 0.016] * 20:
        runner.advance(frame_dt)
    print(f"\nHost loop ran {runner.ticks} ticks "
          f"({engine.state.time:.2f}s simulated, {runner.accumulator * 1000:.1f} ms carried)")

    print("\n✓ Quickstart complete")


if __name__ == "__main__":
    main()
