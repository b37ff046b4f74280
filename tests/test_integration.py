"""
Integration tests for the AEB CCR simulation.

Run with: pytest tests/test_integration.py -v
Or: python tests/test_integration.py
"""

import sys
import tempfile
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd

from aebsim.scenarios.randomization import ParameterRandomizer
from aebsim.sim.config import SimConfig
from aebsim.sim.engine import SimulationEngine
from aebsim.sim.runner import FixedStepRunner, run_scenario
from aebsim.utils.telemetry import TelemetryRecorder
from aebsim.utils.visualization import plot_run


def test_runner_accumulates_time():
    """Test that partial frames are carried over to the next advance."""
    print("\n" + "="*60)
    print("TEST: Runner Accumulator")
    print("="*60)

    engine = SimulationEngine(SimConfig(kind="Custom"))
    runner = FixedStepRunner(engine)

    assert runner.advance(0.03) == [], "No tick should run before dt has elapsed"
    assert len(runner.advance(0.03)) == 1, "Carried time should complete one tick"
    assert abs(runner.accumulator - 0.01) < 1e-9, f"Remainder incorrect: {runner.accumulator}"
    assert len(runner.advance(0.21)) == 4
    assert runner.ticks == 5

    print(f"✓ Ticks run: {runner.ticks}")
    print(f"✓ Carried remainder: {runner.accumulator:.3f} s")

    try:
        runner.advance(-0.1)
        raise AssertionError("Negative elapsed time should be rejected")
    except ValueError:
        print("✓ Negative elapsed time rejected")


def test_frame_jitter_does_not_change_outcome():
    """Test that the same tick count gives the same state regardless of frame sizes."""
    print("\n" + "="*60)
    print("TEST: Frame Jitter Independence")
    print("="*60)

    config = SimConfig(kind="CCRb", vehicle_count=3)

    reference = SimulationEngine(config, seed=5)
    for _ in range(60):
        reference.step()

    jittered = SimulationEngine(config, seed=5)
    runner = FixedStepRunner(jittered)
    rng = np.random.default_rng(0)
    frames = 0
    while runner.ticks < 60:
        # Frames shorter than dt run at most one tick each
        runner.advance(float(rng.uniform(0.005, 0.049)))
        frames += 1

    print(f"✓ {frames} jittered frames")
    assert runner.ticks == 60, f"Expected 60 ticks, got {runner.ticks}"
    ref_v = [v.velocity for v in reference.state.vehicles]
    jit_v = [v.velocity for v in jittered.state.vehicles]
    assert np.allclose(ref_v, jit_v), f"Velocities differ: {ref_v} vs {jit_v}"
    assert reference.state.impact_log == jittered.state.impact_log

    print(f"✓ Final speeds: {np.round(jit_v, 3)}")
    print("✓ Outcome independent of frame timing")


def test_runner_caps_backlog():
    """Test that a stalled host does not trigger a catch-up spiral."""
    print("\n" + "="*60)
    print("TEST: Runner Backlog Cap")
    print("="*60)

    engine = SimulationEngine(SimConfig(kind="Custom"))
    recorder = TelemetryRecorder()
    runner = FixedStepRunner(engine, recorder=recorder, max_ticks_per_advance=5)

    diagnostics = runner.advance(2.0)

    assert len(diagnostics) == 5, f"Expected 5 ticks, got {len(diagnostics)}"
    assert runner.accumulator == 0.0, "Backlog should be dropped"
    assert len(recorder) == 5, "Every tick should be recorded"

    runner.reset()
    assert runner.ticks == 0 and runner.accumulator == 0.0

    print("✓ Backlog dropped after 5 ticks")


def test_run_scenario():
    """Test a complete CCRb run with summary and telemetry."""
    print("\n" + "="*60)
    print("TEST: Complete Scenario Run")
    print("="*60)

    result = run_scenario(SimConfig(kind="CCRb", weather="raining"), seed=42)
    summary = result.summary()
    df = result.telemetry.to_dataframe()

    assert len(df) == 121, f"Expected initial row + 120 ticks, got {len(df)}"
    assert df['time'].is_monotonic_increasing
    assert (df['v_E'] >= 0).all(), "Ego speed went negative"
    assert summary['kind'] == "CCRb"
    assert summary['first_aeb_time'] is not None, "AEB should trigger behind a braking lead"
    assert summary['min_ttc'] is not None and summary['min_ttc'] < result.config.ttc_trigger_s
    assert summary['collided'] == bool(summary['num_impacts'])

    impacts = result.telemetry.impacts_dataframe()
    assert len(impacts) == summary['num_impacts']
    assert list(impacts.columns) == ['pair', 'time', 'relative_speed', 'restitution',
                                     'delta_v_rear', 'delta_v_front']

    print(f"✓ Gap: {summary['gap1']:.0f} m, lead decel: {summary['lead_decel_1']:.0f} m/s²")
    print(f"✓ AEB triggered at {summary['first_aeb_time']:.2f} s, min TTC {summary['min_ttc']:.2f} s")
    print(f"✓ Collided: {summary['collided']} ({summary['num_impacts']} impacts)")


def test_seeded_runs_reproducible():
    """Test that seeded runs produce identical telemetry."""
    print("\n" + "="*60)
    print("TEST: Seeded Reproducibility")
    print("="*60)

    config = SimConfig(kind="CCRs", vehicle_count=3)
    a = run_scenario(config, seed=7).telemetry.to_dataframe()
    b = run_scenario(config, seed=7).telemetry.to_dataframe()

    pd.testing.assert_frame_equal(a, b)
    print(f"✓ {len(a)} identical telemetry rows")


def test_randomized_batch():
    """Test a small batch of randomized Custom runs."""
    print("\n" + "="*60)
    print("TEST: Randomized Batch")
    print("="*60)

    randomizer = ParameterRandomizer(seed=3)
    summaries = []
    for i in range(5):
        config = randomizer.randomize(SimConfig())
        summaries.append(run_scenario(config, seed=i, duration_s=3.0).summary())

    df = pd.DataFrame(summaries)
    assert len(df) == 5
    assert (df['kind'] == "Custom").all()
    assert df['ego_speed_kmh'].between(20.0, 80.0).all()

    print(f"✓ Collision rate: {100.0 * df['collided'].mean():.0f}%")


def test_telemetry_export_and_plot():
    """Test CSV export and plotting of a run."""
    print("\n" + "="*60)
    print("TEST: Telemetry Export and Plot")
    print("="*60)

    config = SimConfig(kind="Custom", ego_speed=20.0, lead1_speed=0.0, gap1=20.0, ttc_trigger_s=0.3)
    result = run_scenario(config, duration_s=3.0)
    assert result.collided, "Late AEB should not avoid a stationary lead"

    with tempfile.TemporaryDirectory() as tmp:
        csv_path = Path(tmp) / "runs" / "telemetry.csv"
        result.telemetry.save_csv(str(csv_path))
        loaded = pd.read_csv(csv_path)
        assert len(loaded) == len(result.telemetry)
        assert {'time', 'v_E', 'v_L1', 'gap_E_L1', 'ttc', 'aeb_active'} <= set(loaded.columns)

        png_path = Path(tmp) / "run.png"
        fig = plot_run(
            loaded,
            impacts=result.telemetry.impacts_dataframe(),
            ttc_threshold=config.ttc_trigger_s,
            output_path=str(png_path),
        )
        assert fig is not None
        assert png_path.exists() and png_path.stat().st_size > 0

    print("✓ Telemetry CSV written and reloaded")
    print("✓ Plot saved")


def run_all_tests():
    """Run all integration tests."""
    print("\n" + "="*70)
    print("AEB CCR SIM - INTEGRATION TESTS")
    print("="*70)

    tests = [
        test_runner_accumulates_time,
        test_frame_jitter_does_not_change_outcome,
        test_runner_caps_backlog,
        test_run_scenario,
        test_seeded_runs_reproducible,
        test_randomized_batch,
        test_telemetry_export_and_plot,
    ]

    passed = 0
    failed = 0

    for test_func in tests:
        try:
            test_func()
            passed += 1
        except Exception as e:
            print(f"\n✗ TEST FAILED: {test_func.__name__}")
            print(f"  Error: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print("\n" + "="*70)
    print(f"TEST RESULTS: {passed} passed, {failed} failed")
    print("="*70 + "\n")

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
