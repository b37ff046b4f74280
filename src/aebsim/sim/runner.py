"""
Fixed-timestep scheduling.

Decouples simulation ticks from a variable-rate host loop: real elapsed
time is accumulated and drained in whole ticks, with the remainder carried
to the next call. Simulated outcomes therefore depend on the tick count
only, not on frame-rate jitter.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from aebsim.sim.config import SimConfig
from aebsim.sim.engine import SimulationEngine, StepDiagnostics
from aebsim.sim.state import SimulationState
from aebsim.utils.telemetry import TelemetryRecorder
from aebsim.utils.units import mps_to_kmh

log = logging.getLogger(__name__)


class FixedStepRunner:
    """
    Accumulator-driven stepping of a :class:`SimulationEngine`.

    Usage:
        runner = FixedStepRunner(engine)
        while running:
            runner.advance(frame_elapsed_s)
            draw(engine.state)
    """

    def __init__(
        self,
        engine: SimulationEngine,
        recorder: Optional[TelemetryRecorder] = None,
        max_ticks_per_advance: Optional[int] = None
    ):
        self.engine = engine
        self.recorder = recorder
        self.max_ticks_per_advance = max_ticks_per_advance
        self.accumulator = 0.0  # s
        self.ticks = 0

    def reset(self):
        """Drop any carried time; call after the engine is reset."""
        self.accumulator = 0.0
        self.ticks = 0

    def advance(self, elapsed_s: float) -> List[StepDiagnostics]:
        """
        Add real elapsed time and run every whole tick it covers.

        Args:
            elapsed_s: Wall-clock time since the previous call [s]

        Returns:
            Diagnostics of the ticks run during this call
        """
        if elapsed_s < 0:
            raise ValueError(f"elapsed_s must be non-negative, got {elapsed_s!r}")

        self.accumulator += elapsed_s
        dt = self.engine.state.dt
        diagnostics: List[StepDiagnostics] = []

        while self.accumulator >= dt:
            if self.max_ticks_per_advance is not None and len(diagnostics) >= self.max_ticks_per_advance:
                # Host fell behind; drop the backlog instead of spiralling
                log.warning("Dropping %.3fs of simulation backlog", self.accumulator)
                self.accumulator = 0.0
                break
            diag = self.engine.step()
            if self.recorder is not None:
                self.recorder.record(self.engine.state, diag)
            diagnostics.append(diag)
            self.accumulator -= dt
            self.ticks += 1

        return diagnostics


@dataclass
class RunResult:
    """Outcome of a complete scenario run."""

    config: SimConfig  # effective config, template choices included
    final_state: SimulationState
    telemetry: TelemetryRecorder
    first_aeb_time: Optional[float] = None  # s
    diagnostics: List[StepDiagnostics] = field(default_factory=list, repr=False)

    @property
    def collided(self) -> bool:
        return self.final_state.collided

    def summary(self) -> dict:
        """Key metrics of the run."""
        impacts = self.final_state.impact_log
        first = impacts[0] if impacts else None
        return {
            'kind': self.config.kind.value,
            'weather': self.config.weather.value,
            'surface': self.config.surface.value,
            'ego_speed_kmh': mps_to_kmh(self.config.ego_speed),
            'gap1': self.config.gap1,
            'lead_decel_1': self.config.lead_decel_1,
            'collided': self.collided,
            'num_impacts': len(impacts),
            'first_impact_time': first.time if first else None,
            'first_impact_speed': first.relative_speed if first else None,
            'first_aeb_time': self.first_aeb_time,
            'min_ttc': self.telemetry.min_ttc(),
        }


def run_scenario(
    config: SimConfig,
    seed: Optional[int] = None,
    duration_s: Optional[float] = None
) -> RunResult:
    """
    Run a scenario for its configured duration.

    Args:
        config: Base configuration
        seed: Seed for scenario sampling
        duration_s: Overrides ``config.duration_s``

    Returns:
        RunResult with telemetry of every tick
    """
    engine = SimulationEngine(config, seed=seed)
    recorder = TelemetryRecorder()
    recorder.record(engine.state)

    diagnostics = []
    first_aeb_time = None
    duration = engine.config.duration_s if duration_s is None else duration_s
    ticks = int(round(duration * engine.config.tick_rate_hz))

    for _ in range(ticks):
        tick_time = engine.state.time
        diag = engine.step()
        if diag.aeb_active and first_aeb_time is None:
            first_aeb_time = tick_time
        recorder.record(engine.state, diag)
        diagnostics.append(diag)

    return RunResult(
        config=engine.config,
        final_state=engine.state,
        telemetry=recorder,
        first_aeb_time=first_aeb_time,
        diagnostics=diagnostics,
    )
