"""Simulation state, configuration and stepping engine."""

from aebsim.sim.config import EnvironmentConfig, Lighting, SimConfig, VehicleConfig
from aebsim.sim.state import ImpactRecord, SimulationState, VehicleState, create_initial_state
from aebsim.sim.engine import SimulationEngine, StepDiagnostics, step, time_to_collision
from aebsim.sim.runner import FixedStepRunner, RunResult, run_scenario

__all__ = [
    "EnvironmentConfig",
    "Lighting",
    "SimConfig",
    "VehicleConfig",
    "ImpactRecord",
    "SimulationState",
    "VehicleState",
    "create_initial_state",
    "SimulationEngine",
    "StepDiagnostics",
    "step",
    "time_to_collision",
    "FixedStepRunner",
    "RunResult",
    "run_scenario",
]
