"""AEB CCR Sim - fixed-timestep car-to-car rear-end simulation with AEB."""

__version__ = "1.0.0"
__author__ = "AEB CCR Sim Team"

from aebsim.exceptions import ConfigurationError, NumericDegeneracyError, SimulationError
from aebsim.sim.config import SimConfig, VehicleConfig, EnvironmentConfig
from aebsim.sim.engine import SimulationEngine, step
from aebsim.sim.state import SimulationState, create_initial_state

__all__ = [
    "SimConfig",
    "VehicleConfig",
    "EnvironmentConfig",
    "SimulationEngine",
    "SimulationState",
    "create_initial_state",
    "step",
    "ConfigurationError",
    "NumericDegeneracyError",
    "SimulationError",
]
