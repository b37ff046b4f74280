"""
Simulation State

Mutable-by-replacement state of one simulation session. Every step of the
engine produces a new :class:`SimulationState`; the previous one is left
untouched, so a failed step can never leave a half-updated state behind.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from aebsim.physics.environment import EnvironmentBaseline
from aebsim.scenarios.templates import apply_template

log = logging.getLogger(__name__)

EGO = 0
LEAD1 = 1
LEAD2 = 2

VEHICLE_LABELS: Tuple[str, ...] = ("E", "L1", "L2")


@dataclass(frozen=True)
class VehicleState:
    """Kinematic state of one vehicle on the lane."""

    position: float  # centre position [m]
    velocity: float  # m/s, never negative
    length: float  # m
    accel_command: float = 0.0  # m/s², only tracked for the ego vehicle


@dataclass(frozen=True)
class ImpactRecord:
    """One resolved impact between adjacent vehicles."""

    pair: str  # "E-L1" or "L1-L2"
    time: float  # simulation time of the tick [s]
    relative_speed: float  # pre-impact closing speed [m/s]
    restitution: float
    delta_v_rear: float  # speed lost by the rear vehicle [m/s]
    delta_v_front: float  # speed gained by the front vehicle [m/s]

    def as_dict(self) -> Dict[str, Any]:
        """Serialisable mapping of the record."""
        return {
            'pair': self.pair,
            'time': self.time,
            'relative_speed': self.relative_speed,
            'restitution': self.restitution,
            'delta_v_rear': self.delta_v_rear,
            'delta_v_front': self.delta_v_front,
        }


@dataclass(frozen=True)
class SimulationState:
    """
    State of a running simulation.

    Attributes:
        time: Elapsed simulation time [s]
        dt: Fixed tick size for the lifetime of this state [s]
        vehicles: Active vehicles, ego first, ordered along the lane
        collided: True once any impact has been resolved
        impact_log: Append-only, time-ordered impact records
        baseline: Cached environment-derived physics snapshot
    """

    time: float
    dt: float
    vehicles: Tuple[VehicleState, ...]
    baseline: EnvironmentBaseline
    collided: bool = False
    impact_log: Tuple[ImpactRecord, ...] = field(default_factory=tuple)

    @property
    def vehicle_count(self) -> int:
        return len(self.vehicles)

    @property
    def ego(self) -> VehicleState:
        return self.vehicles[EGO]

    def get_telemetry(self) -> Dict[str, float]:
        """Flat per-tick snapshot (for logging/visualization)."""
        telemetry = {'time': self.time, 'collided': self.collided}
        for label, vehicle in zip(VEHICLE_LABELS, self.vehicles):
            telemetry[f'x_{label}'] = vehicle.position
            telemetry[f'v_{label}'] = vehicle.velocity
        telemetry['a_cmd_E'] = self.ego.accel_command
        return telemetry


def create_initial_state(config, rng: Optional[np.random.Generator] = None):
    """
    Build the initial state for a configuration.

    Named scenario kinds first go through the CCR template; Custom
    configurations are used verbatim and consume no randomness.

    Args:
        config: Validated :class:`~aebsim.sim.config.SimConfig`
        rng: Random generator for the template (fresh unseeded one if None)

    Returns:
        (effective_config, state) where ``effective_config`` carries the
        template's choices
    """
    config.validate()
    if rng is None:
        rng = np.random.default_rng()

    effective = apply_template(config, rng)

    positions = [0.0, effective.gap1, effective.gap1 + effective.gap2]
    vehicles: List[VehicleState] = [
        VehicleState(position=x, velocity=v, length=vehicle.length_m)
        for x, v, vehicle in zip(positions, effective.initial_speeds, effective.vehicles)
    ]

    state = SimulationState(
        time=0.0,
        dt=effective.dt,
        vehicles=tuple(vehicles),
        baseline=EnvironmentBaseline.from_config(effective),
    )

    log.debug(
        "Initial state: kind=%s speeds=%s gaps=(%.2f, %.2f) lead_decel_1=%.2f",
        effective.kind.value, [round(v.velocity, 3) for v in vehicles],
        effective.gap1, effective.gap2, effective.lead_decel_1,
    )
    return effective, state
