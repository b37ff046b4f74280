"""
Simulation Engine

Advances the car-following scenario by one fixed tick:
- TTC evaluation against the nearest lead vehicle
- AEB braking of the ego vehicle
- Constant, friction-capped braking of lead vehicle 1
- Forward-Euler position integration
- Iterative overlap resolution for chained impacts

:func:`step` is a pure state transition. :class:`SimulationEngine` wraps it
for callers that want to own a single session (config, state and random
generator) behind one object.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from aebsim.exceptions import ConfigurationError
from aebsim.physics.collision import resolve_impact
from aebsim.physics.longitudinal import integrate_step
from aebsim.sim.config import SimConfig
from aebsim.sim.state import (
    EGO,
    LEAD1,
    LEAD2,
    VEHICLE_LABELS,
    ImpactRecord,
    SimulationState,
    VehicleState,
    create_initial_state,
)
from aebsim.utils.units import G

log = logging.getLogger(__name__)

SEPARATION_EPS = 1e-3  # m
MAX_RESOLVE_PASSES = 3

# Fields that can change mid-run without rebuilding the state
LIVE_FIELDS = frozenset({
    'ttc_trigger_s',
    'lead_decel_1',
    'restitution',
    'reaction_delay_s',
    'duration_s',
})


class StepDiagnostics(NamedTuple):
    """Per-tick observables for the caller."""
    ttc: float  # s, inf when not closing
    aeb_active: bool


@dataclass(frozen=True)
class _Lead:
    index: int
    center_gap: float


def time_to_collision(state: SimulationState) -> float:
    """
    TTC between the ego and the nearest vehicle ahead of it.

    Uses the bumper-to-bumper gap (centre gap minus half the combined
    lengths). Infinite when the ego is not closing in.
    """
    vehicles = state.vehicles
    ego = vehicles[EGO]

    nearest: Optional[_Lead] = None
    for index in range(LEAD1, len(vehicles)):
        gap = vehicles[index].position - ego.position
        if nearest is None or gap < nearest.center_gap:
            nearest = _Lead(index, gap)

    if nearest is None:
        return math.inf

    lead = vehicles[nearest.index]
    closing = ego.velocity - lead.velocity
    if closing <= 0:
        return math.inf
    half_lengths = (ego.length + lead.length) / 2.0
    return (nearest.center_gap - half_lengths) / closing


def _resolve_pair(
    vehicles: List[VehicleState],
    rear: int,
    front: int,
    config: SimConfig,
    time: float
) -> Optional[ImpactRecord]:
    """Resolve an overlap between two adjacent vehicles, if any."""
    a = vehicles[rear]
    b = vehicles[front]
    half_lengths = (a.length + b.length) / 2.0
    if (b.position - a.position) - half_lengths > 0:
        return None

    closing = max(0.0, a.velocity - b.velocity)
    masses = config.vehicles
    impact = resolve_impact(
        a.velocity, b.velocity,
        masses[rear].mass_kg, masses[front].mass_kg,
        config.restitution, closing,
    )

    # Push the pair apart symmetrically about its midpoint
    mid = (a.position + b.position) / 2.0
    distance = half_lengths + SEPARATION_EPS
    vehicles[rear] = replace(a, position=mid - distance / 2.0, velocity=max(0.0, impact.v_a))
    vehicles[front] = replace(b, position=mid + distance / 2.0, velocity=max(0.0, impact.v_b))

    record = ImpactRecord(
        pair=f"{VEHICLE_LABELS[rear]}-{VEHICLE_LABELS[front]}",
        time=time,
        relative_speed=closing,
        restitution=impact.restitution,
        delta_v_rear=a.velocity - impact.v_a,
        delta_v_front=impact.v_b - b.velocity,
    )
    log.info(
        "Impact %s at t=%.3fs: v_rel=%.2f m/s, e=%.3f, dv=(%.2f, %.2f)",
        record.pair, time, closing, record.restitution,
        record.delta_v_rear, record.delta_v_front,
    )
    return record


def step(state: SimulationState, config: SimConfig) -> Tuple[SimulationState, StepDiagnostics]:
    """
    Advance the simulation by one tick.

    Args:
        state: Current state (not modified)
        config: Session configuration

    Returns:
        (next_state, diagnostics)

    Raises:
        ConfigurationError: if ``config`` is invalid (state untouched)
        NumericDegeneracyError: if a computation turns non-finite
    """
    config.validate()
    count = state.vehicle_count
    if config.vehicle_count != count:
        raise ConfigurationError(
            f"vehicle_count is {config.vehicle_count} but the state has {count} vehicles; reset required"
        )

    dt = state.dt
    vehicles = list(state.vehicles)
    vehicle_configs = config.vehicles

    params = [
        state.baseline.for_vehicle(vc.mass_kg, vc.drag_area_m2)
        for vc in vehicle_configs
    ]

    # AEB trigger
    ttc = time_to_collision(state)
    aeb_active = ttc < config.ttc_trigger_s

    # Ego: jerk-limited AEB
    ego = vehicles[EGO]
    result = integrate_step(ego.velocity, ego.accel_command, dt, params[EGO], aeb_active)
    vehicles[EGO] = replace(ego, velocity=result.velocity, accel_command=result.accel_command)

    # Lead 1: immediate constant braking, still limited by friction
    lead1 = vehicles[LEAD1]
    lead1_params = replace(
        params[LEAD1],
        jerk=math.inf,
        aeb_target_g=abs(config.lead_decel_1) / G,
    )
    result = integrate_step(lead1.velocity, config.lead_decel_1, dt, lead1_params, True)
    vehicles[LEAD1] = replace(lead1, velocity=result.velocity)

    # Lead 2: coasting
    if count > LEAD2:
        lead2 = vehicles[LEAD2]
        result = integrate_step(lead2.velocity, 0.0, dt, params[LEAD2], False)
        vehicles[LEAD2] = replace(lead2, velocity=result.velocity)

    vehicles = [replace(v, position=v.position + v.velocity * dt) for v in vehicles]

    # Overlap resolution, farthest pair first so chained impacts settle
    pairs = [(LEAD1, LEAD2), (EGO, LEAD1)] if count > LEAD2 else [(EGO, LEAD1)]
    impacts: List[ImpactRecord] = []
    for _ in range(MAX_RESOLVE_PASSES):
        changed = False
        for rear, front in pairs:
            record = _resolve_pair(vehicles, rear, front, config, state.time)
            if record is not None:
                impacts.append(record)
                changed = True
        if not changed:
            break

    next_state = replace(
        state,
        time=state.time + dt,
        vehicles=tuple(vehicles),
        collided=state.collided or bool(impacts),
        impact_log=state.impact_log + tuple(impacts),
    )
    return next_state, StepDiagnostics(ttc=ttc, aeb_active=aeb_active)


class SimulationEngine:
    """
    Single-owner simulation session.

    Holds the effective configuration (after templating), the current
    state and the random generator used for scenario sampling.

    Usage:
        engine = SimulationEngine(SimConfig(kind="CCRb"), seed=42)
        diagnostics = engine.run()
    """

    def __init__(
        self,
        config: Optional[SimConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.base_config = config or SimConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.last_diagnostics: Optional[StepDiagnostics] = None
        self.reset()

    def reset(self, config: Optional[SimConfig] = None) -> SimulationState:
        """
        Rebuild the state from the base configuration.

        Named scenario kinds are re-sampled on every reset.
        """
        base = config or self.base_config
        effective, state = create_initial_state(base, self.rng)

        self.base_config = base
        self.config = effective
        self.state = state
        self.last_diagnostics = None

        log.info(
            "Reset: kind=%s weather=%s surface=%s vehicles=%d mu0=%.3f",
            effective.kind.value, effective.weather.value, effective.surface.value,
            state.vehicle_count, state.baseline.mu0,
        )
        return state

    def step(self) -> StepDiagnostics:
        """Advance the owned state by one tick."""
        previous = self.last_diagnostics
        time = self.state.time
        self.state, self.last_diagnostics = step(self.state, self.config)

        diag = self.last_diagnostics
        if diag.aeb_active and not (previous is not None and previous.aeb_active):
            log.debug("AEB engaged at t=%.3fs (TTC=%.3fs)", time, diag.ttc)
        return diag

    def patch_config(self, **changes) -> SimulationState:
        """
        Replace the configuration with a patched copy.

        Live-tunable fields (TTC threshold, lead braking, restitution,
        reaction delay, duration) apply from the next tick; any other change
        resets the session. An invalid patch raises ConfigurationError and
        leaves both configuration and state untouched.
        """
        new_config = self.config.patched(**changes)
        new_base = self.base_config.patched(**changes)
        if set(changes) <= LIVE_FIELDS:
            self.config = new_config
            self.base_config = new_base
            return self.state
        return self.reset(new_base)

    def run(self, duration_s: Optional[float] = None) -> List[StepDiagnostics]:
        """
        Step for ``duration_s`` of simulated time (config duration by default).

        Returns:
            Diagnostics of every tick
        """
        duration = self.config.duration_s if duration_s is None else duration_s
        ticks = int(round(duration * self.config.tick_rate_hz))
        return [self.step() for _ in range(ticks)]
