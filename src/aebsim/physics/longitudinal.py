"""
Longitudinal Vehicle Dynamics

Braking-only, one-dimensional point-mass model:
- Speed-dependent tire friction with water-film loss
- Jerk-limited tracking of the braking command
- Aerodynamic drag, rolling resistance and road grade

The model never requests positive acceleration.
"""

import math
from typing import NamedTuple

from aebsim.exceptions import NumericDegeneracyError
from aebsim.physics.environment import PhysParams, water_film_factor
from aebsim.utils.units import G, clamp

MU_MIN = 0.05
MU_MAX = 1.1


class LongitudinalStep(NamedTuple):
    """Result of advancing one vehicle by one tick."""
    velocity: float  # m/s, never negative
    accel_command: float  # m/s², <= 0
    mu_effective: float
    max_decel: float  # m/s²


def effective_friction(speed: float, params: PhysParams) -> float:
    """
    Effective tire-road friction coefficient at the given speed.

    Always in [0.05, 1.1].
    """
    mu = clamp(params.mu0 * (1.0 - params.mu_speed_decay * (speed / 30.0)), MU_MIN, MU_MAX)
    mu *= water_film_factor(
        speed,
        params.water_film_mm,
        params.tire_pressure_psi,
        params.tread_depth_mm,
    )
    return clamp(mu, MU_MIN, MU_MAX)


def resistive_acceleration(speed: float, params: PhysParams) -> float:
    """
    Sum of drag, rolling resistance and grade, as an acceleration [m/s²].

    Negative values decelerate the vehicle.
    """
    v_air = max(0.0, speed + params.headwind_mps)
    drag = 0.5 * params.air_density * params.drag_area_m2 * v_air * v_air / params.mass_kg
    rolling = params.crr * G * math.cos(params.grade_rad)
    grade = G * math.sin(params.grade_rad)
    return -drag - rolling - grade


def integrate_step(
    v: float,
    prev_accel_command: float,
    dt: float,
    params: PhysParams,
    brake_requested: bool
) -> LongitudinalStep:
    """
    Advance one vehicle's speed by one tick.

    Args:
        v: Current speed [m/s]
        prev_accel_command: Acceleration command from the previous tick [m/s²]
        dt: Timestep [s]
        params: Per-vehicle physics parameters
        brake_requested: Whether the braking target is active

    Returns:
        LongitudinalStep with next speed, next command, effective mu and
        the friction-limited maximum deceleration

    Raises:
        NumericDegeneracyError: if the mass is not positive or a result is not finite
    """
    if not (math.isfinite(params.mass_kg) and params.mass_kg > 0):
        raise NumericDegeneracyError(f"Vehicle mass must be positive and finite, got {params.mass_kg!r}")

    mu_eff = effective_friction(v, params)
    max_decel = mu_eff * G

    a_target = -min(params.aeb_target_g * G, max_decel) if brake_requested else 0.0

    # Rate-limit the command towards the target
    max_change = params.jerk * dt
    if a_target > prev_accel_command:
        a_cmd = min(a_target, prev_accel_command + max_change)
    else:
        a_cmd = max(a_target, prev_accel_command - max_change)

    a_res = resistive_acceleration(v, params)
    v_raw = v + (a_cmd + a_res) * dt

    # max() would silently turn NaN into 0, so check before clamping
    if not all(math.isfinite(x) for x in (mu_eff, a_cmd, v_raw)):
        raise NumericDegeneracyError(
            f"Non-finite longitudinal step: v={v!r}, mu={mu_eff!r}, a_cmd={a_cmd!r}, a_res={a_res!r}"
        )
    v_next = max(0.0, v_raw)

    return LongitudinalStep(
        velocity=v_next,
        accel_command=a_cmd,
        mu_effective=mu_eff,
        max_decel=max_decel,
    )
