"""
One-dimensional collision response.

Rear-end impacts are resolved with the classic restitution law. The
coefficient of restitution falls with impact severity, following crash-test
observations that low-speed bumps are bouncier than high-speed crashes.
"""

import math
from typing import NamedTuple

from aebsim.exceptions import NumericDegeneracyError
from aebsim.utils.units import clamp, mps_to_mph


class ImpactResult(NamedTuple):
    """Post-impact velocities of a colliding pair."""
    v_a: float  # rear body [m/s]
    v_b: float  # front body [m/s]
    restitution: float


def restitution_for_closing_speed(e_base: float, closing_speed: float) -> float:
    """
    Speed-dependent coefficient of restitution.

    Args:
        e_base: Configured base restitution
        closing_speed: Pre-impact closing speed [m/s]

    Returns:
        Restitution coefficient used for the impact
    """
    mph = mps_to_mph(max(0.0, closing_speed))
    if mph <= 5.0:
        return clamp(e_base + 0.05, 0.05, 0.6)
    if mph <= 15.0:
        return clamp(e_base, 0.05, 0.5)
    return clamp(min(e_base, 0.2), 0.05, 0.3)


def resolve_impact(
    u_a: float,
    u_b: float,
    m_a: float,
    m_b: float,
    e_base: float,
    closing_speed: float
) -> ImpactResult:
    """
    Resolve a 1-D impact between a rear body A and a front body B.

    Momentum is conserved exactly and the separation speed equals
    ``e * (u_a - u_b)``. A pair that is not closing (``u_a <= u_b``)
    exchanges no impulse.

    Args:
        u_a, u_b: Pre-impact velocities [m/s]
        m_a, m_b: Masses [kg]
        e_base: Configured base restitution
        closing_speed: Pre-impact closing speed used to pick e [m/s]

    Returns:
        ImpactResult(v_a, v_b, restitution)

    Raises:
        NumericDegeneracyError: on non-positive masses or non-finite inputs
    """
    if not all(math.isfinite(x) for x in (u_a, u_b, m_a, m_b, e_base, closing_speed)):
        raise NumericDegeneracyError(
            f"Non-finite impact input: u=({u_a!r}, {u_b!r}), m=({m_a!r}, {m_b!r})"
        )
    if m_a <= 0.0 or m_b <= 0.0:
        raise NumericDegeneracyError(f"Impact masses must be positive, got {m_a!r} and {m_b!r}")

    e = restitution_for_closing_speed(e_base, closing_speed)
    if u_a <= u_b:
        return ImpactResult(v_a=u_a, v_b=u_b, restitution=e)

    total = m_a + m_b
    momentum = m_a * u_a + m_b * u_b
    v_a = (-e * m_b * (u_a - u_b) + momentum) / total
    v_b = (e * m_a * (u_a - u_b) + momentum) / total

    return ImpactResult(v_a=v_a, v_b=v_b, restitution=e)
