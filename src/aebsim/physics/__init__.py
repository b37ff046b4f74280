"""Physics models for longitudinal car-following simulation."""

from aebsim.physics.environment import EnvironmentBaseline, PhysParams, Surface, Weather
from aebsim.physics.longitudinal import LongitudinalStep, integrate_step
from aebsim.physics.collision import ImpactResult, resolve_impact

__all__ = [
    "EnvironmentBaseline",
    "PhysParams",
    "Surface",
    "Weather",
    "LongitudinalStep",
    "integrate_step",
    "ImpactResult",
    "resolve_impact",
]
