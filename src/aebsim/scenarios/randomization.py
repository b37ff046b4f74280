"""
Parameter Randomization

Draws uniformly distributed initial conditions and vehicle parameters for
Custom scenarios, e.g. to sweep AEB performance across many random
encounters. Each field has its own range and can be switched on or off.
"""

import numpy as np
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from aebsim.scenarios.templates import ScenarioKind
from aebsim.utils.units import kmh_to_mps


@dataclass(frozen=True)
class RandomizationRange:
    """Uniform range for one parameter."""
    enabled: bool
    low: float
    high: float

    def __post_init__(self):
        if self.low > self.high:
            raise ValueError(f"Range low {self.low} exceeds high {self.high}")


def default_ranges() -> Dict[str, RandomizationRange]:
    """Default ranges; speeds in km/h, everything else in config units."""
    return {
        'ego_speed_kmh': RandomizationRange(True, 20.0, 80.0),
        'lead1_speed_kmh': RandomizationRange(True, 0.0, 70.0),
        'lead2_speed_kmh': RandomizationRange(False, 0.0, 70.0),
        'gap1': RandomizationRange(True, 10.0, 60.0),
        'gap2': RandomizationRange(True, 10.0, 60.0),
        'ego_mass': RandomizationRange(False, 1100.0, 2200.0),
        'lead1_mass': RandomizationRange(False, 1100.0, 2200.0),
        'lead2_mass': RandomizationRange(False, 1100.0, 2200.0),
        'ego_drag_area': RandomizationRange(False, 0.5, 0.9),
        'lead1_drag_area': RandomizationRange(False, 0.5, 0.9),
        'lead2_drag_area': RandomizationRange(False, 0.5, 0.9),
        'restitution': RandomizationRange(False, 0.05, 0.5),
        'ttc_trigger_s': RandomizationRange(False, 1.2, 2.6),
        'lead_decel_1': RandomizationRange(False, -7.0, -1.0),
        'grade_deg': RandomizationRange(False, -6.0, 6.0),
    }


# Fields that only exist when a third vehicle is active
_THIRD_VEHICLE_KEYS = frozenset({'lead2_speed_kmh', 'gap2', 'lead2_mass', 'lead2_drag_area'})


@dataclass
class RandomizationConfig:
    """Configuration for parameter randomization."""
    ranges: Dict[str, RandomizationRange] = field(default_factory=default_ranges)

    def set_all(self, enabled: bool):
        """Enable or disable every range at once."""
        self.ranges = {k: replace(r, enabled=enabled) for k, r in self.ranges.items()}


class ParameterRandomizer:
    """
    Applies randomized parameters to a simulation config.

    Usage:
        randomizer = ParameterRandomizer(seed=7)
        config = randomizer.randomize(SimConfig())
        engine = SimulationEngine(config)
    """

    def __init__(
        self,
        config: Optional[RandomizationConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.config = config or RandomizationConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.current_params: Dict[str, float] = {}

    def sample(self, vehicle_count: int = 2) -> Dict[str, float]:
        """
        Draw values for every enabled range.

        Args:
            vehicle_count: Third-vehicle ranges are skipped unless this is 3

        Returns:
            Sampled values keyed like :func:`default_ranges`
        """
        params = {}
        for key, bounds in self.config.ranges.items():
            if not bounds.enabled:
                continue
            if key in _THIRD_VEHICLE_KEYS and vehicle_count < 3:
                continue
            params[key] = float(self.rng.uniform(bounds.low, bounds.high))

        self.current_params = params
        return params

    def randomize(self, sim_config):
        """
        Return a Custom copy of ``sim_config`` with sampled parameters.

        The scenario kind is switched to Custom so that the CCR templates do
        not overwrite the sampled values on reset.
        """
        params = self.sample(sim_config.vehicle_count)
        changes = {'kind': ScenarioKind.CUSTOM}

        for key, value in params.items():
            if key.endswith('_speed_kmh'):
                changes[key.replace('_kmh', '')] = kmh_to_mps(value)
            elif key.endswith('_mass'):
                vehicle = key[:-len('_mass')]
                changes[vehicle] = replace(changes.get(vehicle, getattr(sim_config, vehicle)),
                                           mass_kg=float(round(value)))
            elif key.endswith('_drag_area'):
                vehicle = key[:-len('_drag_area')]
                changes[vehicle] = replace(changes.get(vehicle, getattr(sim_config, vehicle)),
                                           drag_area_m2=value)
            elif key == 'grade_deg':
                changes[key] = float(round(value))
            else:
                changes[key] = value

        return sim_config.patched(**changes)
