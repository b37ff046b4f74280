"""
Car-to-Car Rear (CCR) test templates.

Fills in initial speeds, gaps and the lead vehicle's braking command for
the standard Euro NCAP style CCR patterns:
- CCRs: stationary lead vehicle
- CCRm: slower moving lead vehicle
- CCRb: braking lead vehicle

Random choices come from an injected ``numpy.random.Generator`` so runs are
reproducible from a seed.
"""

from enum import Enum
from typing import Dict, Sequence

import numpy as np

from aebsim.utils.units import kmh_to_mps


class ScenarioKind(Enum):
    """Named test pattern."""
    CCRS = "CCRs"
    CCRM = "CCRm"
    CCRB = "CCRb"
    CUSTOM = "Custom"


CCRS_EGO_SPEEDS_KMH = tuple(range(10, 85, 5))
CCRM_EGO_SPEEDS_KMH = tuple(range(30, 85, 5))
CCRM_LEAD_SPEED_KMH = 20.0
CCRB_SPEED_KMH = 50.0
CCRB_GAPS = (12.0, 40.0)  # m
CCRB_LEAD_DECELS = (-2.0, -6.0)  # m/s²

MIN_GAP = 12.0  # m
HEADWAY_S = 4.0
HEADWAY_MARGIN = 0.9
SECOND_GAP_OFFSET = 10.0  # m


def _pick(rng: np.random.Generator, options: Sequence[float]) -> float:
    return float(options[int(rng.integers(len(options)))])


def _initial_gap(closing_speed: float) -> float:
    return max(MIN_GAP, closing_speed * HEADWAY_S * HEADWAY_MARGIN)


def template_values(kind: ScenarioKind, rng: np.random.Generator) -> Dict[str, float]:
    """
    Sample the initial conditions for a named pattern.

    Args:
        kind: Scenario kind
        rng: Random generator

    Returns:
        Field overrides for the configuration (empty for Custom)
    """
    if kind == ScenarioKind.CCRS:
        ego = kmh_to_mps(_pick(rng, CCRS_EGO_SPEEDS_KMH))
        gap1 = _initial_gap(ego)
        return {
            'ego_speed': ego,
            'lead1_speed': 0.0,
            'lead2_speed': 0.0,
            'gap1': gap1,
            'gap2': gap1 + SECOND_GAP_OFFSET,
            'lead_decel_1': 0.0,
        }

    if kind == ScenarioKind.CCRM:
        ego = kmh_to_mps(_pick(rng, CCRM_EGO_SPEEDS_KMH))
        lead = kmh_to_mps(CCRM_LEAD_SPEED_KMH)
        gap1 = _initial_gap(ego - lead)
        return {
            'ego_speed': ego,
            'lead1_speed': lead,
            'lead2_speed': lead,
            'gap1': gap1,
            'gap2': gap1 + SECOND_GAP_OFFSET,
            'lead_decel_1': 0.0,
        }

    if kind == ScenarioKind.CCRB:
        speed = kmh_to_mps(CCRB_SPEED_KMH)
        gap1 = _pick(rng, CCRB_GAPS)
        return {
            'ego_speed': speed,
            'lead1_speed': speed,
            'lead2_speed': speed,
            'gap1': gap1,
            'gap2': gap1 + SECOND_GAP_OFFSET,
            'lead_decel_1': _pick(rng, CCRB_LEAD_DECELS),
        }

    return {}


def apply_template(config, rng: np.random.Generator):
    """
    Return ``config`` with the initial conditions of its scenario kind applied.

    Custom configurations are returned unchanged and consume no randomness.
    """
    if config.kind == ScenarioKind.CUSTOM:
        return config
    return config.patched(**template_values(config.kind, rng))
