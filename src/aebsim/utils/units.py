"""
Unit conversion helpers.

All simulation quantities are SI (m, m/s, kg, s). These helpers convert at
the edges: scenario tables are written in km/h and the restitution model
is banded in mph.
"""

import numpy as np

G = 9.81  # m/s²
MPS_TO_MPH = 2.23693629


def kmh_to_mps(speed_kmh: float) -> float:
    """Convert km/h to m/s."""
    return speed_kmh / 3.6


def mps_to_kmh(speed_mps: float) -> float:
    """Convert m/s to km/h."""
    return speed_mps * 3.6


def mps_to_mph(speed_mps: float) -> float:
    """Convert m/s to mph."""
    return speed_mps * MPS_TO_MPH


def clamp(x: float, lo: float, hi: float) -> float:
    """Clip a scalar to [lo, hi], returning a plain float."""
    return float(np.clip(x, lo, hi))
