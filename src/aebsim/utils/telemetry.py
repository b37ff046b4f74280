"""
Telemetry recording.

Collects one row per tick from the simulation state and diagnostics and
exports them as pandas DataFrames / CSV for analysis and plotting.
"""

import math
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd


class TelemetryRecorder:
    """Per-tick telemetry buffer."""

    def __init__(self):
        self.rows: List[Dict[str, float]] = []
        self._impacts: list = []

    def __len__(self) -> int:
        return len(self.rows)

    def record(self, state, diagnostics=None):
        """
        Append a snapshot of ``state``.

        Args:
            state: SimulationState after the tick
            diagnostics: StepDiagnostics of the tick (None for the initial state)
        """
        row = state.get_telemetry()
        if len(state.vehicles) > 1:
            ego, lead = state.vehicles[0], state.vehicles[1]
            row['gap_E_L1'] = (lead.position - ego.position) - (ego.length + lead.length) / 2.0
        row['ttc'] = diagnostics.ttc if diagnostics is not None else math.inf
        row['aeb_active'] = bool(diagnostics.aeb_active) if diagnostics is not None else False
        self.rows.append(row)
        self._impacts = list(state.impact_log)

    def to_dataframe(self) -> pd.DataFrame:
        """Telemetry as a DataFrame, one row per recorded tick."""
        return pd.DataFrame(self.rows)

    def impacts_dataframe(self) -> pd.DataFrame:
        """Impact log of the last recorded state."""
        columns = ['pair', 'time', 'relative_speed', 'restitution', 'delta_v_rear', 'delta_v_front']
        return pd.DataFrame([impact.as_dict() for impact in self._impacts], columns=columns)

    def min_ttc(self) -> Optional[float]:
        """Smallest finite TTC seen, or None if never closing."""
        ttcs = np.array([row['ttc'] for row in self.rows], dtype=float)
        finite = ttcs[np.isfinite(ttcs)]
        return float(finite.min()) if finite.size else None

    def save_csv(self, filepath: str):
        """Write the per-tick telemetry to CSV."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_dataframe().to_csv(path, index=False)
