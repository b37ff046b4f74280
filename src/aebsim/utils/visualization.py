"""
Visualization of simulation runs.

Plots the telemetry of a run for analysis:
- Vehicle speeds
- Bumper-to-bumper gap between ego and lead 1
- Time to collision against the AEB threshold
- Ego braking command
"""

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

VEHICLE_COLORS = {'E': '#3a7afe', 'L1': '#fe4b4b', 'L2': '#7c828a'}


def plot_run(
    df: pd.DataFrame,
    impacts: Optional[pd.DataFrame] = None,
    ttc_threshold: Optional[float] = None,
    output_path: str = "aeb_run.png",
    title: str = "AEB Scenario Telemetry"
):
    """
    Create a 2x2 telemetry figure for one run.

    Args:
        df: Telemetry DataFrame from TelemetryRecorder.to_dataframe()
        impacts: Impact DataFrame; impact times are marked on every panel
        ttc_threshold: AEB threshold drawn on the TTC panel
        output_path: Where to save the figure
        title: Figure title

    Returns:
        The matplotlib Figure (already saved and closed)
    """
    fig, axes = plt.subplots(2, 2, figsize=(14, 9), sharex=True)
    fig.suptitle(title, fontsize=15, fontweight='bold')
    time = df['time'].values

    # 1. Speeds
    ax = axes[0, 0]
    for label, color in VEHICLE_COLORS.items():
        col = f'v_{label}'
        if col in df.columns:
            ax.plot(time, df[col].values * 3.6, color=color, linewidth=1.5, label=label)
    ax.set_ylabel('Speed (km/h)', fontweight='bold')
    ax.set_title('Vehicle Speeds')
    ax.legend(loc='best')
    ax.grid(True, alpha=0.3)

    # 2. Gap
    ax = axes[0, 1]
    if 'gap_E_L1' in df.columns:
        ax.plot(time, df['gap_E_L1'].values, 'k-', linewidth=1.5)
        ax.axhline(y=0, color='r', linestyle='--', alpha=0.5)
    ax.set_ylabel('Gap (m)', fontweight='bold')
    ax.set_title('Ego to Lead 1 Gap')
    ax.grid(True, alpha=0.3)

    # 3. TTC (infinite values are not drawn)
    ax = axes[1, 0]
    ttc = df['ttc'].replace([np.inf, -np.inf], np.nan).values
    ax.plot(time, ttc, 'm-', linewidth=1.5)
    if ttc_threshold is not None:
        ax.axhline(y=ttc_threshold, color='g', linestyle='--', alpha=0.6, label='AEB threshold')
        ax.legend(loc='best')
    if 'aeb_active' in df.columns and df['aeb_active'].any():
        ax.fill_between(time, 0, 1, where=df['aeb_active'].values,
                        transform=ax.get_xaxis_transform(), alpha=0.15, color='orange')
    ax.set_ylabel('TTC (s)', fontweight='bold')
    ax.set_xlabel('Time (s)')
    ax.set_title('Time to Collision')
    ax.grid(True, alpha=0.3)

    # 4. Ego command
    ax = axes[1, 1]
    ax.plot(time, df['a_cmd_E'].values, 'b-', linewidth=1.5)
    ax.set_ylabel('Command (m/s²)', fontweight='bold')
    ax.set_xlabel('Time (s)')
    ax.set_title('Ego Braking Command')
    ax.grid(True, alpha=0.3)

    if impacts is not None and len(impacts) > 0:
        for ax in axes.flat:
            for t in impacts['time'].values:
                ax.axvline(x=t, color='r', linestyle=':', alpha=0.7)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    print(f"Saved: {output_path}")
    plt.close(fig)
    return fig
