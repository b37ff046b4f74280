#!/usr/bin/env python3
"""
Visualization script for AEB scenario telemetry.

Usage:
    python scripts/visualize.py --telemetry runs/ccrb.csv --output runs/ccrb.png
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pandas as pd

from aebsim.utils.visualization import plot_run


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Visualize AEB Scenario Telemetry")

    parser.add_argument(
        "--telemetry",
        type=str,
        required=True,
        help="Path to telemetry CSV file"
    )

    parser.add_argument(
        "--ttc-threshold",
        type=float,
        default=None,
        help="AEB TTC threshold to draw"
    )

    parser.add_argument(
        "--output",
        type=str,
        default="aeb_run.png",
        help="Output path for plot"
    )

    return parser.parse_args()


def main():
    args = parse_args()

    df = pd.read_csv(args.telemetry)
    plot_run(df, ttc_threshold=args.ttc_threshold, output_path=args.output,
             title=f"AEB Telemetry - {Path(args.telemetry).stem}")


if __name__ == "__main__":
    main()
