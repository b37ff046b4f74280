#!/usr/bin/env python3
"""
Batch evaluation of AEB performance over many seeded scenario runs.

Usage:
    python scripts/evaluate.py --kind CCRb --num-runs 50 --seed 42
    python scripts/evaluate.py --config config.yaml --randomize --num-runs 200 --output results.csv
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np
import pandas as pd
from tqdm import tqdm

from aebsim.scenarios.randomization import ParameterRandomizer
from aebsim.sim.config import SimConfig
from aebsim.sim.runner import run_scenario
from aebsim.utils.logging_setup import setup_logging


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Evaluate AEB over many scenario runs")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration"
    )

    parser.add_argument(
        "--kind",
        type=str,
        default=None,
        choices=["CCRs", "CCRm", "CCRb", "Custom"],
        help="Scenario kind (overrides config)"
    )

    parser.add_argument(
        "--num-runs",
        type=int,
        default=20,
        help="Number of runs to evaluate"
    )

    parser.add_argument(
        "--randomize",
        action="store_true",
        help="Randomize parameters of every run (switches to Custom)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Base random seed"
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Path to save per-run results CSV"
    )

    return parser.parse_args()


def evaluate(config: SimConfig, num_runs: int, seed: int, randomize: bool = False) -> pd.DataFrame:
    """
    Run ``num_runs`` scenarios and collect their summaries.

    Args:
        config: Base configuration
        num_runs: Number of runs
        seed: Base seed; run i uses seed + i
        randomize: Draw random parameters for each run

    Returns:
        DataFrame with one row per run
    """
    randomizer = ParameterRandomizer(seed=seed) if randomize else None
    rows = []

    for i in tqdm(range(num_runs), desc="Evaluating"):
        run_config = randomizer.randomize(config) if randomizer else config
        result = run_scenario(run_config, seed=seed + i)
        summary = result.summary()
        summary['run'] = i
        rows.append(summary)

    return pd.DataFrame(rows)


def print_results(df: pd.DataFrame):
    """Print aggregate results."""
    collided = df[df['collided']]

    print("\n" + "="*60)
    print("Evaluation Results")
    print("="*60)
    print(f"Runs: {len(df)}")
    print(f"Collision rate: {100.0 * len(collided) / max(len(df), 1):.1f}%")
    if len(collided):
        speeds = collided['first_impact_speed'].values * 3.6
        print(f"Impact speed: {np.mean(speeds):.1f} ± {np.std(speeds):.1f} km/h "
              f"(max {np.max(speeds):.1f})")
    triggered = df['first_aeb_time'].dropna()
    if len(triggered):
        print(f"AEB trigger time: {triggered.mean():.2f} s (mean over {len(triggered)} runs)")
    print("="*60 + "\n")


def main():
    args = parse_args()
    setup_logging(logging.WARNING)

    config = SimConfig.from_yaml(args.config) if args.config else SimConfig()
    if args.kind:
        config = config.patched(kind=args.kind)

    df = evaluate(config, args.num_runs, args.seed, randomize=args.randomize)
    print_results(df)

    if args.output:
        df.to_csv(args.output, index=False)
        print(f"Results saved to: {args.output}")


if __name__ == "__main__":
    main()
