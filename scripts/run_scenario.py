#!/usr/bin/env python3
"""
Run a single AEB car-to-car rear scenario.

Usage:
    python scripts/run_scenario.py --config config.yaml --seed 7
    python scripts/run_scenario.py --kind CCRb --weather raining --save-telemetry runs/ccrb.csv --plot runs/ccrb.png
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aebsim.exceptions import ConfigurationError
from aebsim.sim.config import SimConfig
from aebsim.sim.runner import run_scenario
from aebsim.utils.logging_setup import setup_logging


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Run an AEB CCR scenario")

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
        "--weather",
        type=str,
        default=None,
        choices=["clear", "raining", "snowing", "fog"],
        help="Weather (overrides config)"
    )

    parser.add_argument(
        "--surface",
        type=str,
        default=None,
        choices=["asphalt", "concrete", "gravel", "ice"],
        help="Road surface (overrides config)"
    )

    parser.add_argument(
        "--vehicles",
        type=int,
        default=None,
        choices=[2, 3],
        help="Number of active vehicles (overrides config)"
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Simulated seconds to run (defaults to the config duration)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for scenario sampling"
    )

    parser.add_argument(
        "--save-telemetry",
        type=str,
        default=None,
        help="Path to save telemetry CSV"
    )

    parser.add_argument(
        "--plot",
        type=str,
        default=None,
        help="Path to save a telemetry plot"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional rotating log file"
    )

    return parser.parse_args()


def build_config(args) -> SimConfig:
    """Load the YAML config (if any) and apply command line overrides."""
    config = SimConfig.from_yaml(args.config) if args.config else SimConfig()

    overrides = {}
    if args.kind:
        overrides['kind'] = args.kind
    if args.weather:
        overrides['weather'] = args.weather
    if args.surface:
        overrides['surface'] = args.surface
    if args.vehicles:
        overrides['vehicle_count'] = args.vehicles

    return config.patched(**overrides) if overrides else config


def print_summary(summary: dict):
    """Print the run summary."""
    print("\n" + "="*60)
    print("Scenario Results")
    print("="*60)
    print(f"Scenario: {summary['kind']} ({summary['weather']}, {summary['surface']})")
    print(f"Ego speed: {summary['ego_speed_kmh']:.1f} km/h, gap: {summary['gap1']:.1f} m, "
          f"lead decel: {summary['lead_decel_1']:.1f} m/s²")

    if summary['first_aeb_time'] is not None:
        print(f"AEB triggered at t = {summary['first_aeb_time']:.2f} s")
    else:
        print("AEB never triggered")

    if summary['min_ttc'] is not None:
        print(f"Minimum TTC: {summary['min_ttc']:.2f} s")

    if summary['collided']:
        print(f"✗ Collision: {summary['num_impacts']} impact(s), first at "
              f"t = {summary['first_impact_time']:.2f} s, "
              f"{summary['first_impact_speed'] * 3.6:.1f} km/h relative")
    else:
        print("✓ No collision")
    print("="*60 + "\n")


def main():
    args = parse_args()
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1

    result = run_scenario(config, seed=args.seed, duration_s=args.duration)
    print_summary(result.summary())

    if args.save_telemetry:
        result.telemetry.save_csv(args.save_telemetry)
        print(f"Telemetry saved to: {args.save_telemetry}")

    if args.plot:
        from aebsim.utils.visualization import plot_run
        plot_run(
            result.telemetry.to_dataframe(),
            impacts=result.telemetry.impacts_dataframe(),
            ttc_threshold=result.config.ttc_trigger_s,
            output_path=args.plot,
            title=f"{result.config.kind.value} - {result.config.weather.value}, {result.config.surface.value}",
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
