"""Utilities: unit conversions, logging, telemetry and plotting."""
