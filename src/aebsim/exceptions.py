"""Error types raised by the simulation core."""


class SimulationError(Exception):
    """Base class for all simulation errors."""


class ConfigurationError(SimulationError, ValueError):
    """Invalid configuration value, rejected before any state is touched."""


class NumericDegeneracyError(SimulationError, ArithmeticError):
    """A computation produced a non-finite value (NaN or inf)."""
