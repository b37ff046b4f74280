"""Scenario templates and parameter randomization."""

from aebsim.scenarios.templates import ScenarioKind, apply_template
from aebsim.scenarios.randomization import ParameterRandomizer, RandomizationConfig, RandomizationRange

__all__ = [
    "ScenarioKind",
    "apply_template",
    "ParameterRandomizer",
    "RandomizationConfig",
    "RandomizationRange",
]
