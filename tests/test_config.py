"""
Tests for configuration validation and YAML persistence.

Run with: pytest tests/test_config.py -v
"""

import math
import sys
from dataclasses import replace
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
import yaml

from aebsim.exceptions import ConfigurationError
from aebsim.physics.environment import Surface, Weather
from aebsim.scenarios.templates import ScenarioKind
from aebsim.sim.config import EnvironmentConfig, Lighting, SimConfig, VehicleConfig

ROOT_CONFIG = Path(__file__).parent.parent / "config.yaml"


def test_defaults_are_valid():
    config = SimConfig()
    assert config.kind == ScenarioKind.CCRM
    assert config.dt == pytest.approx(0.05)
    assert len(config.vehicles) == 2
    assert config.initial_speeds == [config.ego_speed, config.lead1_speed]


def test_three_vehicle_views():
    config = SimConfig(vehicle_count=3, lead2=VehicleConfig(mass_kg=2000.0))
    assert len(config.vehicles) == 3
    assert config.vehicles[2].mass_kg == 2000.0
    assert len(config.initial_speeds) == 3


def test_string_enums_coerced():
    config = SimConfig(kind="CCRb", weather="raining", surface="ice", lighting="night")
    assert config.kind == ScenarioKind.CCRB
    assert config.weather == Weather.RAINING
    assert config.surface == Surface.ICE
    assert config.lighting == Lighting.NIGHT


def test_unknown_enum_value_rejected():
    with pytest.raises(ConfigurationError, match="weather"):
        SimConfig(weather="hail")


@pytest.mark.parametrize("changes", [
    {'restitution': 1.5},
    {'restitution': -0.1},
    {'tick_rate_hz': 0.0},
    {'vehicle_count': 4},
    {'lead_decel_1': 2.0},
    {'ego_speed': -1.0},
    {'gap1': 0.0},
    {'ttc_trigger_s': -0.5},
    {'mu_override': 0.0},
    {'ego_speed': math.nan},
    {'grade_deg': math.inf},
    {'vehicle_count': 3.0},
    {'vehicle_count': True},
    {'tick_rate_hz': "20"},
    {'mu_override': "0.8"},
])
def test_invalid_values_rejected(changes):
    with pytest.raises(ConfigurationError):
        SimConfig(**changes)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        SimConfig(restitution=3.0)


def test_all_problems_reported_together():
    with pytest.raises(ConfigurationError) as excinfo:
        SimConfig(restitution=2.0, gap1=-1.0, vehicle_count=5)
    message = str(excinfo.value)
    assert "restitution" in message
    assert "gap1" in message
    assert "vehicle_count" in message


def test_nested_configs_validated():
    with pytest.raises(ConfigurationError):
        VehicleConfig(mass_kg=0.0)
    with pytest.raises(ConfigurationError):
        VehicleConfig(length_m=-4.5)
    with pytest.raises(ConfigurationError):
        EnvironmentConfig(surface_roughness=1.5)
    with pytest.raises(ConfigurationError):
        EnvironmentConfig(water_film_mm=-1.0)


def test_validate_catches_mutated_nested_config():
    config = SimConfig()
    bad_ego = replace(config.ego)
    object.__setattr__(bad_ego, 'mass_kg', -10.0)
    object.__setattr__(config, 'ego', bad_ego)

    with pytest.raises(ConfigurationError, match="ego"):
        config.validate()


def test_patched_returns_validated_copy():
    config = SimConfig()
    patched = config.patched(ttc_trigger_s=2.0)
    assert patched.ttc_trigger_s == 2.0
    assert config.ttc_trigger_s == 1.6

    with pytest.raises(ConfigurationError):
        config.patched(restitution=5.0)


def test_from_dict_nested():
    config = SimConfig.from_dict({
        'kind': 'Custom',
        'weather': 'snowing',
        'ego': {'mass_kg': 1800.0},
        'environment': {'water_film_mm': 1.5},
    })
    assert config.kind == ScenarioKind.CUSTOM
    assert config.ego.mass_kg == 1800.0
    assert config.ego.length_m == 4.5
    assert config.environment.water_film_mm == 1.5


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigurationError, match="ego_sped"):
        SimConfig.from_dict({'ego_sped': 10.0})

    with pytest.raises(ConfigurationError):
        SimConfig.from_dict({'ego': {'weight': 1500.0}})


def test_yaml_round_trip(tmp_path):
    config = SimConfig(
        kind="CCRb",
        weather="fog",
        surface="gravel",
        vehicle_count=3,
        mu_override=0.6,
        lead1=VehicleConfig(mass_kg=2100.0, drag_area_m2=0.8),
        environment=EnvironmentConfig(altitude_m=1200.0, headwind_mps=3.0),
    )
    path = tmp_path / "config.yaml"
    config.to_yaml(str(path))

    with open(path) as f:
        raw = yaml.safe_load(f)
    assert raw['kind'] == "CCRb"
    assert raw['lead1']['mass_kg'] == 2100.0

    assert SimConfig.from_yaml(str(path)) == config


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert SimConfig.from_yaml(str(path)) == SimConfig()


def test_root_config_loads():
    config = SimConfig.from_yaml(str(ROOT_CONFIG))
    assert config.kind == ScenarioKind.CCRM
    assert config.tick_rate_hz == 20.0
    assert config.mu_override is None


def test_yaml_type_errors_become_configuration_errors(tmp_path):
    path = tmp_path / "typed.yaml"

    path.write_text("vehicle_count: 3.0\n")
    with pytest.raises(ConfigurationError, match="vehicle_count"):
        SimConfig.from_yaml(str(path))

    path.write_text('tick_rate_hz: "20"\n')
    with pytest.raises(ConfigurationError, match="tick_rate_hz"):
        SimConfig.from_yaml(str(path))

    path.write_text('ego:\n  mass_kg: "heavy"\n')
    with pytest.raises(ConfigurationError, match="mass_kg"):
        SimConfig.from_yaml(str(path))

    # Integers are fine where floats are expected
    path.write_text("gap1: 30\ntick_rate_hz: 50\n")
    config = SimConfig.from_yaml(str(path))
    assert config.dt == pytest.approx(0.02)
