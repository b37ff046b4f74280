"""
Tests for the CCR templates and parameter randomization.

Run with: pytest tests/test_scenarios.py -v
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np
import pytest

from aebsim.scenarios.randomization import (
    ParameterRandomizer,
    RandomizationConfig,
    RandomizationRange,
)
from aebsim.scenarios.templates import (
    CCRM_EGO_SPEEDS_KMH,
    CCRS_EGO_SPEEDS_KMH,
    ScenarioKind,
    apply_template,
    template_values,
)
from aebsim.sim.config import SimConfig


def test_ccrs_template():
    rng = np.random.default_rng(0)
    for _ in range(20):
        values = template_values(ScenarioKind.CCRS, rng)
        assert round(values['ego_speed'] * 3.6) in CCRS_EGO_SPEEDS_KMH
        assert values['lead1_speed'] == 0.0
        assert values['lead_decel_1'] == 0.0
        assert values['gap1'] == pytest.approx(max(12.0, values['ego_speed'] * 4.0 * 0.9))
        assert values['gap2'] == pytest.approx(values['gap1'] + 10.0)


def test_ccrm_template():
    rng = np.random.default_rng(1)
    for _ in range(20):
        values = template_values(ScenarioKind.CCRM, rng)
        assert round(values['ego_speed'] * 3.6) in CCRM_EGO_SPEEDS_KMH
        assert values['lead1_speed'] == pytest.approx(20.0 / 3.6)
        assert values['lead2_speed'] == values['lead1_speed']
        closing = values['ego_speed'] - values['lead1_speed']
        assert values['gap1'] == pytest.approx(max(12.0, closing * 3.6))


def test_ccrb_template():
    rng = np.random.default_rng(2)
    seen_gaps, seen_decels = set(), set()
    for _ in range(50):
        values = template_values(ScenarioKind.CCRB, rng)
        assert values['ego_speed'] == pytest.approx(50.0 / 3.6)
        assert values['lead1_speed'] == values['ego_speed']
        assert values['gap1'] in (12.0, 40.0)
        assert values['lead_decel_1'] in (-2.0, -6.0)
        seen_gaps.add(values['gap1'])
        seen_decels.add(values['lead_decel_1'])

    assert seen_gaps == {12.0, 40.0}
    assert seen_decels == {-2.0, -6.0}


def test_custom_is_untouched_and_consumes_no_randomness():
    rng = np.random.default_rng(3)
    before = rng.bit_generator.state

    config = SimConfig(kind="Custom", ego_speed=17.0, gap1=33.0)
    assert apply_template(config, rng) is config
    assert template_values(ScenarioKind.CUSTOM, rng) == {}
    assert rng.bit_generator.state == before


def test_apply_template_returns_new_config():
    config = SimConfig(kind="CCRb", lead_decel_1=0.0)
    templated = apply_template(config, np.random.default_rng(4))

    assert templated is not config
    assert config.lead_decel_1 == 0.0
    assert templated.lead_decel_1 in (-2.0, -6.0)
    assert templated.kind == ScenarioKind.CCRB


def test_seeded_templates_reproducible():
    a = [template_values(ScenarioKind.CCRS, np.random.default_rng(11)) for _ in range(3)]
    b = [template_values(ScenarioKind.CCRS, np.random.default_rng(11)) for _ in range(3)]
    assert a == b


def test_randomization_range_validation():
    with pytest.raises(ValueError):
        RandomizationRange(True, 2.0, 1.0)
    RandomizationRange(True, 1.0, 1.0)


def test_sample_respects_vehicle_count():
    randomizer = ParameterRandomizer(seed=5)
    two = randomizer.sample(vehicle_count=2)
    assert 'gap2' not in two
    assert 'ego_speed_kmh' in two and 'gap1' in two
    assert randomizer.current_params == two

    cfg = RandomizationConfig()
    cfg.set_all(True)
    three = ParameterRandomizer(cfg, seed=5).sample(vehicle_count=3)
    assert {'lead2_speed_kmh', 'gap2', 'lead2_mass', 'lead2_drag_area'} <= set(three)


def test_sampled_values_in_range():
    cfg = RandomizationConfig()
    cfg.set_all(True)
    randomizer = ParameterRandomizer(cfg, seed=6)
    for _ in range(20):
        params = randomizer.sample(vehicle_count=3)
        for key, value in params.items():
            bounds = cfg.ranges[key]
            assert bounds.low <= value <= bounds.high


def test_randomize_produces_custom_config():
    cfg = RandomizationConfig()
    cfg.set_all(True)
    base = SimConfig(kind="CCRb", vehicle_count=3)

    config = ParameterRandomizer(cfg, seed=7).randomize(base)

    assert config.kind == ScenarioKind.CUSTOM
    assert 20.0 / 3.6 <= config.ego_speed <= 80.0 / 3.6
    assert config.ego.mass_kg == float(round(config.ego.mass_kg))
    assert 1100.0 <= config.lead2.mass_kg <= 2200.0
    assert 0.5 <= config.lead1.drag_area_m2 <= 0.9
    assert config.grade_deg == float(round(config.grade_deg))
    assert -7.0 <= config.lead_decel_1 <= -1.0
    # Lengths are not randomized
    assert config.ego.length_m == base.ego.length_m
    # The base config is left alone
    assert base.kind == ScenarioKind.CCRB


def test_randomize_with_everything_disabled():
    cfg = RandomizationConfig()
    cfg.set_all(False)
    base = SimConfig(kind="CCRm")

    config = ParameterRandomizer(cfg, seed=8).randomize(base)
    assert config.kind == ScenarioKind.CUSTOM
    assert config.patched(kind=base.kind) == base


def test_randomizer_seeded_reproducibility():
    base = SimConfig()
    a = ParameterRandomizer(seed=9).randomize(base)
    b = ParameterRandomizer(seed=9).randomize(base)
    c = ParameterRandomizer(seed=10).randomize(base)
    assert a == b
    assert a != c
