"""Tests for metric normalization."""

from __future__ import annotations

import pytest

from scalpcare.domains.scalp.domain_logic.models import MachineMetrics, ScalpColor
from scalpcare.domains.scalp.domain_logic.normalizer import (
    MINI_RATE_FLOOR,
    miniaturization_rate,
    normalize,
    redness_score,
    round_half_up,
)


def _metrics(**overrides) -> MachineMetrics:
    values = dict(
        hair_density=120,
        hair_diameter=80,
        sebum_percentage=10,
        follicle_health=80,
        dandruff_level=1,
    )
    values.update(overrides)
    return MachineMetrics(**values)


class TestMiniaturizationRate:
    @pytest.mark.parametrize("diameter", [80, 81, 95, 110, 500])
    def test_floor_at_or_above_standard(self, diameter):
        assert miniaturization_rate(diameter) == MINI_RATE_FLOOR == 0.05

    @pytest.mark.parametrize(
        "diameter, expected",
        [(60, 0.25), (40, 0.5), (64, 0.2), (79, 0.01), (0, 1.0), (70, 0.13)],
    )
    def test_below_standard_rounds_to_two_places(self, diameter, expected):
        assert miniaturization_rate(diameter) == expected

    def test_exact_half_rounds_up(self):
        # (80 - 70) / 80 == 0.125 exactly
        assert miniaturization_rate(70) == 0.13

    def test_below_half_rounds_down(self):
        # 0.0625 sits below the 0.065 midpoint
        assert miniaturization_rate(75) == 0.06

    def test_round_half_up_helper(self):
        assert round_half_up(0.125) == 0.13
        assert round_half_up(0.1249) == 0.12
        assert round_half_up(1.0) == 1.0


class TestRednessScore:
    def test_reddish(self):
        assert redness_score(ScalpColor.REDDISH) == 2.5

    def test_normal(self):
        assert redness_score(ScalpColor.NORMAL) == 1.0


class TestNormalize:
    def test_missing_metrics_use_baseline(self):
        idx = normalize(None, ScalpColor.NORMAL)
        assert idx.density == 120
        assert idx.mini_rate == 0.05
        assert idx.clog_rate == 0.1
        assert idx.redness_score == 1.0

    def test_machine_metrics_pass_through(self):
        idx = normalize(_metrics(hair_density=95, hair_diameter=60, sebum_percentage=25),
                        ScalpColor.REDDISH)
        assert idx.density == 95
        assert idx.mini_rate == 0.25
        assert idx.clog_rate == 0.25
        assert idx.redness_score == 2.5

    def test_clog_rate_is_not_clamped(self):
        assert normalize(_metrics(sebum_percentage=150), ScalpColor.NORMAL).clog_rate == 1.5
        assert normalize(_metrics(sebum_percentage=-10), ScalpColor.NORMAL).clog_rate == -0.1

    def test_to_dict_uses_wire_keys(self):
        data = normalize(None, ScalpColor.NORMAL).to_dict()
        assert data == {
            "density": 120,
            "miniRate": 0.05,
            "clogRate": 0.1,
            "rednessScore": 1.0,
        }
