"""Tests for exit value sensitivity sweeps.

Base case ($150M exit) with the default 0.5x - 1.5x sweep covers $75M to
$225M. With 10 steps the points sit $15M apart, so tiers activate at:

    Preferred return:  $105M (first point above $100M invested)
    Catch-up:          $135M (first point above $124M)
    Carry:             $165M (first point above $155M)
"""

from decimal import Decimal

import pytest

from waterfall_domain.engine import (
    calculate_sensitivity_analysis,
    compare_models,
    resolve_sensitivity_range,
    run_sensitivity,
)
from waterfall_domain.errors import InvalidSensitivityRangeError, UnsupportedModelError
from waterfall_domain.schemas import SensitivityCFG

from scenario_builders import build_clawback, build_scenario


class TestResolveSensitivityRange:

    def test_default_multipliers(self):
        assert resolve_sensitivity_range(Decimal("150000000")) == (
            Decimal("75000000"),
            Decimal("225000000"),
        )

    def test_clamped_to_slider_bounds(self):
        """0.1x and 5x are clamped to 0.25x and 2x."""
        low, high = resolve_sensitivity_range(
            Decimal("150000000"), Decimal("0.1"), Decimal("5")
        )

        assert low == Decimal("37500000")
        assert high == Decimal("300000000")

    def test_range_spans_at_least_one_step(self):
        """Equal multipliers still leave one slider step ($7.5M) of range."""
        low, high = resolve_sensitivity_range(
            Decimal("150000000"), Decimal("1"), Decimal("1")
        )

        assert low == Decimal("150000000")
        assert high == Decimal("157500000")

    def test_zero_base_uses_minimum_span(self):
        low, high = resolve_sensitivity_range(Decimal("0"))

        assert low == Decimal("0")
        assert high == Decimal("1000000")

    def test_rounds_to_whole_units(self):
        low, high = resolve_sensitivity_range(Decimal("123456789.55"))

        assert low == low.to_integral_value()
        assert high == high.to_integral_value()

    def test_custom_config(self):
        cfg = SensitivityCFG(default_min_multiplier=Decimal("0.8"), default_max_multiplier=Decimal("1.2"))

        assert resolve_sensitivity_range(Decimal("100000000"), cfg=cfg) == (
            Decimal("80000000"),
            Decimal("120000000"),
        )


class TestSensitivityAnalysis:

    def test_points_are_ascending_and_complete(self):
        analysis = run_sensitivity(build_scenario(), steps=10)

        exit_values = [p.exit_value for p in analysis.data_points]
        assert len(exit_values) == 11
        assert exit_values == sorted(exit_values)
        assert exit_values[0] == Decimal("75000000")
        assert exit_values[-1] == Decimal("225000000")
        assert analysis.step == Decimal("15000000")
        assert analysis.model == "european"
        assert analysis.scenario_id == "scenario-base"

    def test_break_even_points(self):
        analysis = run_sensitivity(build_scenario(), steps=10)

        assert [(b.tier_id, b.exit_value) for b in analysis.break_even_points] == [
            ("tier-pref", Decimal("105000000")),
            ("tier-catchup", Decimal("135000000")),
            ("tier-carry", Decimal("165000000")),
        ]

    def test_point_metrics(self):
        analysis = calculate_sensitivity_analysis(
            build_scenario(), Decimal("150000000"), Decimal("200000000"), steps=1
        )
        first, last = analysis.data_points

        assert first.gp_carry == Decimal("26000000")
        assert first.lp_return == Decimal("124000000")
        assert first.lp_multiple == Decimal("1.24")
        assert first.total_multiple == Decimal("1.5")
        assert first.clawback_due is None
        assert last.gp_carry == Decimal("40000000")

    def test_clawback_tracked_per_point(self):
        analysis = calculate_sensitivity_analysis(
            build_scenario(clawback_provision=build_clawback()),
            Decimal("150000000"),
            Decimal("150000000"),
            steps=1,
        )

        assert analysis.data_points[0].clawback_due == Decimal("8000000")

    def test_default_step_count(self):
        analysis = run_sensitivity(build_scenario())

        assert len(analysis.data_points) == 21

    def test_sweeps_are_deterministic(self):
        scenario = build_scenario()

        assert run_sensitivity(scenario, steps=20) == run_sensitivity(scenario, steps=20)

    def test_scenario_not_mutated(self):
        scenario = build_scenario()
        run_sensitivity(scenario, steps=10)

        assert scenario.exit_value == Decimal("150000000")

    def test_model_override(self):
        analysis = run_sensitivity(build_scenario(), steps=10, model="american")

        assert analysis.model == "american"
        assert "tier-catchup" not in [b.tier_id for b in analysis.break_even_points]


class TestSensitivityErrors:

    @pytest.mark.parametrize("steps", [0, 15, 50])
    def test_step_count_outside_options(self, steps):
        with pytest.raises(InvalidSensitivityRangeError):
            run_sensitivity(build_scenario(), steps=steps)

    def test_max_below_min(self):
        with pytest.raises(InvalidSensitivityRangeError):
            calculate_sensitivity_analysis(
                build_scenario(), Decimal("200000000"), Decimal("100000000"), steps=10
            )

    def test_non_positive_steps(self):
        with pytest.raises(InvalidSensitivityRangeError):
            calculate_sensitivity_analysis(
                build_scenario(), Decimal("100000000"), Decimal("200000000"), steps=0
            )

    def test_failure_aborts_sweep(self):
        """A tier error anywhere in the range fails the whole sweep."""
        scenario = build_scenario()
        tiers = [t.model_copy(deep=True) for t in scenario.tiers]
        tiers[3] = tiers[3].model_copy(update={"gp_carry_percentage": None})

        with pytest.raises(ValueError):
            run_sensitivity(build_scenario(tiers=tiers), steps=10)

    def test_unknown_model(self):
        with pytest.raises(UnsupportedModelError):
            run_sensitivity(build_scenario(), steps=10, model="asian")


class TestCompareModels:

    def test_same_range_for_both_models(self):
        european, american = compare_models(build_scenario(), "american", steps=10)

        assert [p.exit_value for p in european.data_points] == [p.exit_value for p in american.data_points]
        assert european.model == "european"
        assert american.model == "american"

    def test_carry_differs_at_base_case(self):
        european, american = compare_models(build_scenario(), "american", steps=10)
        # $150M is the sixth point of the $75M..$225M sweep
        assert european.data_points[5].gp_carry == Decimal("26000000")
        assert american.data_points[5].gp_carry == Decimal("5200000")
