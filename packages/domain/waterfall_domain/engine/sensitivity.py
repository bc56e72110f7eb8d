"""Exit value sensitivity sweeps.

A sweep reruns the full waterfall (enhancements included) at evenly spaced
exit values and records how carry and LP returns respond. Tiers that start
receiving proceeds somewhere inside the range are reported as break-even
points.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..errors import InvalidSensitivityRangeError
from ..schemas import (
    BreakEvenPoint,
    SensitivityAnalysis,
    SensitivityCFG,
    SensitivityDataPoint,
    WaterfallResults,
    WaterfallScenario,
)
from ..schemas.base import ZERO
from .calculators import calculate_waterfall, resolve_model
from .metrics import calculate_moic

logger = logging.getLogger(__name__)


def _whole_units(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"))


def _clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    return max(lower, min(value, upper))


# =============================================================================
# Range Resolution
# =============================================================================

def resolve_sensitivity_range(
    base_exit_value: Decimal,
    min_multiplier: Optional[Decimal] = None,
    max_multiplier: Optional[Decimal] = None,
    cfg: Optional[SensitivityCFG] = None,
) -> Tuple[Decimal, Decimal]:
    """Turn requested multipliers into a clamped (min, max) exit value range.

    Bounds:
        lo   = max(0, base * min_range_multiplier)
        hi   = max(lo + min_range_span, base * max_range_multiplier)
        step = max(min_step, base * step_multiplier)

    The requested minimum is clamped into [lo, hi - step] and the requested
    maximum into [min + step, hi], so the range always spans at least one
    slider step.

    Args:
        base_exit_value: Scenario exit value the multipliers refer to
        min_multiplier: Requested lower multiplier (defaults to cfg.default_min_multiplier)
        max_multiplier: Requested upper multiplier (defaults to cfg.default_max_multiplier)
        cfg: Sensitivity constants (defaults to SensitivityCFG())

    Returns:
        (min_exit_value, max_exit_value) rounded to whole currency units

    Example:
        >>> resolve_sensitivity_range(Decimal("150000000"))
        (Decimal('75000000'), Decimal('225000000'))
    """
    cfg = cfg if cfg is not None else SensitivityCFG()
    base = Decimal(base_exit_value)
    min_multiplier = Decimal(min_multiplier) if min_multiplier is not None else cfg.default_min_multiplier
    max_multiplier = Decimal(max_multiplier) if max_multiplier is not None else cfg.default_max_multiplier

    lo = max(ZERO, base * cfg.min_range_multiplier)
    hi = max(lo + cfg.min_range_span, base * cfg.max_range_multiplier)
    slider_step = max(cfg.min_step, base * cfg.step_multiplier)

    min_exit_value = _clamp(base * min_multiplier, lo, hi - slider_step)
    max_exit_value = _clamp(base * max_multiplier, min_exit_value + slider_step, hi)
    return _whole_units(min_exit_value), _whole_units(max_exit_value)


# =============================================================================
# Sweep
# =============================================================================

def _data_point(scenario: WaterfallScenario, exit_value: Decimal, results: WaterfallResults) -> SensitivityDataPoint:
    lp_results = [r for r in results.investor_class_results if r.investor_class_type == "lp"]
    lp_multiple = (
        sum((r.multiple for r in lp_results), ZERO) / len(lp_results)
        if lp_results
        else ZERO
    )
    return SensitivityDataPoint(
        exit_value=exit_value,
        gp_carry=results.gp_carry,
        gp_carry_percentage=results.gp_carry_percentage,
        lp_return=sum((r.returned for r in lp_results), ZERO),
        lp_multiple=lp_multiple,
        total_multiple=calculate_moic(scenario.total_invested, exit_value),
        clawback_due=results.clawback.clawback_due if results.clawback is not None else None,
    )


def calculate_sensitivity_analysis(
    scenario: WaterfallScenario,
    min_exit_value: Decimal,
    max_exit_value: Decimal,
    steps: int = 20,
    model=None,
) -> SensitivityAnalysis:
    """Sweep exit values from min to max in `steps` equal increments.

    Args:
        scenario: Scenario whose exit value is replaced at each point
        min_exit_value: First exit value of the sweep
        max_exit_value: Last exit value of the sweep
        steps: Number of increments (the sweep has steps + 1 points)
        model: Optional override of `scenario.model`

    Returns:
        SensitivityAnalysis with ascending data points and break-even points

    Raises:
        InvalidSensitivityRangeError: If steps < 1 or max < min
        UnsupportedModelError: If the model has no calculator
    """
    if steps < 1:
        raise InvalidSensitivityRangeError(f"steps must be at least 1, got {steps}")
    min_exit_value = Decimal(min_exit_value)
    max_exit_value = Decimal(max_exit_value)
    if max_exit_value < min_exit_value:
        raise InvalidSensitivityRangeError(
            f"max_exit_value ({max_exit_value}) is below min_exit_value ({min_exit_value})"
        )

    resolved = resolve_model(scenario.model if model is None else model)
    span = max_exit_value - min_exit_value
    logger.debug(
        "Sensitivity sweep for %s (%s): %s..%s in %d steps",
        scenario.id, resolved.value, min_exit_value, max_exit_value, steps,
    )

    data_points: List[SensitivityDataPoint] = []
    break_even_points: List[BreakEvenPoint] = []
    activated = set()
    previous_totals: Optional[Dict[str, Decimal]] = None

    for i in range(steps + 1):
        exit_value = min_exit_value + span * i / steps
        point_scenario = scenario.model_copy(update={"exit_value": exit_value})
        results = calculate_waterfall(point_scenario, resolved)
        data_points.append(_data_point(scenario, exit_value, results))

        totals = {tier.tier_id: tier.total_amount for tier in results.tier_breakdown}
        if previous_totals is None:
            # Tiers already populated at the first point are not break-evens
            activated.update(tier_id for tier_id, total in totals.items() if total > 0)
        else:
            for tier in results.tier_breakdown:
                if tier.tier_id in activated or tier.total_amount <= 0:
                    continue
                if previous_totals.get(tier.tier_id, ZERO) <= 0:
                    activated.add(tier.tier_id)
                    break_even_points.append(BreakEvenPoint(
                        tier_id=tier.tier_id,
                        tier_name=tier.tier_name,
                        exit_value=exit_value,
                    ))
        previous_totals = totals

    return SensitivityAnalysis(
        scenario_id=scenario.id,
        model=resolved,
        min_exit_value=min_exit_value,
        max_exit_value=max_exit_value,
        step=span / steps,
        data_points=data_points,
        break_even_points=break_even_points,
    )


def run_sensitivity(
    scenario: WaterfallScenario,
    min_multiplier: Optional[Decimal] = None,
    max_multiplier: Optional[Decimal] = None,
    steps: Optional[int] = None,
    cfg: Optional[SensitivityCFG] = None,
    model=None,
) -> SensitivityAnalysis:
    """Resolve a range around the scenario's exit value and sweep it.

    Raises:
        InvalidSensitivityRangeError: If `steps` is not one of cfg.step_options
    """
    cfg = cfg if cfg is not None else SensitivityCFG()
    steps = cfg.default_steps if steps is None else steps
    if steps not in cfg.step_options:
        raise InvalidSensitivityRangeError(
            f"steps ({steps}) must be one of {cfg.step_options}"
        )

    min_exit_value, max_exit_value = resolve_sensitivity_range(
        scenario.exit_value, min_multiplier, max_multiplier, cfg
    )
    return calculate_sensitivity_analysis(
        scenario, min_exit_value, max_exit_value, steps, model=model
    )


def compare_models(
    scenario: WaterfallScenario,
    compare_model,
    min_multiplier: Optional[Decimal] = None,
    max_multiplier: Optional[Decimal] = None,
    steps: Optional[int] = None,
    cfg: Optional[SensitivityCFG] = None,
) -> Tuple[SensitivityAnalysis, SensitivityAnalysis]:
    """Sweep the scenario under its own model and under `compare_model`.

    Both sweeps share the same range and step count.

    Returns:
        (analysis under scenario.model, analysis under compare_model)
    """
    base = run_sensitivity(scenario, min_multiplier, max_multiplier, steps, cfg)
    alternative = calculate_sensitivity_analysis(
        scenario,
        base.min_exit_value,
        base.max_exit_value,
        len(base.data_points) - 1,
        model=compare_model,
    )
    return base, alternative
