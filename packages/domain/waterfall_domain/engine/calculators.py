"""Waterfall calculators and the model dispatcher.

Three structures are supported:

- European (whole-fund): every distribution goes through the tiers at fund
  level. LPs get all capital and the hurdle back before the GP catches up.
- American (deal-by-deal): named extension point for per-deal waterfalls.
  Scenarios carry no per-deal proceeds, so it runs the shared tier engine on
  the capital-called basis with catch-up tiers skipped.
- Blended: European and American run independently on the same scenario and
  every numeric output is interpolated with the configured weights.

All calculators return the same WaterfallResults shape, with clawback,
lookback and the tier timeline already attached.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Type

from ..errors import UnsupportedModelError
from ..schemas import (
    AMERICAN_OPTIONS,
    EUROPEAN_OPTIONS,
    BlendedWaterfallConfig,
    InvestorClassResult,
    TierAllocation,
    TierBreakdown,
    WaterfallCalculationOptions,
    WaterfallModel,
    WaterfallResults,
    WaterfallScenario,
)
from ..schemas.base import HUNDRED, ZERO
from .allocator import AllocationOutcome, TierAllocator
from .enhancements import apply_enhancements
from .metrics import calculate_irr, calculate_moic, carry_percentage

logger = logging.getLogger(__name__)


# =============================================================================
# Calculator Base
# =============================================================================

class WaterfallCalculator(ABC):
    """Computes WaterfallResults for one legal structure."""

    model: WaterfallModel

    @abstractmethod
    def calculate(self, scenario: WaterfallScenario) -> WaterfallResults:
        """Run the waterfall for a scenario.

        Args:
            scenario: Fully populated scenario (its `model` field is ignored)

        Returns:
            WaterfallResults with enhancements attached

        Raises:
            InvalidTierConfigurationError: If a tier lacks a required parameter
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model.value!r})"


class TierWaterfallCalculator(WaterfallCalculator):
    """Single pass of the tier allocator under fixed calculation options."""

    default_options: WaterfallCalculationOptions = EUROPEAN_OPTIONS

    def __init__(self, options: Optional[WaterfallCalculationOptions] = None):
        self.options = options if options is not None else self.default_options

    def calculate(self, scenario: WaterfallScenario) -> WaterfallResults:
        outcome = TierAllocator(scenario, self.options).allocate()
        results = self._aggregate(scenario, outcome)
        return apply_enhancements(scenario, results)

    def _aggregate(self, scenario: WaterfallScenario, outcome: AllocationOutcome) -> WaterfallResults:
        """Turn an allocation pass into fund-level results."""
        start = scenario.created_at.date()
        class_results: List[InvestorClassResult] = []
        for ic in scenario.investor_classes:
            result = outcome.class_results[ic.id]
            result.multiple = calculate_moic(result.invested, result.returned)
            result.net_return = result.returned - result.invested
            result.profit = result.net_return
            result.irr = calculate_irr(
                result.invested, result.returned, start, self.options.hold_period_years
            )
            class_results.append(result)

        lp_results = [r for r in class_results if r.investor_class_type == "lp"]
        lp_average_multiple = (
            sum((r.multiple for r in lp_results), ZERO) / len(lp_results)
            if lp_results
            else ZERO
        )

        gp_carry = outcome.gp_total
        return WaterfallResults(
            total_exit_value=scenario.exit_value,
            total_invested=outcome.total_invested,
            total_returned=outcome.total_distributed,
            gp_carry=gp_carry,
            gp_carry_percentage=carry_percentage(gp_carry, scenario.exit_value),
            gp_management_fees=scenario.management_fees,
            gp_total_return=outcome.gp_total,
            lp_total_return=outcome.lp_total,
            lp_average_multiple=lp_average_multiple,
            investor_class_results=class_results,
            tier_breakdown=outcome.tier_breakdown,
        )


# =============================================================================
# European / American
# =============================================================================

class EuropeanWaterfallCalculator(TierWaterfallCalculator):
    """Whole-fund waterfall: commitment basis, catch-up enabled."""

    model = WaterfallModel.EUROPEAN
    default_options = EUROPEAN_OPTIONS


class AmericanWaterfallCalculator(TierWaterfallCalculator):
    """Deal-by-deal waterfall: capital-called basis, catch-up skipped.

    Per-event allocation (each deal clearing its own tiers) plugs in here once
    scenarios carry discrete distribution events.
    """

    model = WaterfallModel.AMERICAN
    default_options = AMERICAN_OPTIONS


# =============================================================================
# Blended
# =============================================================================

def _blend(a: Decimal, b: Decimal, weight_a: Decimal, weight_b: Decimal) -> Decimal:
    return a * weight_a + b * weight_b


def _blend_optional(
    a: Optional[Decimal], b: Optional[Decimal], weight_a: Decimal, weight_b: Decimal
) -> Optional[Decimal]:
    if a is None and b is None:
        return None
    if b is None:
        return a * weight_a if weight_b == 0 else None
    if a is None:
        return b * weight_b if weight_a == 0 else None
    return _blend(a, b, weight_a, weight_b)


class BlendedWaterfallCalculator(WaterfallCalculator):
    """Weighted interpolation of the European and American results.

    Weights are applied as weight / 100 without renormalization, so
    (100, 0) reproduces the European result and (0, 100) the American one.

    Example:
        70/30 blend, European carry $26M, American carry $5.2M:
            blended carry = 26 * 0.7 + 5.2 * 0.3 = $19.76M
    """

    model = WaterfallModel.BLENDED

    def __init__(
        self,
        european: Optional[WaterfallCalculator] = None,
        american: Optional[WaterfallCalculator] = None,
    ):
        self.european = european if european is not None else EuropeanWaterfallCalculator()
        self.american = american if american is not None else AmericanWaterfallCalculator()

    def calculate(self, scenario: WaterfallScenario) -> WaterfallResults:
        config = scenario.blended_config if scenario.blended_config is not None else BlendedWaterfallConfig()
        if config.european_weight + config.american_weight != HUNDRED:
            logger.warning(
                "Blended weights %s/%s do not sum to 100; applying as given",
                config.european_weight, config.american_weight,
            )
        w_eu = config.european_weight / HUNDRED
        w_us = config.american_weight / HUNDRED

        european = self.european.calculate(scenario)
        american = self.american.calculate(scenario)

        tiers = self._blend_tiers(scenario, european, american, w_eu, w_us)
        blended = WaterfallResults(
            total_exit_value=scenario.exit_value,
            total_invested=_blend(european.total_invested, american.total_invested, w_eu, w_us),
            total_returned=_blend(european.total_returned, american.total_returned, w_eu, w_us),
            gp_carry=_blend(european.gp_carry, american.gp_carry, w_eu, w_us),
            gp_carry_percentage=_blend(european.gp_carry_percentage, american.gp_carry_percentage, w_eu, w_us),
            gp_management_fees=_blend(european.gp_management_fees, american.gp_management_fees, w_eu, w_us),
            gp_total_return=_blend(european.gp_total_return, american.gp_total_return, w_eu, w_us),
            lp_total_return=_blend(european.lp_total_return, american.lp_total_return, w_eu, w_us),
            lp_average_multiple=_blend(european.lp_average_multiple, american.lp_average_multiple, w_eu, w_us),
            investor_class_results=self._blend_classes(european, american, tiers, w_eu, w_us),
            tier_breakdown=tiers,
        )

        blended = apply_enhancements(scenario, blended)
        blended.blended_breakdown = BlendedWaterfallConfig(
            european_weight=config.european_weight,
            american_weight=config.american_weight,
        )
        return blended

    def _blend_tiers(
        self,
        scenario: WaterfallScenario,
        european: WaterfallResults,
        american: WaterfallResults,
        w_eu: Decimal,
        w_us: Decimal,
    ) -> List[TierBreakdown]:
        """Blend tier breakdowns matched by tier id.

        A tier missing from one side counts as zero there. Derived fields
        (percentages, cumulative amounts) are recomputed from blended totals.
        """
        eu_tiers = {t.tier_id: t for t in european.tier_breakdown}
        us_tiers = {t.tier_id: t for t in american.tier_breakdown}

        blended: List[TierBreakdown] = []
        cumulative = ZERO
        for tier in scenario.sorted_tiers():
            eu = eu_tiers.get(tier.id)
            us = us_tiers.get(tier.id)
            if eu is None and us is None:
                continue

            total = _blend(*self._amounts(eu, us, "total_amount"), w_eu, w_us)
            if total <= 0:
                continue

            allocations = self._blend_allocations(eu, us, total, cumulative, w_eu, w_us)
            cumulative += total
            blended.append(TierBreakdown(
                tier_id=tier.id,
                tier_name=tier.name,
                tier_type=tier.type,
                total_amount=total,
                gp_amount=_blend(*self._amounts(eu, us, "gp_amount"), w_eu, w_us),
                lp_amount=_blend(*self._amounts(eu, us, "lp_amount"), w_eu, w_us),
                percentage=(total / scenario.exit_value * HUNDRED) if scenario.exit_value > 0 else ZERO,
                cumulative_amount=cumulative,
                allocations=allocations,
            ))
        return blended

    @staticmethod
    def _amounts(
        eu: Optional[TierBreakdown], us: Optional[TierBreakdown], name: str
    ) -> Tuple[Decimal, Decimal]:
        return (
            getattr(eu, name) if eu is not None else ZERO,
            getattr(us, name) if us is not None else ZERO,
        )

    @staticmethod
    def _blend_allocations(
        eu: Optional[TierBreakdown],
        us: Optional[TierBreakdown],
        tier_total: Decimal,
        cumulative: Decimal,
        w_eu: Decimal,
        w_us: Decimal,
    ) -> List[TierAllocation]:
        eu_allocs = {a.investor_class_id: a for a in (eu.allocations if eu is not None else [])}
        us_allocs = {a.investor_class_id: a for a in (us.allocations if us is not None else [])}
        class_ids = list(eu_allocs) + [cid for cid in us_allocs if cid not in eu_allocs]

        allocations = []
        for class_id in class_ids:
            eu_alloc = eu_allocs.get(class_id)
            us_alloc = us_allocs.get(class_id)
            template = eu_alloc if eu_alloc is not None else us_alloc
            amount = _blend(
                eu_alloc.amount if eu_alloc is not None else ZERO,
                us_alloc.amount if us_alloc is not None else ZERO,
                w_eu,
                w_us,
            )
            if amount <= 0:
                continue
            allocations.append(TierAllocation(
                tier_id=template.tier_id,
                tier_name=template.tier_name,
                investor_class_id=class_id,
                investor_class_name=template.investor_class_name,
                amount=amount,
                percentage=amount / tier_total * HUNDRED,
                cumulative_amount=cumulative + amount,
            ))
        return allocations

    @staticmethod
    def _blend_classes(
        european: WaterfallResults,
        american: WaterfallResults,
        tiers: List[TierBreakdown],
        w_eu: Decimal,
        w_us: Decimal,
    ) -> List[InvestorClassResult]:
        us_results: Dict[str, InvestorClassResult] = {
            r.investor_class_id: r for r in american.investor_class_results
        }
        blended = []
        for eu in european.investor_class_results:
            us = us_results.get(eu.investor_class_id)
            if us is None:
                blended.append(eu)
                continue
            blended.append(InvestorClassResult(
                investor_class_id=eu.investor_class_id,
                investor_class_name=eu.investor_class_name,
                investor_class_type=eu.investor_class_type,
                invested=_blend(eu.invested, us.invested, w_eu, w_us),
                returned=_blend(eu.returned, us.returned, w_eu, w_us),
                multiple=_blend(eu.multiple, us.multiple, w_eu, w_us),
                irr=_blend_optional(eu.irr, us.irr, w_eu, w_us),
                carry=_blend(eu.carry, us.carry, w_eu, w_us),
                net_return=_blend(eu.net_return, us.net_return, w_eu, w_us),
                profit=_blend(eu.profit, us.profit, w_eu, w_us),
                allocations=[
                    allocation
                    for tier in tiers
                    for allocation in tier.allocations
                    if allocation.investor_class_id == eu.investor_class_id
                ],
            ))
        return blended


# =============================================================================
# Dispatcher
# =============================================================================

CALCULATORS: Dict[str, Type[WaterfallCalculator]] = {
    WaterfallModel.EUROPEAN.value: EuropeanWaterfallCalculator,
    WaterfallModel.AMERICAN.value: AmericanWaterfallCalculator,
    WaterfallModel.BLENDED.value: BlendedWaterfallCalculator,
}


def resolve_model(model) -> WaterfallModel:
    """Map a model name (or enum member) onto WaterfallModel.

    Raises:
        UnsupportedModelError: If the name is not a known model
    """
    try:
        return WaterfallModel(model)
    except ValueError:
        raise UnsupportedModelError(model) from None


def get_calculator(model) -> WaterfallCalculator:
    """Instantiate the calculator registered for a model."""
    resolved = resolve_model(model)
    try:
        calculator_cls = CALCULATORS[resolved.value]
    except KeyError:
        raise UnsupportedModelError(model) from None
    return calculator_cls()


def calculate_waterfall(scenario: WaterfallScenario, model=None) -> WaterfallResults:
    """Route a scenario to the calculator for its model.

    Args:
        scenario: Scenario to calculate
        model: Optional override of `scenario.model` (e.g. for model comparisons)

    Returns:
        WaterfallResults with enhancements attached

    Raises:
        UnsupportedModelError: If the model has no calculator
        InvalidTierConfigurationError: If a tier lacks a required parameter
    """
    calculator = get_calculator(scenario.model if model is None else model)
    logger.debug("Calculating scenario %s with %r", scenario.id, calculator)
    return calculator.calculate(scenario)


def calculate_european_waterfall(scenario: WaterfallScenario) -> WaterfallResults:
    return EuropeanWaterfallCalculator().calculate(scenario)


def calculate_american_waterfall(scenario: WaterfallScenario) -> WaterfallResults:
    return AmericanWaterfallCalculator().calculate(scenario)


def calculate_blended_waterfall(scenario: WaterfallScenario) -> WaterfallResults:
    return BlendedWaterfallCalculator().calculate(scenario)
