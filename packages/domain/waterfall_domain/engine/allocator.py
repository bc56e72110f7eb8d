"""Tier allocator - runs proceeds through an ordered list of tiers.

The allocator is the workhorse shared by every calculator. For each tier (in
ascending `order`) it:
1. Computes the tier's claim on the remaining proceeds (by tier type)
2. Splits the claim into a GP side and an LP side
3. Splits each side across the investor classes on that side
4. Records a TierBreakdown and per-class TierAllocations

Tier rules:
- roc:              min(remaining, total_invested), LP only
- preferred-return: min(remaining, total_invested * hurdle% * years), LP only
- catch-up:         GP only, until GP holds g / (100 - g) of what was
                    distributed before the tier
- carry:            remaining split gp% / lp%
- custom:           min(remaining, threshold) split gp% / lp%

A tier whose claim is zero produces no breakdown entry. Allocation stops as
soon as the proceeds are exhausted.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Tuple

from ..errors import InvalidTierConfigurationError
from ..schemas import (
    InvestorClass,
    InvestorClassResult,
    TierAllocation,
    TierBreakdown,
    TierType,
    WaterfallCalculationOptions,
    WaterfallScenario,
    WaterfallTier,
)
from ..schemas.base import HUNDRED, ZERO

logger = logging.getLogger(__name__)

OWNERSHIP_TOLERANCE = Decimal("0.5")


def resolve_total_invested(
    scenario: WaterfallScenario, options: WaterfallCalculationOptions
) -> Decimal:
    """Total invested capital under the options' invested basis.

    The capital-called basis sums capital called across all classes and falls
    back to the scenario's total when nothing has been called yet.
    """
    if options.invested_basis == "capitalCalled":
        called = sum((ic.capital_called for ic in scenario.investor_classes), ZERO)
        return called if called > 0 else scenario.total_invested
    return scenario.total_invested


@dataclass
class AllocationOutcome:
    """Raw output of one allocation pass (before aggregation)."""

    total_invested: Decimal
    tier_breakdown: List[TierBreakdown] = field(default_factory=list)
    class_results: Dict[str, InvestorClassResult] = field(default_factory=dict)
    remaining: Decimal = ZERO

    @property
    def gp_total(self) -> Decimal:
        return sum((t.gp_amount for t in self.tier_breakdown), ZERO)

    @property
    def lp_total(self) -> Decimal:
        return sum((t.lp_amount for t in self.tier_breakdown), ZERO)

    @property
    def total_distributed(self) -> Decimal:
        return sum((t.total_amount for t in self.tier_breakdown), ZERO)


class TierAllocator:
    """Allocates a scenario's exit value across its tiers and investor classes.

    Example:
        allocator = TierAllocator(scenario, EUROPEAN_OPTIONS)
        outcome = allocator.allocate()
        for tier in outcome.tier_breakdown:
            print(tier.tier_name, tier.gp_amount, tier.lp_amount)
    """

    def __init__(self, scenario: WaterfallScenario, options: WaterfallCalculationOptions):
        self.scenario = scenario
        self.options = options
        self.total_invested = resolve_total_invested(scenario, options)

        self._lp_classes = sorted(scenario.lp_classes, key=lambda ic: ic.order)
        self._gp_classes = sorted(scenario.gp_classes, key=lambda ic: ic.order)
        self._check_ownership(self._lp_classes, "LP")
        self._check_ownership(self._gp_classes, "GP")

    def allocate(self) -> AllocationOutcome:
        """Run the exit value through every tier.

        Returns:
            AllocationOutcome with one TierBreakdown per tier that received
            proceeds and one InvestorClassResult per investor class

        Raises:
            InvalidTierConfigurationError: If a tier lacks a required parameter
        """
        outcome = AllocationOutcome(total_invested=self.total_invested)
        for ic in self.scenario.investor_classes:
            outcome.class_results[ic.id] = InvestorClassResult(
                investor_class_id=ic.id,
                investor_class_name=ic.name,
                investor_class_type=ic.type,
                invested=ic.invested_amount(self.options.invested_basis),
            )

        remaining = self.scenario.exit_value
        cumulative = ZERO
        gp_received = ZERO

        for tier in self.scenario.sorted_tiers():
            if remaining <= 0:
                break

            if tier.type == TierType.CATCH_UP.value and not self.options.include_catch_up:
                logger.debug("Skipping catch-up tier %s (catch-up disabled)", tier.id)
                continue

            gp_amount, lp_amount = self._claim(tier, remaining, cumulative, gp_received)
            total = gp_amount + lp_amount
            if total <= 0:
                logger.debug("Tier %s claimed nothing, skipped", tier.id)
                continue

            lp_allocations = self._split_side(tier, lp_amount, total, cumulative, self._lp_classes, is_gp=False)
            gp_allocations = self._split_side(tier, gp_amount, total, cumulative, self._gp_classes, is_gp=True)

            for allocation in lp_allocations + gp_allocations:
                result = outcome.class_results[allocation.investor_class_id]
                result.returned += allocation.amount
                result.allocations.append(allocation)
            # Every GP-side distribution is carried interest
            for allocation in gp_allocations:
                outcome.class_results[allocation.investor_class_id].carry += allocation.amount
            allocations = lp_allocations + gp_allocations

            cumulative += total
            remaining -= total
            gp_received += gp_amount

            outcome.tier_breakdown.append(TierBreakdown(
                tier_id=tier.id,
                tier_name=tier.name,
                tier_type=tier.type,
                total_amount=total,
                gp_amount=gp_amount,
                lp_amount=lp_amount,
                percentage=(total / self.scenario.exit_value * HUNDRED) if self.scenario.exit_value > 0 else ZERO,
                cumulative_amount=cumulative,
                allocations=allocations,
            ))
            logger.debug(
                "Tier %s (%s): total=%s gp=%s lp=%s remaining=%s",
                tier.id, tier.type, total, gp_amount, lp_amount, remaining,
            )

        outcome.remaining = remaining
        return outcome

    # ------------------------------------------------------------------ #
    # Tier claims
    # ------------------------------------------------------------------ #

    def _claim(
        self,
        tier: WaterfallTier,
        remaining: Decimal,
        cumulative: Decimal,
        gp_received: Decimal,
    ) -> Tuple[Decimal, Decimal]:
        """Compute a tier's (gp_amount, lp_amount) claim.

        Args:
            tier: Tier being processed
            remaining: Proceeds not yet distributed
            cumulative: Proceeds distributed by earlier tiers
            gp_received: GP amount distributed by earlier tiers

        Returns:
            (gp_amount, lp_amount)
        """
        if tier.type == TierType.ROC.value:
            return ZERO, min(remaining, self.total_invested)

        if tier.type == TierType.PREFERRED_RETURN.value:
            return ZERO, self._claim_preferred_return(tier, remaining)

        if tier.type == TierType.CATCH_UP.value:
            return self._claim_catch_up(tier, remaining, cumulative, gp_received), ZERO

        if tier.type == TierType.CARRY.value:
            gp_pct = self._require_gp_percentage(tier)
            return self._split_amount(tier, remaining, gp_pct)

        # custom
        base = remaining if tier.threshold is None else min(remaining, tier.threshold)
        gp_pct = tier.gp_carry_percentage if tier.gp_carry_percentage is not None else ZERO
        return self._split_amount(tier, base, gp_pct)

    def _claim_preferred_return(self, tier: WaterfallTier, remaining: Decimal) -> Decimal:
        """Simple (non-compounding) hurdle on invested capital."""
        if tier.hurdle_rate is None:
            raise InvalidTierConfigurationError(tier.id, "preferred-return tier requires hurdle_rate")

        years = (
            tier.hurdle_period_years
            if tier.hurdle_period_years is not None
            else self.options.hurdle_period_years
        )
        preferred = self.total_invested * tier.hurdle_rate / HUNDRED * years
        return min(remaining, preferred)

    def _claim_catch_up(
        self,
        tier: WaterfallTier,
        remaining: Decimal,
        cumulative: Decimal,
        gp_received: Decimal,
    ) -> Decimal:
        """GP catch-up to its target share of everything distributed so far.

        Example:
            $124M distributed (ROC + pref), 20% carry:
                target = 124 * 20 / 80 = $31M
                with $26M remaining the GP catches up $26M
        """
        gp_pct = self._require_gp_percentage(tier)

        # No finite target at 100%: the GP takes everything left.
        if gp_pct >= HUNDRED:
            return remaining

        target = cumulative * gp_pct / (HUNDRED - gp_pct)
        needed = max(ZERO, target - gp_received)
        return min(remaining, needed)

    def _split_amount(
        self, tier: WaterfallTier, base: Decimal, gp_pct: Decimal
    ) -> Tuple[Decimal, Decimal]:
        lp_pct = tier.lp_percentage if tier.lp_percentage is not None else HUNDRED - gp_pct
        if gp_pct + lp_pct > HUNDRED:
            raise InvalidTierConfigurationError(
                tier.id,
                f"gp_carry_percentage ({gp_pct}) + lp_percentage ({lp_pct}) exceeds 100",
            )
        return base * gp_pct / HUNDRED, base * lp_pct / HUNDRED

    @staticmethod
    def _require_gp_percentage(tier: WaterfallTier) -> Decimal:
        if tier.gp_carry_percentage is None:
            raise InvalidTierConfigurationError(
                tier.id, f"{tier.type} tier requires gp_carry_percentage"
            )
        return tier.gp_carry_percentage

    # ------------------------------------------------------------------ #
    # Class-level splits
    # ------------------------------------------------------------------ #

    def _split_side(
        self,
        tier: WaterfallTier,
        side_amount: Decimal,
        tier_total: Decimal,
        cumulative: Decimal,
        classes: List[InvestorClass],
        is_gp: bool,
    ) -> List[TierAllocation]:
        """Split one side of a tier across that side's investor classes.

        LP classes are weighted by invested basis, GP classes by ownership.
        A tier with split_type 'equal' splits evenly regardless.
        """
        if side_amount <= 0 or not classes:
            return []

        weights = self._weights(classes, is_gp, equal=(tier.split_type == "equal"))
        total_weight = sum(weights, ZERO)

        allocations = []
        for ic, weight in zip(classes, weights):
            amount = side_amount * weight / total_weight
            allocations.append(TierAllocation(
                tier_id=tier.id,
                tier_name=tier.name,
                investor_class_id=ic.id,
                investor_class_name=ic.name,
                amount=amount,
                percentage=amount / tier_total * HUNDRED,
                cumulative_amount=cumulative + amount,
            ))
        return allocations

    def _weights(self, classes: List[InvestorClass], is_gp: bool, equal: bool) -> List[Decimal]:
        if not equal:
            if not is_gp:
                invested = [ic.invested_amount(self.options.invested_basis) for ic in classes]
                if sum(invested, ZERO) > 0:
                    return invested
            ownership = [ic.ownership_percentage for ic in classes]
            if sum(ownership, ZERO) > 0:
                return ownership
        return [Decimal("1")] * len(classes)

    @staticmethod
    def _check_ownership(classes: List[InvestorClass], side: str) -> None:
        if not classes:
            return
        total = sum((ic.ownership_percentage for ic in classes), ZERO)
        if abs(total - HUNDRED) > OWNERSHIP_TOLERANCE:
            logger.warning("%s ownership percentages sum to %s, expected ~100", side, total)
