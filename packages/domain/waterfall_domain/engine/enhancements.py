"""Post-processing of computed results: clawback, lookback and tier timeline.

Each enhancement is a pure function of (scenario provisions, base results).
Nothing is cached; calling them twice yields equal output.
"""

from typing import List, Optional

from ..schemas import (
    ClawbackSummary,
    LookbackSummary,
    TierTimelineEntry,
    WaterfallResults,
    WaterfallScenario,
)
from ..schemas.base import HUNDRED, ZERO
from .metrics import add_months


def build_clawback_summary(
    scenario: WaterfallScenario, results: WaterfallResults
) -> Optional[ClawbackSummary]:
    """Clawback exposure when LPs fall short of the hurdle.

    required_return = invested * (1 + hurdle% * distribution_life_years)
    shortfall       = max(0, required_return - lp_total_return)
    clawback_due    = min(gp_carry, shortfall * clawback_rate%)

    Returns:
        ClawbackSummary, or None when the provision is absent or disabled
    """
    provision = scenario.clawback_provision
    if provision is None or not provision.enabled:
        return None

    required_return = results.total_invested * (
        1 + provision.hurdle_rate / HUNDRED * provision.distribution_life_years
    )
    shortfall = max(ZERO, required_return - results.lp_total_return)
    clawback_due = min(results.gp_carry, shortfall * provision.clawback_rate / HUNDRED)
    net_carry = max(ZERO, results.gp_carry - clawback_due)

    if clawback_due > 0:
        status = "triggered"
    elif shortfall > 0:
        status = "at-risk"
    else:
        status = "clear"

    return ClawbackSummary(
        total_carry_paid=results.gp_carry,
        required_return=required_return,
        shortfall=shortfall,
        clawback_due=clawback_due,
        net_carry_after_clawback=net_carry,
        status=status,
    )


def build_lookback_summary(
    scenario: WaterfallScenario, results: WaterfallResults
) -> Optional[LookbackSummary]:
    """Carry held at risk while carried-forward losses remain unrecovered.

    Returns:
        LookbackSummary, or None when the provision is absent or disabled
    """
    provision = scenario.lookback_provision
    if provision is None or not provision.enabled:
        return None

    losses_to_recover = max(ZERO, provision.loss_carry_forward)
    if losses_to_recover > 0:
        carry_at_risk = min(results.gp_carry, results.gp_carry * provision.carry_at_risk_rate / HUNDRED)
    else:
        carry_at_risk = ZERO
    carry_released = results.gp_carry - carry_at_risk

    if carry_at_risk > 0:
        status = "at-risk"
    elif losses_to_recover > 0:
        status = "monitor"
    else:
        status = "cleared"

    return LookbackSummary(
        lookback_years=provision.lookback_years,
        losses_to_recover=losses_to_recover,
        carry_at_risk=carry_at_risk,
        carry_released=carry_released,
        status=status,
    )


def build_tier_timeline(
    scenario: WaterfallScenario, results: WaterfallResults
) -> List[TierTimelineEntry]:
    """One marker per populated tier, spread across the year after creation.

    Tier i is dated created_at + i * max(1, round(12 / tier_count)) months.
    """
    tiers = results.tier_breakdown
    if not tiers:
        return []

    period_months = max(1, round(12 / len(tiers)))
    base_date = scenario.created_at.date()

    timeline = []
    cumulative = ZERO
    for index, tier in enumerate(tiers):
        cumulative += tier.total_amount
        timeline.append(TierTimelineEntry(
            tier_id=tier.tier_id,
            tier_name=tier.tier_name,
            reached_at=add_months(base_date, period_months * index),
            exit_value=tier.cumulative_amount,
            cumulative_distributed=cumulative,
        ))
    return timeline


def apply_enhancements(
    scenario: WaterfallScenario, results: WaterfallResults
) -> WaterfallResults:
    """Return a copy of `results` with timeline, clawback and lookback attached."""
    return results.model_copy(update={
        "tier_timeline": build_tier_timeline(scenario, results),
        "clawback": build_clawback_summary(scenario, results),
        "lookback": build_lookback_summary(scenario, results),
    })
