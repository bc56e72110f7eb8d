"""Waterfall results and sensitivity analysis models.

Everything in this module is derived output. Results are pure functions of
(scenario, calculation options): they are recomputed on demand and never
persisted on their own.
"""

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import Field

from .base import DomainModel, WaterfallModel
from .scenario import BlendedWaterfallConfig, WaterfallScenario


# =============================================================================
# Tier Breakdown
# =============================================================================

class TierAllocation(DomainModel):
    """Amount one investor class received from one tier."""

    tier_id: str
    tier_name: str
    investor_class_id: str
    investor_class_name: str
    amount: Decimal
    percentage: Decimal = Field(
        description="Share of the tier total (0-100)"
    )
    cumulative_amount: Decimal = Field(
        description="Proceeds distributed before this tier plus this allocation"
    )


class TierBreakdown(DomainModel):
    """What a single tier claimed and how it split between GP and LP."""

    tier_id: str
    tier_name: str
    tier_type: str
    total_amount: Decimal
    gp_amount: Decimal
    lp_amount: Decimal
    percentage: Decimal = Field(
        description="Share of the total exit value (0-100)"
    )
    cumulative_amount: Decimal = Field(
        description="Proceeds distributed through the end of this tier"
    )
    allocations: List[TierAllocation] = Field(default_factory=list)


class TierTimelineEntry(DomainModel):
    """Marker for when (and at what cumulative value) a tier cleared."""

    tier_id: str
    tier_name: str
    reached_at: date
    exit_value: Decimal = Field(
        description="Cumulative proceeds at which the tier cleared"
    )
    cumulative_distributed: Decimal


# =============================================================================
# Investor Class Results
# =============================================================================

class InvestorClassResult(DomainModel):
    """Distribution totals and return metrics for one investor class."""

    investor_class_id: str
    investor_class_name: str
    investor_class_type: str
    invested: Decimal
    returned: Decimal = Decimal("0")
    multiple: Decimal = Field(
        default=Decimal("0"),
        description="MOIC: returned / invested (0 when nothing invested)"
    )
    irr: Optional[Decimal] = Field(
        default=None,
        description="Annualized IRR in percent; None when undefined"
    )
    carry: Decimal = Decimal("0")
    net_return: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    allocations: List[TierAllocation] = Field(default_factory=list)


# =============================================================================
# Enhancements
# =============================================================================

class ClawbackSummary(DomainModel):
    total_carry_paid: Decimal
    required_return: Decimal
    shortfall: Decimal
    clawback_due: Decimal
    net_carry_after_clawback: Decimal
    status: Literal["clear", "at-risk", "triggered"]


class LookbackSummary(DomainModel):
    lookback_years: int
    losses_to_recover: Decimal
    carry_at_risk: Decimal
    carry_released: Decimal
    status: Literal["monitor", "at-risk", "cleared"]


# =============================================================================
# Waterfall Results
# =============================================================================

class WaterfallResults(DomainModel):
    """Complete output of a waterfall calculation.

    Guarantees (for every calculator):
        gp_total_return + lp_total_return == total_returned
        total_returned <= total_exit_value
        tier_breakdown cumulative_amount is non-decreasing
    """

    total_exit_value: Decimal
    total_invested: Decimal
    total_returned: Decimal

    gp_carry: Decimal
    gp_carry_percentage: Decimal = Field(
        description="GP carry as a share of exit value (0-100)"
    )
    gp_management_fees: Decimal
    gp_total_return: Decimal

    lp_total_return: Decimal
    lp_average_multiple: Decimal

    investor_class_results: List[InvestorClassResult] = Field(default_factory=list)
    tier_breakdown: List[TierBreakdown] = Field(default_factory=list)
    tier_timeline: List[TierTimelineEntry] = Field(default_factory=list)

    clawback: Optional[ClawbackSummary] = None
    lookback: Optional[LookbackSummary] = None
    blended_breakdown: Optional[BlendedWaterfallConfig] = None


# =============================================================================
# Sensitivity Analysis
# =============================================================================

class SensitivityDataPoint(DomainModel):
    exit_value: Decimal
    gp_carry: Decimal
    gp_carry_percentage: Decimal
    lp_return: Decimal
    lp_multiple: Decimal
    total_multiple: Decimal
    clawback_due: Optional[Decimal] = None


class BreakEvenPoint(DomainModel):
    """First swept exit value at which a tier starts receiving proceeds."""

    tier_id: str
    tier_name: str
    exit_value: Decimal


class SensitivityAnalysis(DomainModel):
    """Response curve of a scenario across a swept exit value range."""

    scenario_id: str
    model: WaterfallModel
    min_exit_value: Decimal
    max_exit_value: Decimal
    step: Decimal
    data_points: List[SensitivityDataPoint] = Field(default_factory=list)
    break_even_points: List[BreakEvenPoint] = Field(default_factory=list)


# =============================================================================
# Scenario Comparison
# =============================================================================

class ComparisonMetric(DomainModel):
    scenario_id: str
    scenario_name: str
    model: WaterfallModel
    gp_carry: Decimal
    lp_return: Decimal
    total_multiple: Decimal


class ScenarioComparison(DomainModel):
    scenarios: List[WaterfallScenario]
    comparison_metrics: List[ComparisonMetric]
