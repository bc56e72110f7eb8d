"""Waterfall scenarios - the aggregate root of the waterfall domain.

A scenario bundles everything a calculation needs:
- The legal structure (european, american, blended)
- Investor classes and the ordered tier list
- Exit value, invested capital and management fees
- Optional clawback and lookback provisions
- Versioning metadata maintained by the scenario service

Results are never stored on the scenario; they are recomputed on demand.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import Field

from .base import DomainModel, MoneyAmount, Percentage, Rate, ScenarioId, WaterfallModel
from .investors import InvestorClass, utc_now
from .tiers import WaterfallTier


# =============================================================================
# Provisions
# =============================================================================

class BlendedWaterfallConfig(DomainModel):
    """Weights used to interpolate European and American results.

    Weights are expected to sum to 100. They are applied as given
    (weight / 100) and never renormalized.
    """

    european_weight: Percentage = Field(
        default=Decimal("50"),
        description="Weight of the European result (0-100)"
    )

    american_weight: Percentage = Field(
        default=Decimal("50"),
        description="Weight of the American result (0-100)"
    )


class ClawbackProvision(DomainModel):
    """GP obligation to return carry when LPs fall short of the hurdle.

    Example:
        8% hurdle over a 4 year distribution life on $100M invested:
            required LP return = $100M * (1 + 0.08 * 4) = $132M
        If LPs only received $124M, the $8M shortfall is clawed back
        (at clawback_rate=100) up to the carry actually paid.
    """

    enabled: bool = Field(default=True)

    hurdle_rate: Rate = Field(
        description="Annual hurdle rate LPs must clear (e.g., 8)"
    )

    clawback_rate: Percentage = Field(
        description="Share of the shortfall recaptured from the GP (0-100)"
    )

    distribution_life_years: Decimal = Field(
        ge=0,
        description="Years over which the hurdle accrues"
    )


class LookbackProvision(DomainModel):
    """Carry held back against historical losses."""

    enabled: bool = Field(default=True)

    lookback_years: int = Field(
        ge=0,
        description="Length of the lookback window"
    )

    loss_carry_forward: Decimal = Field(
        description="Losses carried forward that must be recovered before carry is released"
    )

    carry_at_risk_rate: Percentage = Field(
        description="Share of paid carry placed at risk while losses remain (0-100)"
    )


# =============================================================================
# Scenario
# =============================================================================

class WaterfallScenario(DomainModel):
    """A named, versioned waterfall scenario.

    `id` is assigned once by the scenario service and never changes.
    `version` starts at 1 and increases by exactly one on each mutation.

    Example:
        WaterfallScenario(
            id="scenario-1",
            name="Base Case",
            model="european",
            exit_value=Decimal("150000000"),
            total_invested=Decimal("100000000"),
            investor_classes=[lp_class, gp_class],
            tiers=[roc, preferred, catch_up, carry],
        )
    """

    id: ScenarioId

    name: str = Field(
        description="Human-readable label (e.g., 'Base Case')"
    )

    description: Optional[str] = None

    fund_id: Optional[str] = None
    fund_name: Optional[str] = None

    model: WaterfallModel = Field(
        default=WaterfallModel.EUROPEAN,
        description="Waterfall structure used for calculation"
    )

    blended_config: Optional[BlendedWaterfallConfig] = Field(
        default=None,
        description="Weights for the blended model (50/50 when absent)"
    )

    investor_classes: List[InvestorClass] = Field(default_factory=list)
    tiers: List[WaterfallTier] = Field(default_factory=list)

    clawback_provision: Optional[ClawbackProvision] = None
    lookback_provision: Optional[LookbackProvision] = None

    exit_value: MoneyAmount = Field(
        description="Total proceeds to run through the waterfall"
    )

    total_invested: MoneyAmount = Field(
        description="Total capital invested by LPs"
    )

    management_fees: MoneyAmount = Field(
        default=Decimal("0"),
        description="Management fees earned by the GP (reported, not deducted)"
    )

    is_favorite: bool = False
    is_template: bool = False

    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: str = Field(default="system")

    tags: List[str] = Field(default_factory=list)

    @property
    def lp_classes(self) -> List[InvestorClass]:
        return [ic for ic in self.investor_classes if ic.is_lp]

    @property
    def gp_classes(self) -> List[InvestorClass]:
        return [ic for ic in self.investor_classes if ic.is_gp]

    def sorted_tiers(self) -> List[WaterfallTier]:
        """Tiers in allocation order (stable for equal `order` values)."""
        return sorted(self.tiers, key=lambda tier: tier.order)
