"""Waterfall tiers - the ordered distribution rules.

Each tier claims part of the remaining proceeds and splits its claim between
the GP and LP sides. A standard European structure has four tiers:

    1. Return of Capital (roc)        - 100% to LPs until invested capital is back
    2. Preferred Return (preferred-return) - 100% to LPs until the hurdle is met
    3. GP Catch-Up (catch-up)         - 100% to GP until it holds its carry share
    4. Carried Interest (carry)       - remaining proceeds split, e.g. 80/20

Type-specific parameters are optional on the model. They are checked when a
waterfall is calculated, not when a scenario is saved, so a half-edited
scenario can still be stored.
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import Field

from .base import DomainModel, MoneyAmount, Percentage, Rate, TierId, TierType, WaterfallModel
from .investors import utc_now


class WaterfallTierDefinition(DomainModel):
    """Tier parameters without identity (used by templates)."""

    name: str = Field(
        description="Display name (e.g., 'Return of Capital')"
    )

    type: TierType = Field(
        description="Distribution rule: roc, preferred-return, catch-up, carry or custom"
    )

    order: int = Field(
        description="Allocation sequence; tiers are processed in ascending order"
    )

    threshold: Optional[MoneyAmount] = Field(
        default=None,
        description="Cap on the amount a custom tier may claim"
    )

    hurdle_rate: Optional[Rate] = Field(
        default=None,
        description="Annual preferred return rate (e.g., 8 for 8%). Required for preferred-return tiers"
    )

    hurdle_period_years: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Years of simple accrual for the hurdle. None = calculation default"
    )

    gp_carry_percentage: Optional[Percentage] = Field(
        default=None,
        description="GP share of the tier (0-100). Required for catch-up and carry tiers"
    )

    lp_percentage: Optional[Percentage] = Field(
        default=None,
        description="LP share of the tier (0-100). Defaults to 100 - gp_carry_percentage"
    )

    split_type: Optional[Literal["pro-rata", "equal", "custom"]] = Field(
        default=None,
        description="How a side's amount is split across its investor classes"
    )

    description: Optional[str] = None

    is_custom: bool = Field(
        default=False,
        description="True for user-built tiers"
    )


class WaterfallTier(WaterfallTierDefinition):
    """A distribution tier attached to a scenario.

    Example:
        WaterfallTier(
            id="tier-2",
            name="Preferred Return",
            type="preferred-return",
            order=2,
            hurdle_rate=Decimal("8"),
        )
    """

    id: TierId = Field(
        description="Unique identifier within the scenario"
    )


class WaterfallTemplate(DomainModel):
    """Reusable tier structure scenarios can be seeded from."""

    id: str
    name: str
    description: str
    model: WaterfallModel
    tiers: List[WaterfallTierDefinition]
    is_system: bool = Field(
        default=True,
        description="Shipped with the package (not user-defined)"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
