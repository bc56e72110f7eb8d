"""Investor classes - the pools of capital that receive distributions.

An investor class groups investors that share economics. Every class sits on
one side of the fund:
- LP classes contribute capital and receive return of capital, preferred
  return and their share of the profit split
- GP classes receive catch-up and carried interest

Ownership percentages of classes on the same side are expected to sum to
~100%. The engine does not enforce this; it is the caller's responsibility.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from pydantic import Field

from .base import DomainModel, InvestorClassId, InvestorType, MoneyAmount, Percentage, InvestedBasis


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InvestorClass(DomainModel):
    """A pool of capital with a shared position in the waterfall.

    Example:
        InvestorClass(
            id="lp-institutional",
            name="Institutional LPs",
            type="lp",
            ownership_percentage=Decimal("75"),
            commitment=Decimal("75000000"),
            capital_called=Decimal("60000000"),
        )
    """

    id: InvestorClassId = Field(
        description="Unique identifier within the scenario"
    )

    name: str = Field(
        description="Display name (e.g., 'Institutional LPs', 'General Partner')"
    )

    type: InvestorType = Field(
        description="Fund side: 'lp' or 'gp'"
    )

    ownership_percentage: Percentage = Field(
        description="Share of its side of the fund (0-100)"
    )

    commitment: MoneyAmount = Field(
        default=Decimal("0"),
        description="Total capital committed"
    )

    capital_called: MoneyAmount = Field(
        default=Decimal("0"),
        description="Capital drawn down to date"
    )

    capital_returned: MoneyAmount = Field(
        default=Decimal("0"),
        description="Capital already returned through prior distributions"
    )

    order: int = Field(
        default=0,
        description="Display/processing order"
    )

    notes: Optional[str] = Field(
        default=None,
        description="Free-form notes"
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_lp(self) -> bool:
        return self.type == InvestorType.LP.value

    @property
    def is_gp(self) -> bool:
        return self.type == InvestorType.GP.value

    def invested_amount(self, basis: str) -> Decimal:
        """Return the invested amount under the given basis.

        Args:
            basis: 'commitment' or 'capitalCalled'

        Returns:
            capital_called for the capital-called basis, commitment otherwise
        """
        if basis == InvestedBasis.CAPITAL_CALLED.value:
            return self.capital_called
        return self.commitment
