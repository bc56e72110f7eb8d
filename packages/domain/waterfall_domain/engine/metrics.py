"""Return metrics shared by the calculators.

- MOIC (Multiple on Invested Capital): returned / invested
- IRR (Internal Rate of Return): annualized over a fixed holding period
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import pandas as pd
from pyxirr import xirr

from ..schemas.base import HUNDRED, ZERO


def calculate_moic(invested: Decimal, returned: Decimal) -> Decimal:
    """Multiple on invested capital, 0 when nothing was invested."""
    if invested <= 0:
        return ZERO
    return returned / invested


def carry_percentage(gp_carry: Decimal, exit_value: Decimal) -> Decimal:
    """GP carry as a share of exit value (0-100)."""
    if exit_value <= 0:
        return ZERO
    return gp_carry / exit_value * HUNDRED


def add_months(start: date, months: int) -> date:
    """Calendar-aware month arithmetic (Jan 31 + 1 month = Feb 28/29)."""
    return (pd.Timestamp(start) + pd.DateOffset(months=months)).date()


def calculate_irr(
    invested: Decimal,
    returned: Decimal,
    start: date,
    hold_period_years: int,
) -> Optional[Decimal]:
    """Annualized IRR (in percent) of a single invest-then-exit cash flow.

    The investment is placed at `start` and the distribution
    `hold_period_years` later. With only two cash flows the result equals
    MOIC ** (1 / years) - 1, but the dated computation keeps leap years
    consistent with the rest of the fund reporting stack.

    Args:
        invested: Amount invested (positive)
        returned: Amount distributed (positive)
        start: Investment date
        hold_period_years: Years until the distribution

    Returns:
        IRR in percent rounded to 6 places, or None when either amount is
        zero (no sign change, IRR undefined)
    """
    if invested <= 0 or returned <= 0:
        return None

    exit_date = add_months(start, hold_period_years * 12)
    rate = xirr([start, exit_date], [-float(invested), float(returned)])
    if rate is None:
        return None
    return Decimal(str(round(rate * 100, 6)))
