"""Advisory consistency checks for LP distribution allocations.

These checks never raise. They return human-readable issues so the caller can
decide whether to block a distribution on them.
"""

from decimal import Decimal
from typing import List

from .schemas import LPAllocation
from .schemas.base import HUNDRED, ZERO

# Net may differ from gross - withholding by up to one currency unit (rounding).
NET_AMOUNT_TOLERANCE = Decimal("1")


def get_allocation_issues(allocation: LPAllocation) -> List[str]:
    """List gross/net/withholding inconsistencies in a single allocation.

    Args:
        allocation: LP allocation record to check

    Returns:
        Issue messages; empty when the allocation is balanced

    Example:
        >>> get_allocation_issues(LPAllocation(
        ...     gross_amount=Decimal("100"),
        ...     tax_withholding_rate=Decimal("20"),
        ...     tax_withholding_amount=Decimal("20"),
        ...     net_amount=Decimal("80"),
        ... ))
        []
    """
    issues: List[str] = []
    gross = allocation.gross_amount
    net = allocation.net_amount
    withholding = allocation.tax_withholding_amount
    rate = allocation.tax_withholding_rate

    if gross < 0:
        issues.append("Gross amount cannot be negative.")
    if net < 0:
        issues.append("Net amount cannot be negative.")
    if withholding < 0:
        issues.append("Tax withholding amount cannot be negative.")

    if net > gross:
        issues.append("Net amount exceeds gross amount.")
    if withholding > gross:
        issues.append("Tax withholding exceeds gross amount.")

    if rate < ZERO or rate > HUNDRED:
        issues.append("Tax withholding rate must be between 0% and 100%.")

    expected_net = gross - withholding
    if abs(net - expected_net) > NET_AMOUNT_TOLERANCE:
        issues.append(
            f"Net amount {net} does not match gross amount minus withholding ({expected_net})."
        )

    return issues
