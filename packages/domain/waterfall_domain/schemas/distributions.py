"""LP distribution allocation records.

An LPAllocation is one LP's line in a distribution notice: the gross amount
coming out of the waterfall, the tax withheld, and the net wired out.

Amount fields carry no range constraints here. Records are often half-filled
while a distribution is being prepared, and bad values are reported by
`waterfall_domain.validation.get_allocation_issues` rather than rejected at
construction time.
"""

from decimal import Decimal
from typing import Literal, Optional
from pydantic import Field

from .base import DomainModel


TaxFormType = Literal["W-9", "W-8BEN", "W-8BEN-E", "W-8IMY", "K-1", "other"]


class LPAllocation(DomainModel):
    """One LP's share of a distribution.

    Example:
        LPAllocation(
            gross_amount=Decimal("100"),
            tax_withholding_rate=Decimal("20"),
            tax_withholding_amount=Decimal("20"),
            net_amount=Decimal("80"),
        )
    """

    id: str = ""
    lp_id: str = ""
    lp_name: str = ""
    investor_class_id: str = ""
    investor_class_name: str = ""

    # Allocation amounts
    commitment: Decimal = Decimal("0")
    ownership_percentage: Decimal = Decimal("0")
    pro_rata_percentage: Decimal = Decimal("0")
    gross_amount: Decimal = Field(
        description="Amount allocated before withholding"
    )
    net_amount: Decimal = Field(
        description="Amount paid out after withholding"
    )

    # Tax withholding
    tax_jurisdiction: str = "US"
    tax_withholding_rate: Decimal = Field(
        default=Decimal("0"),
        description="Withholding rate (0-100)"
    )
    tax_withholding_amount: Decimal = Decimal("0")
    tax_form_type: TaxFormType = "W-9"
    is_tax_override: bool = False

    # Special terms
    has_special_terms: bool = False
    special_terms_notes: Optional[str] = None

    # Bank details
    bank_account_id: Optional[str] = None
    bank_account_name: Optional[str] = None
    wire_instructions: Optional[str] = None
