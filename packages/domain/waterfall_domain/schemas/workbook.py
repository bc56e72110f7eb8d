"""Workbook export configuration.

WaterfallWorkbookCFG is the entry point for Excel and CSV export of a
scenario. It selects a report template and the optional sections.

Templates:
    executive-summary:  Summary sheet only
    detailed:           Summary, Tier Breakdown, LP Allocations, Sensitivity
    board-presentation: same sheets as detailed, board-facing title block
"""

from typing import Literal, Optional
from pydantic import Field

from .base import DomainModel
from .config import SensitivityCFG
from .scenario import WaterfallScenario


ReportTemplate = Literal["executive-summary", "detailed", "board-presentation"]
ExportFormat = Literal["excel", "csv"]


class WaterfallWorkbookCFG(DomainModel):
    """Top-level configuration for waterfall workbook generation.

    Example:
        config = WaterfallWorkbookCFG(
            scenario=scenario,
            template="detailed",
            include_sensitivity=True,
            company_name="Acme Ventures",
        )
        WaterfallWorkbookRenderer(config).render("waterfall.xlsx")
    """

    scenario: WaterfallScenario = Field(
        description="Scenario to calculate and export"
    )

    template: ReportTemplate = Field(
        default="detailed",
        description="Report layout"
    )

    include_tier_breakdown: bool = Field(
        default=True,
        description="Include the per-tier GP/LP split sheet"
    )

    include_lp_allocations: bool = Field(
        default=True,
        description="Include the per-class allocation sheet"
    )

    include_sensitivity: bool = Field(
        default=False,
        description="Include the exit value sensitivity sheet"
    )

    sensitivity_cfg: SensitivityCFG = Field(
        default_factory=SensitivityCFG,
        description="Range and step constants for the sensitivity sheet"
    )

    company_name: Optional[str] = Field(
        default=None,
        description="Shown in the title block"
    )

    footer: Optional[str] = Field(
        default=None,
        description="Free text written below the summary"
    )

    @property
    def summary_only(self) -> bool:
        return self.template == "executive-summary"
