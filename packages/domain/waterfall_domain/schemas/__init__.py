"""Waterfall domain schemas.

This package contains all Pydantic models for the waterfall domain layer:
- Base types and conventions
- Investor classes and waterfall tiers
- Scenarios, provisions and templates
- Results, sensitivity analysis and comparisons
- LP distribution allocations
- Calculation, sensitivity and export configuration

Usage:
    from waterfall_domain.schemas import (
        WaterfallScenario, InvestorClass, WaterfallTier,
        ClawbackProvision, WaterfallResults, SensitivityCFG
    )
"""

# Base types
from .base import (
    DomainModel,
    MoneyAmount,
    Percentage,
    Rate,
    Multiple,
    WaterfallModel,
    TierType,
    InvestorType,
    InvestedBasis,
    ScenarioId,
    TierId,
    InvestorClassId,
)

# Investor classes and tiers
from .investors import InvestorClass
from .tiers import WaterfallTier, WaterfallTierDefinition, WaterfallTemplate

# Scenario
from .scenario import (
    WaterfallScenario,
    BlendedWaterfallConfig,
    ClawbackProvision,
    LookbackProvision,
)

# Results
from .results import (
    TierAllocation,
    TierBreakdown,
    TierTimelineEntry,
    InvestorClassResult,
    ClawbackSummary,
    LookbackSummary,
    WaterfallResults,
    SensitivityDataPoint,
    BreakEvenPoint,
    SensitivityAnalysis,
    ComparisonMetric,
    ScenarioComparison,
)

# Distributions
from .distributions import LPAllocation

# Configuration
from .config import (
    WaterfallCalculationOptions,
    SensitivityCFG,
    EUROPEAN_OPTIONS,
    AMERICAN_OPTIONS,
)

# Export
from .workbook import WaterfallWorkbookCFG, ReportTemplate, ExportFormat

__all__ = [
    # Base types
    "DomainModel",
    "MoneyAmount",
    "Percentage",
    "Rate",
    "Multiple",
    "WaterfallModel",
    "TierType",
    "InvestorType",
    "InvestedBasis",
    "ScenarioId",
    "TierId",
    "InvestorClassId",
    # Investor classes and tiers
    "InvestorClass",
    "WaterfallTier",
    "WaterfallTierDefinition",
    "WaterfallTemplate",
    # Scenario
    "WaterfallScenario",
    "BlendedWaterfallConfig",
    "ClawbackProvision",
    "LookbackProvision",
    # Results
    "TierAllocation",
    "TierBreakdown",
    "TierTimelineEntry",
    "InvestorClassResult",
    "ClawbackSummary",
    "LookbackSummary",
    "WaterfallResults",
    "SensitivityDataPoint",
    "BreakEvenPoint",
    "SensitivityAnalysis",
    "ComparisonMetric",
    "ScenarioComparison",
    # Distributions
    "LPAllocation",
    # Configuration
    "WaterfallCalculationOptions",
    "SensitivityCFG",
    "EUROPEAN_OPTIONS",
    "AMERICAN_OPTIONS",
    # Export
    "WaterfallWorkbookCFG",
    "ReportTemplate",
    "ExportFormat",
]
