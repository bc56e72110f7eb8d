"""Waterfall calculation engine.

Usage:
    from waterfall_domain.engine import calculate_waterfall, run_sensitivity

    results = calculate_waterfall(scenario)
    analysis = run_sensitivity(scenario, steps=20)
"""

from .allocator import AllocationOutcome, TierAllocator, resolve_total_invested
from .calculators import (
    CALCULATORS,
    AmericanWaterfallCalculator,
    BlendedWaterfallCalculator,
    EuropeanWaterfallCalculator,
    WaterfallCalculator,
    calculate_american_waterfall,
    calculate_blended_waterfall,
    calculate_european_waterfall,
    calculate_waterfall,
    get_calculator,
    resolve_model,
)
from .enhancements import (
    apply_enhancements,
    build_clawback_summary,
    build_lookback_summary,
    build_tier_timeline,
)
from .metrics import calculate_irr, calculate_moic, carry_percentage
from .sensitivity import (
    calculate_sensitivity_analysis,
    compare_models,
    resolve_sensitivity_range,
    run_sensitivity,
)

__all__ = [
    # Allocation
    "AllocationOutcome",
    "TierAllocator",
    "resolve_total_invested",
    # Calculators
    "CALCULATORS",
    "WaterfallCalculator",
    "EuropeanWaterfallCalculator",
    "AmericanWaterfallCalculator",
    "BlendedWaterfallCalculator",
    "calculate_waterfall",
    "calculate_european_waterfall",
    "calculate_american_waterfall",
    "calculate_blended_waterfall",
    "get_calculator",
    "resolve_model",
    # Enhancements
    "apply_enhancements",
    "build_clawback_summary",
    "build_lookback_summary",
    "build_tier_timeline",
    # Metrics
    "calculate_irr",
    "calculate_moic",
    "carry_percentage",
    # Sensitivity
    "calculate_sensitivity_analysis",
    "compare_models",
    "resolve_sensitivity_range",
    "run_sensitivity",
]
