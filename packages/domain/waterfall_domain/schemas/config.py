"""Configuration models for waterfall calculations and sensitivity sweeps.

These are the externally supplied constants the engine consumes. Defaults
mirror the values used by the fund modeling screens; callers override them by
passing their own instances.
"""

from decimal import Decimal
from typing import List
from pydantic import Field, field_validator, model_validator

from .base import DomainModel, InvestedBasis


# =============================================================================
# Calculation Options
# =============================================================================

class WaterfallCalculationOptions(DomainModel):
    """Knobs that distinguish one calculator from another.

    European and American calculators share the tier allocator and differ
    only in the options they pass it:

        European: commitment basis, catch-up enabled
        American: capital-called basis, catch-up skipped
    """

    invested_basis: InvestedBasis = Field(
        default=InvestedBasis.COMMITMENT,
        description="Capital figure used as each class's invested amount"
    )

    include_catch_up: bool = Field(
        default=True,
        description="Run catch-up tiers (skipped entirely when False)"
    )

    hurdle_period_years: Decimal = Field(
        default=Decimal("3"),
        ge=0,
        description="Years of simple accrual for preferred-return tiers without their own period"
    )

    hold_period_years: int = Field(
        default=5,
        ge=1,
        description="Holding period used to annualize per-class IRR"
    )


EUROPEAN_OPTIONS = WaterfallCalculationOptions(
    invested_basis=InvestedBasis.COMMITMENT,
    include_catch_up=True,
)

AMERICAN_OPTIONS = WaterfallCalculationOptions(
    invested_basis=InvestedBasis.CAPITAL_CALLED,
    include_catch_up=False,
)


# =============================================================================
# Sensitivity Configuration
# =============================================================================

class SensitivityCFG(DomainModel):
    """Range and step constants for exit value sensitivity sweeps.

    All multipliers are relative to the scenario's base exit value.

    Example:
        Base exit value $150M with defaults:
            slider bounds:   $37.5M .. $300M (0.25x .. 2x)
            slider step:     $7.5M (5% of base, at least $1M)
            default sweep:   $75M .. $225M (0.5x .. 1.5x) in 20 steps
    """

    min_range_multiplier: Decimal = Field(default=Decimal("0.25"), ge=0)
    default_min_multiplier: Decimal = Field(default=Decimal("0.5"), ge=0)
    default_max_multiplier: Decimal = Field(default=Decimal("1.5"), ge=0)
    max_range_multiplier: Decimal = Field(default=Decimal("2"), ge=0)

    min_range_span: Decimal = Field(
        default=Decimal("10000000"),
        ge=0,
        description="Smallest allowed distance between the range bounds"
    )

    min_step: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Smallest allowed slider step"
    )

    step_multiplier: Decimal = Field(
        default=Decimal("0.05"),
        ge=0,
        description="Slider step as a fraction of the base exit value"
    )

    default_steps: int = Field(default=20, gt=0)
    step_options: List[int] = Field(default_factory=lambda: [10, 20, 30, 40])

    @field_validator("step_options")
    @classmethod
    def validate_step_options(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("step_options must not be empty")
        if any(option <= 0 for option in v):
            raise ValueError("step_options must all be positive")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_multipliers(self):
        """Default sweep must sit inside the slider bounds."""
        if self.min_range_multiplier > self.max_range_multiplier:
            raise ValueError("min_range_multiplier must not exceed max_range_multiplier")
        if self.default_min_multiplier > self.default_max_multiplier:
            raise ValueError("default_min_multiplier must not exceed default_max_multiplier")
        if self.default_steps not in self.step_options:
            raise ValueError(
                f"default_steps ({self.default_steps}) must be one of step_options {self.step_options}"
            )
        return self
