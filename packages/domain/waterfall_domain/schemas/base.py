"""Base classes and type system for waterfall domain models.

This module provides the foundational types, enums, and base classes
used throughout the waterfall schema system.

Conventions:
- Money is carried as Decimal (never float) all the way through the engine
- Percentages are on a 0-100 scale (20 means 20%), matching how fund
  documents quote carry and hurdle rates
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment for runtime safety
    - Support for Decimal and datetime types
    - Enum value serialization (enum fields hold their string values,
      defaults included)
    """

    model_config = ConfigDict(
        frozen=False,
        validate_assignment=True,
        validate_default=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

MoneyAmount = Annotated[
    Decimal,
    Field(ge=0, description="Currency amount (non-negative)")
]

Percentage = Annotated[
    Decimal,
    Field(ge=0, le=100, description="Percentage on a 0-100 scale (20 = 20%)")
]

Rate = Annotated[
    Decimal,
    Field(ge=0, description="Annual rate on a 0-100 scale, may exceed 100")
]

Multiple = Annotated[
    Decimal,
    Field(ge=0, description="Multiplier value (e.g., 2x = 2.0)")
]


# =============================================================================
# Enums
# =============================================================================

class WaterfallModel(str, Enum):
    """Legal structure used to run the distribution waterfall."""

    EUROPEAN = "european"
    AMERICAN = "american"
    BLENDED = "blended"


class TierType(str, Enum):
    """Distribution rule applied by a waterfall tier."""

    ROC = "roc"
    PREFERRED_RETURN = "preferred-return"
    CATCH_UP = "catch-up"
    CARRY = "carry"
    CUSTOM = "custom"


class InvestorType(str, Enum):
    """Side of the fund an investor class sits on."""

    LP = "lp"
    GP = "gp"


class InvestedBasis(str, Enum):
    """Which capital figure counts as an investor's invested amount."""

    COMMITMENT = "commitment"
    CAPITAL_CALLED = "capitalCalled"


# =============================================================================
# ID Conventions
# =============================================================================

ScenarioId = Annotated[
    str,
    Field(min_length=1, description="Opaque scenario identifier (e.g., 'scenario-1f3a...')")
]

TierId = Annotated[
    str,
    Field(min_length=1, description="Tier identifier, unique within a scenario")
]

InvestorClassId = Annotated[
    str,
    Field(min_length=1, description="Investor class identifier, unique within a scenario")
]


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Coerce an int/float/str/Decimal into a Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
