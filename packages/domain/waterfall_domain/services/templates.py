"""System waterfall templates.

Templates are tier structures without identity. A scenario created from a
template gets fresh tier ids and no investor classes unless the caller
supplies them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from ..schemas import WaterfallTemplate, WaterfallTierDefinition

SYSTEM_TEMPLATES_RELEASED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _roc(order: int = 1) -> WaterfallTierDefinition:
    return WaterfallTierDefinition(
        name="Return of Capital",
        type="roc",
        order=order,
        description="100% to LPs until invested capital is returned",
    )


def _preferred(hurdle_rate: str, order: int = 2) -> WaterfallTierDefinition:
    return WaterfallTierDefinition(
        name="Preferred Return",
        type="preferred-return",
        order=order,
        hurdle_rate=Decimal(hurdle_rate),
        description=f"100% to LPs until a {hurdle_rate}% preferred return is met",
    )


def _catch_up(gp_carry_percentage: str, order: int = 3) -> WaterfallTierDefinition:
    return WaterfallTierDefinition(
        name="GP Catch-Up",
        type="catch-up",
        order=order,
        gp_carry_percentage=Decimal(gp_carry_percentage),
        description=f"100% to GP until it holds {gp_carry_percentage}% of profits",
    )


def _carry(gp_carry_percentage: str, order: int = 4) -> WaterfallTierDefinition:
    gp = Decimal(gp_carry_percentage)
    return WaterfallTierDefinition(
        name="Carried Interest",
        type="carry",
        order=order,
        gp_carry_percentage=gp,
        lp_percentage=Decimal("100") - gp,
        description=f"{100 - gp}/{gp} LP/GP split of remaining proceeds",
    )


def system_templates() -> List[WaterfallTemplate]:
    """Built-in templates, freshly constructed on each call."""
    return [
        WaterfallTemplate(
            id="template-european-standard",
            name="European Standard",
            description="Whole-fund waterfall: 8% preferred return, full GP catch-up, 80/20 carry",
            model="european",
            tiers=[_roc(), _preferred("8"), _catch_up("20"), _carry("20")],
            created_at=SYSTEM_TEMPLATES_RELEASED,
            updated_at=SYSTEM_TEMPLATES_RELEASED,
        ),
        WaterfallTemplate(
            id="template-american-deal-by-deal",
            name="American Deal-by-Deal",
            description="Deal-by-deal waterfall: 8% preferred return, 80/20 carry, no catch-up",
            model="american",
            tiers=[_roc(), _preferred("8"), _carry("20", order=3)],
            created_at=SYSTEM_TEMPLATES_RELEASED,
            updated_at=SYSTEM_TEMPLATES_RELEASED,
        ),
        WaterfallTemplate(
            id="template-no-hurdle",
            name="No Hurdle",
            description="Return of capital followed directly by an 80/20 carry split",
            model="european",
            tiers=[_roc(), _carry("20", order=2)],
            created_at=SYSTEM_TEMPLATES_RELEASED,
            updated_at=SYSTEM_TEMPLATES_RELEASED,
        ),
        WaterfallTemplate(
            id="template-premium-carry",
            name="Premium Carry",
            description="Whole-fund waterfall: 10% preferred return, full GP catch-up, 70/30 carry",
            model="european",
            tiers=[_roc(), _preferred("10"), _catch_up("30"), _carry("30")],
            created_at=SYSTEM_TEMPLATES_RELEASED,
            updated_at=SYSTEM_TEMPLATES_RELEASED,
        ),
    ]
