"""Scenario and workbook config builders for the export tests.

Same base case as the domain suite: $150M exit on $100M invested through
ROC, 8% preferred, 20% catch-up and 80/20 carry. European carry is $26M.
"""

from datetime import datetime, timezone
from decimal import Decimal

from waterfall_domain.schemas import (
    BlendedWaterfallConfig,
    ClawbackProvision,
    InvestorClass,
    WaterfallScenario,
    WaterfallTier,
    WaterfallWorkbookCFG,
)

CREATED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


def build_scenario(**overrides) -> WaterfallScenario:
    fields = dict(
        id="scenario-export",
        name="Base Case",
        model="european",
        investor_classes=[
            InvestorClass(
                id="lp-main",
                name="Limited Partners",
                type="lp",
                ownership_percentage=Decimal("100"),
                commitment=Decimal("100000000"),
                capital_called=Decimal("100000000"),
            ),
            InvestorClass(id="gp", name="General Partner", type="gp", ownership_percentage=Decimal("100")),
        ],
        tiers=[
            WaterfallTier(id="tier-roc", name="Return of Capital", type="roc", order=1),
            WaterfallTier(
                id="tier-pref", name="Preferred Return", type="preferred-return", order=2,
                hurdle_rate=Decimal("8"),
            ),
            WaterfallTier(
                id="tier-catchup", name="GP Catch-Up", type="catch-up", order=3,
                gp_carry_percentage=Decimal("20"),
            ),
            WaterfallTier(
                id="tier-carry", name="Carried Interest", type="carry", order=4,
                gp_carry_percentage=Decimal("20"), lp_percentage=Decimal("80"),
            ),
        ],
        exit_value=Decimal("150000000"),
        total_invested=Decimal("100000000"),
        management_fees=Decimal("2000000"),
        created_at=CREATED_AT,
        updated_at=CREATED_AT,
    )
    fields.update(overrides)
    return WaterfallScenario(**fields)


def build_blended_scenario() -> WaterfallScenario:
    return build_scenario(
        model="blended",
        blended_config=BlendedWaterfallConfig(european_weight=Decimal("70"), american_weight=Decimal("30")),
    )


def build_clawback() -> ClawbackProvision:
    return ClawbackProvision(
        hurdle_rate=Decimal("8"),
        clawback_rate=Decimal("100"),
        distribution_life_years=Decimal("4"),
    )


def build_config(scenario: WaterfallScenario = None, **overrides) -> WaterfallWorkbookCFG:
    return WaterfallWorkbookCFG(scenario=scenario or build_scenario(), **overrides)
