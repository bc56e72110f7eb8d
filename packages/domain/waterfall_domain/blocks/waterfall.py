"""Waterfall computation blocks.

WaterfallBlock runs a scenario through its calculator and flattens the
results into DataFrames. ProvisionsBlock summarizes clawback and lookback
exposure from those results.
"""

from typing import Any, Dict, List, Optional

import pandas as pd

from .base import Block, BlockContext
from ..engine import calculate_waterfall
from ..schemas import WaterfallResults, WaterfallScenario


SUMMARY_COLUMNS = [
    "scenario_id",
    "scenario_name",
    "model",
    "total_exit_value",
    "total_invested",
    "total_returned",
    "gp_carry",
    "gp_carry_pct",
    "gp_management_fees",
    "gp_total_return",
    "lp_total_return",
    "lp_average_multiple",
    "european_weight",
    "american_weight",
]

TIER_COLUMNS = [
    "tier_id",
    "tier_name",
    "tier_type",
    "total_amount",
    "gp_amount",
    "lp_amount",
    "pct_of_exit",
    "cumulative_amount",
]

ALLOCATION_COLUMNS = [
    "tier_id",
    "tier_name",
    "investor_class_id",
    "investor_class_name",
    "amount",
    "pct_of_tier",
    "cumulative_amount",
]

CLASS_COLUMNS = [
    "investor_class_id",
    "investor_class_name",
    "investor_class_type",
    "invested",
    "returned",
    "multiple",
    "irr_pct",
    "carry",
    "net_return",
]

TIMELINE_COLUMNS = [
    "tier_id",
    "tier_name",
    "reached_at",
    "exit_value",
    "cumulative_distributed",
]

PROVISION_COLUMNS = [
    "provision",
    "status",
    "gp_carry",
    "reference_amount",
    "exposure",
    "carry_retained",
]


def _frame(rows: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=columns)


class WaterfallBlock(Block):
    """Calculates a waterfall scenario.

    Inputs (from context):
        - waterfall_scenario: WaterfallScenario to calculate

    Outputs (to context):
        - waterfall_results: WaterfallResults model (for downstream blocks)
        - waterfall_summary: single-row DataFrame of fund-level figures
        - tier_breakdown: one row per populated tier
        - tier_allocations: one row per (tier, investor class) allocation
        - investor_class_results: one row per investor class
        - tier_timeline: one row per timeline marker

    Example:
        context = BlockContext()
        context.set("waterfall_scenario", scenario)
        WaterfallBlock().execute(context)
        context.get("waterfall_summary")["gp_carry"].iloc[0]
    """

    def __init__(self, scenario_key: str = "waterfall_scenario", model: Optional[str] = None):
        """Initialize WaterfallBlock.

        Args:
            scenario_key: Context key for the WaterfallScenario input
            model: Optional override of the scenario's model
        """
        self.scenario_key = scenario_key
        self.model = model

    def inputs(self) -> List[str]:
        return [self.scenario_key]

    def outputs(self) -> List[str]:
        return [
            "waterfall_results",
            "waterfall_summary",
            "tier_breakdown",
            "tier_allocations",
            "investor_class_results",
            "tier_timeline",
        ]

    def execute(self, context: BlockContext) -> None:
        scenario: WaterfallScenario = context.get(self.scenario_key)
        results = calculate_waterfall(scenario, self.model)

        context.set("waterfall_results", results)
        context.set("waterfall_summary", self._summary(scenario, results))
        context.set("tier_breakdown", self._tiers(results))
        context.set("tier_allocations", self._allocations(results))
        context.set("investor_class_results", self._classes(results))
        context.set("tier_timeline", self._timeline(results))

    def _summary(self, scenario: WaterfallScenario, results: WaterfallResults) -> pd.DataFrame:
        blend = results.blended_breakdown
        return _frame([{
            "scenario_id": scenario.id,
            "scenario_name": scenario.name,
            "model": self.model or scenario.model,
            "total_exit_value": float(results.total_exit_value),
            "total_invested": float(results.total_invested),
            "total_returned": float(results.total_returned),
            "gp_carry": float(results.gp_carry),
            "gp_carry_pct": float(results.gp_carry_percentage),
            "gp_management_fees": float(results.gp_management_fees),
            "gp_total_return": float(results.gp_total_return),
            "lp_total_return": float(results.lp_total_return),
            "lp_average_multiple": float(results.lp_average_multiple),
            "european_weight": float(blend.european_weight) if blend is not None else None,
            "american_weight": float(blend.american_weight) if blend is not None else None,
        }], SUMMARY_COLUMNS)

    def _tiers(self, results: WaterfallResults) -> pd.DataFrame:
        rows = [
            {
                "tier_id": tier.tier_id,
                "tier_name": tier.tier_name,
                "tier_type": tier.tier_type,
                "total_amount": float(tier.total_amount),
                "gp_amount": float(tier.gp_amount),
                "lp_amount": float(tier.lp_amount),
                "pct_of_exit": float(tier.percentage),
                "cumulative_amount": float(tier.cumulative_amount),
            }
            for tier in results.tier_breakdown
        ]
        return _frame(rows, TIER_COLUMNS)

    def _allocations(self, results: WaterfallResults) -> pd.DataFrame:
        rows = [
            {
                "tier_id": allocation.tier_id,
                "tier_name": allocation.tier_name,
                "investor_class_id": allocation.investor_class_id,
                "investor_class_name": allocation.investor_class_name,
                "amount": float(allocation.amount),
                "pct_of_tier": float(allocation.percentage),
                "cumulative_amount": float(allocation.cumulative_amount),
            }
            for tier in results.tier_breakdown
            for allocation in tier.allocations
        ]
        return _frame(rows, ALLOCATION_COLUMNS)

    def _classes(self, results: WaterfallResults) -> pd.DataFrame:
        rows = [
            {
                "investor_class_id": r.investor_class_id,
                "investor_class_name": r.investor_class_name,
                "investor_class_type": r.investor_class_type,
                "invested": float(r.invested),
                "returned": float(r.returned),
                "multiple": float(r.multiple),
                "irr_pct": float(r.irr) if r.irr is not None else None,
                "carry": float(r.carry),
                "net_return": float(r.net_return),
            }
            for r in results.investor_class_results
        ]
        return _frame(rows, CLASS_COLUMNS)

    def _timeline(self, results: WaterfallResults) -> pd.DataFrame:
        rows = [
            {
                "tier_id": entry.tier_id,
                "tier_name": entry.tier_name,
                "reached_at": pd.Timestamp(entry.reached_at),
                "exit_value": float(entry.exit_value),
                "cumulative_distributed": float(entry.cumulative_distributed),
            }
            for entry in results.tier_timeline
        ]
        return _frame(rows, TIMELINE_COLUMNS)


class ProvisionsBlock(Block):
    """Summarizes clawback and lookback provisions.

    Inputs (from context):
        - waterfall_results: WaterfallResults (from WaterfallBlock)

    Outputs (to context):
        - provisions_summary: one row per enabled provision
            * provision: 'clawback' or 'lookback'
            * status: provision status
            * gp_carry: carry the provision applies to
            * reference_amount: required LP return (clawback) or losses to recover (lookback)
            * exposure: clawback due or carry at risk
            * carry_retained: carry left with the GP after the provision
    """

    def __init__(self, results_key: str = "waterfall_results"):
        self.results_key = results_key

    def inputs(self) -> List[str]:
        return [self.results_key]

    def outputs(self) -> List[str]:
        return ["provisions_summary"]

    def execute(self, context: BlockContext) -> None:
        results: WaterfallResults = context.get(self.results_key)
        rows = []

        if results.clawback is not None:
            clawback = results.clawback
            rows.append({
                "provision": "clawback",
                "status": clawback.status,
                "gp_carry": float(clawback.total_carry_paid),
                "reference_amount": float(clawback.required_return),
                "exposure": float(clawback.clawback_due),
                "carry_retained": float(clawback.net_carry_after_clawback),
            })

        if results.lookback is not None:
            lookback = results.lookback
            rows.append({
                "provision": "lookback",
                "status": lookback.status,
                "gp_carry": float(results.gp_carry),
                "reference_amount": float(lookback.losses_to_recover),
                "exposure": float(lookback.carry_at_risk),
                "carry_retained": float(lookback.carry_released),
            })

        context.set("provisions_summary", _frame(rows, PROVISION_COLUMNS))
