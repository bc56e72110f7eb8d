"""Sensitivity sweep block."""

from decimal import Decimal
from typing import List, Optional

import pandas as pd

from .base import Block, BlockContext
from ..engine import run_sensitivity
from ..schemas import SensitivityAnalysis, SensitivityCFG, WaterfallScenario


POINT_COLUMNS = [
    "exit_value",
    "gp_carry",
    "gp_carry_pct",
    "lp_return",
    "lp_multiple",
    "total_multiple",
    "clawback_due",
]

BREAK_EVEN_COLUMNS = ["tier_id", "tier_name", "exit_value"]


class SensitivityBlock(Block):
    """Sweeps a scenario's exit value around its base case.

    Inputs (from context):
        - waterfall_scenario: WaterfallScenario to sweep
        - sensitivity_cfg: SensitivityCFG with range and step constants

    Outputs (to context):
        - sensitivity_analysis: SensitivityAnalysis model
        - sensitivity_points: one row per swept exit value
        - break_even_points: one row per tier activated inside the range
    """

    def __init__(
        self,
        scenario_key: str = "waterfall_scenario",
        cfg_key: str = "sensitivity_cfg",
        min_multiplier: Optional[Decimal] = None,
        max_multiplier: Optional[Decimal] = None,
        steps: Optional[int] = None,
        model: Optional[str] = None,
    ):
        self.scenario_key = scenario_key
        self.cfg_key = cfg_key
        self.min_multiplier = min_multiplier
        self.max_multiplier = max_multiplier
        self.steps = steps
        self.model = model

    def inputs(self) -> List[str]:
        return [self.scenario_key, self.cfg_key]

    def outputs(self) -> List[str]:
        return ["sensitivity_analysis", "sensitivity_points", "break_even_points"]

    def execute(self, context: BlockContext) -> None:
        scenario: WaterfallScenario = context.get(self.scenario_key)
        cfg: SensitivityCFG = context.get(self.cfg_key)

        analysis: SensitivityAnalysis = run_sensitivity(
            scenario,
            min_multiplier=self.min_multiplier,
            max_multiplier=self.max_multiplier,
            steps=self.steps,
            cfg=cfg,
            model=self.model,
        )

        points = pd.DataFrame(
            [
                {
                    "exit_value": float(p.exit_value),
                    "gp_carry": float(p.gp_carry),
                    "gp_carry_pct": float(p.gp_carry_percentage),
                    "lp_return": float(p.lp_return),
                    "lp_multiple": float(p.lp_multiple),
                    "total_multiple": float(p.total_multiple),
                    "clawback_due": float(p.clawback_due) if p.clawback_due is not None else None,
                }
                for p in analysis.data_points
            ],
            columns=POINT_COLUMNS,
        )
        break_evens = pd.DataFrame(
            [
                {"tier_id": b.tier_id, "tier_name": b.tier_name, "exit_value": float(b.exit_value)}
                for b in analysis.break_even_points
            ],
            columns=BREAK_EVEN_COLUMNS,
        )

        context.set("sensitivity_analysis", analysis)
        context.set("sensitivity_points", points)
        context.set("break_even_points", break_evens)
