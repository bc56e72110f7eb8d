"""Tests for blocks architecture.

Tests cover:
- BlockContext get/set/has operations
- Topological sort and dependency resolution
- BlockExecutor validation and execution
- WaterfallBlock, ProvisionsBlock, SensitivityBlock outputs
"""

from decimal import Decimal
from typing import List

import pandas as pd
import pytest

from waterfall_domain.blocks import (
    Block,
    BlockContext,
    BlockExecutor,
    ProvisionsBlock,
    SensitivityBlock,
    WaterfallBlock,
)
from waterfall_domain.blocks.base import CircularDependencyError, topological_sort
from waterfall_domain.errors import InvalidSensitivityRangeError
from waterfall_domain.schemas import SensitivityCFG

from scenario_builders import build_blended_scenario, build_clawback, build_lookback, build_scenario


# =============================================================================
# BlockContext Tests
# =============================================================================

def test_block_context_get_set():
    context = BlockContext()
    context.set("key1", "value1")
    assert context.get("key1") == "value1"
    assert context.has("key1")
    assert not context.has("key2")


def test_block_context_get_missing_key():
    """Missing keys raise KeyError naming the available keys."""
    context = BlockContext()
    context.set("present", 1)

    with pytest.raises(KeyError, match="present"):
        context.get("absent")


def test_block_context_frames():
    context = BlockContext()
    context.set("df", pd.DataFrame({"a": [1]}))
    context.set("model", object())

    assert list(context.frames()) == ["df"]


# =============================================================================
# Dependency Resolution
# =============================================================================

class SimpleBlock(Block):
    """Copies its first input (or a constant) to each output."""

    def __init__(self, name: str, inputs: List[str], outputs: List[str], write: bool = True):
        self.name = name
        self._inputs = inputs
        self._outputs = outputs
        self.write = write

    def inputs(self) -> List[str]:
        return self._inputs

    def outputs(self) -> List[str]:
        return self._outputs

    def execute(self, context: BlockContext) -> None:
        value = context.get(self._inputs[0]) if self._inputs else self.name
        if self.write:
            for key in self._outputs:
                context.set(key, value)


def test_topological_sort_linear_chain():
    a = SimpleBlock("a", [], ["A"])
    b = SimpleBlock("b", ["A"], ["B"])
    c = SimpleBlock("c", ["B"], ["C"])

    assert topological_sort([c, a, b]) == [a, b, c]


def test_topological_sort_keeps_independent_order():
    a = SimpleBlock("a", ["x"], ["A"])
    b = SimpleBlock("b", ["y"], ["B"])

    assert topological_sort([b, a]) == [b, a]


def test_topological_sort_circular_dependency():
    a = SimpleBlock("a", ["B"], ["A"])
    b = SimpleBlock("b", ["A"], ["B"])

    with pytest.raises(CircularDependencyError):
        topological_sort([a, b])


def test_topological_sort_duplicate_output():
    with pytest.raises(ValueError, match="declared by both"):
        topological_sort([SimpleBlock("a", [], ["A"]), SimpleBlock("b", [], ["A"])])


def test_block_executor_chain():
    executor = BlockExecutor([SimpleBlock("b", ["A"], ["B"]), SimpleBlock("a", ["seed"], ["A"])])
    context = BlockContext()
    context.set("seed", 42)

    executor.execute(context)

    assert context.get("B") == 42


def test_block_executor_missing_input():
    with pytest.raises(KeyError, match="seed"):
        BlockExecutor([SimpleBlock("a", ["seed"], ["A"])]).execute(BlockContext())


def test_block_executor_missing_output():
    with pytest.raises(ValueError, match="did not write"):
        BlockExecutor([SimpleBlock("a", [], ["A"], write=False)]).execute(BlockContext())


# =============================================================================
# Waterfall Blocks
# =============================================================================

def run_blocks(scenario, *blocks, cfg=None) -> BlockContext:
    context = BlockContext()
    context.set("waterfall_scenario", scenario)
    context.set("sensitivity_cfg", cfg if cfg is not None else SensitivityCFG())
    return BlockExecutor(list(blocks)).execute(context)


def test_waterfall_block_outputs():
    """Base case frames carry the headline figures as floats."""
    context = run_blocks(build_scenario(), WaterfallBlock())

    summary = context.get("waterfall_summary")
    assert len(summary) == 1
    assert summary["gp_carry"].iloc[0] == 26_000_000
    assert summary["lp_total_return"].iloc[0] == 124_000_000
    assert summary["model"].iloc[0] == "european"
    assert pd.isna(summary["european_weight"].iloc[0])

    tiers = context.get("tier_breakdown")
    assert tiers["tier_id"].tolist() == ["tier-roc", "tier-pref", "tier-catchup"]
    assert tiers["cumulative_amount"].is_monotonic_increasing

    allocations = context.get("tier_allocations")
    assert allocations.groupby("investor_class_id")["amount"].sum().to_dict() == {
        "gp": 26_000_000,
        "lp-main": 124_000_000,
    }

    classes = context.get("investor_class_results")
    assert classes.set_index("investor_class_id").loc["lp-main", "multiple"] == pytest.approx(1.24)
    assert len(context.get("tier_timeline")) == 3


def test_waterfall_block_model_override():
    context = run_blocks(build_scenario(), WaterfallBlock(model="american"))

    summary = context.get("waterfall_summary")
    assert summary["gp_carry"].iloc[0] == pytest.approx(5_200_000)
    assert summary["model"].iloc[0] == "american"


def test_waterfall_block_blended_weights():
    context = run_blocks(build_blended_scenario("70", "30"), WaterfallBlock())

    summary = context.get("waterfall_summary")
    assert summary["european_weight"].iloc[0] == 70
    assert summary["american_weight"].iloc[0] == 30


def test_waterfall_block_empty_frames_keep_columns():
    context = run_blocks(build_scenario(exit_value=Decimal("0")), WaterfallBlock())

    tiers = context.get("tier_breakdown")
    assert tiers.empty
    assert "gp_amount" in tiers.columns


def test_provisions_block():
    scenario = build_scenario(clawback_provision=build_clawback(), lookback_provision=build_lookback())
    context = run_blocks(scenario, ProvisionsBlock(), WaterfallBlock())

    provisions = context.get("provisions_summary").set_index("provision")
    assert provisions.loc["clawback", "status"] == "triggered"
    assert provisions.loc["clawback", "exposure"] == 8_000_000
    assert provisions.loc["lookback", "exposure"] == 13_000_000
    assert provisions.loc["lookback", "carry_retained"] == 13_000_000


def test_provisions_block_without_provisions():
    context = run_blocks(build_scenario(), WaterfallBlock(), ProvisionsBlock())

    assert context.get("provisions_summary").empty


def test_sensitivity_block():
    context = run_blocks(build_scenario(), SensitivityBlock(steps=10))

    points = context.get("sensitivity_points")
    assert len(points) == 11
    assert points["exit_value"].is_monotonic_increasing
    assert context.get("break_even_points")["tier_id"].tolist() == [
        "tier-pref",
        "tier-catchup",
        "tier-carry",
    ]
    assert context.get("sensitivity_analysis").step == Decimal("15000000")


def test_sensitivity_block_uses_context_cfg():
    cfg = SensitivityCFG(step_options=[5, 20], default_steps=5)
    context = run_blocks(build_scenario(), SensitivityBlock(), cfg=cfg)

    assert len(context.get("sensitivity_points")) == 6
    with pytest.raises(InvalidSensitivityRangeError):
        run_blocks(build_scenario(), SensitivityBlock(steps=10), cfg=cfg)


def test_full_pipeline():
    scenario = build_scenario(clawback_provision=build_clawback())
    context = run_blocks(scenario, SensitivityBlock(steps=10), ProvisionsBlock(), WaterfallBlock())

    assert set(context.frames()) == {
        "waterfall_summary",
        "tier_breakdown",
        "tier_allocations",
        "investor_class_results",
        "tier_timeline",
        "provisions_summary",
        "sensitivity_points",
        "break_even_points",
    }
    assert context.get("sensitivity_points")["clawback_due"].notna().all()
