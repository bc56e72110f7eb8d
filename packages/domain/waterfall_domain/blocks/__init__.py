"""Computation blocks for waterfall analysis.

Blocks turn waterfall schemas into DataFrames for Excel rendering, CSV export
or ad-hoc analysis.

Architecture:
    Schemas (scenario) → Blocks (computation) → DataFrames (output)

Available blocks:
- WaterfallBlock: runs the calculator and flattens results
- ProvisionsBlock: clawback and lookback summary
- SensitivityBlock: exit value sweep and break-even points

Usage:
    from waterfall_domain.blocks import BlockContext, BlockExecutor, WaterfallBlock

    context = BlockContext()
    context.set("waterfall_scenario", scenario)
    BlockExecutor([WaterfallBlock()]).execute(context)
    tiers_df = context.get("tier_breakdown")
"""

from .base import Block, BlockContext, BlockExecutor, CircularDependencyError, topological_sort
from .sensitivity import SensitivityBlock
from .waterfall import ProvisionsBlock, WaterfallBlock

__all__ = [
    "Block",
    "BlockContext",
    "BlockExecutor",
    "CircularDependencyError",
    "topological_sort",
    "WaterfallBlock",
    "ProvisionsBlock",
    "SensitivityBlock",
]
