"""Block framework: keyed context, block contract and DAG executor.

Blocks turn waterfall schemas into pandas DataFrames. Each block names the
context keys it reads and the keys it writes; the executor orders blocks so
every key is written before it is read.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Shared key/value store that blocks read from and write to.

    Example:
        context = BlockContext()
        context.set("waterfall_scenario", scenario)
        WaterfallBlock().execute(context)
        summary_df = context.get("waterfall_summary")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Return the value stored under `key`.

        Raises:
            KeyError: If nothing was stored under `key`
        """
        try:
            return self._data[key]
        except KeyError:
            raise KeyError(
                f"Context has no '{key}' (available: {sorted(self._data)})"
            ) from None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data)

    def frames(self) -> Dict[str, Any]:
        """Every DataFrame-valued entry, keyed by context key."""
        return {k: v for k, v in self._data.items() if isinstance(v, pd.DataFrame)}


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """A computation step with declared context inputs and outputs.

    Subclass example:
        class SummaryBlock(Block):
            def inputs(self) -> List[str]:
                return ["waterfall_results"]

            def outputs(self) -> List[str]:
                return ["waterfall_summary"]

            def execute(self, context: BlockContext) -> None:
                results = context.get("waterfall_results")
                context.set("waterfall_summary", summarize(results))
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys read by this block."""
        pass

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys written by this block."""
        pass

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read inputs from `context`, compute, and write every output."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Raised when block inputs and outputs form a cycle."""
    pass


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Order blocks so producers run before their consumers (Kahn's algorithm).

    Inputs no block produces are expected in the initial context. Blocks
    without mutual dependencies keep their given relative order.

    Args:
        blocks: Blocks in any order

    Returns:
        Blocks in execution order

    Raises:
        ValueError: If two blocks declare the same output
        CircularDependencyError: If the dependency graph has a cycle
    """
    producers: Dict[str, int] = {}
    for index, block in enumerate(blocks):
        for key in block.outputs():
            if key in producers:
                raise ValueError(
                    f"Output '{key}' declared by both {blocks[producers[key]]} and {block}"
                )
            producers[key] = index

    dependents: Dict[int, List[int]] = {i: [] for i in range(len(blocks))}
    pending = [0] * len(blocks)
    for index, block in enumerate(blocks):
        for key in block.inputs():
            producer = producers.get(key)
            if producer is not None:
                dependents[producer].append(index)
                pending[index] += 1

    ready = deque(i for i in range(len(blocks)) if pending[i] == 0)
    order: List[int] = []
    while ready:
        current = ready.popleft()
        order.append(current)
        for dependent in dependents[current]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                ready.append(dependent)

    if len(order) != len(blocks):
        stuck = [blocks[i] for i in range(len(blocks)) if pending[i] > 0]
        raise CircularDependencyError(f"Blocks depend on each other in a cycle: {stuck}")

    return [blocks[i] for i in order]


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Runs blocks in dependency order against one context.

    Example:
        executor = BlockExecutor([ProvisionsBlock(), WaterfallBlock()])
        context = BlockContext()
        context.set("waterfall_scenario", scenario)
        executor.execute(context)
        provisions_df = context.get("provisions_summary")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = list(blocks)
        self._order: Optional[List[Block]] = None

    @property
    def order(self) -> List[Block]:
        if self._order is None:
            self._order = topological_sort(self.blocks)
        return self._order

    def execute(self, context: BlockContext) -> BlockContext:
        """Execute every block, checking declared inputs and outputs.

        Raises:
            CircularDependencyError: If the blocks form a cycle
            KeyError: If a block's input is missing when it runs
            ValueError: If a block does not write a declared output
        """
        for block in self.order:
            missing = [key for key in block.inputs() if not context.has(key)]
            if missing:
                raise KeyError(f"{block} is missing inputs {missing} (available: {context.keys()})")

            logger.debug("Executing %r", block)
            block.execute(context)

            unwritten = [key for key in block.outputs() if not context.has(key)]
            if unwritten:
                raise ValueError(f"{block} did not write declared outputs {unwritten}")

        return context
