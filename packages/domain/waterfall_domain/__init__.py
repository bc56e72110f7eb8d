"""Fund distribution waterfall domain.

Subpackages:
- schemas: pydantic models (scenarios, tiers, results, configuration)
- engine: tier allocator, calculators, enhancements and sensitivity sweeps
- services: scenario lifecycle and storage
- blocks: DataFrame computation blocks for reporting
"""

__version__ = "0.1.0"
