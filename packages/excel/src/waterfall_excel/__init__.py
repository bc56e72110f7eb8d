"""Excel and CSV export for waterfall scenarios."""

from .exporters import export_scenario
from .workbook_renderer import WaterfallWorkbookRenderer

__all__ = ["WaterfallWorkbookRenderer", "export_scenario"]
