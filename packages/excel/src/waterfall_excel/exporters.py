"""Scenario export entry point (Excel workbook or CSV directory)."""

import logging
from pathlib import Path
from typing import Union

from waterfall_domain.schemas import ExportFormat, WaterfallWorkbookCFG

from .workbook_renderer import WaterfallWorkbookRenderer

logger = logging.getLogger(__name__)


def export_scenario(
    config: WaterfallWorkbookCFG,
    output_path: Union[str, Path],
    format: ExportFormat = "excel",
) -> Path:
    """Export a scenario's waterfall.

    Args:
        config: Workbook configuration (scenario, template, sections)
        output_path: .xlsx file for 'excel', target directory for 'csv'
        format: 'excel' or 'csv'

    Returns:
        Path of the written workbook or CSV directory

    Raises:
        ValueError: If the format is not supported

    Example:
        export_scenario(config, "out/base_case.xlsx")
        export_scenario(config, "out/base_case_csv", format="csv")
    """
    output_path = Path(output_path)
    renderer = WaterfallWorkbookRenderer(config)

    if format == "excel":
        output_path.parent.mkdir(parents=True, exist_ok=True)
        renderer.render(str(output_path))
        logger.info("Exported scenario %s to %s", config.scenario.id, output_path)
        return output_path

    if format == "csv":
        output_path.mkdir(parents=True, exist_ok=True)
        frames = renderer.compute().frames()
        for key, frame in frames.items():
            frame.to_csv(output_path / f"{key}.csv", index=False)
        logger.info(
            "Exported scenario %s as %d CSV files to %s",
            config.scenario.id, len(frames), output_path,
        )
        return output_path

    raise ValueError(f"Unsupported export format: {format!r}")
