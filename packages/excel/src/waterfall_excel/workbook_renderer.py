"""Waterfall workbook renderer (openpyxl, no Excel tables)."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from waterfall_domain.blocks import (
    BlockContext,
    BlockExecutor,
    ProvisionsBlock,
    SensitivityBlock,
    WaterfallBlock,
)
from waterfall_domain.schemas import WaterfallWorkbookCFG

MONEY_FORMAT = '$#,##0'
PCT_FORMAT = '0.0%'
MULTIPLE_FORMAT = '0.00"x"'
DATE_FORMAT = 'yyyy-mm-dd'

TEMPLATE_TITLES = {
    "executive-summary": "Executive Summary",
    "detailed": "Waterfall Analysis",
    "board-presentation": "Board Presentation",
}

# (label, summary column, number format); percentages are stored 0-100
HEADLINE_METRICS: List[Tuple[str, str, str]] = [
    ("Exit Value", "total_exit_value", MONEY_FORMAT),
    ("Total Invested", "total_invested", MONEY_FORMAT),
    ("Total Distributed", "total_returned", MONEY_FORMAT),
    ("GP Carry", "gp_carry", MONEY_FORMAT),
    ("GP Carry %", "gp_carry_pct", PCT_FORMAT),
    ("Management Fees", "gp_management_fees", MONEY_FORMAT),
    ("GP Total Return", "gp_total_return", MONEY_FORMAT),
    ("LP Total Return", "lp_total_return", MONEY_FORMAT),
    ("LP Average Multiple", "lp_average_multiple", MULTIPLE_FORMAT),
]


class WaterfallWorkbookRenderer:
    """Render a scenario's waterfall into a formatted workbook.

    Sheets:
        Summary         headline metrics, blended weights, provisions
        Tier Breakdown  GP/LP split per tier with SUM totals
        LP Allocations  per-class results and per-tier allocations
        Sensitivity     exit value sweep and break-even points

    The executive-summary template renders the Summary sheet only.
    """

    def __init__(self, config: WaterfallWorkbookCFG):
        self.config = config

        # Fonts
        self.bold_font = Font(bold=True)
        self.title_font = Font(size=14, bold=True)
        self.subtitle_font = Font(italic=True, color="595959")

        # Header styling
        self.header_font = Font(bold=True, color="FFFFFF")  # White text on dark blue
        self.header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")

        # Section header styling
        self.section_header_font = Font(italic=True, bold=True)
        self.section_header_fill = PatternFill(start_color="E7E6E6", end_color="E7E6E6", fill_type="solid")

        # Totals styling
        self.totals_fill = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")

        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        self.top_border = Border(top=Side(style='medium'))

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.right_align = Alignment(horizontal='right')

        self._context: Optional[BlockContext] = None

    # ------------------------------------------------------------------ #
    # Computation
    # ------------------------------------------------------------------ #

    def compute(self) -> BlockContext:
        """Run the blocks the configured sheets need (cached per renderer)."""
        if self._context is None:
            blocks = [WaterfallBlock(), ProvisionsBlock()]
            if self.config.include_sensitivity and not self.config.summary_only:
                blocks.append(SensitivityBlock())

            context = BlockContext()
            context.set("waterfall_scenario", self.config.scenario)
            context.set("sensitivity_cfg", self.config.sensitivity_cfg)
            self._context = BlockExecutor(blocks).execute(context)
        return self._context

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def render(self, output_path: str) -> str:
        wb = self.build_workbook()
        wb.save(output_path)
        return output_path

    def build_workbook(self) -> Workbook:
        context = self.compute()

        wb = Workbook()
        wb.remove(wb.active)

        self._render_summary_sheet(wb, context)
        if self.config.summary_only:
            return wb

        if self.config.include_tier_breakdown:
            self._render_tier_sheet(wb, context)
        if self.config.include_lp_allocations:
            self._render_allocations_sheet(wb, context)
        if self.config.include_sensitivity:
            self._render_sensitivity_sheet(wb, context)
        return wb

    def _render_summary_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet(title="Summary")
        summary = context.get("waterfall_summary").iloc[0]
        scenario = self.config.scenario

        title = f"{TEMPLATE_TITLES[self.config.template]} - {scenario.name}"
        if self.config.company_name:
            title = f"{self.config.company_name}: {title}"
        sheet["A1"] = title
        sheet["A1"].font = self.title_font
        sheet["A2"] = f"Model: {summary['model']} | Version {scenario.version}"
        sheet["A2"].font = self.subtitle_font

        row = 4
        row = self._write_section_header(sheet, row, "Headline Metrics", width=2)
        for label, column, number_format in HEADLINE_METRICS:
            value = summary[column]
            if number_format == PCT_FORMAT:
                value = value / 100
            row = self._write_label_value(sheet, row, label, value, number_format)

        if pd.notna(summary["european_weight"]):
            row += 1
            row = self._write_section_header(sheet, row, "Blended Weights", width=2)
            row = self._write_label_value(sheet, row, "European Weight", summary["european_weight"] / 100, PCT_FORMAT)
            row = self._write_label_value(sheet, row, "American Weight", summary["american_weight"] / 100, PCT_FORMAT)

        provisions = context.get("provisions_summary")
        if not provisions.empty:
            row += 1
            row = self._write_section_header(sheet, row, "Provisions", width=6)
            row = self._write_frame(
                sheet,
                row,
                provisions,
                headers=["Provision", "Status", "GP Carry", "Reference", "Exposure", "Carry Retained"],
                formats=[None, None, MONEY_FORMAT, MONEY_FORMAT, MONEY_FORMAT, MONEY_FORMAT],
            )

        if self.config.footer:
            row += 1
            sheet.cell(row=row, column=1, value=self.config.footer).font = self.subtitle_font

        self._set_widths(sheet, [28, 18, 16, 16, 16, 16])

    def _render_tier_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet(title="Tier Breakdown")
        tiers = context.get("tier_breakdown")

        sheet["A1"] = f"Tier Breakdown - {self.config.scenario.name}"
        sheet["A1"].font = self.title_font

        frame = tiers[["tier_name", "tier_type", "total_amount", "gp_amount", "lp_amount", "pct_of_exit", "cumulative_amount"]].copy()
        frame["pct_of_exit"] = frame["pct_of_exit"] / 100
        last_row = self._write_frame(
            sheet,
            3,
            frame,
            headers=["Tier", "Type", "Total", "GP", "LP", "% of Exit", "Cumulative"],
            formats=[None, None, MONEY_FORMAT, MONEY_FORMAT, MONEY_FORMAT, PCT_FORMAT, MONEY_FORMAT],
        )
        self._write_totals_row(sheet, last_row, first_data_row=4, sum_columns=[3, 4, 5], number_format=MONEY_FORMAT)

        timeline = context.get("tier_timeline")
        if not timeline.empty:
            row = last_row + 2
            row = self._write_section_header(sheet, row, "Tier Timeline", width=3)
            self._write_frame(
                sheet,
                row,
                timeline[["tier_name", "reached_at", "exit_value"]],
                headers=["Tier", "Reached", "Cumulative Exit Value"],
                formats=[None, DATE_FORMAT, MONEY_FORMAT],
            )

        sheet.freeze_panes = "B4"
        self._set_widths(sheet, [24, 18, 16, 16, 16, 12, 16])

    def _render_allocations_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet(title="LP Allocations")
        classes = context.get("investor_class_results")
        allocations = context.get("tier_allocations")

        sheet["A1"] = f"Investor Class Results - {self.config.scenario.name}"
        sheet["A1"].font = self.title_font

        frame = classes[["investor_class_name", "investor_class_type", "invested", "returned", "multiple", "irr_pct", "carry"]].copy()
        frame["investor_class_type"] = frame["investor_class_type"].str.upper()
        frame["irr_pct"] = frame["irr_pct"].astype(float) / 100
        last_row = self._write_frame(
            sheet,
            3,
            frame,
            headers=["Investor Class", "Side", "Invested", "Returned", "MOIC", "IRR", "Carry"],
            formats=[None, None, MONEY_FORMAT, MONEY_FORMAT, MULTIPLE_FORMAT, PCT_FORMAT, MONEY_FORMAT],
        )
        self._write_totals_row(sheet, last_row, first_data_row=4, sum_columns=[3, 4, 7], number_format=MONEY_FORMAT)

        row = last_row + 2
        row = self._write_section_header(sheet, row, "Allocations by Tier", width=4)
        detail = allocations[["tier_name", "investor_class_name", "amount", "pct_of_tier"]].copy()
        detail["pct_of_tier"] = detail["pct_of_tier"] / 100
        self._write_frame(
            sheet,
            row,
            detail,
            headers=["Tier", "Investor Class", "Amount", "% of Tier"],
            formats=[None, None, MONEY_FORMAT, PCT_FORMAT],
        )

        sheet.freeze_panes = "B4"
        self._set_widths(sheet, [26, 24, 16, 16, 10, 10, 16])

    def _render_sensitivity_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet(title="Sensitivity")
        points = context.get("sensitivity_points")
        break_evens = context.get("break_even_points")

        sheet["A1"] = f"Exit Value Sensitivity - {self.config.scenario.name}"
        sheet["A1"].font = self.title_font

        frame = points[["exit_value", "gp_carry", "gp_carry_pct", "lp_return", "lp_multiple", "total_multiple"]].copy()
        frame["gp_carry_pct"] = frame["gp_carry_pct"] / 100
        last_row = self._write_frame(
            sheet,
            3,
            frame,
            headers=["Exit Value", "GP Carry", "GP Carry %", "LP Return", "LP Multiple", "Gross Multiple"],
            formats=[MONEY_FORMAT, MONEY_FORMAT, PCT_FORMAT, MONEY_FORMAT, MULTIPLE_FORMAT, MULTIPLE_FORMAT],
        )

        if not break_evens.empty:
            row = last_row + 1
            row = self._write_section_header(sheet, row, "Break-Even Points", width=2)
            self._write_frame(
                sheet,
                row,
                break_evens[["tier_name", "exit_value"]],
                headers=["Tier", "Exit Value"],
                formats=[None, MONEY_FORMAT],
            )

        sheet.freeze_panes = "A4"
        self._set_widths(sheet, [24, 16, 12, 16, 12, 14])

    # ------------------------------------------------------------------ #
    # Cell helpers
    # ------------------------------------------------------------------ #

    def _write_section_header(self, sheet: Worksheet, row: int, text: str, width: int) -> int:
        for col in range(1, width + 1):
            cell = sheet.cell(row=row, column=col)
            cell.fill = self.section_header_fill
        header = sheet.cell(row=row, column=1, value=text)
        header.font = self.section_header_font
        return row + 1

    def _write_label_value(
        self, sheet: Worksheet, row: int, label: str, value: Any, number_format: str
    ) -> int:
        sheet.cell(row=row, column=1, value=label)
        cell = sheet.cell(row=row, column=2, value=self._cell_value(value))
        cell.number_format = number_format
        cell.alignment = self.right_align
        return row + 1

    def _write_frame(
        self,
        sheet: Worksheet,
        row: int,
        frame: pd.DataFrame,
        headers: Sequence[str],
        formats: Sequence[Optional[str]],
    ) -> int:
        """Write a header row plus one row per DataFrame row.

        Returns:
            The first row after the written block
        """
        for col, header in enumerate(headers, start=1):
            cell = sheet.cell(row=row, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_align
            cell.border = self.thin_border
        row += 1

        for values in frame.itertuples(index=False):
            for col, (value, number_format) in enumerate(zip(values, formats), start=1):
                cell = sheet.cell(row=row, column=col, value=self._cell_value(value))
                cell.border = self.thin_border
                if number_format:
                    cell.number_format = number_format
            row += 1
        return row

    def _write_totals_row(
        self,
        sheet: Worksheet,
        row: int,
        first_data_row: int,
        sum_columns: Sequence[int],
        number_format: str,
    ) -> None:
        label = sheet.cell(row=row, column=1, value="Total")
        label.font = self.bold_font
        label.fill = self.totals_fill
        label.border = self.top_border
        for col in sum_columns:
            letter = get_column_letter(col)
            if row > first_data_row:
                formula = f"=SUM({letter}{first_data_row}:{letter}{row - 1})"
            else:
                formula = 0
            cell = sheet.cell(row=row, column=col, value=formula)
            cell.font = self.bold_font
            cell.fill = self.totals_fill
            cell.border = self.top_border
            cell.number_format = number_format

    @staticmethod
    def _cell_value(value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, pd.Timestamp):
            return value.date()
        if isinstance(value, float) and pd.isna(value):
            return None
        return value

    @staticmethod
    def _set_widths(sheet: Worksheet, widths: Sequence[int]) -> None:
        for col, width in enumerate(widths, start=1):
            sheet.column_dimensions[get_column_letter(col)].width = width
