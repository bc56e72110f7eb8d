"""Tests for export_scenario (Excel and CSV)."""

import pandas as pd
import pytest
from openpyxl import load_workbook

from waterfall_excel import export_scenario

from workbook_builders import build_clawback, build_config, build_scenario


def test_excel_export_creates_parent_directories(tmp_path):
    output = tmp_path / "reports" / "base_case.xlsx"

    written = export_scenario(build_config(), output)

    assert written == output
    assert load_workbook(output).sheetnames[0] == "Summary"


def test_csv_export_writes_one_file_per_frame(tmp_path):
    output = tmp_path / "base_case_csv"

    export_scenario(build_config(include_sensitivity=True), output, format="csv")

    assert sorted(p.name for p in output.iterdir()) == [
        "break_even_points.csv",
        "investor_class_results.csv",
        "provisions_summary.csv",
        "sensitivity_points.csv",
        "tier_allocations.csv",
        "tier_breakdown.csv",
        "tier_timeline.csv",
        "waterfall_summary.csv",
    ]


def test_csv_summary_values(tmp_path):
    scenario = build_scenario(clawback_provision=build_clawback())
    output = export_scenario(build_config(scenario), tmp_path / "csv", format="csv")

    summary = pd.read_csv(output / "waterfall_summary.csv")
    assert summary.loc[0, "gp_carry"] == 26_000_000
    assert summary.loc[0, "scenario_id"] == "scenario-export"

    provisions = pd.read_csv(output / "provisions_summary.csv")
    assert provisions["provision"].tolist() == ["clawback"]
    assert provisions.loc[0, "exposure"] == 8_000_000


def test_csv_without_sensitivity_skips_sweep_frames(tmp_path):
    output = export_scenario(build_config(), tmp_path / "csv", format="csv")

    assert not (output / "sensitivity_points.csv").exists()


def test_unsupported_format(tmp_path):
    with pytest.raises(ValueError, match="Unsupported export format"):
        export_scenario(build_config(), tmp_path / "out.pdf", format="pdf")
