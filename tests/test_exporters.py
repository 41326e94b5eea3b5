"""
Unit tests for report export.
"""
import io

import pytest
from openpyxl import load_workbook

from core.aggregation import analyze_transactions
from core.exceptions import ExportError
from core.exporters import (
    FEE_SHEET,
    MONTHLY_SHEET,
    SKU_SHEET,
    SUMMARY_SHEET,
    export_report_to_excel,
    report_to_frames,
)
from core.parsing import parse_ledger_text
from core.schema import DashboardReport


@pytest.fixture
def report(two_order_ledger):
    return analyze_transactions(parse_ledger_text(two_order_ledger))


def test_report_to_frames(report):
    """Test each report section becomes one DataFrame."""
    frames = report_to_frames(report)
    assert list(frames) == [SUMMARY_SHEET, SKU_SHEET, MONTHLY_SHEET, FEE_SHEET]
    assert frames[SUMMARY_SHEET].loc[0, "totalSales"] == 1500
    assert list(frames[SKU_SHEET]["sku"]) == ["A1", "B1"]
    assert frames[MONTHLY_SHEET].loc[0, "month"] == "2024/01"
    fees = dict(zip(frames[FEE_SHEET]["category"], frames[FEE_SHEET]["amount"]))
    assert fees["amazonFees"] == 150


def test_empty_report_keeps_headers():
    """Test empty sections still carry their column headers."""
    frames = report_to_frames(DashboardReport())
    assert len(frames[SKU_SHEET]) == 0
    assert "averageSellingPrice" in frames[SKU_SHEET].columns
    assert "advertisingCosts" in frames[MONTHLY_SHEET].columns


def test_export_to_buffer(report):
    """Test the workbook written to a buffer has all sheets."""
    buffer = io.BytesIO()
    export_report_to_excel(report, buffer)
    buffer.seek(0)

    workbook = load_workbook(buffer)
    assert workbook.sheetnames == [SUMMARY_SHEET, SKU_SHEET, MONTHLY_SHEET, FEE_SHEET]
    sku_sheet = workbook[SKU_SHEET]
    assert sku_sheet.cell(row=1, column=1).value == "sku"
    assert sku_sheet.cell(row=2, column=1).value == "A1"


def test_export_to_path(report, tmp_path):
    """Test exporting to a path creates parent directories."""
    target = tmp_path / "out" / "report.xlsx"
    assert export_report_to_excel(report, target) == target
    assert target.exists()


def test_export_failure_raises_export_error(report, monkeypatch):
    """Test writer failures are wrapped in ExportError."""
    def broken_writer(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("core.exporters.pd.ExcelWriter", broken_writer)
    with pytest.raises(ExportError) as exc_info:
        export_report_to_excel(report, io.BytesIO())
    assert "disk full" in exc_info.value.details["error"]
