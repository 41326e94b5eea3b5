"""
Excel export of an analysis report.
One sheet per report section, camelCase headers as in the JSON payload.
"""
from pathlib import Path
from typing import BinaryIO, Dict, Union

import pandas as pd

from core.exceptions import ExportError
from core.logger import setup_logger
from core.schema import DashboardReport, MonthlyAggregate, SkuAggregate

logger = setup_logger(__name__)

SUMMARY_SHEET = "Summary"
SKU_SHEET = "SKU Analysis"
MONTHLY_SHEET = "Monthly Trends"
FEE_SHEET = "Fee Breakdown"

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def report_to_frames(report: DashboardReport) -> Dict[str, pd.DataFrame]:
    """
    Convert a report into one DataFrame per section.

    Args:
        report: Analysis report

    Returns:
        Mapping of sheet name to DataFrame, in sheet order
    """
    payload = report.model_dump(by_alias=True)

    summary_df = pd.DataFrame([payload["summary"]])
    fee_df = pd.DataFrame(
        list(payload["feeBreakdown"].items()),
        columns=["category", "amount"]
    )

    # Column headers come from empty models so empty sections keep their header row
    sku_columns = list(SkuAggregate(sku="").model_dump(by_alias=True))
    monthly_columns = list(MonthlyAggregate(month="").model_dump(by_alias=True))
    sku_df = pd.DataFrame(payload["skuAnalysis"], columns=sku_columns)
    monthly_df = pd.DataFrame(payload["monthlyTrends"], columns=monthly_columns)

    return {
        SUMMARY_SHEET: summary_df,
        SKU_SHEET: sku_df,
        MONTHLY_SHEET: monthly_df,
        FEE_SHEET: fee_df,
    }


def _autofit_columns(worksheet, df: pd.DataFrame) -> None:
    """Approximate column widths from header and cell lengths."""
    for idx, col in enumerate(df.columns):
        max_len = len(str(col))
        if len(df) > 0:
            max_len = max(max_len, int(df[col].astype(str).map(len).max()))
        worksheet.set_column(idx, idx, min(max_len + 2, 50))


def export_report_to_excel(
    report: DashboardReport,
    target: Union[str, Path, BinaryIO]
) -> Union[str, Path, BinaryIO]:
    """
    Write the report to an .xlsx workbook.

    Args:
        report: Analysis report
        target: Output path or writable binary buffer

    Returns:
        The target that was written

    Raises:
        ExportError: If the workbook cannot be written
    """
    frames = report_to_frames(report)
    logger.info(
        f"Exporting report with {len(report.sku_analysis)} SKUs and "
        f"{len(report.monthly_trends)} months"
    )

    if isinstance(target, (str, Path)):
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    try:
        with pd.ExcelWriter(target, engine="xlsxwriter") as writer:
            for sheet_name, df in frames.items():
                df.to_excel(writer, sheet_name=sheet_name, index=False)
                _autofit_columns(writer.sheets[sheet_name], df)

        logger.info("Report export completed")
        return target

    except Exception as e:
        logger.error(f"Failed to export Excel: {e}")
        raise ExportError(
            "Failed to export report to Excel",
            details={"error": str(e)}
        )
