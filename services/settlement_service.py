"""
Settlement analysis service.
Encapsulates the upload → parse → aggregate pipeline for the API layer.
"""
import io
from typing import Optional, Tuple

from core.aggregation import analyze_transactions
from core.config import Settings, get_settings
from core.exceptions import (
    FileProcessingError,
    NoTransactionsError,
    SettlementAnalysisException,
    ValidationError,
)
from core.exporters import export_report_to_excel
from core.logger import setup_logger
from core.parsing import parse_ledger
from core.schema import DashboardReport, ParseStats

logger = setup_logger(__name__)


class SettlementService:
    """Service for analysing settlement ledgers."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize settlement service."""
        self.settings = settings or get_settings()

    def validate_upload_size(self, content: bytes, filename: str = "") -> None:
        """
        Reject uploads above the configured ceiling.

        Raises:
            ValidationError: If the upload is too large
        """
        if len(content) > self.settings.max_upload_bytes:
            raise ValidationError(
                f"File too large: limit is {self.settings.max_upload_mb} MB",
                details={
                    "filename": filename,
                    "size_bytes": len(content),
                    "max_bytes": self.settings.max_upload_bytes,
                }
            )

    def decode_upload(self, content: bytes) -> str:
        """
        Decode uploaded bytes to ledger text.
        Undecodable bytes are replaced rather than rejected.
        """
        return content.decode(self.settings.ledger_encoding, errors="replace")

    def analyze_text(self, text: str) -> Tuple[DashboardReport, ParseStats]:
        """
        Parse and aggregate ledger text.

        Args:
            text: Full ledger text

        Returns:
            Tuple of (report, parse statistics)

        Raises:
            NoTransactionsError: If no valid transaction rows were found
        """
        transactions, stats = parse_ledger(text)

        if not transactions:
            logger.warning(f"No valid transactions found (stats: {stats.model_dump()})")
            raise NoTransactionsError(
                "No valid transaction data found",
                details=stats.model_dump()
            )

        report = analyze_transactions(transactions)
        return report, stats

    def analyze_upload(self, content: bytes, filename: str = "") -> Tuple[DashboardReport, ParseStats]:
        """
        Validate, decode and analyze an uploaded ledger file.

        Args:
            content: Raw uploaded bytes
            filename: Original file name (for logging)

        Returns:
            Tuple of (report, parse statistics)

        Raises:
            ValidationError: If the upload is too large
            NoTransactionsError: If no valid transaction rows were found
            FileProcessingError: On any unexpected failure
        """
        logger.info(f"Processing ledger file: {filename} ({len(content)} bytes)")
        self.validate_upload_size(content, filename)

        try:
            text = self.decode_upload(content)
            report, stats = self.analyze_text(text)
        except SettlementAnalysisException:
            raise
        except Exception as e:
            logger.error(f"Ledger processing failed for {filename}: {e}", exc_info=True)
            raise FileProcessingError(
                "Failed to process ledger file",
                details={"filename": filename, "error": str(e)}
            )

        logger.info(
            f"Analysis completed for {filename}: {stats.transactions} transactions, "
            f"{stats.skipped_total} rows skipped"
        )
        return report, stats

    def export_report(self, report: DashboardReport) -> bytes:
        """
        Render the report as an .xlsx workbook.

        Returns:
            Workbook bytes
        """
        buffer = io.BytesIO()
        export_report_to_excel(report, buffer)
        return buffer.getvalue()
