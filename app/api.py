"""
FastAPI routes for ledger upload and analysis.
Thin HTTP layer: all parsing and aggregation live in the service.
"""
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from core.config import get_settings
from core.exceptions import (
    ExportError,
    FileProcessingError,
    NoTransactionsError,
    ValidationError,
)
from core.exporters import XLSX_MEDIA_TYPE
from core.logger import setup_logger
from core.schema import DashboardReport
from services.settlement_service import SettlementService

logger = setup_logger(__name__)
settings = get_settings()

# Initialize FastAPI app
app = FastAPI(
    title="Settlement Ledger Analysis",
    description="Sales, fee and profit breakdown of marketplace settlement exports",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Setup templates
templates_dir = Path(__file__).parent.parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))

# Service instance
settlement_service = SettlementService(settings)


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the JSON error payload returned by the API."""
    return JSONResponse(status_code=status_code, content={"error": message})


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Render upload form."""
    logger.info("Main page accessed")
    return templates.TemplateResponse(
        request,
        "index.html",
        {"app_name": settings.app_name, "max_upload_mb": settings.max_upload_mb}
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "settlement_analysis",
        "version": "1.0.0"
    }


@app.get("/favicon.ico")
async def favicon():
    """Return empty response for favicon to avoid 404 errors."""
    return Response(status_code=204)


async def _analyze_upload(csv_file: Optional[UploadFile]):
    """
    Shared upload handling for the analysis endpoints.

    Returns:
        DashboardReport on success, or a JSONResponse describing the failure
    """
    if csv_file is None or not csv_file.filename:
        logger.info("No CSV file provided")
        return error_response(400, "No CSV file selected")

    logger.info(f"Received ledger file: {csv_file.filename}")
    content = await csv_file.read()

    try:
        # Parse and aggregate in a worker thread
        report, _ = await run_in_threadpool(
            settlement_service.analyze_upload, content, csv_file.filename
        )
        return report

    except ValidationError as e:
        logger.warning(f"Upload rejected: {e.message}")
        return error_response(413, e.message)

    except NoTransactionsError as e:
        return error_response(422, e.message)

    except FileProcessingError as e:
        return error_response(500, f"Error while analyzing CSV: {e.message}")

    except Exception as e:
        logger.error(f"Unexpected analysis failure: {e}", exc_info=True)
        return error_response(500, "Error while analyzing CSV")


@app.post("/api/analyze", response_model=DashboardReport)
async def analyze(csvFile: Optional[UploadFile] = File(None)):
    """
    Analyze an uploaded settlement ledger.

    Args:
        csvFile: Settlement export (multipart field name matches the upload form)

    Returns:
        Report JSON with summary, skuAnalysis, monthlyTrends and feeBreakdown
    """
    result = await _analyze_upload(csvFile)
    if isinstance(result, JSONResponse):
        return result

    logger.info("Analysis completed successfully")
    return result


@app.post("/api/export")
async def export(csvFile: Optional[UploadFile] = File(None)):
    """
    Analyze an uploaded ledger and return the report as an Excel workbook.
    """
    result = await _analyze_upload(csvFile)
    if isinstance(result, JSONResponse):
        return result

    try:
        content = await run_in_threadpool(settlement_service.export_report, result)
    except ExportError as e:
        logger.error(f"Export failed: {e.message} {e.details}")
        return error_response(500, e.message)

    timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
    filename = f"settlement_report_{timestamp}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
