import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from pdfexport.dependencies import get_exporter
from pdfexport.errors import (
    EmptyInputError,
    ExporterDisposedError,
    InvalidOptionsError,
    PdfExportError,
    UnsupportedEngineError,
)
from pdfexport.schemas import ExportRequest, PdfContentResponse, ReportRequest
from pdfexport.services.pagination import PaginationConfig
from pdfexport.services.pdf import PDF_CONTENT_TYPE, PdfExporter, default_download_name
from pdfexport.services.report import render_report_html

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pdf", tags=["pdf"])

CLIENT_ERRORS = (EmptyInputError, InvalidOptionsError, UnsupportedEngineError)


def _to_http_error(exc: PdfExportError) -> HTTPException:
    if isinstance(exc, CLIENT_ERRORS):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, ExporterDisposedError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=f"PDF generation failed: {exc}")


@router.post("")
async def export_pdf(request: ExportRequest, exporter: PdfExporter = Depends(get_exporter)):
    """Render HTML and return the PDF file itself."""
    try:
        pdf_bytes = await exporter.export_bytes(
            request.html, request.header, request.footer, request.options, request.engine
        )
    except PdfExportError as e:
        logger.exception("PDF export failed")
        raise _to_http_error(e)

    filename = request.download_name or default_download_name()
    return Response(
        content=pdf_bytes,
        media_type=PDF_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/response", response_model=PdfContentResponse)
async def export_pdf_response(request: ExportRequest, exporter: PdfExporter = Depends(get_exporter)):
    """Render HTML and return it base64-encoded with its download name."""
    try:
        return await exporter.create_response(
            request.html, request.header, request.footer, request.download_name, request.options, request.engine
        )
    except PdfExportError as e:
        logger.exception("PDF export failed")
        raise _to_http_error(e)


@router.post("/report", response_model=PdfContentResponse)
async def export_report(request: ReportRequest, exporter: PdfExporter = Depends(get_exporter)):
    """Paginate tabular rows into a printable report and return it as a PDF envelope."""
    try:
        config = PaginationConfig(
            first_page_size=request.first_page_size,
            regular_page_size=request.regular_page_size,
            last_page_reserve_rows=request.last_page_reserve_rows,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    html = render_report_html(request.title, request.columns, request.rows, config, notes=request.notes)
    try:
        return await exporter.create_response(
            html, request.header, request.footer, request.download_name, request.options, request.engine
        )
    except PdfExportError as e:
        logger.exception(f"Report export failed for '{request.title}'")
        raise _to_http_error(e)
