from fastapi import Request

from pdfexport.services.pdf import PdfExporter


def get_exporter(request: Request) -> PdfExporter:
    """Return the application-wide exporter created in the lifespan handler."""
    return request.app.state.exporter
