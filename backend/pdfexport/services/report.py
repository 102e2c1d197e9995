import logging
import os
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from pdfexport.services.pagination import PaginationConfig, PaginationResult, paginate

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")

_env = Environment(loader=FileSystemLoader(TEMPLATES_DIR), autoescape=select_autoescape(["html"]))


def _build_template_data(
    title: str,
    columns: Sequence[str],
    pagination: PaginationResult,
    notes: str | None,
) -> dict:
    return {
        "title": title,
        "columns": list(columns),
        "pages": pagination.pages,
        "total_pages": pagination.total_pages,
        "total_items": pagination.total_items,
        "notes": notes,
    }


def render_report_html(
    title: str,
    columns: Sequence[str],
    rows: Sequence[Sequence],
    config: PaginationConfig,
    notes: str | None = None,
    template_name: str = "report.html",
) -> str:
    """Paginate ``rows`` and render them as a printable HTML table document."""
    pagination = paginate(rows, config)
    template = _env.get_template(template_name)
    html = template.render(**_build_template_data(title, columns, pagination, notes))
    logger.debug(f"Rendered report '{title}' over {pagination.total_pages} page(s)")
    return html
