import asyncio
import base64
import logging
from datetime import datetime

from pdfexport import config
from pdfexport.errors import (
    EmptyInputError,
    ExporterDisposedError,
    InvalidOptionsError,
    RenderFailedError,
)
from pdfexport.schemas import PdfContentResponse, PdfOptions
from pdfexport.services.browser import BrowserManager, PlaywrightLauncher
from pdfexport.services.cancellation import raise_if_cancelled
from pdfexport.services.chromium import IGNORED_DEFAULT_ARGS, build_launch_kwargs
from pdfexport.services.engines import (
    IsolatedBrowserRenderer,
    PdfEngine,
    SharedBrowserRenderer,
    coerce_engine,
)
from pdfexport.services.options import clone_pdf_options, resolve_pdf_options

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def default_download_name(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"report{now:%Y%m%d%H%M%S}.pdf"


class PdfExporter:
    """Convert HTML to PDF bytes through one of the Playwright engines.

    A single exporter owns at most one shared Chromium process (used by the
    ``playwright-async`` engine). Create one per application and close it on
    shutdown, or use it as an async context manager.
    """

    def __init__(
        self,
        *,
        launcher=None,
        playwright_factory=None,
        launch_kwargs: dict | None = None,
        timeout_ms: float = config.RENDER_TIMEOUT_MS,
        default_engine: PdfEngine | str = config.DEFAULT_ENGINE,
    ):
        if launch_kwargs is None:
            launch_kwargs = build_launch_kwargs(
                headless=config.HEADLESS,
                ignore_default_args=list(IGNORED_DEFAULT_ARGS),
            )
        self.default_engine = coerce_engine(default_engine)
        self._manager = BrowserManager(launcher or PlaywrightLauncher(), launch_kwargs)

        isolated_kwargs = {"playwright_factory": playwright_factory} if playwright_factory else {}
        self._renderers = {
            PdfEngine.PLAYWRIGHT_ASYNC: SharedBrowserRenderer(self._manager, timeout_ms),
            PdfEngine.PLAYWRIGHT_SYNC: IsolatedBrowserRenderer(launch_kwargs, timeout_ms, **isolated_kwargs),
        }

    @property
    def closed(self) -> bool:
        return self._manager.disposed

    def _ensure_open(self) -> None:
        if self._manager.disposed:
            raise ExporterDisposedError("PDF exporter has been closed")

    async def export_bytes(
        self,
        html: str,
        header: str | None = None,
        footer: str | None = None,
        options: PdfOptions | None = None,
        engine: PdfEngine | str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> bytes:
        """Render ``html`` with optional header/footer templates merged into ``options``."""
        self._ensure_open()
        _require_html(html)
        pdf_options = resolve_pdf_options(header, footer, options)
        return await self._render(html, pdf_options, engine, cancel_event)

    async def export_with_options(
        self,
        html: str,
        options: PdfOptions,
        engine: PdfEngine | str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> bytes:
        """Render ``html`` with exactly the given options; no defaults are applied."""
        self._ensure_open()
        _require_html(html)
        if options is None:
            raise InvalidOptionsError("PDF options are required")
        return await self._render(html, clone_pdf_options(options), engine, cancel_event)

    async def create_response(
        self,
        html: str,
        header: str | None = None,
        footer: str | None = None,
        download_name: str | None = None,
        options: PdfOptions | None = None,
        engine: PdfEngine | str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> PdfContentResponse:
        pdf_bytes = await self.export_bytes(html, header, footer, options, engine, cancel_event)
        return PdfContentResponse(
            content=base64.b64encode(pdf_bytes).decode("ascii"),
            content_type=PDF_CONTENT_TYPE,
            download_name=download_name or default_download_name(),
        )

    async def _render(
        self,
        html: str,
        options: PdfOptions,
        engine: PdfEngine | str | None,
        cancel_event: asyncio.Event | None,
    ) -> bytes:
        _require_html(html)
        if options is None:
            raise InvalidOptionsError("PDF options are required")
        selected = coerce_engine(engine, self.default_engine)
        raise_if_cancelled(cancel_event, engine=selected.value, stage="start")

        renderer = self._renderers[selected]
        pdf_bytes = await renderer.render(html, options, cancel_event)

        if not pdf_bytes:
            raise RenderFailedError("PDF generation failed - no data returned", engine=selected.value, stage="pdf")
        logger.info(f"Rendered PDF with {selected.value}: {len(pdf_bytes)} bytes")
        return pdf_bytes

    async def aclose(self) -> None:
        await self._manager.aclose()

    async def __aenter__(self) -> "PdfExporter":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _require_html(html: str | None) -> None:
    if not html or not html.strip():
        raise EmptyInputError("HTML content cannot be empty")
