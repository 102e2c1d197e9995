"""Rendering engines and their option mappings.

``playwright-async`` renders on the shared browser owned by BrowserManager.
``playwright-sync`` launches its own Chromium per call on a worker thread, the
same way a standalone Playwright script would, trading launch cost for
isolation between documents.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable

from playwright.async_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from pdfexport.errors import (
    BrowserInitializationError,
    RenderCancelledError,
    RenderFailedError,
    UnsupportedEngineError,
)
from pdfexport.schemas import PdfOptions
from pdfexport.services.browser import BrowserManager
from pdfexport.services.cancellation import raise_if_cancelled, run_cancellable

logger = logging.getLogger(__name__)

TRANSPARENT_BACKGROUND_CSS = "html, body { background: transparent !important; }"


class PdfEngine(str, Enum):
    PLAYWRIGHT_ASYNC = "playwright-async"
    PLAYWRIGHT_SYNC = "playwright-sync"


def coerce_engine(engine: "PdfEngine | str | None", default: "PdfEngine | str" = PdfEngine.PLAYWRIGHT_ASYNC) -> PdfEngine:
    if engine is None:
        engine = default
    try:
        return PdfEngine(engine)
    except ValueError:
        allowed = ", ".join(e.value for e in PdfEngine)
        raise UnsupportedEngineError(f"Unsupported PDF export engine {engine!r}; expected one of: {allowed}") from None


# --- Option mapping ---


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_length(value: str | float | None) -> str | None:
    """Render a CSS length as a string; bare numbers are pixels."""
    if _is_blank(value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _common_kwargs(options: PdfOptions) -> dict:
    kwargs = {
        "scale": float(options.scale),
        "landscape": options.landscape,
        "print_background": options.print_background,
        "prefer_css_page_size": options.prefer_css_page_size,
        "display_header_footer": options.display_header_footer,
        "header_template": options.header_template,
        "footer_template": options.footer_template,
    }
    if options.page_ranges:
        kwargs["page_ranges"] = options.page_ranges
    return kwargs


def to_shared_pdf_kwargs(options: PdfOptions) -> dict:
    """Map options onto async ``Page.pdf``, which accepts numeric or string lengths."""
    kwargs = _common_kwargs(options)
    if options.format is not None:
        kwargs["format"] = options.format.value
    for field in ("width", "height"):
        value = getattr(options, field)
        if not _is_blank(value):
            kwargs[field] = value
    if options.margin is not None:
        margin = {side: value for side, value in options.margin.model_dump().items() if not _is_blank(value)}
        if margin:
            kwargs["margin"] = margin
    return kwargs


def to_isolated_pdf_kwargs(options: PdfOptions) -> dict:
    """Map options onto sync ``Page.pdf`` with every length normalized to a string."""
    kwargs = _common_kwargs(options)
    if options.format is not None:
        kwargs["format"] = options.format.value
    for field in ("width", "height"):
        value = normalize_length(getattr(options, field))
        if value is not None:
            kwargs[field] = value
    if options.margin is not None:
        margin = {}
        for side in ("top", "bottom", "left", "right"):
            value = normalize_length(getattr(options.margin, side))
            if value is not None:
                margin[side] = value
        if margin:
            kwargs["margin"] = margin
    return kwargs


# --- Renderers ---


class SharedBrowserRenderer:
    engine = PdfEngine.PLAYWRIGHT_ASYNC

    def __init__(self, manager: BrowserManager, timeout_ms: float):
        self._manager = manager
        self._timeout_ms = timeout_ms

    async def render(self, html: str, options: PdfOptions, cancel_event: asyncio.Event | None = None) -> bytes:
        name = self.engine.value
        browser = await self._manager.acquire(cancel_event)

        stage = "new_page"
        try:
            page = await browser.new_page()
        except PlaywrightError as exc:
            raise RenderFailedError("Could not open a page", engine=name, stage=stage) from exc

        try:
            stage = "set_content"
            raise_if_cancelled(cancel_event, engine=name, stage=stage)
            await run_cancellable(
                page.set_content(html, wait_until="networkidle", timeout=self._timeout_ms),
                cancel_event, engine=name, stage=stage,
            )
            if options.omit_background:
                await page.add_style_tag(content=TRANSPARENT_BACKGROUND_CSS)

            stage = "pdf"
            return await run_cancellable(
                page.pdf(**to_shared_pdf_kwargs(options)),
                cancel_event, engine=name, stage=stage,
            )
        except PlaywrightError as exc:
            logger.error(f"{name} failed during {stage}: {exc}")
            raise RenderFailedError("PDF generation failed", engine=name, stage=stage) from exc
        finally:
            try:
                await page.close()
            except PlaywrightError as exc:
                # Browser already gone; the render error (if any) matters more
                logger.debug(f"Ignoring error while closing page: {exc}")


class IsolatedBrowserRenderer:
    engine = PdfEngine.PLAYWRIGHT_SYNC

    def __init__(self, launch_kwargs: dict, timeout_ms: float, playwright_factory: Callable = sync_playwright):
        self._launch_kwargs = dict(launch_kwargs)
        self._timeout_ms = timeout_ms
        self._playwright_factory = playwright_factory

    async def render(self, html: str, options: PdfOptions, cancel_event: asyncio.Event | None = None) -> bytes:
        should_stop = cancel_event.is_set if cancel_event is not None else (lambda: False)
        return await asyncio.to_thread(self._render_blocking, html, options, should_stop)

    def _checkpoint(self, should_stop: Callable[[], bool], stage: str) -> None:
        if should_stop():
            raise RenderCancelledError("PDF export cancelled", engine=self.engine.value, stage=stage)

    def _render_blocking(self, html: str, options: PdfOptions, should_stop: Callable[[], bool]) -> bytes:
        name = self.engine.value
        stage = "launch"
        try:
            with self._playwright_factory() as playwright:
                self._checkpoint(should_stop, stage)
                try:
                    browser = playwright.chromium.launch(**self._launch_kwargs)
                except PlaywrightError as exc:
                    raise BrowserInitializationError(
                        "Failed to initialize browser instance", engine=name, stage=stage
                    ) from exc
                if browser is None:
                    raise BrowserInitializationError(
                        "Failed to initialize browser instance", engine=name, stage=stage
                    )
                try:
                    context = browser.new_context()
                    try:
                        stage = "set_content"
                        page = context.new_page()
                        self._checkpoint(should_stop, stage)
                        page.set_content(html, wait_until="networkidle", timeout=self._timeout_ms)
                        if options.omit_background:
                            page.add_style_tag(content=TRANSPARENT_BACKGROUND_CSS)

                        stage = "pdf"
                        self._checkpoint(should_stop, stage)
                        return page.pdf(**to_isolated_pdf_kwargs(options))
                    finally:
                        context.close()
                finally:
                    browser.close()
        except PlaywrightError as exc:
            logger.error(f"{name} failed during {stage}: {exc}")
            raise RenderFailedError("PDF generation failed", engine=name, stage=stage) from exc
