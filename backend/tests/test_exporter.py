import asyncio
import base64
import re
from datetime import datetime

import pytest
from playwright.async_api import Error as PlaywrightError

from pdfexport.errors import (
    EmptyInputError,
    ExporterDisposedError,
    InvalidOptionsError,
    RenderCancelledError,
    RenderFailedError,
    UnsupportedEngineError,
)
from pdfexport.schemas import MarginOptions, PdfOptions
from pdfexport.services.engines import TRANSPARENT_BACKGROUND_CSS, PdfEngine
from pdfexport.services.pdf import PdfExporter, default_download_name
from tests.conftest import LAUNCH_KWARGS, SAMPLE_HEADER, SAMPLE_HTML
from tests.fakes import FAKE_PDF, FakeLauncher, FakeSyncPlaywright


def _exporter(launcher, **kwargs):
    return PdfExporter(launcher=launcher, launch_kwargs=LAUNCH_KWARGS, timeout_ms=5000, **kwargs)


# --- Shared engine ---


def test_export_bytes_renders_on_shared_browser(exporter, launcher):
    pdf = asyncio.run(exporter.export_bytes(SAMPLE_HTML))

    assert pdf == FAKE_PDF
    page = launcher.pages[0]
    assert page.content == SAMPLE_HTML
    assert page.set_content_kwargs == {"wait_until": "networkidle", "timeout": 5000}
    assert page.pdf_kwargs["display_header_footer"] is False
    assert page.pdf_kwargs["header_template"] == "."
    assert page.pdf_kwargs["footer_template"] == "."
    assert page.pdf_kwargs["format"] == "A4"
    assert page.pdf_kwargs["margin"] == {"top": "0mm", "bottom": "0mm", "left": "0mm", "right": "0mm"}
    assert page.closed is True


def test_export_bytes_with_header(exporter, launcher):
    asyncio.run(exporter.export_bytes(SAMPLE_HTML, header=SAMPLE_HEADER))

    kwargs = launcher.pages[0].pdf_kwargs
    assert kwargs["display_header_footer"] is True
    assert kwargs["header_template"] == SAMPLE_HEADER
    assert kwargs["margin"]["top"] == "20mm"


def test_concurrent_exports_share_one_browser(exporter, launcher):
    async def scenario():
        return await asyncio.gather(*(exporter.export_bytes(f"<p>{i}</p>") for i in range(5)))

    results = asyncio.run(scenario())

    assert results == [FAKE_PDF] * 5
    assert launcher.launch_count == 1
    assert len(launcher.pages) == 5
    assert all(page.closed for page in launcher.pages)


def test_omit_background_injects_transparent_style(exporter, launcher):
    asyncio.run(exporter.export_bytes(SAMPLE_HTML, options=PdfOptions(omit_background=True)))

    assert launcher.pages[0].style_tags == [TRANSPARENT_BACKGROUND_CSS]


# --- Input validation ---


@pytest.mark.parametrize("html", ["", "   ", None])
def test_empty_html_fails_before_launch(exporter, launcher, html):
    with pytest.raises(EmptyInputError):
        asyncio.run(exporter.export_bytes(html))
    assert launcher.launch_count == 0


def test_unknown_engine_fails_without_side_effects(exporter, launcher, sync_playwright_factory):
    with pytest.raises(UnsupportedEngineError):
        asyncio.run(exporter.export_bytes(SAMPLE_HTML, engine="wkhtmltopdf"))
    assert launcher.launch_count == 0
    assert sync_playwright_factory.events == []


def test_export_with_options_requires_options(exporter):
    with pytest.raises(InvalidOptionsError):
        asyncio.run(exporter.export_with_options(SAMPLE_HTML, None))


def test_export_with_options_applies_no_defaults(exporter, launcher):
    options = PdfOptions(header_template="", margin=MarginOptions(top="12mm"))

    asyncio.run(exporter.export_with_options(SAMPLE_HTML, options))

    kwargs = launcher.pages[0].pdf_kwargs
    assert kwargs["header_template"] == ""
    assert kwargs["margin"] == {"top": "12mm"}
    assert "format" not in kwargs
    assert options.margin == MarginOptions(top="12mm")


# --- Failures ---


def test_empty_pdf_output_fails():
    launcher = FakeLauncher(pdf_bytes=b"")
    exporter = _exporter(launcher)

    with pytest.raises(RenderFailedError) as exc_info:
        asyncio.run(exporter.export_bytes(SAMPLE_HTML))

    assert "no data returned" in str(exc_info.value)
    assert exc_info.value.engine == "playwright-async"
    assert launcher.pages[0].closed is True


def test_backend_error_is_wrapped_and_page_closed():
    launcher = FakeLauncher(pdf_error=PlaywrightError("Printing failed"))
    exporter = _exporter(launcher)

    with pytest.raises(RenderFailedError) as exc_info:
        asyncio.run(exporter.export_bytes(SAMPLE_HTML))

    assert exc_info.value.stage == "pdf"
    assert isinstance(exc_info.value.__cause__, PlaywrightError)
    assert launcher.pages[0].closed is True


# --- Cancellation ---


def test_cancelled_at_entry(exporter, launcher):
    async def scenario():
        cancel = asyncio.Event()
        cancel.set()
        await exporter.export_bytes(SAMPLE_HTML, cancel_event=cancel)

    with pytest.raises(RenderCancelledError):
        asyncio.run(scenario())
    assert launcher.launch_count == 0


def test_cancel_during_load_closes_page_and_keeps_browser():
    launcher = FakeLauncher(set_content_delay=5.0)
    exporter = _exporter(launcher)

    async def scenario():
        cancel = asyncio.Event()
        task = asyncio.ensure_future(exporter.export_bytes(SAMPLE_HTML, cancel_event=cancel))
        await asyncio.sleep(0.05)
        cancel.set()
        with pytest.raises(RenderCancelledError) as exc_info:
            await task
        return exc_info.value

    error = asyncio.run(scenario())

    assert error.stage == "set_content"
    assert launcher.pages[0].closed is True
    assert launcher.browsers[0].close_count == 0
    assert exporter._manager.browser is launcher.browsers[0]


# --- Isolated engine ---


def test_isolated_engine_launches_per_call():
    launcher = FakeLauncher()
    factory = FakeSyncPlaywright()
    exporter = _exporter(launcher, playwright_factory=factory)

    pdf = asyncio.run(exporter.export_bytes(SAMPLE_HTML, engine=PdfEngine.PLAYWRIGHT_SYNC))

    assert pdf == FAKE_PDF
    assert launcher.launch_count == 0
    assert factory.launch_kwargs == [LAUNCH_KWARGS]
    assert factory.content == SAMPLE_HTML
    assert factory.events == [
        "start", "launch", "new_context", "new_page", "set_content", "pdf",
        "context.close", "browser.close", "stop",
    ]


def test_default_engine_can_be_configured():
    launcher = FakeLauncher()
    factory = FakeSyncPlaywright()
    exporter = _exporter(launcher, playwright_factory=factory, default_engine="playwright-sync")

    asyncio.run(exporter.export_bytes(SAMPLE_HTML))

    assert launcher.launch_count == 0
    assert "pdf" in factory.events


# --- Response envelope ---


def test_create_response_envelope(exporter):
    response = asyncio.run(exporter.create_response(SAMPLE_HTML, download_name="invoice-42.pdf"))

    assert base64.b64decode(response.content) == FAKE_PDF
    assert response.to_bytes() == FAKE_PDF
    assert response.content_type == "application/pdf"
    assert response.download_name == "invoice-42.pdf"


def test_create_response_default_name(exporter):
    response = asyncio.run(exporter.create_response(SAMPLE_HTML))

    assert re.fullmatch(r"report\d{14}\.pdf", response.download_name)


def test_default_download_name_format():
    assert default_download_name(datetime(2024, 3, 9, 7, 5, 1)) == "report20240309070501.pdf"


# --- Lifecycle ---


def test_closed_exporter_rejects_exports(exporter, launcher):
    async def scenario():
        await exporter.export_bytes(SAMPLE_HTML)
        await exporter.aclose()
        await exporter.export_bytes(SAMPLE_HTML)

    with pytest.raises(ExporterDisposedError):
        asyncio.run(scenario())
    assert exporter.closed is True
    assert launcher.browsers[0].close_count == 1


def test_aclose_during_inflight_render():
    launcher = FakeLauncher(set_content_delay=0.1)
    exporter = _exporter(launcher)

    async def scenario():
        inflight = asyncio.ensure_future(exporter.export_bytes(SAMPLE_HTML))
        await asyncio.sleep(0.02)
        assert len(launcher.pages) == 1

        await exporter.aclose()

        with pytest.raises(ExporterDisposedError):
            await exporter.export_bytes(SAMPLE_HTML)
        results = await asyncio.gather(inflight, return_exceptions=True)
        return results[0]

    outcome = asyncio.run(scenario())

    assert outcome == FAKE_PDF or isinstance(outcome, RenderFailedError)
    assert launcher.launch_count == 1
    assert launcher.browsers[0].close_count == 1
    assert launcher.pages[0].closed is True


def test_async_context_manager_closes():
    launcher = FakeLauncher()

    async def scenario():
        async with _exporter(launcher) as exporter:
            await exporter.export_bytes(SAMPLE_HTML)
        return exporter

    exporter = asyncio.run(scenario())

    assert exporter.closed is True
    assert launcher.stop_count == 1
