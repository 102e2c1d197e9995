import pytest
from fastapi.testclient import TestClient
from pdfexport.dependencies import get_exporter
from pdfexport.main import app
from pdfexport.services.pdf import PdfExporter
from tests.fakes import FakeLauncher, FakeSyncPlaywright

LAUNCH_KWARGS = {"headless": True, "args": ["--no-sandbox", "--disable-dev-shm-usage"]}


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def sync_playwright_factory():
    return FakeSyncPlaywright()


@pytest.fixture
def exporter(launcher, sync_playwright_factory):
    return PdfExporter(
        launcher=launcher,
        playwright_factory=sync_playwright_factory,
        launch_kwargs=LAUNCH_KWARGS,
        timeout_ms=5000,
    )


@pytest.fixture
def client(exporter):
    app.dependency_overrides[get_exporter] = lambda: exporter
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


SAMPLE_HTML = "<html><body><h1>Invoice 42</h1><p>x</p></body></html>"
SAMPLE_HEADER = '<div style="font-size:9px;width:100%;text-align:center;">ACME Ltd.</div>'
SAMPLE_FOOTER = (
    '<div style="font-size:9px;width:100%;text-align:center;">'
    'Page <span class="pageNumber"></span> / <span class="totalPages"></span></div>'
)
