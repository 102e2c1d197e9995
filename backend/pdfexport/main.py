from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pdfexport import config
from pdfexport.routers import export
from pdfexport.services.pdf import PdfExporter

# Configure logging to show in Docker logs
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting PDF export API v0.1.0 (default engine: {config.DEFAULT_ENGINE})")
    # Chromium is launched lazily on the first render
    app.state.exporter = PdfExporter()
    try:
        yield
    finally:
        await app.state.exporter.aclose()


app = FastAPI(title="PDF Export", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(export.router)


@app.get("/health")
def health():
    return {"status": "ok"}
