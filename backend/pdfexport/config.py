import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)

# Explicit browser binary; when unset the Chrome-for-Testing layout under
# CHROMIUM_BASE_DIR is searched, then Playwright's bundled Chromium is used.
CHROMIUM_EXECUTABLE_PATH = os.getenv("CHROMIUM_EXECUTABLE_PATH", "").strip() or None
CHROMIUM_BASE_DIR = os.getenv(
    "CHROMIUM_BASE_DIR",
    str(Path.home() / ".cache" / "pdfexport" / "chromium"),
)

HEADLESS = os.getenv("PDF_HEADLESS", "true").lower() == "true"
DEFAULT_ENGINE = os.getenv("PDF_DEFAULT_ENGINE", "playwright-async")
RENDER_TIMEOUT_MS = int(os.getenv("PDF_RENDER_TIMEOUT_MS", "30000"))

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
