"""Chromium binary discovery and launch arguments.

Downloading Chromium is not handled here: a Chrome-for-Testing build may be
unpacked under ``CHROMIUM_BASE_DIR/Chrome/<Platform>-<version>/`` and is picked
up automatically, otherwise Playwright's bundled browser is used.
"""
import logging
import platform
import re
from pathlib import Path

from pdfexport import config

logger = logging.getLogger(__name__)

DEFAULT_BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-web-security",
    "--allow-running-insecure-content",
)

# Chromium's default --disable-extensions breaks some print stylesheets
IGNORED_DEFAULT_ARGS = ("--disable-extensions",)

MAC_APP_PATH = ("Google Chrome for Testing.app", "Contents", "MacOS", "Google Chrome for Testing")


def get_default_launch_args() -> list[str]:
    return list(DEFAULT_BROWSER_ARGS)


def _is_arm64() -> bool:
    return platform.machine().lower() in ("arm64", "aarch64")


def _candidate_binaries(system: str, arm64: bool) -> tuple[str, list[tuple[str, ...]]]:
    """Return the platform directory prefix and binary paths relative to it."""
    if system == "Windows":
        return "Win", [("chrome-win64", "chrome.exe")]
    if system == "Darwin":
        folders = ["chrome-mac-arm64", "chrome-mac-x64"]
        if not arm64:
            folders.reverse()
        return "Mac", [(folder, *MAC_APP_PATH) for folder in folders]
    if system == "Linux":
        folder = "chrome-linux-arm64" if arm64 else "chrome-linux64"
        return "Linux", [(folder, "chrome")]
    return "", []


def _build_version(build_dir: Path) -> tuple[int, ...]:
    """Numeric version of a "<Platform>-<version>" folder, e.g. Linux-131.0.6778.108."""
    _, _, version = build_dir.name.partition("-")
    return tuple(int(part) for part in re.findall(r"\d+", version))


def get_executable_path(base_dir: str | Path | None = None) -> str | None:
    """Resolve the Chromium binary to launch, or None to use the bundled one."""
    if config.CHROMIUM_EXECUTABLE_PATH:
        return config.CHROMIUM_EXECUTABLE_PATH

    root = Path(base_dir or config.CHROMIUM_BASE_DIR) / "Chrome"
    if not root.is_dir():
        return None

    prefix, binaries = _candidate_binaries(platform.system(), _is_arm64())
    if not prefix:
        return None

    # Newest build first
    for build_dir in sorted(root.glob(f"{prefix}*"), key=_build_version, reverse=True):
        for parts in binaries:
            exe = build_dir.joinpath(*parts)
            if exe.is_file():
                logger.debug(f"Using Chromium at {exe}")
                return str(exe)
    return None


def is_chromium_available(base_dir: str | Path | None = None) -> bool:
    path = get_executable_path(base_dir)
    return path is not None and Path(path).is_file()


def build_launch_kwargs(
    headless: bool = True,
    args: list[str] | None = None,
    executable_path: str | None = None,
    ignore_default_args: list[str] | None = None,
) -> dict:
    """Build keyword arguments for ``chromium.launch`` shared by both engines."""
    launch_kwargs: dict = {"headless": headless}

    resolved_args = [a for a in (args or []) if a and a.strip()]
    launch_kwargs["args"] = resolved_args or get_default_launch_args()

    resolved_ignored = [a for a in (ignore_default_args or []) if a and a.strip()]
    if resolved_ignored:
        launch_kwargs["ignore_default_args"] = resolved_ignored

    exe = executable_path if executable_path and executable_path.strip() else get_executable_path()
    if exe:
        launch_kwargs["executable_path"] = exe

    return launch_kwargs
