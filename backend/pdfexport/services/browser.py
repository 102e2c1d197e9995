"""Shared headless Chromium for the async Playwright engine.

One browser per manager is launched lazily and reused by every render call.
If Chromium dies, its ``disconnected`` event clears the cached handle and the
next call launches a fresh browser.
"""
import asyncio
import logging
from typing import Callable

from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from pdfexport.errors import BrowserInitializationError, ExporterDisposedError
from pdfexport.services.cancellation import raise_if_cancelled, run_cancellable

logger = logging.getLogger(__name__)

ENGINE_NAME = "playwright-async"


class PlaywrightLauncher:
    """Starts the Playwright driver on first launch and stops it on ``stop``."""

    def __init__(self):
        self._playwright: Playwright | None = None

    async def launch(self, **launch_kwargs) -> Browser:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(**launch_kwargs)

    async def stop(self) -> None:
        if self._playwright is not None:
            playwright, self._playwright = self._playwright, None
            await playwright.stop()
            logger.debug("Playwright driver stopped")


def _is_usable(browser: Browser | None) -> bool:
    return browser is not None and browser.is_connected()


class BrowserManager:
    def __init__(self, launcher, launch_kwargs: dict):
        self._launcher = launcher
        self._launch_kwargs = dict(launch_kwargs)
        self._browser: Browser | None = None
        self._listener: Callable | None = None
        # Guards launch and teardown only, never a whole render
        self._lock = asyncio.Lock()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def browser(self) -> Browser | None:
        return self._browser

    async def acquire(self, cancel_event: asyncio.Event | None = None) -> Browser:
        raise_if_cancelled(cancel_event, engine=ENGINE_NAME, stage="acquire")

        browser = self._browser
        if _is_usable(browser):
            return browser

        # A caller queued behind someone else's launch may give up while waiting
        await run_cancellable(self._lock.acquire(), cancel_event, engine=ENGINE_NAME, stage="acquire")
        try:
            raise_if_cancelled(cancel_event, engine=ENGINE_NAME, stage="acquire")
            browser = self._browser
            if _is_usable(browser):
                return browser

            if self._disposed:
                raise ExporterDisposedError("PDF exporter has been closed", engine=ENGINE_NAME, stage="acquire")

            # Not raced against cancel_event: other callers may be waiting on this launch
            browser = await self._launch()
            self._listener = self._watch(browser)
            self._browser = browser
            logger.info("Shared Chromium browser launched")
            return browser
        finally:
            self._lock.release()

    async def _launch(self) -> Browser:
        try:
            browser = await self._launcher.launch(**self._launch_kwargs)
        except PlaywrightError as exc:
            logger.error(f"Chromium launch failed: {exc}")
            raise BrowserInitializationError(
                "Failed to initialize browser instance", engine=ENGINE_NAME, stage="launch"
            ) from exc
        if browser is None:
            raise BrowserInitializationError(
                "Failed to initialize browser instance", engine=ENGINE_NAME, stage="launch"
            )
        return browser

    def _watch(self, browser: Browser) -> Callable:
        def on_disconnected(*_):
            browser.remove_listener("disconnected", on_disconnected)
            # Only forget this browser; a replacement may already be cached
            if self._browser is browser:
                self._browser = None
                self._listener = None
                logger.warning("Shared Chromium browser disconnected; it will be relaunched on next use")

        browser.on("disconnected", on_disconnected)
        return on_disconnected

    async def aclose(self) -> None:
        if self._disposed:
            return
        self._disposed = True

        async with self._lock:
            browser, listener = self._browser, self._listener
            self._browser = None
            self._listener = None
            try:
                if browser is not None:
                    browser.remove_listener("disconnected", listener)
                    try:
                        if browser.is_connected():
                            await browser.close()
                    except Exception as exc:
                        logger.warning(f"Ignoring error while closing Chromium: {exc}")
            finally:
                await self._launcher.stop()
        logger.info("Browser manager closed")
