from __future__ import annotations

import logging

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


class PlaywrightSession:
    """One isolated headless browser session per booking attempt.

    ``close`` tears down whatever ``start`` managed to create, so it is safe to
    call after a partial launch.
    """

    def __init__(self, *, headless: bool = True) -> None:
        self.headless = headless
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    def start(self) -> Page:
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless)
        self._context = self._browser.new_context()
        return self._context.new_page()

    def close(self) -> None:
        context, self._context = self._context, None
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        try:
            if context is not None:
                try:
                    context.close()
                except PlaywrightError as exc:
                    logger.warning("Browser context close failed: %s", exc)
        finally:
            try:
                if browser is not None:
                    try:
                        browser.close()
                    except PlaywrightError as exc:
                        logger.warning("Browser close failed: %s", exc)
            finally:
                if playwright is not None:
                    playwright.stop()
