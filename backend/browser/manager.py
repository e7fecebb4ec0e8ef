"""
Browser Manager

Owns the single headless Chromium instance shared by every profile fetch.

- Lazily launched on first use, then reused for the life of the process
- Launch is serialized with an asyncio.Lock so concurrent first callers
  share one browser
- A failed launch is not remembered: the next caller retries
- Each fetch gets its own BrowserContext (cookies / storage isolated),
  closed unconditionally afterwards
"""

import os
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Error as PlaywrightError,
)

from errors import FetchError

logger = logging.getLogger(__name__)

# ============================================
# Configuration
# ============================================

BROWSER_HEADLESS = os.getenv("BROWSER_HEADLESS", "true").lower() in ("true", "1", "yes")

# Sandbox disabled for containerized execution
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class BrowserManager:
    """
    Process-wide Chromium handle.

    Usage:
        browser = await browser_manager.acquire()

        async with browser_manager.page(user_agent=UA) as page:
            await page.goto(url)
    """

    def __init__(self, headless: bool = BROWSER_HEADLESS, launch_args: Optional[list] = None):
        self.headless = headless
        self.launch_args = launch_args or list(LAUNCH_ARGS)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        # Created on first use so it belongs to the serving event loop
        self._lock: Optional[asyncio.Lock] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def is_started(self) -> bool:
        return self._browser is not None

    async def acquire(self) -> Browser:
        """
        Return the shared browser, launching it on first call.

        Raises:
            FetchError: if Playwright or Chromium fails to start
        """
        if self._browser is not None:
            return self._browser

        async with self._get_lock():
            if self._browser is not None:
                return self._browser

            logger.info("[Browser] Launching Chromium...")
            playwright = None
            try:
                playwright = await async_playwright().start()
                browser = await playwright.chromium.launch(
                    headless=self.headless,
                    args=self.launch_args,
                )
            except Exception as e:
                logger.error(f"[Browser] Launch failed: {e}")
                if playwright is not None:
                    try:
                        await playwright.stop()
                    except Exception as stop_error:
                        logger.debug(f"[Browser] Playwright stop after failed launch: {stop_error}")
                raise FetchError(f"Browser launch failed: {e}") from e

            self._playwright = playwright
            self._browser = browser
            logger.info("[Browser] Chromium started")
            return browser

    @asynccontextmanager
    async def page(self, **context_options: Any) -> AsyncIterator[Page]:
        """
        Open an isolated context and page; both are closed on exit
        regardless of how the block ends.
        """
        browser = await self.acquire()
        context: Optional[BrowserContext] = None
        page: Optional[Page] = None
        try:
            context = await browser.new_context(**context_options)
            page = await context.new_page()
            yield page
        finally:
            if page is not None:
                await _close_quietly(page, "page")
            if context is not None:
                await _close_quietly(context, "context")

    async def close(self) -> None:
        """Shut down the browser. Called from the app lifespan only."""
        async with self._get_lock():
            if self._browser is not None:
                await _close_quietly(self._browser, "browser")
                self._browser = None
            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except PlaywrightError as e:
                    logger.debug(f"[Browser] Playwright stop failed: {e}")
                self._playwright = None
            logger.info("[Browser] Shutdown complete")


async def _close_quietly(resource: Any, label: str) -> None:
    # Cleanup failures are not actionable
    try:
        await resource.close()
    except Exception as e:
        logger.debug(f"[Browser] Failed to close {label}: {e}")


# Global singleton instance
browser_manager = BrowserManager()
