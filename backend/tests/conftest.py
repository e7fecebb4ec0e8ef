"""
Test configuration and shared fakes.

Fixtures provide stand-ins for the things the service talks to:
- FakeClock: controllable time source for MemoryStore
- FakePage / FakeBrowserManager: Playwright page and browser manager
- make_fetcher: ProfileFetcher wired to fakes and a fresh cache
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

# Add backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from cache import MemoryStore, InFlightRegistry, profile_cache
from profiles import ProfileFetcher
from profiles.fetcher import DATA_ISLAND_SELECTOR, OG_IMAGE_SELECTOR


# ============================================
# Clock
# ============================================

class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# ============================================
# Playwright fakes
# ============================================

class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def count(self) -> int:
        present = self.selector in self.page.texts or any(
            sel == self.selector for sel, _ in self.page.attributes
        )
        return 1 if present else 0

    async def text_content(self) -> Optional[str]:
        return self.page.texts.get(self.selector)

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.page.attributes.get((self.selector, name))


class FakePage:
    """Just enough of playwright's Page for ProfileFetcher."""

    def __init__(
        self,
        texts: Optional[Dict[str, str]] = None,
        attributes: Optional[Dict[Tuple[str, str], str]] = None,
        goto_error: Optional[Exception] = None,
        goto_delay: float = 0.0,
    ):
        self.texts = texts or {}
        self.attributes = attributes or {}
        self.goto_error = goto_error
        self.goto_delay = goto_delay
        self.visited: List[Tuple[str, Optional[str]]] = []
        self.routes: list = []
        self.timeout: Optional[int] = None
        self.navigation_timeout: Optional[int] = None
        self.closed = False

    def set_default_timeout(self, timeout: int) -> None:
        self.timeout = timeout

    def set_default_navigation_timeout(self, timeout: int) -> None:
        self.navigation_timeout = timeout

    async def route(self, pattern: str, handler) -> None:
        self.routes.append((pattern, handler))

    async def goto(self, url: str, wait_until: Optional[str] = None) -> None:
        self.visited.append((url, wait_until))
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def close(self) -> None:
        self.closed = True


class FakeBrowserManager:
    """
    Replaces BrowserManager. Each `page()` call builds a new FakePage from
    `page_factory`, so `len(pages)` is the number of fetches performed.
    """

    def __init__(self, page_factory: Callable[[], FakePage]):
        self.page_factory = page_factory
        self.pages: List[FakePage] = []
        self.context_options: List[dict] = []
        self.acquire_error: Optional[Exception] = None

    @asynccontextmanager
    async def page(self, **context_options):
        if self.acquire_error is not None:
            raise self.acquire_error
        page = self.page_factory()
        self.pages.append(page)
        self.context_options.append(context_options)
        try:
            yield page
        finally:
            await page.close()


def island_page(raw: Optional[str] = None, og_image: Optional[str] = None, **kwargs) -> FakePage:
    texts = {DATA_ISLAND_SELECTOR: raw} if raw is not None else {}
    attributes = {(OG_IMAGE_SELECTOR, "content"): og_image} if og_image is not None else {}
    return FakePage(texts=texts, attributes=attributes, **kwargs)


@pytest.fixture
def make_fetcher(clock):
    """
    Build a ProfileFetcher around a FakeBrowserManager.

    Usage:
        fetcher, browser = make_fetcher(lambda: island_page(raw))
    """
    def _make(page_factory: Callable[[], FakePage]):
        browser = FakeBrowserManager(page_factory)
        fetcher = ProfileFetcher(
            browser=browser,
            cache=MemoryStore(clock=clock),
            inflight=InFlightRegistry(),
        )
        return fetcher, browser

    return _make


@pytest.fixture(autouse=True)
def clear_profile_cache():
    """The global cache is shared by route tests; start each test empty."""
    profile_cache.clear()
    yield
    profile_cache.clear()
