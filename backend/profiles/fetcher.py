"""
Profile Fetcher

Looks up a public TikTok profile for its display name and avatar.

Lookup flow:
    cache hit  -> return cached result
    in flight  -> await the running fetch
    otherwise  -> start a fetch (shared browser, isolated context),
                  cache it if an avatar was found

Fetch pipeline:
1. Open an isolated context (desktop UA, fixed viewport)
2. Abort image / media / font / stylesheet requests
3. Navigate with a bounded timeout, wait for DOMContentLoaded only
4. Read the data island, extract name + avatar (regex fallback)
5. Fall back to og:image for the avatar
6. Rewrite the avatar to a same-origin /proxy-image path
"""

import os
import logging
from typing import Optional
from urllib.parse import quote

from playwright.async_api import Page, Route, Error as PlaywrightError

from browser.manager import BrowserManager, browser_manager
from cache.memory_store import MemoryStore, profile_cache
from cache.inflight import InFlightRegistry, profile_inflight
from errors import FetchError, ValidationError

from .extraction import (
    clean_avatar_url,
    normalize_username,
    parse_data_island,
    proxied_image_path,
)
from .models import ProfileLookup, ProfileResult

logger = logging.getLogger(__name__)

# ============================================
# Configuration
# ============================================

PROFILE_URL_TEMPLATE = os.getenv(
    "PROFILE_URL_TEMPLATE", "https://www.tiktok.com/@{username}?lang=en"
)
NAVIGATION_TIMEOUT_MS = int(os.getenv("PROFILE_NAV_TIMEOUT_MS", "15000"))

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 900, "height": 900}
LOCALE = "en-US"

# Only the embedded data is needed, not the rendering
BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font", "stylesheet"})

DATA_ISLAND_SELECTOR = "script#__UNIVERSAL_DATA_FOR_REHYDRATION__"
OG_IMAGE_SELECTOR = 'meta[property="og:image"]'


async def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


async def _read_text(page: Page, selector: str) -> Optional[str]:
    """Text content of the first match, or None if absent / unreadable."""
    try:
        locator = page.locator(selector)
        if await locator.count() == 0:
            return None
        return await locator.first.text_content()
    except PlaywrightError as e:
        logger.debug(f"[ProfileFetcher] Could not read {selector}: {e}")
        return None


async def _read_attribute(page: Page, selector: str, name: str) -> Optional[str]:
    try:
        locator = page.locator(selector)
        if await locator.count() == 0:
            return None
        return await locator.first.get_attribute(name)
    except PlaywrightError as e:
        logger.debug(f"[ProfileFetcher] Could not read {selector}[{name}]: {e}")
        return None


class ProfileFetcher:
    """
    Profile lookup service.

    The browser manager, cache and in-flight registry are process-scoped
    singletons by default; tests pass their own.
    """

    def __init__(
        self,
        browser: Optional[BrowserManager] = None,
        cache: Optional[MemoryStore] = None,
        inflight: Optional[InFlightRegistry] = None,
        profile_url_template: str = PROFILE_URL_TEMPLATE,
        timeout_ms: int = NAVIGATION_TIMEOUT_MS,
    ):
        self.browser = browser if browser is not None else browser_manager
        self.cache = cache if cache is not None else profile_cache
        self.inflight = inflight if inflight is not None else profile_inflight
        self.profile_url_template = profile_url_template
        self.timeout_ms = timeout_ms

    def profile_url(self, username: str) -> str:
        return self.profile_url_template.format(username=quote(username, safe=""))

    async def lookup(self, user: Optional[str]) -> ProfileLookup:
        """
        Resolve a profile, using the cache and joining in-flight fetches.

        Raises:
            ValidationError: missing or malformed user
            FetchError: browser or navigation failure
        """
        username = normalize_username(user)
        if not username:
            raise ValidationError("Missing user")

        cached = self.cache.get(username)
        if cached is not None:
            logger.debug(f"[ProfileFetcher] Cache hit: {username}")
            return ProfileLookup(
                result=cached.model_copy(update={"blocked": False}),
                cached=True,
            )

        result, joined = await self.inflight.run(username, lambda: self.fetch(username))
        return ProfileLookup(result=result, cached=False, inflight=joined)

    async def fetch(self, username: str) -> ProfileResult:
        """
        Run the browser pipeline for an already-normalized username.

        Results with an avatar are stored in the cache; blocked results are not,
        so the next lookup tries again.
        """
        url = self.profile_url(username)
        logger.info(f"[ProfileFetcher] Fetching: {url}")

        try:
            async with self.browser.page(
                user_agent=USER_AGENT,
                locale=LOCALE,
                viewport=VIEWPORT,
            ) as page:
                page.set_default_timeout(self.timeout_ms)
                page.set_default_navigation_timeout(self.timeout_ms)
                await page.route("**/*", _block_heavy_resources)

                await page.goto(url, wait_until="domcontentloaded")

                raw = await _read_text(page, DATA_ISLAND_SELECTOR)
                extracted = parse_data_island(raw)

                avatar = extracted.avatar
                if not avatar:
                    avatar = await _read_attribute(page, OG_IMAGE_SELECTOR, "content")
        except PlaywrightError as e:
            logger.error(f"[ProfileFetcher] Fetch failed for {username}: {e}")
            raise FetchError(str(e)) from e

        avatar_url = clean_avatar_url(avatar)
        result = ProfileResult(
            username=username,
            name=extracted.name or username,
            avatar=proxied_image_path(avatar_url) if avatar_url else None,
            blocked=avatar_url is None,
        )

        if result.blocked:
            logger.warning(
                f"[ProfileFetcher] No avatar for {username} "
                f"(data island {'found' if raw else 'missing'})"
            )
        else:
            self.cache.set(username, result)
            logger.info(f"[ProfileFetcher] Resolved {username}: name={result.name!r}")

        return result
