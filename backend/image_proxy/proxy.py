"""
Image Proxy Core

Fetches an external image server-side so the browser can load it from
our own origin. Some image CDNs refuse hotlinked or bare requests, so the
upstream request carries a browser user agent and a referer.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from errors import InvalidUrlError, UpstreamError

logger = logging.getLogger(__name__)

# ============================================
# Configuration
# ============================================

FETCH_TIMEOUT = float(os.getenv("IMAGE_PROXY_TIMEOUT", "30"))
UPSTREAM_REFERER = os.getenv("IMAGE_PROXY_REFERER", "https://www.tiktok.com/")
DEFAULT_CONTENT_TYPE = "image/jpeg"

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
}

ALLOWED_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class ProxiedImage:
    """Upstream image bytes and the content type to serve them with."""
    content: bytes
    content_type: str


def validate_proxy_url(url: Optional[str]) -> str:
    """
    Normalize and validate a proxy target.

    Protocol-relative URLs (//host/x) become https. Only http(s) URLs with
    a host are accepted.

    Raises:
        InvalidUrlError: if the URL is malformed or uses another scheme
    """
    if not url or not url.strip():
        raise InvalidUrlError("Missing url")

    url = url.strip()
    if url.startswith("//"):
        url = "https:" + url

    if any(ch.isspace() for ch in url):
        raise InvalidUrlError()

    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise InvalidUrlError() from e

    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.host:
        raise InvalidUrlError()
    return url


class ImageProxy:
    """
    Fetches images through a shared httpx.AsyncClient.

    Usage:
        proxy = ImageProxy()
        image = await proxy.fetch("https://example.com/a.jpg")
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        referer: str = UPSTREAM_REFERER,
    ):
        self.referer = referer
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        # Created lazily so the client binds to the running event loop
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=FETCH_TIMEOUT,
                follow_redirects=True,
                headers=BROWSER_HEADERS,
            )
        return self._client

    async def fetch(self, url: Optional[str]) -> ProxiedImage:
        """
        Fetch `url` and return its bytes unmodified.

        Raises:
            InvalidUrlError: bad or non-http(s) URL
            UpstreamError: non-success status (upstream_status set) or
                transport failure (upstream_status None)
        """
        url = validate_proxy_url(url)

        try:
            logger.info(f"[ImageProxy] Fetching: {url[:80]}...")
            response = await self.client.get(url, headers={"Referer": self.referer})
        except httpx.InvalidURL as e:
            raise InvalidUrlError() from e
        except httpx.HTTPError as e:
            logger.error(f"[ImageProxy] Fetch error: {e!r}")
            raise UpstreamError(f"proxy error: {e}") from e

        if not response.is_success:
            logger.error(f"[ImageProxy] HTTP error {response.status_code}: {url[:60]}...")
            raise UpstreamError(
                f"proxy failed: {response.status_code}",
                upstream_status=response.status_code,
            )

        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        logger.info(f"[ImageProxy] Proxied: {url[:60]}... ({len(response.content)} bytes)")
        return ProxiedImage(content=response.content, content_type=content_type)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Global singleton instance
image_proxy = ImageProxy()
