"""
Image proxy tests

Upstream responses come from httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest

from errors import InvalidUrlError, UpstreamError
from image_proxy import ImageProxy, validate_proxy_url

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def make_proxy(handler) -> ImageProxy:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return ImageProxy(client=client)


# ============================================
# 1. URL validation
# ============================================

class TestValidateProxyUrl:

    @pytest.mark.parametrize("url", [
        "https://example.com/a.jpg",
        "http://example.com/a.jpg",
        "  https://example.com/a.jpg  ",
    ])
    def test_accepts_http_urls(self, url):
        assert validate_proxy_url(url) == url.strip()

    def test_protocol_relative_becomes_https(self):
        assert validate_proxy_url("//cdn.example.com/a.jpg") == "https://cdn.example.com/a.jpg"

    @pytest.mark.parametrize("url", [
        "not-a-url",
        "ftp://x",
        "file:///etc/passwd",
        "javascript:alert(1)",
        "https://",
        "http://[::1",
        "http://:80/a.jpg",
        "https://ex\u00e4mple..com/a.jpg",
        "http://exa mple.com/a.jpg",
    ])
    def test_rejects_invalid_urls(self, url):
        with pytest.raises(InvalidUrlError):
            validate_proxy_url(url)

    @pytest.mark.parametrize("url", [None, "", "   "])
    def test_missing_url(self, url):
        with pytest.raises(InvalidUrlError, match="Missing url"):
            validate_proxy_url(url)


# ============================================
# 2. Fetch
# ============================================

class TestImageProxyFetch:

    @pytest.mark.asyncio
    async def test_success_forwards_bytes_and_content_type(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["referer"] = request.headers.get("referer")
            return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})

        proxy = make_proxy(handler)
        image = await proxy.fetch("https://example.com/a.png")

        assert image.content == PNG_BYTES
        assert image.content_type == "image/png"
        assert seen["url"] == "https://example.com/a.png"
        assert seen["referer"] == "https://www.tiktok.com/"
        await proxy.close()

    @pytest.mark.asyncio
    async def test_missing_content_type_defaults_to_jpeg(self):
        proxy = make_proxy(lambda request: httpx.Response(200, content=b"jpeg-bytes"))

        image = await proxy.fetch("https://example.com/a")

        assert image.content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_follows_redirects(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old.jpg":
                return httpx.Response(302, headers={"location": "https://example.com/new.jpg"})
            return httpx.Response(200, content=b"new", headers={"content-type": "image/jpeg"})

        image = await make_proxy(handler).fetch("https://example.com/old.jpg")

        assert image.content == b"new"

    @pytest.mark.asyncio
    async def test_non_success_status_raises_upstream_error(self):
        proxy = make_proxy(lambda request: httpx.Response(403))

        with pytest.raises(UpstreamError) as exc_info:
            await proxy.fetch("https://example.com/a.jpg")

        assert exc_info.value.upstream_status == 403
        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "proxy failed: 403"

    @pytest.mark.asyncio
    async def test_transport_error_raises_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            await make_proxy(handler).fetch("https://example.com/a.jpg")

        assert exc_info.value.upstream_status is None
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_invalid_url_never_reaches_upstream(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        with pytest.raises(InvalidUrlError):
            await make_proxy(handler).fetch("ftp://x")
        assert calls == []
