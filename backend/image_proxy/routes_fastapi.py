"""
Image Proxy API Routes

Provides endpoints for:
- Proxying external images (bypasses hotlink / CORS restrictions)

Errors are returned as plain text, images as raw bytes.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse, Response

from errors import InvalidUrlError, UpstreamError

from .proxy import ImageProxy, image_proxy

logger = logging.getLogger(__name__)

# Browser cache 24h
CACHE_CONTROL = "public, max-age=86400"

# ============================================
# Router
# ============================================

router = APIRouter(tags=["Image Proxy"])


def get_image_proxy() -> ImageProxy:
    return image_proxy


# ============================================
# Endpoints
# ============================================

@router.get("/proxy-image")
async def proxy_image(
    url: Optional[str] = Query(None, description="URL of the image to proxy"),
    proxy: ImageProxy = Depends(get_image_proxy),
):
    """
    Proxy an external image through this origin.

    Example:
        GET /proxy-image?url=https://example.com/image.jpg
    """
    if not url:
        return PlainTextResponse("Missing url", status_code=400)

    try:
        image = await proxy.fetch(url)
    except InvalidUrlError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    except UpstreamError as e:
        if e.upstream_status is not None:
            return PlainTextResponse(e.message, status_code=e.status_code)
        return PlainTextResponse("proxy error", status_code=e.status_code)
    except Exception as e:
        logger.error(f"[ImageProxy] Unexpected error: {e}", exc_info=True)
        return PlainTextResponse("proxy error", status_code=500)

    return Response(
        content=image.content,
        media_type=image.content_type,
        headers={"Cache-Control": CACHE_CONTROL},
    )
