"""
Image Proxy Module

Provides a proxy endpoint for loading external images from our own origin.
Bypasses hotlink / CORS restrictions by fetching images through the backend.

Features:
- http(s)-only URL validation
- Browser-like upstream headers with a referer
- 24h public browser caching of proxied responses
"""

from .routes_fastapi import router, get_image_proxy
from .proxy import ImageProxy, ProxiedImage, image_proxy, validate_proxy_url

__all__ = [
    "router",
    "get_image_proxy",
    "ImageProxy",
    "ProxiedImage",
    "image_proxy",
    "validate_proxy_url",
]
