"""
Cashtag Module

Formats a Cash App $cashtag and its confirmation link.
Nothing is fetched from Cash App.
"""

from .routes import router as cashtag_router, format_cashtag

__all__ = ["cashtag_router", "format_cashtag"]
