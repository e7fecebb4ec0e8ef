"""
Browser Module

Shared headless Chromium (Playwright) reused by all profile fetches.
"""

from .manager import BrowserManager, browser_manager

__all__ = ["BrowserManager", "browser_manager"]
