"""
Profile Lookup Module

Resolves a public TikTok profile's display name and avatar:
- Shared headless browser, isolated context per fetch
- 24h in-memory cache keyed by normalized username
- Concurrent lookups for the same username coalesced into one fetch
"""

from .fetcher import ProfileFetcher
from .models import ProfileResult, ProfileLookup, ProfileResponse
from .routes import router as profiles_router, get_profile_fetcher

__all__ = [
    "ProfileFetcher",
    "ProfileResult",
    "ProfileLookup",
    "ProfileResponse",
    "profiles_router",
    "get_profile_fetcher",
]
