"""
Profile Lookup Routes

- GET /tiktok?user=<handle> - display name + proxied avatar for a profile

Responses:
    200 {name, username, avatar, blocked, cached, inflight}
    400 {error}            missing / malformed user
    500 {error, details}   browser or navigation failure
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from errors import ServiceError

from .fetcher import ProfileFetcher
from .models import ErrorResponse, ProfileResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profiles"])

_profile_fetcher: Optional[ProfileFetcher] = None


def get_profile_fetcher() -> ProfileFetcher:
    """Process-wide fetcher, created on first use. Overridden in tests."""
    global _profile_fetcher
    if _profile_fetcher is None:
        _profile_fetcher = ProfileFetcher()
    return _profile_fetcher


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.get("/tiktok", response_model=ProfileResponse)
async def lookup_profile(
    user: Optional[str] = Query(None, description="Profile handle, with or without @"),
    fetcher: ProfileFetcher = Depends(get_profile_fetcher),
):
    """
    Look up a profile's display name and avatar.

    Repeat lookups within 24h are served from cache; concurrent lookups for
    the same handle share one browser fetch.
    """
    if not user or not user.strip():
        return _error(400, "Missing user")

    try:
        lookup = await fetcher.lookup(user)
    except ServiceError as e:
        if e.status_code < 500:
            return _error(e.status_code, e.message)
        logger.error(f"[Profiles] Lookup failed for {user!r}: {e}")
        return _error(e.status_code, "TikTok fetch failed", str(e))
    except Exception as e:
        logger.error(f"[Profiles] Unexpected error for {user!r}: {e}", exc_info=True)
        return _error(500, "TikTok fetch failed", str(e))

    return ProfileResponse.from_lookup(lookup)
