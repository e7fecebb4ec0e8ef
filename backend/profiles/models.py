"""
Profile Lookup Data Models

- ProfileResult: outcome of one profile fetch (what the cache stores)
- ProfileLookup: ProfileResult plus how it was obtained
- ProfileResponse / ErrorResponse: JSON bodies of GET /tiktok
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ProfileResult(BaseModel):
    """
    Result of a profile fetch. Immutable once built; a new fetch replaces
    the cached one wholesale.
    """
    model_config = ConfigDict(frozen=True)

    username: str                    # Normalized handle, no leading "@"
    name: str                        # Display name, falls back to username
    avatar: Optional[str] = None     # Same-origin /proxy-image path
    blocked: bool = False            # True when no avatar could be resolved


class ProfileLookup(BaseModel):
    """A ProfileResult and whether it came from cache or a shared fetch."""
    model_config = ConfigDict(frozen=True)

    result: ProfileResult
    cached: bool = False
    inflight: bool = False


class ProfileResponse(BaseModel):
    """Response body for GET /tiktok"""
    name: str
    username: str
    avatar: Optional[str] = None
    blocked: bool
    cached: bool
    inflight: bool = False

    @classmethod
    def from_lookup(cls, lookup: ProfileLookup) -> "ProfileResponse":
        return cls(
            **lookup.result.model_dump(),
            cached=lookup.cached,
            inflight=lookup.inflight,
        )


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = Field(None, description="Underlying failure, if any")
