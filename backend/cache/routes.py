"""
Cache API Routes
缓存 API 路由

Provides HTTP endpoints for inspecting the profile cache:
- GET    /api/cache/stats     - Cache and in-flight statistics
- GET    /api/cache/list      - List cached usernames
- DELETE /api/cache/{username} - Drop one cached username
- POST   /api/cache/clear     - Drop everything
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import List

from errors import ValidationError
from profiles.extraction import normalize_username

from .memory_store import profile_cache
from .inflight import profile_inflight

router = APIRouter(prefix="/api/cache", tags=["cache"])


# ============================================
# Response Models
# ============================================

class CacheStatsResponse(BaseModel):
    """Response model for stats endpoint"""
    total_entries: int
    expired_entries: int
    ttl_hours: float
    in_flight: int


class CacheSummary(BaseModel):
    """Summary of a cache entry (for list endpoint)"""
    key: str
    fetched_at: float
    created_at: str
    expires_at: str


class CacheListResponse(BaseModel):
    success: bool
    count: int
    items: List[CacheSummary]


# ============================================
# API Endpoints
# ============================================

@router.get("/stats", response_model=CacheStatsResponse)
async def get_cache_stats():
    """
    Get cache statistics
    获取缓存统计信息
    """
    return CacheStatsResponse(
        **profile_cache.stats(),
        in_flight=len(profile_inflight),
    )


@router.get("/list", response_model=CacheListResponse)
async def list_cache():
    """
    List cached usernames (expired entries are skipped and evicted)
    列出所有缓存条目
    """
    items = []
    for key in profile_cache.keys():
        entry = profile_cache.get_entry(key)
        if entry is None:
            continue
        items.append(CacheSummary(
            key=entry.key,
            fetched_at=entry.fetched_at,
            created_at=entry.created_at,
            expires_at=entry.expires_at,
        ))
    return CacheListResponse(success=True, count=len(items), items=items)


@router.delete("/{username}")
async def delete_cache(username: str):
    """
    Delete cache entry
    删除缓存条目

    The username is normalized the same way lookups are, so "@Jane" drops "jane".
    """
    try:
        key = normalize_username(username)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    if key and profile_cache.delete(key):
        return {
            "success": True,
            "message": f"Deleted cache entry: {key}",
        }
    raise HTTPException(
        status_code=404,
        detail=f"Cache entry '{key}' not found"
    )


@router.post("/clear")
async def clear_cache():
    """
    Clear all cache entries
    清空所有缓存
    """
    count = profile_cache.clear()
    return {
        "success": True,
        "message": f"Cleared {count} cache entries",
        "deleted_count": count,
    }
