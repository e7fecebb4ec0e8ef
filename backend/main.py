"""
Profile Lookup Service - Application Entry

Routes:
- GET  /health        - liveness, always "ok"
- GET  /maintenance   - maintenance notice page
- GET  /tiktok        - profile display name + avatar
- GET  /proxy-image   - same-origin image proxy
- GET  /cash          - cashtag formatting
- /api/cache/*        - profile cache inspection

Run:
    cd backend
    uvicorn main:app --host 0.0.0.0 --port 3000
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse

from browser import browser_manager
from cache import cache_router
from cashtag import cashtag_router
from image_proxy import router as image_proxy_router, image_proxy
from profiles import profiles_router

logger = logging.getLogger(__name__)

# ============================================
# Configuration
# ============================================

PORT = int(os.getenv("PORT", "3000"))
MAINTENANCE_MODE = os.getenv("MAINTENANCE_MODE", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Reachable while in maintenance mode
MAINTENANCE_ALLOWED_PATHS = frozenset({"/health", "/maintenance"})

MAINTENANCE_PAGE = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Maintenance</title></head>
<body>
  <h1>We'll be right back</h1>
  <p>The service is down for maintenance. Please try again shortly.</p>
</body>
</html>
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("[App] Starting")
    yield
    logger.info("[App] Shutting down...")
    await browser_manager.close()
    await image_proxy.close()
    logger.info("[App] Shutdown complete")


def create_app(maintenance_mode: Optional[bool] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        maintenance_mode: overrides MAINTENANCE_MODE from the environment
    """
    app = FastAPI(title="Profile Lookup Service", version="1.0.0", lifespan=lifespan)
    app.state.maintenance_mode = MAINTENANCE_MODE if maintenance_mode is None else maintenance_mode

    @app.middleware("http")
    async def maintenance_gate(request: Request, call_next):
        if request.app.state.maintenance_mode and request.url.path not in MAINTENANCE_ALLOWED_PATHS:
            return HTMLResponse(MAINTENANCE_PAGE, status_code=503, headers={"Retry-After": "300"})
        return await call_next(request)

    # Added last so it wraps the gate and the 503 carries CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_class=PlainTextResponse)
    async def health_check():
        return "ok"

    @app.get("/maintenance", response_class=HTMLResponse)
    async def maintenance_notice():
        return MAINTENANCE_PAGE

    app.include_router(profiles_router)
    app.include_router(image_proxy_router)
    app.include_router(cashtag_router)
    app.include_router(cache_router)

    return app


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


def run() -> None:
    import uvicorn

    logger.info(f"[App] Listening on 0.0.0.0:{PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    run()
