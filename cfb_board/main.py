# cfb_board/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import logging
import time

from cfb_board.core.config import Settings, get_settings
from cfb_board.core.deps import get_cfbd_client

# ------------ Router imports ------------
from cfb_board.routers import (
    analysis_routes,
    games_routes,
    ratings_routes,
    team_stats_routes,
)
from cfb_board.services.cfbd import CFBDClient

# ------------ Logging ------------
logging.basicConfig(level=get_settings().LOG_LEVEL)
logger = logging.getLogger("cfb.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not get_settings().has_cfbd_key:
        logger.warning("CFBD_API_KEY not configured; upstream data routes will return empty results")
    yield


# ------------ App ------------
app = FastAPI(
    title="CFB Board API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url=None,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


# ------------ Access log middleware ------------
class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        t0 = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
        finally:
            dt = (time.perf_counter() - t0) * 1000
            logger.info(
                "ACCESS %s %s q=%s -> %s in %.1fms",
                request.method,
                request.url.path,
                request.url.query,
                status,
                dt,
            )
        return response


app.add_middleware(AccessLogMiddleware)

# ------------ CORS (open) ------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------ Global error handler ------------
@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception):
    logger.exception("UNHANDLED ERROR: %s %s", request.method, request.url)
    return JSONResponse(status_code=500, content={"success": False, "error": "internal_error"})


# ------------ Health & status ------------
@app.get("/health")
async def health():
    return {"ok": True}


@app.get("/status")
async def status(
    settings: Settings = Depends(get_settings),
    client: CFBDClient = Depends(get_cfbd_client),
):
    return {
        "ok": True,
        "has_cfbd_key": settings.has_cfbd_key,
        "cfbd": await client.check_status(),
        "synthetic_fallbacks": settings.SYNTHETIC_FALLBACKS,
        "books": settings.PREFERRED_BOOKS,
    }


# ------------ Mount routers ------------
app.include_router(games_routes.router, prefix="/api")
app.include_router(team_stats_routes.router, prefix="/api")
app.include_router(ratings_routes.router, prefix="/api")
app.include_router(analysis_routes.router, prefix="/api")
