# cfb_board/routers/ratings_routes.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from cfb_board.core.config import Settings, get_settings
from cfb_board.core.deps import get_cfbd_client, options_response
from cfb_board.services.cfbd import CFBDClient
from cfb_board.services.http_common import current_season, utc_now_iso
from cfb_board.services.odds import fetch_weekly_odds
from cfb_board.services.standings import (
    fetch_enhanced_standings,
    filter_standings,
    is_sec,
    normalize_ppa,
    normalize_sp_rating,
)

router = APIRouter(tags=["Ratings"])
logger = logging.getLogger("cfb.ratings")

CFBD_SOURCE = "College Football Data API"


def _fail(message: str) -> JSONResponse:
    logger.warning("ratings request failed: %s", message)
    return JSONResponse(status_code=500, content={"success": False, "error": message, "data": []})


@router.get("/standings/enhanced")
async def enhanced_standings(
    year: Optional[int] = Query(None),
    conference: Optional[str] = Query(None),
    sec: bool = Query(False, description="SEC teams only"),
    client: CFBDClient = Depends(get_cfbd_client),
    settings: Settings = Depends(get_settings),
):
    year = year or current_season(settings.TZ)
    result = await fetch_enhanced_standings(client, year)
    if not result["success"]:
        return _fail(result["message"])

    # conference filter is ignored for the SEC-only view
    rows = filter_standings(result["data"], sec_only=sec, conference=None if sec else conference)
    return {
        "success": True,
        "data": rows,
        "metadata": {
            "year": year,
            "totalTeams": len(rows),
            "secTeams": sum(1 for r in rows if is_sec(r)),
            "lastUpdated": utc_now_iso(),
            "unmatchedTeams": result["unmatchedTeams"],
        },
    }


@router.get("/sp-ratings")
async def sp_ratings(
    year: Optional[int] = Query(None),
    client: CFBDClient = Depends(get_cfbd_client),
    settings: Settings = Depends(get_settings),
):
    year = year or current_season(settings.TZ)
    rows = [normalize_sp_rating(r) for r in await client.sp_ratings(year)]
    return {
        "success": True,
        "data": rows,
        "metadata": {
            "year": year,
            "totalTeams": len(rows),
            "source": CFBD_SOURCE,
            "lastUpdated": utc_now_iso(),
        },
    }


@router.get("/ppa")
async def ppa(
    year: Optional[int] = Query(None),
    client: CFBDClient = Depends(get_cfbd_client),
    settings: Settings = Depends(get_settings),
):
    year = year or current_season(settings.TZ)
    rows = [normalize_ppa(r, year) for r in await client.ppa_teams(year)]
    return {
        "success": True,
        "data": rows,
        "metadata": {
            "year": year,
            "totalTeams": len(rows),
            "source": CFBD_SOURCE,
            "lastUpdated": utc_now_iso(),
        },
    }


@router.get("/odds")
async def odds(
    year: Optional[int] = Query(None),
    week: int = Query(1, ge=0, le=20),
    season_type: str = Query("regular", alias="seasonType", pattern="^(regular|postseason)$"),
    bookmaker: Optional[str] = Query(None, description="Provider name, or 'consensus'"),
    client: CFBDClient = Depends(get_cfbd_client),
    settings: Settings = Depends(get_settings),
):
    year = year or current_season(settings.TZ)
    lines = await fetch_weekly_odds(client, year, week, season_type, bookmaker)
    return {
        "success": True,
        "data": lines,
        "metadata": {
            "year": year,
            "week": week,
            "seasonType": season_type,
            "bookmaker": bookmaker or "latest",
            "totalGames": len(lines),
            "source": "cfbd",
            "lastUpdated": utc_now_iso(),
        },
    }


@router.options("/standings/enhanced")
@router.options("/sp-ratings")
@router.options("/ppa")
@router.options("/odds")
async def ratings_options():
    return options_response()
