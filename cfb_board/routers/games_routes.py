# cfb_board/routers/games_routes.py
from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse

from cfb_board.core.config import Settings, get_settings
from cfb_board.core.deps import get_cfbd_client, get_weather_client, options_response
from cfb_board.services.cfbd import CFBDClient
from cfb_board.services.games import build_game_slate
from cfb_board.services.http_common import utc_now_iso
from cfb_board.services.weather import WeatherClient

router = APIRouter(tags=["Games"])
logger = logging.getLogger("cfb.games")


@router.get("/games/{season}")
async def games_for_season(
    season: int = Path(..., ge=1869, le=2100),
    week: Optional[int] = Query(None, ge=0, le=20),
    date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD"),
    division: str = Query("fbs", pattern="^(fbs|fcs|all)$"),
    client: CFBDClient = Depends(get_cfbd_client),
    weather: WeatherClient = Depends(get_weather_client),
    settings: Settings = Depends(get_settings),
):
    """
    Every game of a season (optionally one week or one day), joined with
    records, lines, weather and per-team statistics.
    """
    t0 = time.perf_counter()
    try:
        games, meta = await build_game_slate(
            client, weather, settings, season, week=week, division=division, date=date,
        )
    except Exception as e:
        logger.exception("games failed for season=%s week=%s division=%s: %s", season, week, division, e)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "data": [],
                "metadata": {
                    "totalGames": 0,
                    "week": week,
                    "date": date,
                    "season": season,
                    "division": division,
                    "lastUpdated": utc_now_iso(),
                },
                "error": str(e) or e.__class__.__name__,
                "message": f"Failed to retrieve games for {season} season",
            },
        )

    elapsed = int((time.perf_counter() - t0) * 1000)
    return {
        "success": True,
        "data": games,
        "metadata": meta,
        "message": f"Retrieved {len(games)} games for {season} season ({elapsed}ms)",
    }


@router.options("/games/{season}")
async def games_options(season: int):
    return options_response()
