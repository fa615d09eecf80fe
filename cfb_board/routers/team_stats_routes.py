# cfb_board/routers/team_stats_routes.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from cfb_board.core.config import Settings, get_settings
from cfb_board.core.deps import get_cfbd_client, options_response
from cfb_board.services.cfbd import CFBDClient
from cfb_board.services.http_common import current_season, utc_now_iso
from cfb_board.services.standings import fetch_enhanced_standings, filter_standings

router = APIRouter(tags=["Team stats"])
logger = logging.getLogger("cfb.team_stats")

STATS_CATEGORIES = {
    "record": ["wins", "losses", "ties", "conferenceWins", "conferenceLosses", "winPct"],
    "efficiency": ["offensiveEfficiency", "defensiveEfficiency", "explosiveness", "havocRate", "finishingRate", "fieldPosition"],
    "advanced": ["spPlusRating", "spPlusRanking", "offensePPA", "defensePPA", "strengthOfSchedule", "secondOrderWins"],
}


@router.get("/team-stats")
async def team_stats(
    year: Optional[int] = Query(None, description="Season year; default = current season"),
    conference: Optional[str] = Query(None, description="Substring match; 'All' disables"),
    division: Optional[str] = Query(None, description="e.g. fbs / fcs"),
    client: CFBDClient = Depends(get_cfbd_client),
    settings: Settings = Depends(get_settings),
):
    year = year or current_season(settings.TZ)
    result = await fetch_enhanced_standings(client, year)
    if not result["success"]:
        logger.warning("team-stats %s failed: %s", year, result["message"])
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": result["message"], "data": []},
        )

    rows = filter_standings(result["data"], conference=conference, division=division)
    return {
        "success": True,
        "data": rows,
        "metadata": {
            "year": year,
            "totalTeams": len(rows),
            "conference": conference or "All",
            "division": division or "All",
            "lastUpdated": utc_now_iso(),
            "statsCategories": STATS_CATEGORIES,
            "unmatchedTeams": result["unmatchedTeams"],
        },
    }


@router.options("/team-stats")
async def team_stats_options():
    return options_response()
