# cfb_board/routers/analysis_routes.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from cfb_board.core.config import Settings, get_settings
from cfb_board.core.deps import get_cfbd_client, options_response
from cfb_board.services.analysis import build_matchup_analysis
from cfb_board.services.cfbd import CFBDClient
from cfb_board.services.context import build_matchup_context
from cfb_board.services.http_common import current_season, utc_now_iso
from cfb_board.services.odds import fetch_weekly_odds, find_matchup
from cfb_board.services.standings import fetch_enhanced_standings, find_team

router = APIRouter(tags=["Analysis"])
logger = logging.getLogger("cfb.analysis")


class MatchupError(Exception):
    def __init__(self, status: int, error: str) -> None:
        super().__init__(error)
        self.status = status
        self.error = error


def _error(status: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"success": False, "error": error})


async def _load_matchup(
    client: CFBDClient,
    home_team: str,
    away_team: str,
    year: int,
    week: int,
) -> Tuple[Dict[str, Any], Dict[str, Any], Optional[Dict[str, Any]]]:
    if not client.settings.has_cfbd_key:
        raise MatchupError(200, "CFBD_API_KEY not configured")
    standings, lines = await asyncio.gather(
        fetch_enhanced_standings(client, year),
        fetch_weekly_odds(client, year, week, "regular"),
    )
    if not standings["success"]:
        raise MatchupError(500, "Failed to fetch team statistics")

    home = find_team(standings["data"], home_team)
    away = find_team(standings["data"], away_team)
    missing = [name for name, row in ((home_team, home), (away_team, away)) if row is None]
    if missing:
        raise MatchupError(404, f"Team data not found for {', '.join(missing)}")

    odds = find_matchup(lines, home["team"], away["team"]) or find_matchup(lines, home_team, away_team)
    return home, away, odds


@router.get("/llm-analysis")
async def llm_analysis(
    home_team: Optional[str] = Query(None, alias="homeTeam"),
    away_team: Optional[str] = Query(None, alias="awayTeam"),
    year: Optional[int] = Query(None),
    week: int = Query(1, ge=0, le=20),
    client: CFBDClient = Depends(get_cfbd_client),
    settings: Settings = Depends(get_settings),
):
    if not home_team or not away_team:
        return _error(400, "Both homeTeam and awayTeam parameters required")
    year = year or current_season(settings.TZ)
    logger.info("llm-analysis: %s @ %s (%s week %s)", away_team, home_team, year, week)

    try:
        home, away, odds = await _load_matchup(client, home_team, away_team, year, week)
    except MatchupError as e:
        logger.warning("llm-analysis %s @ %s: %s", away_team, home_team, e.error)
        return _error(e.status, e.error)

    return {
        "success": True,
        "matchup": f"{away_team} @ {home_team}",
        "year": year,
        "week": week,
        "analysis": build_matchup_analysis(home, away, odds, year, week),
        "metadata": {
            "generatedAt": utc_now_iso(),
            "bettingLines": "LIVE" if odds else "UNAVAILABLE",
        },
    }


@router.get("/llm-context")
async def llm_context(
    home_team: Optional[str] = Query(None, alias="homeTeam"),
    away_team: Optional[str] = Query(None, alias="awayTeam"),
    year: Optional[int] = Query(None),
    week: int = Query(1, ge=0, le=20),
    client: CFBDClient = Depends(get_cfbd_client),
    settings: Settings = Depends(get_settings),
):
    if not home_team or not away_team:
        return _error(400, "Both homeTeam and awayTeam parameters required")
    year = year or current_season(settings.TZ)
    logger.info("llm-context: %s @ %s (%s week %s)", away_team, home_team, year, week)

    try:
        home, away, odds = await _load_matchup(client, home_team, away_team, year, week)
    except MatchupError as e:
        logger.warning("llm-context %s @ %s: %s", away_team, home_team, e.error)
        return _error(e.status, e.error)

    context = build_matchup_context(home, away, odds, week)
    return {
        "success": True,
        "matchup": f"{away_team} @ {home_team}",
        "year": year,
        "week": week,
        "context": context,
        "metadata": {
            "generatedAt": utc_now_iso(),
            "narrativeLength": len(context["fullNarrative"].split()),
            "keySignalsCount": len(context["keySignals"]),
        },
    }


@router.options("/llm-analysis")
@router.options("/llm-context")
async def analysis_options():
    return options_response()
