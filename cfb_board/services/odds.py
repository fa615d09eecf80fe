# cfb_board/services/odds.py
"""Weekly CFBD lines flattened to one NormalizedLine per game."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from cfb_board.models.metrics import american_to_implied_prob, spread_to_implied_prob
from cfb_board.models.types import NormalizedLine
from cfb_board.services.cfbd import CFBDClient, as_float

logger = logging.getLogger("cfb.odds")

CONSENSUS = "consensus"


def _ts(line: Dict[str, Any]) -> float:
    raw = line.get("updated") or line.get("spreadUpdated")
    if not raw:
        return 0.0
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def choose_latest_line(
    lines: List[Dict[str, Any]],
    bookmaker: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Newest line, optionally for one provider; falls back to the first line."""
    if not lines:
        return None
    candidates = list(lines)
    if bookmaker and bookmaker.lower() != CONSENSUS:
        want = bookmaker.lower()
        candidates = [l for l in candidates if (l.get("provider") or "").lower() == want]
    if not candidates:
        return lines[0]
    # stable sort keeps upstream order among equal timestamps
    return sorted(candidates, key=_ts, reverse=True)[0]


def normalize_weekly_line(
    entry: Dict[str, Any],
    latest: Optional[Dict[str, Any]],
    year: int,
    week: int,
    season_type: str = "regular",
) -> NormalizedLine:
    home = entry.get("homeTeam") or entry.get("home_team") or ""
    away = entry.get("awayTeam") or entry.get("away_team") or ""
    latest = latest or {}

    spread = as_float(latest.get("spread"))
    total = as_float(latest.get("overUnder"))
    if total is None:
        total = as_float(latest.get("total"))
    home_ml = as_float(latest.get("homeMoneyline"))
    away_ml = as_float(latest.get("awayMoneyline"))

    implied_home = american_to_implied_prob(home_ml)
    if implied_home is None:
        implied_home = spread_to_implied_prob(spread)

    return {
        "id": f"{year}:{week}:{home}:{away}".lower(),
        "season": year,
        "week": week,
        "seasonType": season_type,
        "homeTeam": home,
        "awayTeam": away,
        "startDate": entry.get("startDate") or entry.get("start_date"),
        "venue": entry.get("venue"),
        "spread": spread,
        "overUnder": total,
        "homeMoneyline": home_ml,
        "awayMoneyline": away_ml,
        "impliedHomeWinPct": implied_home,
        "impliedAwayWinPct": american_to_implied_prob(away_ml),
    }


async def fetch_weekly_odds(
    client: CFBDClient,
    year: int,
    week: int,
    season_type: str = "regular",
    bookmaker: Optional[str] = None,
) -> List[NormalizedLine]:
    rows = await client.lines(year, week, season_type)
    out = [
        normalize_weekly_line(entry, choose_latest_line(entry.get("lines") or [], bookmaker), year, week, season_type)
        for entry in rows
    ]
    logger.info("odds: %s week %s (%s) bookmaker=%s -> %d lines", year, week, season_type, bookmaker, len(out))
    return out


def find_matchup(
    lines: List[NormalizedLine],
    home: str,
    away: str,
) -> Optional[NormalizedLine]:
    """Case-insensitive match on both team names."""
    h, a = home.lower(), away.lower()
    for line in lines:
        if line["homeTeam"].lower() == h and line["awayTeam"].lower() == a:
            return line
    return None


__all__ = ["choose_latest_line", "normalize_weekly_line", "fetch_weekly_odds", "find_matchup"]
