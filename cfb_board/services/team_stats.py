# cfb_board/services/team_stats.py
"""
Season statistics per team: PF/G, PA/G, margin, ATS%, O/U%, favorite and
underdog ATS%, last-5 form and strength of schedule.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from cfb_board.models.names import canonical_team
from cfb_board.models.types import TeamStatistics
from cfb_board.services.cfbd import CFBDClient

logger = logging.getLogger("cfb.team_stats")

PUSH_BAND = 0.5


def _field(d: Dict[str, Any], *names: str) -> Any:
    """CFBD has served both camelCase and snake_case; take whichever is there."""
    for n in names:
        if n in d and d[n] is not None:
            return d[n]
    return None


def _num(v: Any) -> float:
    try:
        return float(v) if v is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _pct(wins: int, losses: int) -> float:
    total = wins + losses
    return round(wins / total * 100, 1) if total else 0.0


def _game_order(g: Dict[str, Any]) -> tuple:
    return (_num(_field(g, "week")), str(_field(g, "startDate", "start_date") or ""))


def compute_team_statistics(
    team: str,
    games: List[Dict[str, Any]],
    lines: List[Dict[str, Any]],
    sos_rows: Optional[List[Dict[str, Any]]] = None,
) -> Optional[TeamStatistics]:
    """Pure part: everything from already fetched rows."""
    if not games:
        return None

    key = canonical_team(team)
    completed = sorted(
        (g for g in games if _field(g, "completed")),
        key=_game_order,
    )
    lines_by_game = {entry.get("id"): entry for entry in lines or [] if entry.get("id") is not None}

    points_for = 0.0
    points_against = 0.0
    results: List[str] = []

    ats_w = ats_l = ats_p = 0
    over_w = under_w = ou_p = 0
    fav_w = fav_l = 0
    dog_w = dog_l = 0

    for g in completed:
        is_home = canonical_team(_field(g, "homeTeam", "home_team")) == key
        home_pts = _num(_field(g, "homePoints", "home_points"))
        away_pts = _num(_field(g, "awayPoints", "away_points"))
        ours, theirs = (home_pts, away_pts) if is_home else (away_pts, home_pts)

        points_for += ours
        points_against += theirs
        results.append("W" if ours > theirs else "L")

        entry = lines_by_game.get(g.get("id"))
        book = ((entry or {}).get("lines") or [None])[0]
        if not book:
            continue

        home_spread = book.get("spread")
        if home_spread is not None:
            spread = _num(home_spread) if is_home else -_num(home_spread)
            ats_margin = (ours - theirs) + spread
            favorite = spread < 0
            if abs(ats_margin) < PUSH_BAND:
                ats_p += 1
            elif ats_margin > 0:
                ats_w += 1
                if favorite:
                    fav_w += 1
                else:
                    dog_w += 1
            else:
                ats_l += 1
                if favorite:
                    fav_l += 1
                else:
                    dog_l += 1

        ou = book.get("overUnder")
        if ou is not None:
            total = ours + theirs
            ou = _num(ou)
            if abs(total - ou) < PUSH_BAND:
                ou_p += 1
            elif total > ou:
                over_w += 1
            else:
                under_w += 1

    played = len(completed)
    last5 = list(reversed(results[-5:]))  # most recent first
    margin = points_for - points_against

    sos, sos_rank = sos_table(sos_rows).get(key, (0.0, 0))

    return {
        "team": team,
        "pointsFor": points_for,
        "pointsAgainst": points_against,
        "gamesPlayed": played,
        "pointsForPerGame": round(points_for / played, 1) if played else 0.0,
        "pointsAgainstPerGame": round(points_against / played, 1) if played else 0.0,
        "margin": margin,
        "marginPerGame": round(margin / played, 1) if played else 0.0,
        "atsWins": ats_w,
        "atsLosses": ats_l,
        "atsPushes": ats_p,
        "atsPercentage": _pct(ats_w, ats_l),
        "overWins": over_w,
        "underWins": under_w,
        "ouPushes": ou_p,
        "overUnderPercentage": _pct(over_w, under_w),
        "favoriteAtsWins": fav_w,
        "favoriteAtsLosses": fav_l,
        "favoriteAtsPercentage": _pct(fav_w, fav_l),
        "underdogAtsWins": dog_w,
        "underdogAtsLosses": dog_l,
        "underdogAtsPercentage": _pct(dog_w, dog_l),
        "last5Games": "-".join(last5),
        "last5Record": {"wins": last5.count("W"), "losses": last5.count("L")},
        "strengthOfSchedule": round(sos, 2),
        "strengthOfScheduleRank": sos_rank,
    }


def sos_table(rows: Optional[List[Dict[str, Any]]]) -> Dict[str, tuple]:
    """
    {canonical team: (sos, rank)}.

    Uses the upstream rank when the rows carry one; otherwise ranks by sos,
    hardest schedule first.
    """
    rated = [r for r in rows or [] if r.get("team") and _field(r, "sos") is not None]
    if not rated:
        return {}
    has_rank = any(_field(r, "sos_rank", "sosRank") is not None for r in rated)
    if not has_rank:
        rated = sorted(rated, key=lambda r: _num(_field(r, "sos")), reverse=True)
    out: Dict[str, tuple] = {}
    for i, r in enumerate(rated, start=1):
        rank = int(_num(_field(r, "sos_rank", "sosRank"))) if has_rank else i
        out[canonical_team(r["team"])] = (_num(_field(r, "sos")), rank)
    return out


async def calculate_team_statistics(
    client: CFBDClient,
    team: str,
    year: int,
    sos_rows: Optional[List[Dict[str, Any]]] = None,
) -> Optional[TeamStatistics]:
    """Fetch one team's games and lines, then compute its season line."""
    logger.info("team_stats: computing %s (%s)", team, year)
    games, lines = await asyncio.gather(
        client.games(year, team=team),
        client.lines(year, team=team),
    )
    if not games:
        logger.warning("team_stats: no games found for %s", team)
        return None
    return compute_team_statistics(team, games, lines, sos_rows)
