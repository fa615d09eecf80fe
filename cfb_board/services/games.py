# cfb_board/services/games.py
"""
Per-request game slate: fetch games, fan out for records, lines, ratings,
weather and team statistics, then join everything into one flat row per
fixture.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from cfb_board.core.config import Settings
from cfb_board.core.throttle import RateLimiter, gather_bounded
from cfb_board.models.metrics import fallback_line, form_rng, last5_form
from cfb_board.models.names import TeamIndex
from cfb_board.models.types import (
    BookLine,
    Game,
    GamesMetadata,
    GameStats,
    Observed,
    Record,
    TeamStatistics,
    Unavailable,
    WeatherSnapshot,
)
from cfb_board.services.cfbd import CFBDClient, line_map, pick_book_line, record_index
from cfb_board.services.http_common import local_date, utc_now_iso
from cfb_board.services.team_stats import calculate_team_statistics
from cfb_board.services.weather import WeatherClient, map_weather_to_condition

logger = logging.getLogger("cfb.games")

# (venue, city, state)
VenueKey = Tuple[str, str, str]

ESPN_LOGO = "https://a.espncdn.com/i/teamlogos/ncaa/500/{id}.png"
GENERIC_LOGO = "https://a.espncdn.com/i/teamlogos/ncaa/500/1.png"

STAT_FIELDS = (
    "pointsForPerGame",
    "pointsAgainstPerGame",
    "margin",
    "marginPerGame",
    "atsPercentage",
    "overUnderPercentage",
    "favoriteAtsPercentage",
    "underdogAtsPercentage",
    "strengthOfSchedule",
    "strengthOfScheduleRank",
    "last5Record",
)


# ----------------------------------------------------------------------
# Small extractors
# ----------------------------------------------------------------------
def _g(game: Dict[str, Any], *names: str) -> Any:
    for n in names:
        if game.get(n) is not None:
            return game[n]
    return None


def logo_url(team_id: Optional[int]) -> str:
    if isinstance(team_id, int) and team_id > 0:
        return ESPN_LOGO.format(id=team_id)
    return GENERIC_LOGO


def in_division(game: Dict[str, Any], division: str) -> bool:
    if division == "all":
        return True
    home = (_g(game, "homeClassification", "home_classification") or "").lower()
    away = (_g(game, "awayClassification", "away_classification") or "").lower()
    return home == division or away == division


def filter_games(
    games: List[Dict[str, Any]],
    division: str = "fbs",
    date: Optional[str] = None,
    tz: str = "America/New_York",
) -> List[Dict[str, Any]]:
    """`date` is the kickoff day as seen in `tz`."""
    out = []
    for g in games:
        if date and local_date(_g(g, "startDate", "start_date"), tz) != date:
            continue
        if not in_division(g, division):
            continue
        out.append(g)
    return out


def distinct_teams(games: List[Dict[str, Any]]) -> List[str]:
    seen: Dict[str, None] = {}
    for g in games:
        for name in (_g(g, "homeTeam", "home_team"), _g(g, "awayTeam", "away_team")):
            if name:
                seen.setdefault(name, None)
    return list(seen)


def venue_key(game: Dict[str, Any]) -> VenueKey:
    return (
        game.get("venue") or "Unknown",
        _g(game, "venueCity", "venue_city") or "",
        _g(game, "venueState", "venue_state") or "",
    )


def distinct_venues(games: List[Dict[str, Any]]) -> List[VenueKey]:
    seen: Dict[VenueKey, None] = {}
    for g in games:
        seen.setdefault(venue_key(g), None)
    return list(seen)


def record_of(row: Optional[Dict[str, Any]]) -> Record:
    total = (row or {}).get("total") or {}
    return {
        "wins": max(0, int(total.get("wins") or 0)),
        "losses": max(0, int(total.get("losses") or 0)),
        "ties": max(0, int(total.get("ties") or 0)),
    }


def game_stats(stats: Optional[TeamStatistics]) -> Optional[GameStats]:
    if not stats:
        return None
    return {k: stats[k] for k in STAT_FIELDS}  # type: ignore[return-value]


# ----------------------------------------------------------------------
# Fan-out
# ----------------------------------------------------------------------
async def fetch_weather_by_venue(
    weather: WeatherClient,
    venues: List[VenueKey],
) -> Dict[VenueKey, Optional[WeatherSnapshot]]:
    """One call per distinct venue; a failed venue maps to None."""
    logger.info("games: fetching weather for %d venues", len(venues))
    results = await asyncio.gather(
        *(weather.current(name, city, state) for name, city, state in venues),
        return_exceptions=True,
    )
    out: Dict[VenueKey, Optional[WeatherSnapshot]] = {}
    for venue, res in zip(venues, results):
        if isinstance(res, BaseException):
            logger.warning("games: weather fetch failed for %s: %r", venue[0], res)
            out[venue] = None
        else:
            out[venue] = res
    return out


async def fetch_stats_by_team(
    client: CFBDClient,
    settings: Settings,
    teams: List[str],
    season: int,
    sos_rows: List[Dict[str, Any]],
) -> TeamIndex[TeamStatistics]:
    limiter = RateLimiter(settings.STATS_REQUESTS_PER_SECOND, burst=settings.STATS_CONCURRENCY)

    async def one(team: str) -> Optional[TeamStatistics]:
        return await calculate_team_statistics(client, team, season, sos_rows)

    logger.info("games: calculating statistics for %d teams", len(teams))
    results = await gather_bounded(
        teams, one, concurrency=settings.STATS_CONCURRENCY, limiter=limiter,
    )

    idx: TeamIndex[TeamStatistics] = TeamIndex("team_stats")
    for team, res in zip(teams, results):
        if isinstance(res, BaseException):
            logger.warning("games: stats failed for %s: %r", team, res)
            continue
        if res:
            idx.add(team, res)
    logger.info("games: stats ready for %d/%d teams", len(idx), len(teams))
    return idx


# ----------------------------------------------------------------------
# Join
# ----------------------------------------------------------------------
def _line_fields(
    game_id: Any,
    books: List[BookLine],
    settings: Settings,
) -> Dict[str, Any]:
    best = pick_book_line(books, settings.PREFERRED_BOOKS)
    if best is not None:
        return {
            "spread": best.get("spread"),
            "spreadSource": Observed(best.get("spread")).source,
            "overUnder": best.get("overUnder"),
            "homeMoneyline": best.get("homeMoneyline"),
            "awayMoneyline": best.get("awayMoneyline"),
            "lineProvider": best.get("provider"),
        }
    if settings.SYNTHETIC_FALLBACKS:
        est = fallback_line(game_id)
        spread, total = est.value
        return {
            "spread": spread,
            "spreadSource": est.source,
            "overUnder": total,
            "homeMoneyline": None,
            "awayMoneyline": None,
            "lineProvider": None,
        }
    return {
        "spread": None,
        "spreadSource": Unavailable("no book line").source,
        "overUnder": None,
        "homeMoneyline": None,
        "awayMoneyline": None,
        "lineProvider": None,
    }


def join_game(
    raw: Dict[str, Any],
    *,
    season: int,
    settings: Settings,
    records: TeamIndex[Dict[str, Any]],
    lines: Dict[int, List[BookLine]],
    weather: Dict[VenueKey, Optional[WeatherSnapshot]],
    stats: TeamIndex[TeamStatistics],
) -> Game:
    home = _g(raw, "homeTeam", "home_team") or ""
    away = _g(raw, "awayTeam", "away_team") or ""
    home_id = _g(raw, "homeId", "home_id")
    away_id = _g(raw, "awayId", "away_id")

    home_rec = record_of(records.lookup(home, home_id))
    away_rec = record_of(records.lookup(away, away_id))

    wx = weather.get(venue_key(raw))

    home_stats = stats.lookup(home)
    away_stats = stats.lookup(away)

    synth = settings.SYNTHETIC_FALLBACKS
    home_form = last5_form(
        (home_stats or {}).get("last5Games"),
        home_rec["wins"], home_rec["losses"],
        form_rng(home, season) if synth else None,
    )
    away_form = last5_form(
        (away_stats or {}).get("last5Games"),
        away_rec["wins"], away_rec["losses"],
        form_rng(away, season) if synth else None,
    )

    return {
        "id": raw.get("id"),
        "homeTeam": home,
        "homeTeamId": home_id,
        "awayTeam": away,
        "awayTeamId": away_id,
        "week": raw.get("week"),
        "season": raw.get("season"),
        "startDate": _g(raw, "startDate", "start_date"),
        "completed": bool(raw.get("completed")),
        "conference": _g(raw, "homeConference", "home_conference") or "Independent",
        "venue": raw.get("venue") or "TBD",
        "city": _g(raw, "venueCity", "venue_city") or "",
        "state": _g(raw, "venueState", "venue_state") or "",
        **_line_fields(raw.get("id"), lines.get(raw.get("id")) or [], settings),
        "homeScore": int(_g(raw, "homePoints", "home_points") or 0),
        "awayScore": int(_g(raw, "awayPoints", "away_points") or 0),
        "homeRecord": home_rec,
        "awayRecord": away_rec,
        "homeLast5": home_form.value,
        "homeLast5Source": home_form.source,
        "awayLast5": away_form.value,
        "awayLast5Source": away_form.source,
        "homeLogoUrl": logo_url(home_id),
        "awayLogoUrl": logo_url(away_id),
        "weatherCondition": map_weather_to_condition(wx),
        "temperature": (wx or {}).get("temperature"),
        "humidity": (wx or {}).get("humidity"),
        "windSpeed": (wx or {}).get("windSpeed"),
        "feelsLike": (wx or {}).get("feelsLike"),
        "homeStats": game_stats(home_stats),
        "awayStats": game_stats(away_stats),
    }


# ----------------------------------------------------------------------
# Public entry
# ----------------------------------------------------------------------
async def build_game_slate(
    client: CFBDClient,
    weather: WeatherClient,
    settings: Settings,
    season: int,
    week: Optional[int] = None,
    division: str = "fbs",
    date: Optional[str] = None,
) -> Tuple[List[Game], GamesMetadata]:
    t0 = time.perf_counter()

    raw_games = await client.games(season, week)
    kept = filter_games(raw_games, division=division, date=date, tz=settings.TZ)
    logger.info(
        "games: season=%s week=%s division=%s date=%s -> %d raw, %d kept",
        season, week, division, date, len(raw_games), len(kept),
    )

    teams = distinct_teams(kept)
    venues = distinct_venues(kept)

    records_rows, lines_rows, sp_rows, weather_map = await asyncio.gather(
        client.records(season),
        client.lines(season, week),
        client.sp_ratings(season),
        fetch_weather_by_venue(weather, venues),
    )

    stats_idx = await fetch_stats_by_team(client, settings, teams, season, sp_rows)
    records_idx = record_index(records_rows)
    books = line_map(lines_rows)

    games = [
        join_game(
            g,
            season=season,
            settings=settings,
            records=records_idx,
            lines=books,
            weather=weather_map,
            stats=stats_idx,
        )
        for g in kept
    ]

    elapsed_ms = int((time.perf_counter() - t0) * 1000)
    meta: GamesMetadata = {
        "totalGames": len(games),
        "week": week,
        "date": date,
        "season": season,
        "division": division,
        "lastUpdated": utc_now_iso(),
        "elapsedMs": elapsed_ms,
        "unmatchedTeams": sorted(set(records_idx.unmatched)),
    }
    return games, meta
