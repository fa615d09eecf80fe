# cfb_board/services/standings.py
"""
Enhanced standings: season records joined with SP+, advanced stats, PPA
and team info. Also the row normalizers behind /api/sp-ratings and /api/ppa.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from cfb_board.models.names import TeamIndex, canonical_team
from cfb_board.models.types import EnhancedTeam, JSONDict
from cfb_board.services.cfbd import CFBDClient

logger = logging.getLogger("cfb.standings")

SEC_TEAMS = (
    "Alabama", "Arkansas", "Auburn", "Florida", "Georgia", "Kentucky",
    "LSU", "Mississippi State", "Missouri", "Ole Miss", "Oklahoma",
    "South Carolina", "Tennessee", "Texas", "Texas A&M", "Vanderbilt",
)
_SEC_KEYS = frozenset(canonical_team(t) for t in SEC_TEAMS)

DEFAULT_COLOR = "#000000"
DEFAULT_ALT_COLOR = "#FFFFFF"
UNRANKED = 999


def _f(v: Any) -> float:
    return float(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else 0.0


def _i(v: Any) -> int:
    return int(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else 0


def _sub(row: Optional[Dict[str, Any]], *path: str) -> Any:
    cur: Any = row or {}
    for p in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(p)
    return cur


# ---------------- normalizers ----------------

def normalize_sp_rating(row: Dict[str, Any]) -> JSONDict:
    return {
        "team": row.get("team"),
        "conference": row.get("conference"),
        "rating": _f(row.get("rating")),
        "ranking": _i(row.get("ranking")) or UNRANKED,
        "secondOrderWins": _f(row.get("secondOrderWins")),
        "sos": _f(row.get("sos")),
        "offenseRating": _f(_sub(row, "offense", "rating")),
        "defenseRating": _f(_sub(row, "defense", "rating")),
        "specialTeamsRating": _f(_sub(row, "specialTeams", "rating")),
    }


def normalize_ppa(row: Dict[str, Any], year: int) -> JSONDict:
    off = _f(_sub(row, "offense", "overall"))
    dfn = _f(_sub(row, "defense", "overall"))
    return {
        "team": row.get("team"),
        "conference": row.get("conference"),
        "season": year,
        "offensePPA": off,
        "defensePPA": dfn,
        "overallPPA": off - dfn,
        "passingPPA": _f(_sub(row, "offense", "passing")),
        "rushingPPA": _f(_sub(row, "offense", "rushing")),
        "passingDefPPA": _f(_sub(row, "defense", "passing")),
        "rushingDefPPA": _f(_sub(row, "defense", "rushing")),
        "downsPPA": {
            "first": _f(_sub(row, "offense", "firstDown")),
            "second": _f(_sub(row, "offense", "secondDown")),
            "third": _f(_sub(row, "offense", "thirdDown")),
        },
    }


def normalize_advanced(row: Dict[str, Any]) -> JSONDict:
    return {
        "team": row.get("team"),
        "conference": row.get("conference"),
        "offensiveEfficiency": _f(_sub(row, "offense", "standardDowns", "rate")),
        "defensiveEfficiency": _f(_sub(row, "defense", "standardDowns", "rate")),
        "explosiveness": _f(_sub(row, "offense", "explosiveness")),
        "finishing": _f(_sub(row, "offense", "stuffRate")),
        "fieldPosition": _f(_sub(row, "offense", "lineYards")),
        "havoc": _f(_sub(row, "defense", "havoc", "total")),
    }


def is_sec(row: Dict[str, Any]) -> bool:
    return row.get("conference") == "SEC" or canonical_team(row.get("team")) in _SEC_KEYS


# ---------------- join ----------------

def enhanced_row(
    record: Dict[str, Any],
    sp: Optional[JSONDict],
    adv: Optional[JSONDict],
    ppa: Optional[JSONDict],
    info: Optional[Dict[str, Any]],
) -> EnhancedTeam:
    total = record.get("total") or {}
    conf = record.get("conferenceGames") or {}
    sp = sp or {}
    adv = adv or {}
    ppa = ppa or {}
    info = info or {}
    logos = info.get("logos") or []
    wins = _i(total.get("wins"))

    return {
        "teamId": _i(info.get("id") or record.get("teamId")),
        "team": record.get("team") or "",
        "conference": record.get("conference"),
        "division": record.get("division"),
        "color": info.get("color") or DEFAULT_COLOR,
        "altColor": info.get("alternateColor") or info.get("alt_color") or DEFAULT_ALT_COLOR,
        "logo": logos[0] if logos else "",
        "wins": wins,
        "losses": _i(total.get("losses")),
        "ties": _i(total.get("ties")),
        "conferenceWins": _i(conf.get("wins")),
        "conferenceLosses": _i(conf.get("losses")),
        "conferenceTies": _i(conf.get("ties")),
        "spPlusRating": _f(sp.get("rating")),
        "spPlusRanking": _i(sp.get("ranking")) or UNRANKED,
        "offensiveEfficiency": _f(adv.get("offensiveEfficiency")),
        "defensiveEfficiency": _f(adv.get("defensiveEfficiency")),
        "explosiveness": _f(adv.get("explosiveness")),
        "offensePPA": _f(ppa.get("offensePPA")),
        "defensePPA": _f(ppa.get("defensePPA")),
        "strengthOfSchedule": _f(sp.get("sos")),
        "secondOrderWins": _f(sp.get("secondOrderWins")),
        "havocRate": _f(adv.get("havoc")),
        "finishingRate": _f(adv.get("finishing")),
        "fieldPosition": _f(adv.get("fieldPosition")),
        "winPct": wins / max(_i(total.get("games")) or 1, 1),
    }


def sec_first(rows: List[EnhancedTeam]) -> List[EnhancedTeam]:
    """SEC block first, then everyone else; SP+ descending within each."""
    sec = [r for r in rows if is_sec(r)]
    rest = [r for r in rows if not is_sec(r)]
    key = lambda r: r["spPlusRating"]
    return sorted(sec, key=key, reverse=True) + sorted(rest, key=key, reverse=True)


async def fetch_enhanced_standings(client: CFBDClient, year: int) -> JSONDict:
    """
    {success, data, message, unmatchedTeams}.

    SP+, advanced stats and PPA are all required; any of them empty means
    success is False and data is empty. Records and team info are joined
    when present.
    """
    if not client.settings.has_cfbd_key:
        logger.warning("standings: no CFBD API key configured, returning empty standings")
        return {
            "success": True,
            "data": [],
            "message": "CFBD_API_KEY not configured",
            "unmatchedTeams": [],
        }

    sp_rows, adv_rows, ppa_rows, records, teams = await asyncio.gather(
        client.sp_ratings(year),
        client.advanced_stats(year),
        client.ppa_teams(year),
        client.records(year),
        client.teams(),
    )

    missing = [
        name for name, rows in (("sp", sp_rows), ("advanced", adv_rows), ("ppa", ppa_rows))
        if not rows
    ]
    if missing:
        logger.error("standings: required inputs empty for %s: %s", year, ", ".join(missing))
        return {
            "success": False,
            "data": [],
            "message": f"Failed to fetch required predictive data ({', '.join(missing)})",
            "unmatchedTeams": [],
        }

    sp_idx: TeamIndex[JSONDict] = TeamIndex("sp")
    for r in sp_rows:
        sp_idx.add(r.get("team") or "", normalize_sp_rating(r))
    adv_idx: TeamIndex[JSONDict] = TeamIndex("advanced")
    for r in adv_rows:
        adv_idx.add(r.get("team") or "", normalize_advanced(r))
    ppa_idx: TeamIndex[JSONDict] = TeamIndex("ppa")
    for r in ppa_rows:
        ppa_idx.add(r.get("team") or "", normalize_ppa(r, year))
    info_idx = TeamIndex.build(teams, name_field="school", id_field="id", label="teams")

    rows = [
        enhanced_row(
            rec,
            sp_idx.lookup(rec.get("team")),
            adv_idx.lookup(rec.get("team")),
            ppa_idx.lookup(rec.get("team")),
            info_idx.lookup(rec.get("team"), rec.get("teamId")),
        )
        for rec in records
        if rec.get("team")
    ]
    data = sec_first(rows)
    unmatched = sorted(set(sp_idx.unmatched) | set(adv_idx.unmatched) | set(ppa_idx.unmatched))

    sec_count = sum(1 for r in data if is_sec(r))
    logger.info("standings: %s -> %d SEC teams, %d others", year, sec_count, len(data) - sec_count)
    return {
        "success": True,
        "data": data,
        "message": f"Enhanced standings for {year}",
        "unmatchedTeams": unmatched,
    }


def filter_standings(
    rows: List[EnhancedTeam],
    *,
    conference: Optional[str] = None,
    division: Optional[str] = None,
    sec_only: bool = False,
) -> List[EnhancedTeam]:
    out = rows
    if sec_only:
        out = [r for r in out if is_sec(r)]
    if conference and conference.lower() != "all":
        needle = conference.lower()
        out = [r for r in out if needle in (r.get("conference") or "").lower()]
    if division:
        want = division.lower()
        out = [r for r in out if (r.get("division") or "").lower() == want]
    return out


def find_team(rows: List[EnhancedTeam], name: str) -> Optional[EnhancedTeam]:
    """Exact case-insensitive match first, then the canonical key."""
    low = name.lower()
    for r in rows:
        if r["team"].lower() == low:
            return r
    key = canonical_team(name)
    for r in rows:
        if canonical_team(r["team"]) == key:
            return r
    return None


__all__ = [
    "SEC_TEAMS",
    "fetch_enhanced_standings",
    "filter_standings",
    "find_team",
    "normalize_sp_rating",
    "normalize_ppa",
    "normalize_advanced",
]
