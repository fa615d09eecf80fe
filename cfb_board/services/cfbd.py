# cfb_board/services/cfbd.py
"""
CFBD REST client.

Every method degrades to an empty value instead of raising. Without a
usable API key nothing is sent at all.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from cfb_board.core.config import Settings
from cfb_board.models.names import TeamIndex
from cfb_board.models.types import BookLine
from cfb_board.services.http_common import get_json

logger = logging.getLogger("cfb.cfbd")


class CFBDClient:
    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.CFBD_BASE_URL,
            headers=settings.cfbd_headers(),
            timeout=settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CFBDClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    async def _get_list(self, path: str, params: Dict[str, Any], label: str) -> List[Dict[str, Any]]:
        if not self.settings.has_cfbd_key:
            logger.error("%s: no CFBD API key configured, returning empty result", label)
            return []
        clean = {k: v for k, v in params.items() if v is not None}
        logger.info("CFBD %s %s params=%s", label, path, clean)
        data = await get_json(self._client, path, clean, label=f"cfbd.{label}")
        if not isinstance(data, list):
            return []
        return data

    # ------------------------------------------------------------------
    async def games(
        self,
        year: int,
        week: Optional[int] = None,
        season_type: str = "regular",
        team: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        return await self._get_list(
            "/games",
            {"year": year, "week": week, "seasonType": season_type, "team": team},
            "games",
        )

    async def records(self, year: int) -> List[Dict[str, Any]]:
        return await self._get_list("/records", {"year": year}, "records")

    async def lines(
        self,
        year: int,
        week: Optional[int] = None,
        season_type: str = "regular",
        team: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        rows = await self._get_list(
            "/lines",
            {"year": year, "week": week, "seasonType": season_type, "team": team},
            "lines",
        )
        logger.info("CFBD lines year=%s week=%s team=%s -> %d", year, week, team, len(rows))
        return rows

    async def sp_ratings(self, year: int) -> List[Dict[str, Any]]:
        return await self._get_list("/ratings/sp", {"year": year}, "sp")

    async def advanced_stats(self, year: int) -> List[Dict[str, Any]]:
        return await self._get_list(
            "/stats/season/advanced",
            {"year": year, "excludeGarbageTime": "true"},
            "advanced",
        )

    async def ppa_teams(self, year: int) -> List[Dict[str, Any]]:
        return await self._get_list(
            "/ppa/teams",
            {"year": year, "excludeGarbageTime": "true"},
            "ppa",
        )

    async def teams(self) -> List[Dict[str, Any]]:
        return await self._get_list("/teams", {}, "teams")

    async def check_status(self) -> Dict[str, str]:
        if not self.settings.has_cfbd_key:
            return {"status": "unhealthy", "message": "CFBD_API_KEY not configured"}
        try:
            r = await self._client.get("/teams/fbs")
        except httpx.HTTPError as e:
            return {"status": "unhealthy", "message": f"API connection failed: {e!r}"}
        if r.is_success:
            return {"status": "healthy", "message": "CFBD API is accessible"}
        return {"status": "unhealthy", "message": f"API returned {r.status_code}"}


# ----------------------------------------------------------------------
# Join helpers
# ----------------------------------------------------------------------
def record_index(records: List[Dict[str, Any]]) -> TeamIndex[Dict[str, Any]]:
    return TeamIndex.build(records, name_field="team", id_field="teamId", label="records")


def as_float(v: Any) -> Optional[float]:
    if v is None or v == "":
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _as_int(v: Any) -> Optional[int]:
    f = as_float(v)
    return int(f) if f is not None else None


def line_map(lines: List[Dict[str, Any]]) -> Dict[int, List[BookLine]]:
    """{game id: [one BookLine per provider]}, preserving upstream order."""
    out: Dict[int, List[BookLine]] = {}
    for entry in lines or []:
        gid = entry.get("id")
        if gid is None:
            continue
        books = out.setdefault(gid, [])
        for bl in entry.get("lines") or []:
            books.append({
                "provider": bl.get("provider"),
                "spread": as_float(bl.get("spread")),
                "overUnder": as_float(bl.get("overUnder")),
                "homeMoneyline": _as_int(bl.get("homeMoneyline")),
                "awayMoneyline": _as_int(bl.get("awayMoneyline")),
            })
    return out


def pick_book_line(books: List[BookLine], preferred: List[str]) -> Optional[BookLine]:
    """
    First preferred provider in `preferred` order, else the first line.

    Only books quoting a spread or a total count; None when no book does.
    """
    priced = [b for b in books if b.get("spread") is not None or b.get("overUnder") is not None]
    if not priced:
        return None
    for name in preferred:
        want = name.lower()
        hit = next((b for b in priced if (b.get("provider") or "").lower() == want), None)
        if hit is not None:
            return hit
    return priced[0]


__all__ = ["CFBDClient", "as_float", "record_index", "line_map", "pick_book_line"]
