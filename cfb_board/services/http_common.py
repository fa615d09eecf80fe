# cfb_board/services/http_common.py

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger("cfb.http")


# -----------------------------------------------------------
# Shared HTTP helper (single attempt, never raises)
# -----------------------------------------------------------
async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    *,
    label: str = "upstream",
) -> Optional[Any]:
    """
    One GET, parsed as JSON.

    Returns None on a non-2xx status, a transport error, a timeout or a body
    that isn't JSON. The caller picks its own empty value.
    """
    try:
        r = await client.get(url, params=params)
    except httpx.HTTPError as e:
        logger.error("%s GET %s params=%s failed: %r", label, url, params, e)
        return None

    if not r.is_success:
        logger.warning(
            "%s GET %s params=%s -> %s %s",
            label, url, params, r.status_code, r.reason_phrase,
        )
        return None

    try:
        return r.json()
    except ValueError as e:
        logger.error("%s GET %s returned non-JSON body: %r", label, url, e)
        return None


# -----------------------------------------------------------
# Time helpers
# -----------------------------------------------------------
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def current_season(tz: str = "America/New_York") -> int:
    """
    Season year for 'today' in `tz`.

    January/February still belong to the previous season (bowls, playoff).
    """
    try:
        now = datetime.now(ZoneInfo(tz))
    except (ZoneInfoNotFoundError, ValueError):
        now = datetime.now()
    return now.year if now.month >= 3 else now.year - 1


def local_date(value: Optional[str], tz: str = "America/New_York") -> Optional[str]:
    """
    Calendar day of an ISO timestamp as seen in `tz`.

    '2025-08-31T00:00:00.000Z' -> '2025-08-30' in America/New_York. Naive
    timestamps keep their own date.
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.date().isoformat()
    try:
        zone = ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        zone = timezone.utc
    return dt.astimezone(zone).date().isoformat()
