"""pytest configuration and fixtures."""
from __future__ import annotations

import os
from typing import Any, Callable, Dict, List, Optional, Union

# Keep a developer's .env / shell key out of the tests
os.environ.pop("CFBD_API_KEY", None)

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from cfb_board.core.config import Settings, get_settings  # noqa: E402
from cfb_board.core.deps import get_cfbd_client, get_weather_client  # noqa: E402
from cfb_board.main import app  # noqa: E402
from cfb_board.services.cfbd import CFBDClient  # noqa: E402
from cfb_board.services.weather import WeatherClient  # noqa: E402

Payload = Union[Any, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """
    Routes requests by URL path to canned JSON.

    A value may also be a callable taking the request, for endpoints that
    answer differently per query parameter.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Payload] = {}
        self.calls: List[httpx.Request] = []

    def set(self, path: str, payload: Payload) -> None:
        self.routes[path] = payload

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        payload = self.routes.get(request.url.path)
        if payload is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(payload):
            return payload(request)
        return httpx.Response(200, json=payload)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "CFBD_API_KEY": "test-key",
        "STATS_REQUESTS_PER_SECOND": 1000.0,
        "STATS_CONCURRENCY": 3,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client_for(upstream: FakeUpstream):
    """TestClient with settings and both upstream clients swapped for fakes."""

    def build(
        settings: Settings,
        cfbd_cls: type = CFBDClient,
        weather_cls: type = WeatherClient,
    ) -> TestClient:
        async def _cfbd():
            c = cfbd_cls(settings, transport=upstream.transport())
            try:
                yield c
            finally:
                await c.aclose()

        async def _weather():
            c = weather_cls(settings, transport=upstream.transport())
            try:
                yield c
            finally:
                await c.aclose()

        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_cfbd_client] = _cfbd
        app.dependency_overrides[get_weather_client] = _weather
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Canned ratings upstream shared by the standings and analysis tests
# ---------------------------------------------------------------------------
def _adv(team: str, off_rate: float, def_rate: float, explosiveness: float) -> Dict[str, Any]:
    return {
        "team": team,
        "offense": {"standardDowns": {"rate": off_rate}, "explosiveness": explosiveness,
                    "stuffRate": 0.18, "lineYards": 3.1},
        "defense": {"standardDowns": {"rate": def_rate}, "havoc": {"total": 0.17}},
    }


def _ppa(team: str, off: float, dfn: float) -> Dict[str, Any]:
    return {"team": team, "offense": {"overall": off}, "defense": {"overall": dfn}}


def _record(team: str, team_id: int, conference: str, w: int, l: int, cw: int, cl: int) -> Dict[str, Any]:
    return {
        "team": team, "teamId": team_id, "conference": conference, "division": "fbs",
        "total": {"games": w + l, "wins": w, "losses": l, "ties": 0},
        "conferenceGames": {"games": cw + cl, "wins": cw, "losses": cl, "ties": 0},
    }


RATINGS_SP = [
    {"team": "Ohio State", "conference": "Big Ten", "rating": 28.0, "ranking": 1, "sos": 4.0, "secondOrderWins": 9.1},
    {"team": "Alabama", "conference": "SEC", "rating": 25.0, "ranking": 3, "sos": 6.5, "secondOrderWins": 8.7},
    {"team": "Vanderbilt", "conference": "SEC", "rating": 5.0, "ranking": 55, "sos": 5.0, "secondOrderWins": 5.2},
    {"team": "Ole Miss", "conference": "SEC", "rating": 18.0, "ranking": 10, "sos": 5.8, "secondOrderWins": 8.0},
]
RATINGS_ADVANCED = [
    _adv("Ohio State", 0.58, 0.38, 1.3),
    _adv("Alabama", 0.60, 0.40, 1.4),
    _adv("Vanderbilt", 0.45, 0.50, 1.0),
    _adv("Ole Miss", 0.55, 0.45, 1.2),
]
RATINGS_PPA = [
    _ppa("Ohio State", 0.33, 0.08),
    _ppa("Alabama", 0.35, 0.10),
    _ppa("Vanderbilt", 0.15, 0.25),
    _ppa("Ole Miss", 0.30, 0.15),
]
RATINGS_RECORDS = [
    _record("Ohio State", 194, "Big Ten", 10, 1, 7, 1),
    _record("Alabama", 333, "SEC", 9, 2, 6, 2),
    _record("Vanderbilt", 238, "SEC", 6, 5, 3, 5),
    _record("Mississippi", 145, "SEC", 8, 3, 5, 3),
]
RATINGS_TEAMS = [
    {"id": 333, "school": "Alabama", "color": "#9e1b32", "alternateColor": "#ffffff",
     "logos": ["http://a.espncdn.com/i/teamlogos/ncaa/500/333.png"]},
    {"id": 238, "school": "Vanderbilt", "color": "#000000", "alternateColor": "#a8996e", "logos": []},
]
RATINGS_WEEK_LINES = [
    {
        "id": 501, "homeTeam": "Alabama", "awayTeam": "Vanderbilt",
        "startDate": "2025-10-04T16:00:00.000Z", "venue": "Bryant-Denny Stadium",
        "lines": [
            {"provider": "Bovada", "spread": -20.5, "overUnder": 55.5,
             "updated": "2025-10-01T12:00:00Z"},
            {"provider": "DraftKings", "spread": -21.5, "overUnder": 56.5,
             "homeMoneyline": -2000, "awayMoneyline": 1100, "updated": "2025-10-02T12:00:00Z"},
        ],
    },
]


def wire_ratings(upstream: FakeUpstream, replace: Optional[Dict[str, Any]] = None) -> None:
    routes = {
        "/ratings/sp": RATINGS_SP,
        "/stats/season/advanced": RATINGS_ADVANCED,
        "/ppa/teams": RATINGS_PPA,
        "/records": RATINGS_RECORDS,
        "/teams": RATINGS_TEAMS,
        "/lines": RATINGS_WEEK_LINES,
    }
    routes.update(replace or {})
    for path, payload in routes.items():
        upstream.set(path, payload)
