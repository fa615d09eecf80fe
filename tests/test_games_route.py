from __future__ import annotations

from typing import Any, Dict, List

import httpx

from cfb_board.services.cfbd import CFBDClient
from cfb_board.services.games import filter_games
from cfb_board.services.weather import WeatherClient

from conftest import FakeUpstream, make_settings

WEATHER_PATH = "/v1/forecast"

SLATE: List[Dict[str, Any]] = [
    {
        "id": 401, "season": 2025, "week": 1,
        "startDate": "2025-08-30T19:30:00.000Z", "completed": False,
        "homeTeam": "Alabama", "homeId": 333, "homeConference": "SEC", "homeClassification": "fbs",
        "awayTeam": "Florida State", "awayId": 52, "awayConference": "ACC", "awayClassification": "fbs",
        "venue": "Bryant-Denny Stadium",
    },
    {
        "id": 402, "season": 2025, "week": 1,
        "startDate": "2025-08-30T23:00:00.000Z", "completed": False,
        "homeTeam": "Georgia", "homeId": 61, "homeConference": "SEC", "homeClassification": "fbs",
        "awayTeam": "Marshall", "awayId": 276, "awayConference": "Sun Belt", "awayClassification": "fbs",
        "venue": "Bryant-Denny Stadium",
    },
    {
        "id": 403, "season": 2025, "week": 1,
        "startDate": "2025-08-31T01:00:00.000Z", "completed": False,
        "homeTeam": "Montana", "homeId": 149, "homeClassification": "fcs",
        "awayTeam": "Utah Tech", "awayId": 3101, "awayClassification": "fcs",
        "venue": "Washington-Grizzly Stadium",
    },
]

ALABAMA_GAMES = [
    {
        "id": 301, "week": 1, "completed": True, "startDate": "2024-08-31T23:00:00.000Z",
        "homeTeam": "Alabama", "awayTeam": "Western Kentucky", "homePoints": 63, "awayPoints": 0,
    },
    {
        "id": 302, "week": 3, "completed": True, "startDate": "2024-09-14T16:00:00.000Z",
        "homeTeam": "Wisconsin", "awayTeam": "Alabama", "homePoints": 10, "awayPoints": 42,
    },
]

ALABAMA_LINES = [
    {"id": 301, "lines": [{"provider": "Bovada", "spread": -40, "overUnder": 60}]},
    {"id": 302, "lines": [{"provider": "Bovada", "spread": 14, "overUnder": 48}]},
]

WEEK_LINES = [
    {
        "id": 401,
        "homeTeam": "Alabama",
        "awayTeam": "Florida State",
        "lines": [
            {"provider": "Bovada", "spread": -10, "overUnder": 49},
            {"provider": "FanDuel", "spread": -13.5, "overUnder": 50.5, "homeMoneyline": -600, "awayMoneyline": 425},
        ],
    },
]

RECORDS = [
    {"team": "Alabama", "teamId": 333, "total": {"games": 0, "wins": 0, "losses": 0, "ties": 0}},
    {"team": "Florida State", "teamId": 52, "total": {"games": 0, "wins": 0, "losses": 0, "ties": 0}},
    {"team": "Georgia", "teamId": 61, "total": {"games": 1, "wins": 1, "losses": 0, "ties": 0}},
    {"team": "Montana", "teamId": 149, "total": {"games": 0, "wins": 0, "losses": 0, "ties": 0}},
    {"team": "Utah Tech", "teamId": 3101, "total": {"games": 0, "wins": 0, "losses": 0, "ties": 0}},
]

SP = [
    {"team": "Alabama", "rating": 25.1, "sos": 3.2},
    {"team": "Georgia", "rating": 27.0, "sos": 5.5},
]

WEATHER = {
    "current": {
        "temperature_2m": 88.6,
        "relative_humidity_2m": 61,
        "wind_speed_10m": 6.2,
        "weather_code": 1,
        "apparent_temperature": 95.1,
    }
}


def _games(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("team") == "Alabama":
        return httpx.Response(200, json=ALABAMA_GAMES)
    if request.url.params.get("team"):
        return httpx.Response(200, json=[])
    return httpx.Response(200, json=SLATE)


def _lines(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("team") == "Alabama":
        return httpx.Response(200, json=ALABAMA_LINES)
    if request.url.params.get("team"):
        return httpx.Response(200, json=[])
    return httpx.Response(200, json=WEEK_LINES)


def _wire(upstream: FakeUpstream) -> None:
    upstream.set("/games", _games)
    upstream.set("/lines", _lines)
    upstream.set("/records", RECORDS)
    upstream.set("/ratings/sp", SP)
    upstream.set(WEATHER_PATH, WEATHER)


def test_fbs_slate_joins_lines_weather_and_records(upstream, client_for):
    _wire(upstream)
    client = client_for(make_settings())

    r = client.get("/api/games/2025", params={"week": 1})
    assert r.status_code == 200
    body = r.json()

    assert body["success"] is True
    assert body["message"].startswith("Retrieved 2 games for 2025 season (")
    assert body["message"].endswith("ms)")
    assert [g["id"] for g in body["data"]] == [401, 402]

    bama, uga = body["data"]
    assert bama["lineProvider"] == "FanDuel"
    assert bama["spread"] == -13.5
    assert bama["overUnder"] == 50.5
    assert bama["homeMoneyline"] == -600
    assert bama["spreadSource"] == "observed"
    assert bama["homeLogoUrl"] == "https://a.espncdn.com/i/teamlogos/ncaa/500/333.png"
    assert bama["conference"] == "SEC"

    # no book line and fallbacks off
    assert uga["spread"] is None
    assert uga["overUnder"] is None
    assert uga["spreadSource"] == "unavailable"

    # shared venue: one weather call, same snapshot on both rows
    assert len(upstream.calls_to(WEATHER_PATH)) == 1
    assert bama["temperature"] == uga["temperature"] == 89
    assert bama["weatherCondition"] == uga["weatherCondition"] == "sunny"
    assert bama["feelsLike"] == 95

    # Marshall has no record row
    assert uga["awayRecord"] == {"wins": 0, "losses": 0, "ties": 0}
    assert uga["homeRecord"] == {"wins": 1, "losses": 0, "ties": 0}
    assert body["metadata"]["unmatchedTeams"] == ["Marshall"]
    assert body["metadata"]["totalGames"] == 2
    assert body["metadata"]["division"] == "fbs"


def test_team_stats_flow_into_game_rows(upstream, client_for):
    _wire(upstream)
    client = client_for(make_settings())

    bama = client.get("/api/games/2025", params={"week": 1}).json()["data"][0]

    stats = bama["homeStats"]
    assert stats["pointsForPerGame"] == 52.5
    assert stats["pointsAgainstPerGame"] == 5.0
    assert stats["atsPercentage"] == 100.0
    assert stats["favoriteAtsPercentage"] == 100.0
    assert stats["underdogAtsPercentage"] == 0.0
    assert stats["overUnderPercentage"] == 100.0
    assert stats["strengthOfSchedule"] == 3.2
    assert stats["strengthOfScheduleRank"] == 2
    assert stats["last5Record"] == {"wins": 2, "losses": 0}

    assert bama["homeLast5"] == "W-W"
    assert bama["homeLast5Source"] == "observed"
    # Florida State returned no games
    assert bama["awayStats"] is None
    assert bama["awayLast5"] is None
    assert bama["awayLast5Source"] == "unavailable"


def test_division_filter(upstream, client_for):
    _wire(upstream)
    client = client_for(make_settings())

    fcs = client.get("/api/games/2025", params={"week": 1, "division": "fcs"}).json()
    assert [g["id"] for g in fcs["data"]] == [403]

    every = client.get("/api/games/2025", params={"week": 1, "division": "all"}).json()
    assert [g["id"] for g in every["data"]] == [401, 402, 403]


def test_division_filter_is_idempotent(upstream, client_for):
    _wire(upstream)
    client = client_for(make_settings())

    first = client.get("/api/games/2025", params={"week": 1, "division": "fbs"}).json()
    second = client.get("/api/games/2025", params={"week": 1, "division": "fbs"}).json()
    assert {g["id"] for g in first["data"]} == {g["id"] for g in second["data"]} == {401, 402}

    once = filter_games(SLATE, division="fbs")
    assert filter_games(once, division="fbs") == once
    assert filter_games(filter_games(SLATE, "all"), "all") == SLATE


def test_date_filter_uses_local_kickoff_day(upstream, client_for):
    _wire(upstream)
    client = client_for(make_settings())

    # 403 kicks off 01:00Z on the 31st, 9pm Eastern on the 30th
    r = client.get("/api/games/2025", params={"date": "2025-08-30", "division": "all"})
    assert [g["id"] for g in r.json()["data"]] == [401, 402, 403]
    assert r.json()["metadata"]["date"] == "2025-08-30"

    r = client.get("/api/games/2025", params={"date": "2025-08-31", "division": "all"})
    assert r.json()["data"] == []


def test_midnight_utc_kickoff_belongs_to_previous_eastern_day():
    game = {"id": 9, "startDate": "2025-08-31T00:00:00.000Z", "homeClassification": "fbs"}
    assert filter_games([game], "all", date="2025-08-30") == [game]
    assert filter_games([game], "all", date="2025-08-31") == []
    assert filter_games([game], "all", date="2025-08-31", tz="UTC") == [game]
    assert filter_games([{"id": 10}], "all", date="2025-08-30") == []


def test_invalid_division_is_rejected(upstream, client_for):
    client = client_for(make_settings())
    r = client.get("/api/games/2025", params={"division": "d2"})
    assert r.status_code == 422


def test_synthetic_fallbacks_are_tagged(upstream, client_for):
    _wire(upstream)
    client = client_for(make_settings(SYNTHETIC_FALLBACKS=True))

    uga = client.get("/api/games/2025", params={"week": 1}).json()["data"][1]
    assert uga["spreadSource"] == "estimated"
    assert isinstance(uga["spread"], (int, float))
    assert isinstance(uga["overUnder"], (int, float))
    # Georgia is 1-0 on the season with no game log
    assert uga["homeLast5Source"] == "estimated"
    assert uga["homeLast5"] in ("W", "L")


class _Boom(CFBDClient):
    async def games(self, *args, **kwargs):
        raise RuntimeError("upstream exploded")


def test_failure_returns_500_envelope(upstream, client_for):
    client = client_for(make_settings(), cfbd_cls=_Boom)

    r = client.get("/api/games/2025", params={"week": 2})
    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert body["data"] == []
    assert body["error"] == "upstream exploded"
    assert body["metadata"]["season"] == 2025
    assert body["metadata"]["week"] == 2


def test_no_api_key_returns_empty_without_calling_upstream(upstream, client_for):
    _wire(upstream)
    client = client_for(make_settings(CFBD_API_KEY=""))

    r = client.get("/api/games/2025")
    assert r.status_code == 200
    assert r.json()["data"] == []
    assert r.json()["message"].startswith("Retrieved 0 games")
    assert upstream.calls == []


def test_options_returns_cors_headers(upstream, client_for):
    client = client_for(make_settings())
    r = client.options("/api/games/2025")
    assert r.status_code == 200
    assert r.json() == {}
    assert r.headers["access-control-allow-origin"] == "*"
    assert r.headers["access-control-allow-methods"] == "GET, OPTIONS"


def test_unpriced_preferred_book_gives_way_to_a_priced_one(upstream, client_for):
    _wire(upstream)
    week_lines = WEEK_LINES + [
        {
            "id": 402,
            "lines": [
                {"provider": "DraftKings", "spread": None, "overUnder": None},
                {"provider": "Bovada", "spread": -7.0, "overUnder": 51.5},
            ],
        },
    ]

    def lines(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("team"):
            return _lines(request)
        return httpx.Response(200, json=week_lines)

    upstream.set("/lines", lines)
    client = client_for(make_settings())

    uga = client.get("/api/games/2025", params={"week": 1}).json()["data"][1]
    assert uga["lineProvider"] == "Bovada"
    assert uga["spread"] == -7.0
    assert uga["overUnder"] == 51.5
    assert uga["spreadSource"] == "observed"


class _TuscaloosaWeatherDown(WeatherClient):
    async def current(self, venue, city=None, state=None):
        if venue == "Bryant-Denny Stadium":
            raise httpx.ConnectError("weather host unreachable")
        return await super().current(venue, city, state)


def test_one_failed_venue_keeps_weather_for_the_others(upstream, client_for):
    _wire(upstream)
    slate = [SLATE[0], dict(SLATE[1], venue="Sanford Stadium")]

    def games(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("team"):
            return _games(request)
        return httpx.Response(200, json=slate)

    upstream.set("/games", games)
    client = client_for(make_settings(), weather_cls=_TuscaloosaWeatherDown)

    r = client.get("/api/games/2025", params={"week": 1})
    assert r.status_code == 200
    bama, uga = r.json()["data"]

    assert bama["temperature"] is None
    assert bama["weatherCondition"] is None
    assert uga["temperature"] == 89
    assert uga["weatherCondition"] == "sunny"
    assert len(upstream.calls_to(WEATHER_PATH)) == 1
    assert upstream.calls_to(WEATHER_PATH)[0].url.params["latitude"] == "33.9496"


class _AlabamaGameLogDown(CFBDClient):
    async def games(self, year, week=None, season_type="regular", team=None):
        if team == "Alabama":
            raise RuntimeError("game log unavailable")
        return await super().games(year, week, season_type, team)


def test_failed_team_stats_leave_that_team_without_stats(upstream, client_for):
    _wire(upstream)
    client = client_for(make_settings(), cfbd_cls=_AlabamaGameLogDown)

    r = client.get("/api/games/2025", params={"week": 1})
    assert r.status_code == 200
    body = r.json()
    assert [g["id"] for g in body["data"]] == [401, 402]

    bama = body["data"][0]
    assert bama["homeStats"] is None
    assert bama["homeLast5"] is None
    assert bama["homeLast5Source"] == "unavailable"
    # the rest of the row is still joined
    assert bama["spread"] == -13.5
    assert bama["temperature"] == 89
