# cfb_board/services/weather.py
"""Open-Meteo current conditions by stadium. No key required."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from cfb_board.core.config import Settings
from cfb_board.models.types import WeatherCondition, WeatherSnapshot
from cfb_board.services.http_common import get_json

logger = logging.getLogger("cfb.weather")

HEADERS = {"User-Agent": "cfb-board/1.0", "Accept": "application/json"}

# venue -> (lat, lon, place)
VENUE_COORDINATES: Dict[str, Tuple[float, float, str]] = {
    # SEC
    "Bryant-Denny Stadium": (33.2082, -87.5467, "Tuscaloosa, AL"),
    "Tiger Stadium": (30.4118, -91.1837, "Baton Rouge, LA"),
    "Ben Hill Griffin Stadium": (29.6499, -82.3482, "Gainesville, FL"),
    "Sanford Stadium": (33.9496, -83.3732, "Athens, GA"),
    "Kyle Field": (30.6103, -96.3398, "College Station, TX"),
    "Darrell K Royal Stadium": (30.2839, -97.7322, "Austin, TX"),
    "Gaylord Family Stadium": (35.2057, -97.4426, "Norman, OK"),
    "Neyland Stadium": (35.9550, -83.9250, "Knoxville, TN"),
    "Jordan-Hare Stadium": (32.6026, -85.4891, "Auburn, AL"),
    "Vaught-Hemingway Stadium": (34.3618, -89.5343, "Oxford, MS"),
    # Big Ten
    "Ohio Stadium": (39.9984, -83.0306, "Columbus, OH"),
    "Michigan Stadium": (42.2658, -83.7487, "Ann Arbor, MI"),
    "Beaver Stadium": (40.8122, -77.8562, "University Park, PA"),
    "Camp Randall Stadium": (43.0705, -89.4124, "Madison, WI"),
    "Autzen Stadium": (44.0584, -123.0685, "Eugene, OR"),
    "Husky Stadium": (47.6509, -122.3015, "Seattle, WA"),
    "Los Angeles Memorial Coliseum": (34.0141, -118.2879, "Los Angeles, CA"),
    "Rose Bowl": (34.1611, -118.1675, "Pasadena, CA"),
    # ACC
    "Memorial Stadium": (34.6774, -82.8376, "Clemson, SC"),
    "Doak Campbell Stadium": (30.4375, -84.3044, "Tallahassee, FL"),
    "Hard Rock Stadium": (25.9580, -80.2389, "Miami Gardens, FL"),
    "Notre Dame Stadium": (41.6984, -86.2339, "Notre Dame, IN"),
    # Big 12
    "Boone Pickens Stadium": (36.1217, -97.0652, "Stillwater, OK"),
    "McLane Stadium": (31.5513, -97.1114, "Waco, TX"),
    # school-name fallbacks
    "Alabama": (33.2082, -87.5467, "Tuscaloosa, AL"),
    "Georgia": (33.9496, -83.3732, "Athens, GA"),
    "Florida": (29.6499, -82.3482, "Gainesville, FL"),
    "Texas": (30.2839, -97.7322, "Austin, TX"),
    "Michigan": (42.2658, -83.7487, "Ann Arbor, MI"),
    "Ohio State": (39.9984, -83.0306, "Columbus, OH"),
}

# stadium names used by more than one school
AMBIGUOUS_VENUES = frozenset({"Memorial Stadium"})

# WMO weather interpretation codes
WEATHER_CODES: Dict[int, str] = {
    0: "clear",
    1: "mainly clear",
    2: "partly cloudy",
    3: "overcast",
    45: "foggy",
    48: "rime fog",
    51: "light drizzle",
    53: "moderate drizzle",
    55: "dense drizzle",
    56: "light freezing drizzle",
    57: "dense freezing drizzle",
    61: "slight rain",
    63: "moderate rain",
    65: "heavy rain",
    66: "light freezing rain",
    67: "heavy freezing rain",
    71: "slight snow",
    73: "moderate snow",
    75: "heavy snow",
    77: "snow grains",
    80: "slight rain showers",
    81: "moderate rain showers",
    82: "violent rain showers",
    85: "slight snow showers",
    86: "heavy snow showers",
    95: "thunderstorm",
    96: "thunderstorm with slight hail",
    99: "thunderstorm with heavy hail",
}


def weather_code_condition(code: int) -> WeatherCondition:
    if code in (0, 1):
        return "sunny"
    if 51 <= code <= 67 or 80 <= code <= 82 or 95 <= code <= 99:
        return "rainy"
    if 71 <= code <= 77 or 85 <= code <= 86:
        return "snowy"
    return "cloudy"


def map_weather_to_condition(weather: Optional[WeatherSnapshot]) -> Optional[WeatherCondition]:
    """Coarse card condition from a snapshot; None when there is no snapshot."""
    if not weather:
        return None
    condition = (weather.get("condition") or "").lower()
    if "rain" in condition or "drizzle" in condition or "thunderstorm" in condition:
        return "rainy"
    if "snow" in condition or "freezing" in condition:
        return "snowy"
    if "clear" in condition or "sunny" in condition:
        return "sunny"
    if "wind" in condition:
        return "windy"
    return "cloudy"


def _place_fits(
    key: str,
    place: str,
    city: Optional[str],
    state: Optional[str],
) -> bool:
    place_city, _, place_state = place.partition(", ")
    if state:
        return state.strip().upper() == place_state
    if city:
        return city.strip().lower() == place_city.lower()
    return key not in AMBIGUOUS_VENUES


def coordinates_for(
    venue: Optional[str],
    city: Optional[str] = None,
    state: Optional[str] = None,
) -> Optional[Tuple[float, float, str]]:
    """
    Exact venue name first, then a known venue name contained in `venue`.

    When the game's city or state is known the match must agree with it.
    Names shared by several stadiums need one of the two.
    """
    if not venue:
        return None
    coords = VENUE_COORDINATES.get(venue)
    if coords is not None:
        return coords if _place_fits(venue, coords[2], city, state) else None
    v = venue.lower()
    for key, coords in VENUE_COORDINATES.items():
        if key.lower() in v and _place_fits(key, coords[2], city, state):
            return coords
    return None


def _round(v: Any) -> Optional[int]:
    return round(v) if isinstance(v, (int, float)) else None


class WeatherClient:
    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._client = httpx.AsyncClient(
            headers=HEADERS,
            timeout=settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def current(
        self,
        venue: Optional[str],
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> Optional[WeatherSnapshot]:
        coords = coordinates_for(venue, city, state)
        if coords is None:
            logger.warning("weather: no coordinates for venue %r", venue)
            return None

        lat, lon, _place = coords
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": "temperature_2m,relative_humidity_2m,wind_speed_10m,weather_code,apparent_temperature",
            "temperature_unit": "fahrenheit",
            "wind_speed_unit": "mph",
            "timezone": "auto",
        }
        data = await get_json(self._client, self.settings.WEATHER_BASE_URL, params, label="weather")
        if not isinstance(data, dict):
            return None

        cur = data.get("current") or {}
        code = cur.get("weather_code")
        return {
            "temperature": _round(cur.get("temperature_2m")),
            "condition": WEATHER_CODES.get(code, "unknown") if isinstance(code, int) else "unknown",
            "humidity": cur.get("relative_humidity_2m"),
            "windSpeed": _round(cur.get("wind_speed_10m")),
            "feelsLike": _round(cur.get("apparent_temperature")),
        }
