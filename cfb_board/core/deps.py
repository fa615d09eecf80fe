# cfb_board/core/deps.py
"""FastAPI dependencies: request-scoped upstream clients, shared CORS reply."""
from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends
from fastapi.responses import JSONResponse

from cfb_board.core.config import Settings, get_settings
from cfb_board.services.cfbd import CFBDClient
from cfb_board.services.weather import WeatherClient

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


async def get_cfbd_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[CFBDClient]:
    client = CFBDClient(settings)
    try:
        yield client
    finally:
        await client.aclose()


async def get_weather_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[WeatherClient]:
    client = WeatherClient(settings)
    try:
        yield client
    finally:
        await client.aclose()


def options_response() -> JSONResponse:
    return JSONResponse(content={}, status_code=200, headers=CORS_HEADERS)
