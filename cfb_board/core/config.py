# cfb_board/core/config.py
"""Application configuration."""
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_KEY = "fallback_key_for_development"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Upstream: CFBD
    CFBD_API_KEY: str = Field(default="")
    CFBD_BASE_URL: str = Field(default="https://api.collegefootballdata.com")

    # Upstream: Open-Meteo (no key)
    WEATHER_BASE_URL: str = Field(default="https://api.open-meteo.com/v1/forecast")

    # Every upstream GET uses the same fixed timeout
    HTTP_TIMEOUT: float = Field(default=10.0, gt=0)

    # Per-team statistics throttle
    STATS_CONCURRENCY: int = Field(default=3, ge=1)
    STATS_REQUESTS_PER_SECOND: float = Field(default=6.0, gt=0)

    # Off by default: missing lines / form stay Unavailable instead of estimated
    SYNTHETIC_FALLBACKS: bool = Field(default=False)

    PREFERRED_BOOKS: List[str] = Field(default=["DraftKings", "FanDuel"])

    LOG_LEVEL: str = Field(default="INFO")
    TZ: str = Field(default="America/New_York")

    @field_validator("CFBD_API_KEY")
    @classmethod
    def _strip_key(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        level = (v or "INFO").upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown LOG_LEVEL: {v}")
        return level

    @property
    def has_cfbd_key(self) -> bool:
        """False when the key is missing or still the development placeholder."""
        return bool(self.CFBD_API_KEY) and self.CFBD_API_KEY != PLACEHOLDER_KEY

    def cfbd_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.has_cfbd_key:
            headers["Authorization"] = f"Bearer {self.CFBD_API_KEY}"
        return headers


@lru_cache()
def get_settings() -> Settings:
    return Settings()
