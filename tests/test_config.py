from __future__ import annotations

import pytest
from pydantic import ValidationError

from cfb_board.core.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("CFBD_API_KEY", raising=False)
    s = Settings(_env_file=None)
    assert s.CFBD_BASE_URL == "https://api.collegefootballdata.com"
    assert s.HTTP_TIMEOUT == 10.0
    assert s.STATS_CONCURRENCY == 3
    assert s.PREFERRED_BOOKS == ["DraftKings", "FanDuel"]
    assert s.SYNTHETIC_FALLBACKS is False
    assert s.has_cfbd_key is False
    assert "Authorization" not in s.cfbd_headers()


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("CFBD_API_KEY", "from-env")
    monkeypatch.setenv("SYNTHETIC_FALLBACKS", "true")
    monkeypatch.setenv("PREFERRED_BOOKS", '["FanDuel"]')
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = Settings(_env_file=None)
    assert s.has_cfbd_key is True
    assert s.cfbd_headers()["Authorization"] == "Bearer from-env"
    assert s.SYNTHETIC_FALLBACKS is True
    assert s.PREFERRED_BOOKS == ["FanDuel"]
    assert s.LOG_LEVEL == "DEBUG"


def test_placeholder_key_counts_as_missing():
    assert Settings(_env_file=None, CFBD_API_KEY="fallback_key_for_development").has_cfbd_key is False


def test_rejects_bad_values():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, LOG_LEVEL="loud")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, STATS_CONCURRENCY=0)
