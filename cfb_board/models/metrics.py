# cfb_board/models/metrics.py
"""
Derived metrics over upstream numbers.

All functions are pure. `None` inputs count as 0 so callers can pass raw
upstream fields straight through.
"""
from __future__ import annotations

import hashlib
import math
import random
from typing import Optional, Sequence

from cfb_board.models.types import Estimated, Observed, Sourced, Unavailable

SP_TO_SPREAD = 0.3
VALUE_THRESHOLD = 3.0
HIGH_TIER = 15.0
MEDIUM_TIER = 8.0

FALLBACK_SPREADS: Sequence[float] = (-14, -10.5, -7, -6.5, -3.5, -3, -2.5, 1.5, 3, 3.5, 6.5, 7, 10.5, 14)
FALLBACK_TOTALS: Sequence[float] = (42.5, 45, 47.5, 49, 51.5, 54, 56.5, 59, 61.5, 64)


def _num(v: Optional[float]) -> float:
    return float(v) if isinstance(v, (int, float)) else 0.0


# ---------- SP+ ----------

def sp_differential(home_rating: Optional[float], away_rating: Optional[float]) -> float:
    return _num(home_rating) - _num(away_rating)


def confidence_tier(diff: Optional[float]) -> str:
    d = abs(_num(diff))
    if d > HIGH_TIER:
        return "HIGH"
    if d > MEDIUM_TIER:
        return "MEDIUM"
    return "LOW"


def advantage(home: Optional[float], away: Optional[float]) -> str:
    return "HOME" if _num(home) > _num(away) else "AWAY"


# ---------- Model vs market ----------

def model_spread(sp_diff: Optional[float]) -> float:
    return _num(sp_diff) * SP_TO_SPREAD


def spread_discrepancy(model: Optional[float], actual: Optional[float]) -> float:
    return abs(_num(model) - _num(actual))


def has_value(model: Optional[float], actual: Optional[float]) -> bool:
    # strictly greater: a 3.0 gap is still a fair line
    return spread_discrepancy(model, actual) > VALUE_THRESHOLD


def value_side(model: Optional[float], actual: Optional[float]) -> str:
    return "HOME" if _num(model) > _num(actual) else "AWAY"


# ---------- Probabilities ----------

def american_to_implied_prob(moneyline: Optional[float]) -> Optional[float]:
    if not isinstance(moneyline, (int, float)) or moneyline == 0:
        return None
    if moneyline > 0:
        return 100.0 / (moneyline + 100.0)
    return -moneyline / (-moneyline + 100.0)


def spread_to_implied_prob(home_spread: Optional[float]) -> Optional[float]:
    """Logistic S-curve; negative spread means home favored."""
    if not isinstance(home_spread, (int, float)):
        return None
    k = 0.165
    return 1.0 / (1.0 + math.exp(k * home_spread))


def win_probability_bucket(prob: Optional[float]) -> str:
    if not isinstance(prob, (int, float)):
        return "UNKNOWN"
    if prob >= 0.75:
        return "STRONG_FAVORITE"
    if prob >= 0.6:
        return "FAVORITE"
    if prob > 0.4:
        return "TOSS_UP"
    if prob > 0.25:
        return "UNDERDOG"
    return "LONG_SHOT"


def explosiveness_win_probability(diff: Optional[float]) -> str:
    return "86%" if abs(_num(diff)) > 0.3 else "65%"


def ppa_significance(diff: Optional[float]) -> str:
    d = abs(_num(diff))
    if d > 0.5:
        return "HIGH"
    if d > 0.2:
        return "MODERATE"
    return "LOW"


def season_phase(week: int) -> str:
    if week <= 4:
        return "EARLY_SEASON"
    if week <= 8:
        return "MID_SEASON"
    if week <= 12:
        return "LATE_SEASON"
    return "POSTSEASON"


# ---------- Form + placeholders ----------

def _seed(key: str) -> int:
    return int(hashlib.sha256(key.encode()).hexdigest()[:8], 16)


def estimate_last5(wins: int, losses: int, rng: random.Random) -> str:
    """Weighted coin flip at the season win rate. Not a game log."""
    played = (wins or 0) + (losses or 0)
    n = min(played, 5)
    if n == 0:
        return "N/A"
    rate = (wins or 0) / played
    return "-".join("W" if rng.random() < rate else "L" for _ in range(n))


def last5_form(
    observed: Optional[str],
    wins: int,
    losses: int,
    rng: Optional[random.Random] = None,
) -> Sourced[str]:
    if observed:
        return Observed(observed)
    if rng is not None:
        return Estimated(estimate_last5(wins, losses, rng))
    return Unavailable("no completed games on record")


def fallback_line(game_id: int | str) -> Estimated[tuple]:
    """Deterministic (spread, total) pair for a game with no book line."""
    rnd = random.Random(_seed(f"line:{game_id}"))
    return Estimated((rnd.choice(FALLBACK_SPREADS), rnd.choice(FALLBACK_TOTALS)))


def form_rng(team: str, season: int) -> random.Random:
    return random.Random(_seed(f"form:{team}:{season}"))
