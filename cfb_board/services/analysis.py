# cfb_board/services/analysis.py
"""
Structured matchup analysis for /api/llm-analysis.

Three tiers (predictors, market, situational) plus a decision matrix that
turns them into a STRONG/LEAN call.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from cfb_board.models import metrics
from cfb_board.models.types import EnhancedTeam, JSONDict, NormalizedLine

SP_CORRELATION = "72-86%"


def _v(team: EnhancedTeam, field: str) -> float:
    return float(team.get(field) or 0)  # type: ignore[arg-type]


def net_ppa(home: EnhancedTeam, away: EnhancedTeam) -> Dict[str, float]:
    return {
        "home": _v(home, "offensePPA") - _v(away, "defensePPA"),
        "away": _v(away, "offensePPA") - _v(home, "defensePPA"),
    }


def predictor_tier(home: EnhancedTeam, away: EnhancedTeam) -> JSONDict:
    sp_diff = metrics.sp_differential(home.get("spPlusRating"), away.get("spPlusRating"))
    exp_home, exp_away = _v(home, "explosiveness"), _v(away, "explosiveness")
    ppa = net_ppa(home, away)
    home_off, away_def = _v(home, "offensiveEfficiency"), _v(away, "defensiveEfficiency")
    away_off, home_def = _v(away, "offensiveEfficiency"), _v(home, "defensiveEfficiency")

    return {
        "spPlusDifferential": {
            "homeTeamRating": _v(home, "spPlusRating"),
            "awayTeamRating": _v(away, "spPlusRating"),
            "differential": sp_diff,
            "advantage": metrics.advantage(home.get("spPlusRating"), away.get("spPlusRating")),
            "confidenceLevel": metrics.confidence_tier(sp_diff),
            "correlation": SP_CORRELATION,
        },
        "explosivenessGap": {
            "homeTeamExplosiveness": exp_home,
            "awayTeamExplosiveness": exp_away,
            "differential": exp_home - exp_away,
            "advantage": metrics.advantage(exp_home, exp_away),
            "winProbability": "86%" if exp_home > exp_away else "14%",
        },
        "ppaNeuralNetwork": {
            "homeOffensePPA": _v(home, "offensePPA"),
            "awayOffensePPA": _v(away, "offensePPA"),
            "homeDefensePPA": _v(home, "defensePPA"),
            "awayDefensePPA": _v(away, "defensePPA"),
            "netPPAAdvantage": ppa,
            "advantage": metrics.advantage(ppa["home"], ppa["away"]),
        },
        "efficiencyBattle": {
            "homeOffenseVsAwayDefense": {
                "homeOffEff": home_off,
                "awayDefEff": away_def,
                "advantage": "HOME_OFFENSE" if home_off > away_def else "AWAY_DEFENSE",
            },
            "awayOffenseVsHomeDefense": {
                "awayOffEff": away_off,
                "homeDefEff": home_def,
                "advantage": "AWAY_OFFENSE" if away_off > home_def else "HOME_DEFENSE",
            },
        },
    }


def market_tier(odds: Optional[NormalizedLine], sp_diff: float) -> JSONDict:
    if not odds:
        return {
            "marketSignals": {
                "status": "NO_BETTING_DATA_AVAILABLE",
                "impact": "ANALYSIS_BASED_ON_PREDICTORS_ONLY",
            }
        }

    model = metrics.model_spread(sp_diff)
    actual = odds.get("spread")
    if actual is None:
        comparison: JSONDict = {
            "modelProjectedSpread": model,
            "actualSpread": None,
            "valueIndicator": "NO_SPREAD",
            "recommendedSide": None,
        }
    else:
        comparison = {
            "modelProjectedSpread": model,
            "actualSpread": actual,
            "valueIndicator": "SIGNIFICANT_VALUE" if metrics.has_value(model, actual) else "FAIR_LINE",
            "recommendedSide": metrics.value_side(model, actual),
        }

    return {
        "marketSignals": {
            "currentSpread": actual,
            "impliedHomeWinProb": odds.get("impliedHomeWinPct"),
            "impliedAwayWinProb": odds.get("impliedAwayWinPct"),
            "homeWinBucket": metrics.win_probability_bucket(odds.get("impliedHomeWinPct")),
            "overUnder": odds.get("overUnder"),
            "homeMoneyline": odds.get("homeMoneyline"),
            "awayMoneyline": odds.get("awayMoneyline"),
            "marketEfficiency": "LIVE_DATA_AVAILABLE",
        },
        "powerRatingComparison": comparison,
    }


def _team_context(team: EnhancedTeam) -> JSONDict:
    return {
        "record": f"{team['wins']}-{team['losses']}",
        "conferenceRecord": f"{team['conferenceWins']}-{team['conferenceLosses']}",
        "conference": team.get("conference"),
        "strengthOfSchedule": _v(team, "strengthOfSchedule"),
    }


def situational_tier(home: EnhancedTeam, away: EnhancedTeam, week: int) -> JSONDict:
    return {
        "teamContext": {
            "homeTeam": _team_context(home),
            "awayTeam": _team_context(away),
        },
        "gameContext": {
            "weekNumber": week,
            "seasonPhase": metrics.season_phase(week),
            "homeFieldAdvantage": "STANDARD_3_POINT_ASSUMPTION",
        },
    }


def recommend(tier1: JSONDict, home_team: str, away_team: str) -> JSONDict:
    home_advantages = home_advantage_count(tier1)
    confidence = tier1["spPlusDifferential"]["confidenceLevel"]

    if home_advantages >= 2:
        side, label = home_team, "home"
    else:
        side, label = away_team, "away"

    if confidence == "HIGH":
        return {
            "recommendation": f"STRONG {side}",
            "confidence": "HIGH",
            "reasoning": f"Multiple predictors favor the {label} team with high SP+ confidence",
        }
    return {
        "recommendation": f"LEAN {side}",
        "confidence": "MEDIUM",
        "reasoning": f"Multiple predictors favor the {label} team but with lower confidence",
    }


def home_advantage_count(tier1: JSONDict) -> int:
    return sum(
        1
        for k in ("spPlusDifferential", "explosivenessGap", "ppaNeuralNetwork")
        if tier1[k]["advantage"] == "HOME"
    )


def build_matchup_analysis(
    home: EnhancedTeam,
    away: EnhancedTeam,
    odds: Optional[NormalizedLine],
    year: int,
    week: int,
) -> JSONDict:
    tier1 = predictor_tier(home, away)
    tier2 = market_tier(odds, tier1["spPlusDifferential"]["differential"])
    tier3 = situational_tier(home, away, week)

    advantages: List[Any] = [
        tier1["spPlusDifferential"]["advantage"],
        tier1["explosivenessGap"]["advantage"],
        tier1["ppaNeuralNetwork"]["advantage"],
    ]
    decision = {
        "primaryPredictors": {
            "spPlusAdvantage": advantages[0],
            "explosivenessAdvantage": advantages[1],
            "ppaAdvantage": advantages[2],
            "convergenceScore": advantages.count("HOME"),
        },
        "confidenceFactors": {
            "spPlusConfidence": tier1["spPlusDifferential"]["confidenceLevel"],
            "marketValidation": "BETTING_LINES_AVAILABLE" if odds else "NO_MARKET_DATA",
        },
        "recommendedAction": recommend(tier1, home["team"], away["team"]),
    }

    return {
        "season": year,
        "tier1_Predictors": tier1,
        "tier2_BettingIntelligence": tier2,
        "tier3_SituationalContext": tier3,
        "decisionMatrix": decision,
        "dataQuality": {
            "predictorsComplete": bool(home.get("spPlusRating") and away.get("spPlusRating")),
            "bettingDataAvailable": odds is not None,
            "weatherDataNeeded": True,
            "recentFormDataNeeded": True,
        },
    }
