# cfb_board/services/context.py
"""Narrative matchup context for /api/llm-context."""
from __future__ import annotations

from typing import List, Optional

from cfb_board.models import metrics
from cfb_board.models.types import EnhancedTeam, JSONDict, NormalizedLine
from cfb_board.services.analysis import net_ppa

EXPLOSIVE_EDGE = 0.3
PPA_EDGE = 0.5


def _v(team: EnhancedTeam, field: str) -> float:
    return float(team.get(field) or 0)  # type: ignore[arg-type]


def _record(team: EnhancedTeam) -> str:
    return f"{team['wins']}-{team['losses']}"


def _conf_record(team: EnhancedTeam) -> str:
    return f"{team['conferenceWins']}-{team['conferenceLosses']}"


def _spread_phrase(team: str, spread: float) -> str:
    if spread > 0:
        return f"{team} as a {spread:.1f} point underdog"
    return f"{team} favored by {abs(spread):.1f} points"


# ---------------- interpretations ----------------

def interpret_sp_differential(diff: float, home: str, away: str) -> JSONDict:
    if diff > metrics.HIGH_TIER:
        return {
            "strength": "STRONG",
            "narrative": (
                f"{home} holds a commanding {diff:.1f} point SP+ advantage over {away}, "
                "indicating superior overall team quality with high predictive confidence."
            ),
            "implication": "STRONG_HOME_ADVANTAGE",
            "confidence": "HIGH",
        }
    if diff > metrics.MEDIUM_TIER:
        return {
            "strength": "MODERATE",
            "narrative": (
                f"{home} has a solid {diff:.1f} point SP+ edge. {home} should be favored, "
                "but not overwhelmingly so."
            ),
            "implication": "MODERATE_HOME_ADVANTAGE",
            "confidence": "MEDIUM",
        }
    if diff > -metrics.MEDIUM_TIER:
        return {
            "strength": "MARGINAL",
            "narrative": (
                f"The SP+ ratings are nearly even ({diff:.1f} point difference). "
                "Other factors decide a matchup this close."
            ),
            "implication": "EVEN_MATCHUP",
            "confidence": "LOW",
        }
    return {
        "strength": "STRONG",
        "narrative": (
            f"{away} has a significant {abs(diff):.1f} point SP+ advantage despite playing "
            f"on the road, which makes {away} the better team overall."
        ),
        "implication": "STRONG_AWAY_ADVANTAGE",
        "confidence": "HIGH",
    }


def interpret_explosiveness(diff: float, home: EnhancedTeam, away: EnhancedTeam) -> JSONDict:
    superior = home["team"] if diff > 0 else away["team"]
    win_prob = metrics.explosiveness_win_probability(diff)
    return {
        "narrative": (
            f"In the explosiveness battle, {superior} has a {abs(diff):.2f} advantage "
            f"({home['team']}: {_v(home, 'explosiveness'):.2f}, {away['team']}: {_v(away, 'explosiveness'):.2f}). "
            f"The team with superior explosiveness wins approximately {win_prob} of the time."
        ),
        "advantage": superior,
        "winProbability": win_prob,
        "significance": "HIGH" if abs(diff) > EXPLOSIVE_EDGE else "MODERATE",
    }


def interpret_ppa(diff: float, home: EnhancedTeam, away: EnhancedTeam) -> JSONDict:
    adv = home["team"] if diff > 0 else away["team"]
    net = net_ppa(home, away)
    return {
        "narrative": (
            f"PPA gives {adv} a {abs(diff):.2f} point advantage per play. "
            f"{home['team']} offense vs {away['team']} defense projects {net['home']:.2f} PPA, "
            f"while {away['team']} offense vs {home['team']} defense projects {net['away']:.2f} PPA."
        ),
        "advantage": adv,
        "significance": metrics.ppa_significance(diff),
    }


def interpret_efficiency(home: EnhancedTeam, away: EnhancedTeam) -> JSONDict:
    home_edge = _v(home, "offensiveEfficiency") - _v(away, "defensiveEfficiency")
    away_edge = _v(away, "offensiveEfficiency") - _v(home, "defensiveEfficiency")
    winner = home["team"] if home_edge > away_edge else away["team"]
    return {
        "narrative": (
            f"Efficiency matchups favor {winner}. "
            f"{home['team']} offense ({_v(home, 'offensiveEfficiency'):.2f}) vs {away['team']} defense "
            f"({_v(away, 'defensiveEfficiency'):.2f}) = {home_edge:.2f}. "
            f"{away['team']} offense ({_v(away, 'offensiveEfficiency'):.2f}) vs {home['team']} defense "
            f"({_v(home, 'defensiveEfficiency'):.2f}) = {away_edge:.2f}."
        ),
        "homeAdvantage": home_edge,
        "awayAdvantage": away_edge,
        "overallAdvantage": winner,
    }


def interpret_betting_lines(odds: NormalizedLine, sp_diff: float, home: str, away: str) -> JSONDict:
    model = metrics.model_spread(sp_diff)
    actual = float(odds.get("spread") or 0)
    gap = metrics.spread_discrepancy(model, actual)
    value = metrics.has_value(model, actual)
    side = home if metrics.value_side(model, actual) == "HOME" else away

    tail = f"value exists on the {side} side" if value else "the line is fairly efficient"
    return {
        "narrative": (
            f"The betting market has {_spread_phrase(home, actual)}. "
            f"Based on SP+ ratings, the model projects {_spread_phrase(home, model)}. "
            f"That is a {gap:.1f} point {'significant' if value else 'moderate'} discrepancy, "
            f"suggesting {tail}."
        ),
        "marketSpread": actual,
        "modelSpread": round(model, 1),
        "discrepancy": round(gap, 1),
        "valueIndication": side if value else "NO_SIGNIFICANT_VALUE",
        "impliedProbs": {
            "homeWin": f"{(odds.get('impliedHomeWinPct') or 0) * 100:.1f}%",
            "awayWin": f"{(odds.get('impliedAwayWinPct') or 0) * 100:.1f}%",
        },
    }


PHASE_LABELS = {
    "EARLY_SEASON": "early season",
    "MID_SEASON": "mid-season",
    "LATE_SEASON": "late season",
    "POSTSEASON": "postseason",
}

PHASE_NOTES = {
    "EARLY_SEASON": "Early season matchups can be unpredictable as teams establish identity.",
    "LATE_SEASON": "Late season games often carry bowl implications and rivalry stakes.",
}


def stakes_for_week(week: int) -> str:
    if week > 10:
        return "HIGH"
    if week > 6:
        return "MEDIUM"
    return "DEVELOPMENT"


def situational_context(home: EnhancedTeam, away: EnhancedTeam, week: int) -> JSONDict:
    phase = PHASE_LABELS[metrics.season_phase(week)]
    note = PHASE_NOTES.get(
        metrics.season_phase(week),
        "Mid-season games typically feature teams with established patterns.",
    )
    return {
        "narrative": (
            f"This {phase} matchup (Week {week}) features {home['team']} ({_record(home)}, "
            f"{_conf_record(home)} in {home.get('conference')}) hosting {away['team']} "
            f"({_record(away)}, {_conf_record(away)} in {away.get('conference')}). {note}"
        ),
        "seasonPhase": phase,
        "stakes": stakes_for_week(week),
        "homeRecord": _record(home),
        "awayRecord": _record(away),
    }


# ---------------- signals + framing ----------------

def key_signals(
    home: EnhancedTeam,
    away: EnhancedTeam,
    odds: Optional[NormalizedLine],
    sp_diff: float,
    exp_diff: float,
    ppa_diff: float,
) -> List[JSONDict]:
    h, a = home["team"], away["team"]
    signals: List[JSONDict] = []

    if abs(sp_diff) > metrics.HIGH_TIER:
        team = h if sp_diff > 0 else a
        signals.append({
            "type": "SP_PLUS_DOMINANT",
            "strength": "STRONG",
            "team": team,
            "message": f"{team} has overwhelming SP+ advantage ({abs(sp_diff):.1f} points)",
            "confidence": 0.85,
        })
    elif abs(sp_diff) > metrics.MEDIUM_TIER:
        team = h if sp_diff > 0 else a
        signals.append({
            "type": "SP_PLUS_SIGNIFICANT",
            "strength": "MODERATE",
            "team": team,
            "message": f"{team} has meaningful SP+ edge ({abs(sp_diff):.1f} points)",
            "confidence": 0.70,
        })

    if abs(exp_diff) > EXPLOSIVE_EDGE:
        team = h if exp_diff > 0 else a
        signals.append({
            "type": "EXPLOSIVENESS_ADVANTAGE",
            "strength": "STRONG",
            "team": team,
            "message": f"{team} has superior explosiveness - 86% win rate when ahead",
            "confidence": 0.86,
        })

    if abs(ppa_diff) > PPA_EDGE:
        team = h if ppa_diff > 0 else a
        signals.append({
            "type": "PPA_NEURAL_ADVANTAGE",
            "strength": "STRONG",
            "team": team,
            "message": f"PPA analysis strongly favors {team}",
            "confidence": 0.75,
        })

    if odds and odds.get("spread") is not None:
        model = metrics.model_spread(sp_diff)
        actual = odds["spread"]
        if metrics.has_value(model, actual):
            signals.append({
                "type": "BETTING_VALUE",
                "strength": "MODERATE",
                "team": h if metrics.value_side(model, actual) == "HOME" else a,
                "message": (
                    f"Significant line value detected - "
                    f"{metrics.spread_discrepancy(model, actual):.1f} point discrepancy"
                ),
                "confidence": 0.65,
            })

    home_adv = sum(1 for d in (sp_diff, exp_diff, ppa_diff) if d > 0)
    if home_adv >= 2 or home_adv == 0:
        team = h if home_adv >= 2 else a
        signals.append({
            "type": "PREDICTOR_CONVERGENCE",
            "strength": "STRONG",
            "team": team,
            "message": f"{home_adv}/3 predictors converge on {team}",
            "confidence": 0.80,
        })

    return signals


def full_narrative(
    home: EnhancedTeam,
    away: EnhancedTeam,
    sp_ctx: JSONDict,
    exp_ctx: JSONDict,
    ppa_ctx: JSONDict,
    eff_ctx: JSONDict,
    bet_ctx: Optional[JSONDict],
    sit_ctx: JSONDict,
    signals: List[JSONDict],
    sp_diff: float,
) -> str:
    favoured = home["team"] if "HOME" in sp_ctx["implication"] else away["team"]
    parts = [
        f"COMPREHENSIVE BETTING ANALYSIS: {away['team']} @ {home['team']}",
        "",
        "SITUATIONAL CONTEXT:",
        sit_ctx["narrative"],
        "",
        "1. SP+ RATING ANALYSIS:",
        sp_ctx["narrative"],
        "",
        "2. EXPLOSIVENESS BATTLE:",
        exp_ctx["narrative"],
        "",
        "3. PPA PREDICTIONS:",
        ppa_ctx["narrative"],
        "",
        "4. EFFICIENCY MATCHUP BREAKDOWN:",
        eff_ctx["narrative"],
    ]
    if bet_ctx:
        parts += ["", "BETTING MARKET INTELLIGENCE:", bet_ctx["narrative"]]
    parts += ["", "KEY SIGNALS:"]
    parts += [
        f"{i}. {s['message']} ({s['confidence'] * 100:.0f}% confidence)"
        for i, s in enumerate(signals, start=1)
    ]
    parts += [
        "",
        "RECOMMENDATION FRAMEWORK:",
        f"- Primary Factor: SP+ differential ({sp_diff:.1f} favoring {favoured})",
        f"- Supporting Factor: Explosiveness advantage ({exp_ctx['advantage']})",
        f"- PPA favors {ppa_ctx['advantage']}",
        f"- Efficiency Battle: {eff_ctx['overallAdvantage']} has matchup advantages",
    ]
    return "\n".join(parts).strip()


def decision_framework(signals: List[JSONDict], sp_diff: float) -> JSONDict:
    strong = sum(1 for s in signals if s["strength"] == "STRONG")
    convergence = next((s for s in signals if s["type"] == "PREDICTOR_CONVERGENCE"), None)
    if strong >= 2:
        level, action, risk = "HIGH", "STRONG_BET", "LOW_RISK"
    elif strong == 1:
        level, action, risk = "MEDIUM", "MODERATE_BET", "MEDIUM_RISK"
    else:
        level, action, risk = "LOW", "PASS", "HIGH_RISK"
    return {
        "primaryDecisionPoint": "SP_PLUS_DIFFERENTIAL" if abs(sp_diff) > metrics.MEDIUM_TIER else "MULTIPLE_FACTORS",
        "confidenceLevel": level,
        "recommendedAction": action,
        "keyReasoning": convergence["message"] if convergence else "Mixed signals - insufficient edge",
        "riskAssessment": risk,
    }


def confidence_indicators(
    home: EnhancedTeam,
    away: EnhancedTeam,
    odds: Optional[NormalizedLine],
    signals: List[JSONDict],
) -> JSONDict:
    if odds:
        market: JSONDict = {
            "lineAvailable": True,
            "impliedProbsReasonable": (odds.get("impliedHomeWinPct") or 0) + (odds.get("impliedAwayWinPct") or 0) > 0.9,
        }
    else:
        market = {"lineAvailable": False, "note": "No market validation available"}
    return {
        "dataQuality": {"bettingLines": "AVAILABLE" if odds else "MISSING"},
        "predictionReliability": {
            "spPlusAvailable": bool(home.get("spPlusRating") and away.get("spPlusRating")),
            "explosivenessAvailable": bool(home.get("explosiveness") and away.get("explosiveness")),
            "ppaAvailable": bool(home.get("offensePPA") and away.get("offensePPA")),
            "overallConfidence": "HIGH" if sum(1 for s in signals if s["confidence"] > 0.75) >= 2 else "MODERATE",
        },
        "marketValidation": market,
    }


def build_matchup_context(
    home: EnhancedTeam,
    away: EnhancedTeam,
    odds: Optional[NormalizedLine],
    week: int,
) -> JSONDict:
    sp_diff = metrics.sp_differential(home.get("spPlusRating"), away.get("spPlusRating"))
    exp_diff = _v(home, "explosiveness") - _v(away, "explosiveness")
    net = net_ppa(home, away)
    ppa_diff = net["home"] - net["away"]

    sp_ctx = interpret_sp_differential(sp_diff, home["team"], away["team"])
    exp_ctx = interpret_explosiveness(exp_diff, home, away)
    ppa_ctx = interpret_ppa(ppa_diff, home, away)
    eff_ctx = interpret_efficiency(home, away)
    bet_ctx = interpret_betting_lines(odds, sp_diff, home["team"], away["team"]) if odds else None
    sit_ctx = situational_context(home, away, week)
    signals = key_signals(home, away, odds, sp_diff, exp_diff, ppa_diff)

    return {
        "fullNarrative": full_narrative(
            home, away, sp_ctx, exp_ctx, ppa_ctx, eff_ctx, bet_ctx, sit_ctx, signals, sp_diff,
        ),
        "keySignals": signals,
        "contextualInsights": {
            "spPlusContext": sp_ctx,
            "explosivenessContext": exp_ctx,
            "ppaContext": ppa_ctx,
            "efficiencyContext": eff_ctx,
            "bettingContext": bet_ctx,
            "situationalContext": sit_ctx,
        },
        "decisionFramework": decision_framework(signals, sp_diff),
        "confidenceIndicators": confidence_indicators(home, away, odds, signals),
    }
