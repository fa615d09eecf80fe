# cfb_board/models/types.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from typing_extensions import Literal, TypedDict

T = TypeVar("T")

Division = Literal["fbs", "fcs", "all"]
WeatherCondition = Literal["sunny", "cloudy", "rainy", "snowy", "windy"]
Source = Literal["observed", "estimated", "unavailable"]


# ---------- Tagged values ----------

@dataclass(frozen=True)
class Observed(Generic[T]):
    value: T
    source: Source = "observed"

    @property
    def available(self) -> bool:
        return True


@dataclass(frozen=True)
class Estimated(Generic[T]):
    """Placeholder value; never real upstream data."""
    value: T
    source: Source = "estimated"

    @property
    def available(self) -> bool:
        return True


@dataclass(frozen=True)
class Unavailable:
    reason: str = ""
    source: Source = "unavailable"

    @property
    def value(self) -> None:
        return None

    @property
    def available(self) -> bool:
        return False


Sourced = Union[Observed[T], Estimated[T], Unavailable]


# ---------- Upstream joins ----------

class Record(TypedDict):
    wins: int
    losses: int
    ties: int


class BookLine(TypedDict):
    provider: Optional[str]
    spread: Optional[float]
    overUnder: Optional[float]
    homeMoneyline: Optional[int]
    awayMoneyline: Optional[int]


class WeatherSnapshot(TypedDict):
    temperature: Optional[int]
    condition: str
    humidity: Optional[float]
    windSpeed: Optional[int]
    feelsLike: Optional[int]


class Last5Record(TypedDict):
    wins: int
    losses: int


class TeamStatistics(TypedDict):
    team: str
    pointsFor: float
    pointsAgainst: float
    gamesPlayed: int
    pointsForPerGame: float
    pointsAgainstPerGame: float
    margin: float
    marginPerGame: float
    atsWins: int
    atsLosses: int
    atsPushes: int
    atsPercentage: float
    overWins: int
    underWins: int
    ouPushes: int
    overUnderPercentage: float
    favoriteAtsWins: int
    favoriteAtsLosses: int
    favoriteAtsPercentage: float
    underdogAtsWins: int
    underdogAtsLosses: int
    underdogAtsPercentage: float
    last5Games: str
    last5Record: Last5Record
    strengthOfSchedule: float
    strengthOfScheduleRank: int


class GameStats(TypedDict):
    pointsForPerGame: float
    pointsAgainstPerGame: float
    margin: float
    marginPerGame: float
    atsPercentage: float
    overUnderPercentage: float
    favoriteAtsPercentage: float
    underdogAtsPercentage: float
    strengthOfSchedule: float
    strengthOfScheduleRank: int
    last5Record: Last5Record


# ---------- API rows ----------

class Game(TypedDict):
    id: int
    homeTeam: str
    homeTeamId: Optional[int]
    awayTeam: str
    awayTeamId: Optional[int]
    week: Optional[int]
    season: Optional[int]
    startDate: Optional[str]
    completed: bool
    conference: str
    venue: str
    city: str
    state: str
    spread: Optional[float]
    spreadSource: Source
    overUnder: Optional[float]
    homeMoneyline: Optional[int]
    awayMoneyline: Optional[int]
    lineProvider: Optional[str]
    homeScore: int
    awayScore: int
    homeRecord: Record
    awayRecord: Record
    homeLast5: Optional[str]
    homeLast5Source: Source
    awayLast5: Optional[str]
    awayLast5Source: Source
    homeLogoUrl: str
    awayLogoUrl: str
    weatherCondition: Optional[WeatherCondition]
    temperature: Optional[int]
    humidity: Optional[float]
    windSpeed: Optional[int]
    feelsLike: Optional[int]
    homeStats: Optional[GameStats]
    awayStats: Optional[GameStats]


class GamesMetadata(TypedDict, total=False):
    totalGames: int
    week: Optional[int]
    date: Optional[str]
    season: int
    division: str
    lastUpdated: str
    elapsedMs: int
    unmatchedTeams: List[str]


class NormalizedLine(TypedDict):
    id: str
    season: int
    week: int
    seasonType: str
    homeTeam: str
    awayTeam: str
    startDate: Optional[str]
    venue: Optional[str]
    spread: Optional[float]
    overUnder: Optional[float]
    homeMoneyline: Optional[float]
    awayMoneyline: Optional[float]
    impliedHomeWinPct: Optional[float]
    impliedAwayWinPct: Optional[float]


class EnhancedTeam(TypedDict):
    teamId: int
    team: str
    conference: Optional[str]
    division: Optional[str]
    color: str
    altColor: str
    logo: str
    wins: int
    losses: int
    ties: int
    conferenceWins: int
    conferenceLosses: int
    conferenceTies: int
    spPlusRating: float
    spPlusRanking: int
    offensiveEfficiency: float
    defensiveEfficiency: float
    explosiveness: float
    offensePPA: float
    defensePPA: float
    strengthOfSchedule: float
    secondOrderWins: float
    havocRate: float
    finishingRate: float
    fieldPosition: float
    winPct: float


JSONDict = Dict[str, Any]
