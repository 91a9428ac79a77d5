"""Type definitions for replay analytics."""

from typing import Callable, Dict, List, Optional
from typing_extensions import Literal, TypedDict


# Maps a raw in-battle label to a canonical key ("" when unrecognized)
Normalizer = Callable[[str], str]

ReplayResult = Literal["win", "loss", "unknown"]


class TeraEvent(TypedDict, total=False):
    """A single terastallization event."""
    pokemon: str
    type: str
    turn: int


class BattleData(TypedDict, total=False):
    """Structured battle payload attached to a replay."""
    players: Dict[str, str]  # { "p1": name, "p2": name }
    userPlayer: str
    opponentPlayer: str
    teams: Dict[str, List[str]]
    actualPicks: Dict[str, List[str]]
    teraEvents: Dict[str, List[TeraEvent]]
    moveUsage: Dict[str, Dict[str, Dict[str, int]]]  # side -> label -> move -> count
    winner: Optional[str]
    turns: int
    format: Optional[str]


class Replay(TypedDict, total=False):
    """A recorded replay for one team."""
    id: str
    url: Optional[str]
    result: str
    createdAt: Optional[str]
    battleData: Optional[BattleData]


class PokemonUsage(TypedDict):
    """Usage statistics for one Pokemon on the user's roster."""
    pokemon: str
    usage: int
    usage_rate: int
    overall_win_rate: int
    lead_usage: int
    lead_win_rate: int
    tera_usage: int
    tera_win_rate: Optional[int]  # None when never terastallized


class LeadPairStat(TypedDict):
    """Usage and win rate for one unordered lead pair."""
    pair: str
    pokemon1: str
    pokemon2: str
    usage: int
    wins: int
    win_rate: int
    usage_rate: int


class LeadPairStats(TypedDict):
    """Two independently ranked lead pair views."""
    most_common: List[LeadPairStat]
    best_win_rate: List[LeadPairStat]


class OpponentStat(TypedDict):
    """Record against one opponent Pokemon."""
    pokemon: str
    times_on_team: int
    times_brought: int
    games_against: int
    wins_against: int
    losses_against: int
    win_rate: int
    attendance_rate: int


class MatchupStats(TypedDict):
    """Ranked opponent views plus the full lookup map."""
    best: List[OpponentStat]
    worst: List[OpponentStat]
    highest_attendance: List[OpponentStat]
    lowest_attendance: List[OpponentStat]
    by_key: Dict[str, OpponentStat]


class CustomMatchup(TypedDict):
    """Hypothetical opponent roster assembled from recorded history."""
    per_slot: List[Optional[OpponentStat]]
    average_win_rate: int
    pokemon_with_data_count: int


class CorePokemonRecord(TypedDict):
    """Replay-level record against one Pokemon of a selected core."""
    pokemon: str
    games_against: int
    wins_against: int
    win_rate: int


class CoreMatchup(TypedDict):
    """Replay-level analysis of a selected opponent core."""
    pokemon: List[CorePokemonRecord]
    team_win_rate: int
    average_win_rate: int
    exact_match_count: int


class TeamSummary(TypedDict):
    """Overall record over valid replays."""
    total_games: int
    wins: int
    losses: int
    win_rate: int


class MoveStat(TypedDict):
    """Usage of a single move."""
    move: str
    times_used: int
    usage_rate: int


class PokemonMoves(TypedDict):
    """Move usage for one of the user's Pokemon."""
    pokemon: str
    total_moves: int
    moves: List[MoveStat]
