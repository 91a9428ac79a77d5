"""Core matchup analysis engine: how the team fares against opponent Pokemon."""

from typing import Dict, Iterable, List, Optional, Sequence

from .names import normalize_pokemon_name
from .types import (
    CoreMatchup,
    CorePokemonRecord,
    CustomMatchup,
    MatchupStats,
    Normalizer,
    OpponentStat,
    Replay,
)
from .utils import (
    filter_valid_replays,
    is_win,
    normalize_labels,
    percent,
    round_half_up,
    side_list,
)

# Fewer encounters than this never rank as a best or worst matchup
MIN_ENCOUNTERS = 3
MATCHUP_LIMIT = 5
MAX_TEAM_SIZE = 6
SUGGESTION_LIMIT = 8


# === Opponent Pokemon records ===


def _empty_counter(pokemon: str) -> Dict[str, object]:
    return {
        "pokemon": pokemon,
        "times_on_team": 0,
        "times_brought": 0,
        "games_against": 0,
        "wins_against": 0,
    }


def _to_opponent_stat(counter: Dict[str, object]) -> OpponentStat:
    games_against = counter["games_against"]
    wins_against = counter["wins_against"]
    return {
        "pokemon": counter["pokemon"],
        "times_on_team": counter["times_on_team"],
        "times_brought": counter["times_brought"],
        "games_against": games_against,
        "wins_against": wins_against,
        "losses_against": games_against - wins_against,
        "win_rate": percent(wins_against, games_against),
        "attendance_rate": percent(counter["times_brought"], counter["times_on_team"]),
    }


def build_opponent_stats(
    replays: Optional[Iterable[Replay]],
    normalize: Normalizer = normalize_pokemon_name,
) -> Dict[str, OpponentStat]:
    """
    Build the record against every opponent Pokemon seen on a valid replay.

    A Pokemon counts once per replay for its roster appearance, and as
    brought when it also appears in the opponent's picks.

    Returns:
        Canonical key -> OpponentStat, in first-seen order.
    """
    counters: Dict[str, Dict[str, object]] = {}

    for replay in filter_valid_replays(replays):
        opponent_team = normalize_labels(side_list(replay, "teams", "opponentPlayer"), normalize)
        opponent_picks = set(normalize_labels(side_list(replay, "actualPicks", "opponentPlayer"), normalize))
        won = is_win(replay)

        for pokemon in opponent_team:
            counter = counters.setdefault(pokemon, _empty_counter(pokemon))
            counter["times_on_team"] += 1
            counter["games_against"] += 1
            if pokemon in opponent_picks:
                counter["times_brought"] += 1
            if won:
                counter["wins_against"] += 1

    return {pokemon: _to_opponent_stat(counter) for pokemon, counter in counters.items()}


def compute_matchup_stats(
    replays: Optional[Iterable[Replay]],
    normalize: Normalizer = normalize_pokemon_name,
) -> MatchupStats:
    """
    Rank opponent Pokemon by the user's win rate against them and by attendance.

    Win rate views only consider Pokemon faced at least MIN_ENCOUNTERS times;
    attendance views consider every Pokemon seen on a roster. Each view is
    capped at MATCHUP_LIMIT. by_key holds every record, unfiltered.
    """
    by_key = build_opponent_stats(replays, normalize)
    all_matchups = list(by_key.values())

    qualified = [m for m in all_matchups if m["games_against"] >= MIN_ENCOUNTERS]
    on_team = [m for m in all_matchups if m["times_on_team"] > 0]

    best = sorted(qualified, key=lambda m: (-m["win_rate"], -m["games_against"]))
    worst = sorted(qualified, key=lambda m: (m["win_rate"], -m["games_against"]))
    highest_attendance = sorted(on_team, key=lambda m: (-m["attendance_rate"], -m["times_on_team"]))
    lowest_attendance = sorted(on_team, key=lambda m: (m["attendance_rate"], -m["times_on_team"]))

    return {
        "best": best[:MATCHUP_LIMIT],
        "worst": worst[:MATCHUP_LIMIT],
        "highest_attendance": highest_attendance[:MATCHUP_LIMIT],
        "lowest_attendance": lowest_attendance[:MATCHUP_LIMIT],
        "by_key": by_key,
    }


# === Custom matchup ===


def compute_custom_matchup(
    by_key: Dict[str, OpponentStat],
    selected: Sequence[Optional[str]],
) -> CustomMatchup:
    """
    Average the recorded win rates against a hypothetical opponent roster.

    Only the first MAX_TEAM_SIZE slots are read. Empty slots and keys with
    no recorded history are left out of the average rather than counted
    as 0%.

    Returns:
        per_slot: the record for each slot read, or None
        average_win_rate: rounded mean over slots with data, 0 if none
        pokemon_with_data_count: number of slots with data
    """
    per_slot: List[Optional[OpponentStat]] = []
    for pokemon in list(selected)[:MAX_TEAM_SIZE]:
        per_slot.append(by_key.get(pokemon) if pokemon else None)

    with_data = [stat for stat in per_slot if stat is not None]
    average_win_rate = (
        round_half_up(sum(stat["win_rate"] for stat in with_data) / len(with_data))
        if with_data else 0
    )

    return {
        "per_slot": per_slot,
        "average_win_rate": average_win_rate,
        "pokemon_with_data_count": len(with_data),
    }


def compute_core_matchup(
    replays: Optional[Iterable[Replay]],
    selected: Sequence[Optional[str]],
    normalize: Normalizer = normalize_pokemon_name,
) -> CoreMatchup:
    """
    Replay-level record against a selected opponent core.

    Unlike compute_custom_matchup, which averages per-Pokemon win rates,
    this looks at whole games:
    - team_win_rate: win rate in games where the opponent had ANY of the core
    - exact_match_count: games where the opponent had ALL of the core
    """
    core = normalize_labels([p for p in list(selected)[:MAX_TEAM_SIZE] if p], normalize)
    if not core:
        return {"pokemon": [], "team_win_rate": 0, "average_win_rate": 0, "exact_match_count": 0}

    records: Dict[str, Dict[str, int]] = {}
    any_games = any_wins = exact_matches = 0

    for replay in filter_valid_replays(replays):
        opponent_team = set(normalize_labels(side_list(replay, "teams", "opponentPlayer"), normalize))
        present = [pokemon for pokemon in core if pokemon in opponent_team]
        if not present:
            continue

        won = is_win(replay)
        any_games += 1
        any_wins += won
        if len(present) == len(core):
            exact_matches += 1

        for pokemon in present:
            record = records.setdefault(pokemon, {"games": 0, "wins": 0})
            record["games"] += 1
            record["wins"] += won

    pokemon_records: List[CorePokemonRecord] = [
        {
            "pokemon": pokemon,
            "games_against": record["games"],
            "wins_against": record["wins"],
            "win_rate": percent(record["wins"], record["games"]),
        }
        for pokemon, record in records.items()
    ]
    pokemon_records.sort(key=lambda r: -r["games_against"])

    average_win_rate = (
        round_half_up(sum(r["win_rate"] for r in pokemon_records) / len(pokemon_records))
        if pokemon_records else 0
    )

    return {
        "pokemon": pokemon_records,
        "team_win_rate": percent(any_wins, any_games),
        "average_win_rate": average_win_rate,
        "exact_match_count": exact_matches,
    }


# === Opponent search ===


def list_opponent_pokemon(
    replays: Optional[Iterable[Replay]],
    normalize: Normalizer = normalize_pokemon_name,
) -> List[str]:
    """Sorted distinct opponent keys from every replay that carries battle data."""
    seen = set()
    for replay in replays or []:
        if not replay.get("battleData"):
            continue
        seen.update(normalize_labels(side_list(replay, "teams", "opponentPlayer"), normalize))
    return sorted(seen)


def search_opponent_pokemon(
    candidates: Iterable[str],
    query: str,
    limit: int = SUGGESTION_LIMIT,
) -> List[str]:
    """Case-insensitive substring search over keys and their spaced display form."""
    needle = (query or "").strip().lower()
    if not needle:
        return []

    matches = [
        pokemon for pokemon in candidates
        if needle in pokemon.lower() or needle in pokemon.replace("-", " ").lower()
    ]
    return matches[:limit]
