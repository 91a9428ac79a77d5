"""Usage statistics for the user's own team."""

from typing import Dict, Iterable, List, Optional

from .names import normalize_pokemon_name
from .types import (
    LeadPairStat,
    LeadPairStats,
    MoveStat,
    Normalizer,
    PokemonMoves,
    PokemonUsage,
    Replay,
    TeamSummary,
)
from .utils import (
    LEAD_SIZE,
    filter_valid_replays,
    is_win,
    make_pair_key,
    normalize_labels,
    percent,
    side_list,
)

LEAD_PAIR_LIMIT = 6


def get_user_leads(replay: Replay, normalize: Normalizer = normalize_pokemon_name) -> List[str]:
    """Canonical keys of the Pokemon the user led with.

    Empty when fewer than LEAD_SIZE picks were recorded.
    """
    picks = side_list(replay, "actualPicks", "userPlayer")
    if len(picks) < LEAD_SIZE:
        return []
    return [normalize(pick) for pick in picks[:LEAD_SIZE]]


def get_user_tera(replay: Replay, normalize: Normalizer = normalize_pokemon_name) -> Optional[str]:
    """Canonical key of the user's first terastallization, if any."""
    events = side_list(replay, "teraEvents", "userPlayer")
    if not events or not isinstance(events[0], dict):
        return None
    return normalize(events[0].get("pokemon", "")) or None


def compute_usage_stats(
    replays: Optional[Iterable[Replay]],
    roster: Iterable[str],
    normalize: Normalizer = normalize_pokemon_name,
) -> List[PokemonUsage]:
    """
    Compute per-Pokemon usage, lead and tera statistics for the user's roster.

    Args:
        replays: Replays for one team, filtered or not
        roster: The user's team in display order; labels or keys, normalized
            like replay labels with duplicates dropped
        normalize: Raw label -> canonical key

    Returns:
        One record per roster key, in roster order. Empty when there are
        no valid replays.
    """
    valid_replays = filter_valid_replays(replays)
    roster_keys = normalize_labels(roster, normalize)
    if not valid_replays or not roster_keys:
        return []

    # Per-replay facts, computed once
    games = []
    for replay in valid_replays:
        games.append({
            "won": is_win(replay),
            "picks": set(normalize_labels(side_list(replay, "actualPicks", "userPlayer"), normalize)),
            "leads": set(get_user_leads(replay, normalize)),
            "tera": get_user_tera(replay, normalize),
        })

    total_games = len(games)
    stats: List[PokemonUsage] = []

    for pokemon in roster_keys:
        usage = wins = lead_usage = lead_wins = tera_usage = tera_wins = 0

        for game in games:
            if pokemon in game["picks"]:
                usage += 1
                wins += game["won"]
            if pokemon in game["leads"]:
                lead_usage += 1
                lead_wins += game["won"]
            if game["tera"] == pokemon:
                tera_usage += 1
                tera_wins += game["won"]

        stats.append({
            "pokemon": pokemon,
            "usage": usage,
            "usage_rate": percent(usage, total_games),
            "overall_win_rate": percent(wins, usage),
            "lead_usage": lead_usage,
            "lead_win_rate": percent(lead_wins, lead_usage),
            "tera_usage": tera_usage,
            "tera_win_rate": percent(tera_wins, tera_usage) if tera_usage else None,
        })

    return stats


def compute_lead_pair_stats(
    replays: Optional[Iterable[Replay]],
    normalize: Normalizer = normalize_pokemon_name,
) -> LeadPairStats:
    """
    Group replays by the unordered pair of Pokemon the user led with.

    Replays with fewer than two picks, or with a lead that does not
    normalize, are skipped. Both views are capped at LEAD_PAIR_LIMIT.

    Returns:
        most_common: by usage, descending
        best_win_rate: by win rate, then usage, descending
    """
    valid_replays = filter_valid_replays(replays)
    if not valid_replays:
        return {"most_common": [], "best_win_rate": []}

    counters: Dict[str, Dict[str, object]] = {}
    for replay in valid_replays:
        leads = get_user_leads(replay, normalize)
        if len(leads) != LEAD_SIZE or not all(leads):
            continue

        pair_key, pokemon1, pokemon2 = make_pair_key(leads[0], leads[1])
        counter = counters.setdefault(
            pair_key, {"pokemon1": pokemon1, "pokemon2": pokemon2, "usage": 0, "wins": 0}
        )
        counter["usage"] += 1
        if is_win(replay):
            counter["wins"] += 1

    total_games = len(valid_replays)
    pairs: List[LeadPairStat] = [
        {
            "pair": pair_key,
            "pokemon1": counter["pokemon1"],
            "pokemon2": counter["pokemon2"],
            "usage": counter["usage"],
            "wins": counter["wins"],
            "win_rate": percent(counter["wins"], counter["usage"]),
            "usage_rate": percent(counter["usage"], total_games),
        }
        for pair_key, counter in counters.items()
    ]

    most_common = sorted(pairs, key=lambda p: -p["usage"])[:LEAD_PAIR_LIMIT]
    best_win_rate = sorted(pairs, key=lambda p: (-p["win_rate"], -p["usage"]))[:LEAD_PAIR_LIMIT]

    return {"most_common": most_common, "best_win_rate": best_win_rate}


def compute_team_summary(replays: Optional[Iterable[Replay]]) -> TeamSummary:
    """Overall win/loss record over valid replays."""
    valid_replays = filter_valid_replays(replays)
    wins = sum(1 for replay in valid_replays if is_win(replay))
    total_games = len(valid_replays)
    return {
        "total_games": total_games,
        "wins": wins,
        "losses": total_games - wins,
        "win_rate": percent(wins, total_games),
    }


def collect_user_roster(
    replays: Optional[Iterable[Replay]],
    normalize: Normalizer = normalize_pokemon_name,
) -> List[str]:
    """Roster keys revealed for the user across valid replays, first appearance first.

    Fallback for compute_usage_stats when no pokepaste is available.
    """
    roster: List[str] = []
    for replay in filter_valid_replays(replays):
        team = side_list(replay, "teams", "userPlayer") or side_list(replay, "actualPicks", "userPlayer")
        for key in normalize_labels(team, normalize):
            if key not in roster:
                roster.append(key)
    return roster


def compute_move_usage(
    replays: Optional[Iterable[Replay]],
    normalize: Normalizer = normalize_pokemon_name,
) -> List[PokemonMoves]:
    """
    Move usage per user Pokemon.

    usage_rate is the share of that Pokemon's recorded move uses. Moves are
    sorted by times used (descending), Pokemon by key.
    """
    move_counts: Dict[str, Dict[str, int]] = {}

    for replay in filter_valid_replays(replays):
        battle_data = replay["battleData"]
        user_side = battle_data.get("userPlayer")
        side_moves = (battle_data.get("moveUsage") or {}).get(user_side) or {}

        for label, moves in side_moves.items():
            pokemon = normalize(label)
            if not pokemon:
                continue
            counts = move_counts.setdefault(pokemon, {})
            for move, count in moves.items():
                counts[move] = counts.get(move, 0) + count

    results: List[PokemonMoves] = []
    for pokemon in sorted(move_counts):
        counts = move_counts[pokemon]
        total_moves = sum(counts.values())
        moves: List[MoveStat] = [
            {"move": move, "times_used": times_used, "usage_rate": percent(times_used, total_moves)}
            for move, times_used in counts.items()
        ]
        moves.sort(key=lambda m: -m["times_used"])
        results.append({"pokemon": pokemon, "total_moves": total_moves, "moves": moves})

    return results
