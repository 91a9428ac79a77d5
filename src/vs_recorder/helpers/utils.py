"""Utility functions for replay analytics."""

import math
from typing import Iterable, List, Optional, Tuple

from .types import Normalizer, Replay


DECISIVE_RESULTS = ("win", "loss")

# Number of Pokemon each side sends out first (doubles)
LEAD_SIZE = 2

PAIR_SEPARATOR = " + "


def percent(numerator: float, denominator: float) -> int:
    """
    Integer percentage rounded half up.

    Returns 0 when the denominator is 0.
    """
    if not denominator:
        return 0
    return round_half_up(100 * numerator / denominator)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up."""
    return int(math.floor(value + 0.5))


def is_valid_replay(replay: Replay) -> bool:
    """A replay counts for analytics when it has battle data and a decisive result."""
    return bool(replay.get("battleData")) and replay.get("result") in DECISIVE_RESULTS


def filter_valid_replays(replays: Optional[Iterable[Replay]]) -> List[Replay]:
    """Select the analytically valid replays, preserving order."""
    if not replays:
        return []
    return [replay for replay in replays if is_valid_replay(replay)]


def is_win(replay: Replay) -> bool:
    """Whether the user won this replay."""
    return replay.get("result") == "win"


def side_list(replay: Replay, field: str, side_field: str) -> list:
    """
    Read a per-side list from battle data.

    E.g. side_list(replay, "actualPicks", "userPlayer") returns the user's picks.
    Missing sides or fields yield an empty list.
    """
    battle_data = replay.get("battleData") or {}
    side = battle_data.get(side_field)
    if not side:
        return []
    values = (battle_data.get(field) or {}).get(side)
    return values if isinstance(values, list) else []


def normalize_labels(labels: Iterable[str], normalize: Normalizer) -> List[str]:
    """Map raw labels to canonical keys, dropping unrecognized ones and duplicates."""
    keys: List[str] = []
    for label in labels:
        key = normalize(label)
        if key and key not in keys:
            keys.append(key)
    return keys


def make_pair_key(first: str, second: str) -> Tuple[str, str, str]:
    """Build an order-independent pair key.

    Returns (pair_key, pokemon1, pokemon2) with pokemon1 <= pokemon2.
    """
    pokemon1, pokemon2 = sorted((first, second))
    return f"{pokemon1}{PAIR_SEPARATOR}{pokemon2}", pokemon1, pokemon2


def split_pair_key(pair_key: str) -> Tuple[str, str]:
    """Decompose a pair key back into its two canonical keys."""
    pokemon1, pokemon2 = pair_key.split(PAIR_SEPARATOR, 1)
    return pokemon1, pokemon2
