"""Pokemon Showdown battle log parsing.

Turns the raw protocol log of a replay into the battleData payload the
analytics functions read. Labels are kept raw (species as written in the
log, details stripped); normalization happens in the analytics layer.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .types import BattleData, Replay, ReplayResult

SIDES = ("p1", "p2")


def to_id(name: Optional[str]) -> str:
    """Showdown user id: lowercase alphanumerics only."""
    return re.sub(r"[^a-z0-9]", "", (name or "").lower())


def _species(details: str) -> str:
    """Species from a details field ("Incineroar, L50, M" -> "Incineroar")."""
    return details.split(",")[0].strip()


def _split_ident(ident: str) -> Optional[tuple]:
    """Split "p1a: Nickname" into ("p1", "Nickname")."""
    if ": " not in ident:
        return None
    position, nickname = ident.split(": ", 1)
    side = position[:2]
    if side not in SIDES:
        return None
    return side, nickname.strip()


def _resolve_team_preview(team: List[str], picks: List[str]) -> List[str]:
    """Replace ambiguous preview entries ("Urshifu-*") with the form revealed in battle."""
    resolved = []
    for label in team:
        if label.endswith("-*"):
            base = label[:-2]
            revealed = next((p for p in picks if p == base or p.startswith(base + "-")), None)
            resolved.append(revealed or label)
        else:
            resolved.append(label)
    return resolved


def parse_battle_log(log_text: str) -> BattleData:
    """
    Parse a Showdown protocol log.

    Returns:
        players: side -> player name
        teams: team preview per side (|poke|)
        actualPicks: species per side in order of first appearance (|switch|, |drag|)
        teraEvents: terastallizations per side, in order
        moveUsage: side -> species -> move -> times used
        winner: winning player name, None on a tie or unfinished log
        turns: last turn number seen
        format: tier line, if present
    """
    players: Dict[str, str] = {}
    teams: Dict[str, List[str]] = {side: [] for side in SIDES}
    picks: Dict[str, List[str]] = {side: [] for side in SIDES}
    tera_events: Dict[str, List[Dict[str, Any]]] = {side: [] for side in SIDES}
    move_usage: Dict[str, Dict[str, Dict[str, int]]] = {side: {} for side in SIDES}
    nicknames: Dict[str, Dict[str, str]] = {side: {} for side in SIDES}
    winner: Optional[str] = None
    turns = 0
    battle_format: Optional[str] = None

    for raw_line in (log_text or "").split("\n"):
        parts = raw_line.strip().split("|")
        if len(parts) < 2:
            continue
        command = parts[1]

        if command == "player" and len(parts) >= 4 and parts[2] in SIDES and parts[3]:
            players[parts[2]] = parts[3]

        elif command == "poke" and len(parts) >= 4 and parts[2] in SIDES:
            teams[parts[2]].append(_species(parts[3]))

        elif command in ("switch", "drag") and len(parts) >= 4:
            ident = _split_ident(parts[2])
            if not ident:
                continue
            side, nickname = ident
            species = _species(parts[3])
            nicknames[side][nickname] = species
            if species not in picks[side]:
                picks[side].append(species)

        elif command == "move" and len(parts) >= 4:
            ident = _split_ident(parts[2])
            if not ident:
                continue
            side, nickname = ident
            species = nicknames[side].get(nickname, nickname)
            moves = move_usage[side].setdefault(species, {})
            moves[parts[3]] = moves.get(parts[3], 0) + 1

        elif command == "-terastallize" and len(parts) >= 4:
            ident = _split_ident(parts[2])
            if not ident:
                continue
            side, nickname = ident
            tera_events[side].append({
                "pokemon": nicknames[side].get(nickname, nickname),
                "type": parts[3],
                "turn": turns,
            })

        elif command == "turn" and len(parts) >= 3:
            try:
                turns = max(turns, int(parts[2]))
            except ValueError:
                continue

        elif command == "win" and len(parts) >= 3:
            winner = parts[2].strip() or None

        elif command == "tier" and len(parts) >= 3:
            battle_format = parts[2].strip()

    for side in SIDES:
        teams[side] = _resolve_team_preview(teams[side], picks[side])

    return {
        "players": players,
        "teams": teams,
        "actualPicks": picks,
        "teraEvents": tera_events,
        "moveUsage": move_usage,
        "winner": winner,
        "turns": turns,
        "format": battle_format,
    }


def identify_user_side(players: Dict[str, str], usernames: Iterable[str]) -> Optional[str]:
    """Side ("p1"/"p2") played by one of the given Showdown usernames."""
    user_ids = {to_id(name) for name in usernames if to_id(name)}
    for side in SIDES:
        if to_id(players.get(side)) in user_ids:
            return side
    return None


def build_replay(
    payload: Dict[str, Any],
    usernames: Iterable[str],
    url: Optional[str] = None,
) -> Replay:
    """
    Build a replay record from a Showdown replay JSON payload.

    Args:
        payload: Replay JSON ({id, format, players, log, uploadtime})
        usernames: The team owner's Showdown usernames
        url: Replay URL, stored as-is

    Returns:
        Replay with result "win", "loss" or "unknown". When none of the
        usernames played in the battle, p1 is assumed to be the user.
    """
    battle_data = parse_battle_log(payload.get("log", ""))

    players = battle_data["players"]
    for side, name in zip(SIDES, payload.get("players") or []):
        players.setdefault(side, name)

    user_side = identify_user_side(players, usernames)
    if user_side is None:
        print(f"Could not identify user in replay {payload.get('id')}, defaulting to p1")
        user_side = "p1"
    opponent_side = "p2" if user_side == "p1" else "p1"

    battle_data["userPlayer"] = user_side
    battle_data["opponentPlayer"] = opponent_side
    if not battle_data.get("format"):
        battle_data["format"] = payload.get("format")

    winner_id = to_id(battle_data.get("winner"))
    result: ReplayResult
    if winner_id and winner_id == to_id(players.get(user_side)):
        result = "win"
    elif winner_id and winner_id == to_id(players.get(opponent_side)):
        result = "loss"
    else:
        result = "unknown"

    created_at = None
    if payload.get("uploadtime"):
        try:
            created_at = datetime.fromtimestamp(int(payload["uploadtime"]), tz=timezone.utc).isoformat()
        except (TypeError, ValueError, OverflowError, OSError):
            print(f"Invalid upload time in replay {payload.get('id')}: {payload['uploadtime']}")

    return {
        "id": payload.get("id", ""),
        "url": url,
        "result": result,
        "createdAt": created_at,
        "battleData": battle_data,
    }
