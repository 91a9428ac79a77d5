from typing import Iterable, Optional

import pytest


def _make_replay(
    result: str = "win",
    user_picks: Iterable[str] = (),
    user_team: Optional[Iterable[str]] = None,
    opponent_team: Iterable[str] = (),
    opponent_picks: Iterable[str] = (),
    user_tera: Iterable[str] = (),
    replay_id: str = "replay",
    user_side: str = "p1",
) -> dict:
    opponent_side = "p2" if user_side == "p1" else "p1"
    user_picks = list(user_picks)
    return {
        "id": replay_id,
        "result": result,
        "createdAt": "2024-05-01T12:00:00+00:00",
        "battleData": {
            "userPlayer": user_side,
            "opponentPlayer": opponent_side,
            "teams": {
                user_side: list(user_team) if user_team is not None else list(user_picks),
                opponent_side: list(opponent_team),
            },
            "actualPicks": {user_side: user_picks, opponent_side: list(opponent_picks)},
            "teraEvents": {
                user_side: [{"pokemon": pokemon, "type": "Fire"} for pokemon in user_tera],
                opponent_side: [],
            },
        },
    }


@pytest.fixture
def make_replay():
    """Factory for replay records with battle data."""
    return _make_replay
