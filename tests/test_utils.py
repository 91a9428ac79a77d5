"""Tests for helpers/utils.py."""

import pytest

from vs_recorder.helpers.names import normalize_pokemon_name
from vs_recorder.helpers.utils import (
    filter_valid_replays,
    is_valid_replay,
    make_pair_key,
    normalize_labels,
    percent,
    round_half_up,
    side_list,
    split_pair_key,
)


class TestPercent:
    """Tests for percent function."""

    @pytest.mark.parametrize("numerator,denominator,expected", [
        (1, 2, 50),
        (2, 3, 67),
        (1, 3, 33),
        (1, 8, 13),   # 12.5 rounds up
        (3, 8, 38),   # 37.5 rounds up
        (5, 5, 100),
        (0, 4, 0),
    ])
    def test_rounds_half_up(self, numerator, denominator, expected):
        """Percentages are rounded half up."""
        assert percent(numerator, denominator) == expected

    def test_zero_denominator_is_zero(self):
        """A zero denominator yields 0, not an error."""
        assert percent(0, 0) == 0
        assert percent(3, 0) == 0

    def test_round_half_up(self):
        """Halves round up."""
        assert round_half_up(59.5) == 60
        assert round_half_up(60.49) == 60


class TestReplayFilter:
    """Tests for is_valid_replay and filter_valid_replays."""

    def test_keeps_decisive_replays_with_battle_data(self, make_replay):
        """Win and loss replays with battle data are kept in order."""
        win = make_replay("win", replay_id="a")
        loss = make_replay("loss", replay_id="b")
        assert filter_valid_replays([win, loss]) == [win, loss]

    def test_drops_unknown_results(self, make_replay):
        """Undecided results are excluded."""
        assert not is_valid_replay(make_replay("unknown"))
        assert not is_valid_replay(make_replay(""))
        assert not is_valid_replay({**make_replay(), "result": None})

    def test_drops_missing_battle_data(self):
        """Replays without battle data are excluded."""
        assert not is_valid_replay({"id": "x", "result": "win"})
        assert not is_valid_replay({"id": "x", "result": "win", "battleData": None})

    def test_handles_empty_input(self):
        """None and empty collections give an empty list."""
        assert filter_valid_replays(None) == []
        assert filter_valid_replays([]) == []

    def test_filter_is_idempotent(self, make_replay):
        """Filtering twice changes nothing."""
        replays = [make_replay("win"), make_replay("unknown"), {"result": "loss"}]
        once = filter_valid_replays(replays)
        assert filter_valid_replays(once) == once


class TestSideList:
    """Tests for side_list function."""

    def test_reads_user_and_opponent_sides(self, make_replay):
        """Lists are read for the side named by the side field."""
        replay = make_replay(user_picks=["A", "B"], opponent_picks=["C"], user_side="p2")
        assert side_list(replay, "actualPicks", "userPlayer") == ["A", "B"]
        assert side_list(replay, "actualPicks", "opponentPlayer") == ["C"]

    def test_missing_fields_give_empty_list(self):
        """Absent side or field yields []."""
        assert side_list({"battleData": {}}, "actualPicks", "userPlayer") == []
        assert side_list({"battleData": {"userPlayer": "p1"}}, "teams", "userPlayer") == []
        assert side_list({}, "teams", "userPlayer") == []


class TestNormalizeLabels:
    """Tests for normalize_labels function."""

    def test_drops_unrecognized_and_duplicates(self):
        """Empty keys are skipped, repeated keys kept once."""
        labels = ["Incineroar, L50, M", "???", "Incineroar", "Terapagos-Terastal", "Terapagos-Stellar"]
        assert normalize_labels(labels, normalize_pokemon_name) == ["incineroar", "terapagos"]


class TestPairKeys:
    """Tests for make_pair_key and split_pair_key."""

    def test_order_independent(self):
        """Both orders give the same key."""
        assert make_pair_key("rillaboom", "incineroar") == make_pair_key("incineroar", "rillaboom")

    def test_sorted_members(self):
        """Members come back sorted."""
        pair_key, pokemon1, pokemon2 = make_pair_key("rillaboom", "incineroar")
        assert pair_key == "incineroar + rillaboom"
        assert (pokemon1, pokemon2) == ("incineroar", "rillaboom")

    def test_split_round_trip(self):
        """A pair key decomposes into exactly two keys."""
        pair_key, _, _ = make_pair_key("urshifu-rapid-strike", "amoonguss")
        assert split_pair_key(pair_key) == ("amoonguss", "urshifu-rapid-strike")
