import pytest

from shuttleup.domain import MatchFormat, SetScore
from shuttleup.scoring import badminton

FMT = MatchFormat()


def _rally(sets, side, points):
    return badminton.apply_delta(sets, side, points, FMT)


def test_game_wins_at_21_with_two_point_margin():
    sets = _rally([], "A", 21)

    assert sets == [SetScore(21, 0)]
    assert badminton.games_won(sets, FMT) == {"A": 1, "B": 0}

    # The next rally opens a fresh game.
    sets = _rally(sets, "B", 1)
    assert sets == [SetScore(21, 0), SetScore(0, 1)]


def test_requires_two_point_gap_and_caps_at_30():
    sets = [SetScore(20, 20)]
    sets = _rally(sets, "A", 1)
    sets = _rally(sets, "B", 1)
    assert badminton.set_winner(sets[-1], FMT) is None
    assert sets[-1] == SetScore(21, 21)

    sets = [SetScore(29, 29)]
    sets = _rally(sets, "A", 1)
    assert badminton.set_winner(sets[-1], FMT) == "A"
    assert badminton.games_won(sets, FMT) == {"A": 1, "B": 0}


def test_best_of_three_halts_after_two_wins():
    sets = _rally([], "A", 21)
    sets = _rally(sets, "A", 21)

    assert badminton.is_decided(sets, FMT)
    with pytest.raises(ValueError, match="already decided"):
        _rally(sets, "A", 1)


def test_no_sets_left_after_best_of_one_game():
    fmt = MatchFormat(best_of=1)
    sets = badminton.apply_delta([], "B", 21, fmt)

    assert badminton.is_decided(sets, fmt)
    with pytest.raises(ValueError):
        badminton.apply_delta(sets, "B", 1, fmt)


def test_negative_delta_corrects_previous_game_when_current_is_empty():
    sets = [SetScore(21, 19), SetScore(0, 0)]

    sets = _rally(sets, "A", -1)

    assert sets == [SetScore(20, 19)]


def test_negative_delta_never_goes_below_zero():
    assert _rally([SetScore(0, 3)], "A", -2) == [SetScore(0, 3)]


@pytest.mark.parametrize("side, delta", [("C", 1), ("A", 0)])
def test_rejects_bad_side_or_zero_delta(side, delta):
    with pytest.raises(ValueError):
        badminton.apply_delta([], side, delta, FMT)


def test_count_set_wins_ignores_equal_sets():
    sets = [SetScore(21, 15), SetScore(0, 0), SetScore(18, 21), SetScore(21, 19)]

    assert badminton.count_set_wins(sets) == (2, 1)


def test_summary_reports_current_game_and_config():
    sets = [SetScore(21, 17), SetScore(5, 3)]

    summary = badminton.summary(sets, FMT)

    assert summary["points"] == {"A": 5, "B": 3}
    assert summary["games"] == {"A": 1, "B": 0}
    assert summary["sets"] == [[21, 17], [5, 3]]
    assert summary["decided"] is False
    assert summary["config"]["bestOf"] == 3
    assert summary["config"]["maxPoint"] == 30
