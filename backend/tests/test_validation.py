import pytest

from shuttleup.domain import MatchFormat, SetScore
from shuttleup.services.validation import (
    ValidationError,
    counted_sets,
    validate_set_scores,
)


def test_accepts_valid_sets() -> None:
    validate_set_scores([{"A": 21, "B": 18}])
    validate_set_scores([{"A": 21, "B": 19}, {"A": 19, "B": 21}])
    assert validate_set_scores([(21, 10), [0, 0]]) == [SetScore(21, 10), SetScore(0, 0)]


@pytest.mark.parametrize(
    "sets, msg",
    [
        ([], "At least one set"),                  # empty list
        ([{"A": 10, "B": 10}], "cannot be a tie"), # tie
        ([{"A": -1, "B": 0}], ">= 0"),             # negative
        ([{"A": "x", "B": 0}], "integers"),        # non-integer
        ([{"A": 21.0, "B": 3}], "integers"),       # float
        ([{"A": True, "B": 0}], "booleans"),       # bool
        ([{"A": 1}], "include both A and B"),      # missing key
        ([(21, 3, 1)], "exactly two"),             # wrong arity
        ("not a list", "At least one set"),        # wrong top-level type
        ([42], "must be an object"),               # non-dict set entry
    ],
    ids=[
        "empty",
        "tie",
        "negative",
        "non-integer",
        "float",
        "bool",
        "missing-key",
        "wrong-arity",
        "not-a-list",
        "non-dict-entry",
    ],
)
def test_rejects_invalid_sets(sets, msg) -> None:
    with pytest.raises(ValidationError) as exc:
        validate_set_scores(sets)  # type: ignore[arg-type]
    assert msg.lower() in str(exc.value).lower()


def test_rejects_too_many_sets() -> None:
    with pytest.raises(ValidationError):
        validate_set_scores([{"A": 1, "B": 0}] * 6, max_sets=5)


def test_unplayed_set_is_not_a_tie() -> None:
    assert validate_set_scores([{"A": 0, "B": 0}]) == [SetScore(0, 0)]


def test_ties_allowed_when_requested() -> None:
    assert validate_set_scores([(15, 15)], allow_ties=True) == [SetScore(15, 15)]


def test_counted_sets_skips_unplayed_and_trailing_sets() -> None:
    sets = [
        SetScore(21, 15),
        SetScore(0, 0),
        SetScore(21, 10),
        SetScore(21, 17),
        SetScore(0, 0),
    ]

    counted = counted_sets(sets, MatchFormat(best_of=5))

    assert counted == [SetScore(21, 15), SetScore(21, 10), SetScore(21, 17)]


def test_counted_sets_rejects_set_after_match_was_decided() -> None:
    sets = [SetScore(21, 15), SetScore(21, 10), SetScore(10, 21)]

    with pytest.raises(ValidationError, match="after the match was decided"):
        counted_sets(sets, MatchFormat(best_of=3))


def test_counted_sets_rejects_more_sets_than_format_allows() -> None:
    with pytest.raises(ValidationError, match="best of 3"):
        counted_sets([SetScore(21, 1)] * 4, MatchFormat(best_of=3))


def test_counted_sets_requires_a_played_set() -> None:
    with pytest.raises(ValidationError, match="No played sets"):
        counted_sets([SetScore(0, 0)], MatchFormat())


@pytest.mark.parametrize(
    "sets, best_of, msg",
    [
        ([(21, 5)], 3, "needs 2 set wins, sets are 1-0"),
        ([(21, 5), (21, 5), (5, 21)], 5, "needs 3 set wins, sets are 2-1"),
        ([(21, 5), (5, 21)], 3, "draw"),
        ([(21, 5), (5, 21), (0, 0), (0, 0)], 5, "draw"),
    ],
)
def test_counted_sets_requires_a_clinched_match(sets, best_of, msg) -> None:
    scores = [SetScore(*score) for score in sets]

    with pytest.raises(ValidationError, match=msg):
        counted_sets(scores, MatchFormat(best_of=best_of))
