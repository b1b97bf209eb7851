"""Badminton scoring engine.

Rally scoring to 21 points with a win-by-2 requirement and a 30-point cap.
Matches default to best-of-3 games. Scores are kept as an ordered list of
``SetScore`` pairs, one per game, and the engine only ever edits the last one.
"""

from typing import Literal, Sequence

from ..domain import MatchFormat, SetScore

Side = Literal["A", "B"]


def _other(side: str) -> str:
    return "B" if side == "A" else "A"


def set_winner(score: SetScore, fmt: MatchFormat) -> Side | None:
    """Return the side that has won ``score`` under ``fmt``, if any."""

    for side, ps, po in (("A", score.a, score.b), ("B", score.b, score.a)):
        if isinstance(fmt.max_points, int) and fmt.max_points > 0:
            if ps >= fmt.max_points and ps > po:
                return side  # type: ignore[return-value]
        if ps >= fmt.points_to and ps - po >= fmt.win_by:
            return side  # type: ignore[return-value]
    return None


def count_set_wins(sets: Sequence[SetScore]) -> tuple[int, int]:
    """Count set wins by strict comparison; equal sets count for neither side."""

    a_wins = b_wins = 0
    for score in sets:
        if score.a > score.b:
            a_wins += 1
        elif score.b > score.a:
            b_wins += 1
    return a_wins, b_wins


def games_won(sets: Sequence[SetScore], fmt: MatchFormat) -> dict[str, int]:
    games = {"A": 0, "B": 0}
    for score in sets:
        winner = set_winner(score, fmt)
        if winner:
            games[winner] += 1
    return games


def is_decided(sets: Sequence[SetScore], fmt: MatchFormat) -> bool:
    games = games_won(sets, fmt)
    return games["A"] >= fmt.sets_needed or games["B"] >= fmt.sets_needed


def _add_point(sets: list[SetScore], side: str, fmt: MatchFormat) -> None:
    if is_decided(sets, fmt):
        raise ValueError("match is already decided")

    if not sets or set_winner(sets[-1], fmt):
        if len(sets) >= fmt.best_of:
            raise ValueError("no sets left to play")
        sets.append(SetScore(0, 0))

    current = sets[-1]
    if side == "A":
        sets[-1] = SetScore(current.a + 1, current.b)
    else:
        sets[-1] = SetScore(current.a, current.b + 1)


def _remove_point(sets: list[SetScore], side: str) -> None:
    # An empty trailing game means the correction belongs to the previous one.
    while len(sets) > 1 and not sets[-1].played:
        sets.pop()
    if not sets:
        return

    current = sets[-1]
    if side == "A":
        sets[-1] = SetScore(max(0, current.a - 1), current.b)
    else:
        sets[-1] = SetScore(current.a, max(0, current.b - 1))


def apply_delta(
    sets: Sequence[SetScore], side: str, delta: int, fmt: MatchFormat
) -> list[SetScore]:
    """Return a new set list with ``delta`` rally points applied to ``side``."""

    if side not in ("A", "B"):
        raise ValueError("invalid badminton side")
    if delta == 0:
        raise ValueError("score delta must not be zero")

    updated = [SetScore(*score) for score in sets]
    for _ in range(abs(delta)):
        if delta > 0:
            _add_point(updated, side, fmt)
        else:
            _remove_point(updated, side)
    return updated


def summary(sets: Sequence[SetScore], fmt: MatchFormat) -> dict:
    current = sets[-1] if sets else SetScore(0, 0)
    return {
        "points": {"A": current.a, "B": current.b},
        "games": games_won(sets, fmt),
        "sets": [[score.a, score.b] for score in sets],
        "decided": is_decided(sets, fmt),
        "config": {
            "pointsTo": fmt.points_to,
            "winBy": fmt.win_by,
            "bestOf": fmt.best_of,
            "maxPoint": fmt.max_points,
        },
    }
