from typing import Any, List, Optional, Sequence

from ..domain import MatchFormat, SetScore


class ValidationError(Exception):
    """Raised when submitted set scores are invalid."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def _coerce_pair(i: int, raw: Any) -> tuple[Any, Any]:
    if isinstance(raw, SetScore):
        return raw.a, raw.b
    if isinstance(raw, dict):
        if "A" not in raw or "B" not in raw:
            raise ValidationError(f"Set #{i} must include both A and B.")
        return raw["A"], raw["B"]
    if isinstance(raw, (list, tuple)):
        if len(raw) != 2:
            raise ValidationError(f"Set #{i} must have exactly two scores.")
        return raw[0], raw[1]
    raise ValidationError(f"Set #{i} must be an object with fields A and B.")


def validate_set_scores(
    sets: Sequence[Any],
    *,
    max_sets: Optional[int] = 5,
    allow_ties: bool = False,
    max_points_per_side: Optional[int] = 1000,
) -> List[SetScore]:
    """Validate set scores and return them as ``SetScore`` pairs.

    Rules:
    - At least one set is required
    - Number of sets must be <= ``max_sets`` (if provided)
    - Each set must be an object ``{A, B}`` or a two item sequence
    - ``A`` and ``B`` must be integers >= 0 (booleans are rejected)
    - A played set cannot be a tie unless ``allow_ties`` is ``True``; ``0-0``
      marks an unplayed set and is always accepted
    """

    if not isinstance(sets, (list, tuple)) or len(sets) == 0:
        raise ValidationError("At least one set is required.")
    if max_sets is not None and len(sets) > max_sets:
        raise ValidationError(f"Too many sets. Max allowed is {max_sets}.")

    normalized: List[SetScore] = []
    for i, s in enumerate(sets, start=1):
        vA, vB = _coerce_pair(i, s)

        # Reject booleans explicitly (bool is a subclass of int in Python)
        if isinstance(vA, bool) or isinstance(vB, bool):
            raise ValidationError(f"Set #{i} scores must be integers (not booleans).")
        if isinstance(vA, float) or isinstance(vB, float):
            raise ValidationError(f"Set #{i} scores must be integers.")

        try:
            a = int(vA)
            b = int(vB)
        except (TypeError, ValueError):
            raise ValidationError(f"Set #{i} scores must be integers.")

        if a < 0 or b < 0:
            raise ValidationError(f"Set #{i} scores must be >= 0.")
        if not allow_ties and a == b and a > 0:
            raise ValidationError(f"Set #{i} cannot be a tie.")
        if max_points_per_side is not None and (
            a > max_points_per_side or b > max_points_per_side
        ):
            raise ValidationError(
                f"Set #{i} scores must be <= {max_points_per_side}."
            )
        normalized.append(SetScore(a, b))

    return normalized


def counted_sets(sets: Sequence[SetScore], fmt: MatchFormat) -> List[SetScore]:
    """Return the sets that decide a best-of-N match.

    Counting stops once a side reaches ``fmt.sets_needed`` set wins. Anything
    after that point must be an unplayed ``0-0`` set, and a result where
    neither side got there is rejected.
    """

    if len(sets) > fmt.best_of:
        raise ValidationError(
            f"Match is best of {fmt.best_of} but {len(sets)} sets were recorded."
        )

    counted: List[SetScore] = []
    wins = {"A": 0, "B": 0}
    for i, score in enumerate(sets, start=1):
        if max(wins.values()) >= fmt.sets_needed:
            if score.played:
                raise ValidationError(
                    f"Set #{i} was played after the match was decided."
                )
            continue
        if not score.played:
            continue
        counted.append(score)
        if score.a > score.b:
            wins["A"] += 1
        elif score.b > score.a:
            wins["B"] += 1

    if not counted:
        raise ValidationError("No played sets were recorded.")

    a, b = wins["A"], wins["B"]
    if max(a, b) < fmt.sets_needed:
        if a == b:
            raise ValidationError(f"Match cannot end in a draw ({a}-{b} in sets).")
        raise ValidationError(
            f"Match is not decided: best of {fmt.best_of} needs "
            f"{fmt.sets_needed} set wins, sets are {a}-{b}."
        )
    return counted
