"""Live scoring: starting matches and applying rally point corrections."""

from __future__ import annotations

import logging

from ..domain import Authorization, MatchRecord, MatchStatus
from ..exceptions import ConflictError
from ..scoring import badminton
from .access import require_scorer
from .notifications import MatchEventNotifier
from .repository import MatchRepository

logger = logging.getLogger(__name__)


async def start_match(
    repository: MatchRepository,
    match_id: str,
    authorization: Authorization,
) -> MatchRecord:
    match = await repository.read_match(match_id)
    tournament = await repository.read_tournament(match.tournament_id)
    require_scorer(tournament, authorization)

    if match.status != MatchStatus.SCHEDULED:
        raise ConflictError(f"match '{match_id}' is {match.status.value}, not scheduled")

    async with repository.atomic():
        started = await repository.conditional_update_match(
            match_id, MatchStatus.SCHEDULED, {"status": MatchStatus.LIVE}
        )
        if not started:
            raise ConflictError(f"match '{match_id}' was started by someone else")

    logger.info("Match %s is live", match_id)
    match.status = MatchStatus.LIVE
    return match


async def apply_score_delta(
    repository: MatchRepository,
    match_id: str,
    side: str,
    delta: int,
    authorization: Authorization,
    *,
    notifier: MatchEventNotifier | None = None,
) -> MatchRecord:
    """Add ``delta`` rally points to ``side`` in the current game of a live match."""

    match = await repository.read_match(match_id)
    tournament = await repository.read_tournament(match.tournament_id)
    require_scorer(tournament, authorization)

    if match.status != MatchStatus.LIVE:
        raise ConflictError(f"match '{match_id}' is {match.status.value}, not live")

    try:
        sets = badminton.apply_delta(match.sets, side, delta, match.format)
    except ValueError as exc:
        raise ConflictError(str(exc)) from exc

    async with repository.atomic():
        # Guarded on status so a score cannot land after the result is recorded.
        saved = await repository.conditional_update_match(
            match_id, MatchStatus.LIVE, {"sets": sets}
        )
        if not saved:
            raise ConflictError(f"match '{match_id}' is no longer live")

    match.sets = sets
    if notifier is not None:
        try:
            await notifier.score_updated(match_id, badminton.summary(sets, match.format))
        except Exception:  # scores are already saved
            logger.exception("Failed to publish score update for match %s", match_id)
    return match
