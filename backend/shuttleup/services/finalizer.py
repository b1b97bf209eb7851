"""One-time transition of a match from live scoring to a recorded result."""

from __future__ import annotations

import logging
from typing import Sequence

from ..config import WIN_REWARD_CREDITS
from ..domain import (
    Authorization,
    FinalizedMatch,
    MatchRecord,
    MatchStatus,
    SetScore,
    TournamentRecord,
)
from ..exceptions import AlreadyFinalizedError, InvalidResultError
from ..scoring.badminton import count_set_wins
from ..time_utils import utcnow
from .access import require_scorer
from .notifications import MatchEventNotifier
from .repository import MatchRepository
from .validation import ValidationError, counted_sets, validate_set_scores

logger = logging.getLogger(__name__)

FINALIZABLE_STATUSES = (MatchStatus.LIVE, MatchStatus.SCHEDULED)


def decide_winner(
    match: MatchRecord, *, allow_tied_sets: bool = False
) -> tuple[str, str, int, int]:
    """Return ``(winner_id, loser_id, sets_a, sets_b)`` for ``match``.

    Raises ``InvalidResultError`` when the sets do not fit the configured
    best-of-N shape or when neither side reached the set wins needed.
    """

    try:
        sets = validate_set_scores(
            match.sets,
            max_sets=match.format.best_of,
            allow_ties=allow_tied_sets,
        )
        sets = counted_sets(sets, match.format)
    except ValidationError as exc:
        raise InvalidResultError(exc.detail) from exc

    sets_a, sets_b = count_set_wins(sets)
    if sets_a > sets_b:
        return match.side_a, match.side_b, sets_a, sets_b
    return match.side_b, match.side_a, sets_a, sets_b


class MatchResultFinalizer:
    """Commit a match result and the matching team tallies exactly once."""

    def __init__(
        self,
        repository: MatchRepository,
        *,
        notifier: MatchEventNotifier | None = None,
        reward_credits: int = WIN_REWARD_CREDITS,
        allow_tied_sets: bool = False,
    ) -> None:
        self.repository = repository
        self.notifier = notifier
        self.reward_credits = reward_credits
        self.allow_tied_sets = allow_tied_sets

    async def finalize(
        self,
        match_id: str,
        authorization: Authorization,
        *,
        sets: Sequence[SetScore] | None = None,
    ) -> FinalizedMatch:
        """Finalize ``match_id``.

        ``sets`` replaces the stored scores when the scorer submits the final
        line-up of games together with the finalize call.
        """

        match = await self.repository.read_match(match_id)
        tournament = await self.repository.read_tournament(match.tournament_id)
        # Permission first: a rejected caller learns nothing about the scores.
        require_scorer(tournament, authorization)

        if match.status == MatchStatus.COMPLETED:
            logger.info("Match %s already finalized; ignoring repeat request", match_id)
            raise AlreadyFinalizedError(match_id)
        expected_status = match.status

        if sets is not None:
            match.sets = [SetScore(*score) for score in sets]

        winner_id, loser_id, sets_a, sets_b = decide_winner(
            match, allow_tied_sets=self.allow_tied_sets
        )
        completed_at = utcnow()

        async with self.repository.atomic():
            # The stored sets are always the ones the winner was decided from.
            fields = {
                "status": MatchStatus.COMPLETED,
                "sets": match.sets,
                "winner_id": winner_id,
                "completed_at": completed_at,
            }
            updated = await self.repository.conditional_update_match(
                match_id, expected_status, fields
            )
            if not updated:
                logger.info("Lost finalize race for match %s", match_id)
                raise AlreadyFinalizedError(match_id)

            await self._apply_tallies(tournament, winner_id, loser_id)
            await self._credit_winner(winner_id, match_id)

        result = FinalizedMatch(
            match_id=match_id,
            winner_id=winner_id,
            loser_id=loser_id,
            sets_a=sets_a,
            sets_b=sets_b,
            completed_at=completed_at,
        )
        logger.info(
            "Finalized match %s: winner=%s sets=%d-%d", match_id, winner_id, sets_a, sets_b
        )
        await self._notify(result)
        return result

    async def _apply_tallies(
        self, tournament: TournamentRecord, winner_id: str, loser_id: str
    ) -> None:
        await self.repository.update_team_tally(
            winner_id, 1, 0, tournament.points_per_win
        )
        await self.repository.update_team_tally(
            loser_id, 0, 1, tournament.points_per_loss
        )

    async def _credit_winner(self, winner_id: str, match_id: str) -> None:
        if self.reward_credits <= 0:
            return
        team = await self.repository.read_team(winner_id)
        if not team.owner_account_id:
            logger.debug("Team %s has no owner account; no reward paid", winner_id)
            return
        await self.repository.append_ledger_entry(
            team.owner_account_id,
            self.reward_credits,
            f"Match win bonus: {match_id}",
            match_id,
        )

    async def _notify(self, result: FinalizedMatch) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.match_finalized(result)
        except Exception:  # the result is already committed
            logger.exception("Failed to notify subscribers about match %s", result.match_id)
