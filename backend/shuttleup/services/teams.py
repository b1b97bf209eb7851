from __future__ import annotations

import logging

from ..domain import Authorization
from ..exceptions import ConflictError
from .access import require_organizer
from .repository import MatchRepository

logger = logging.getLogger(__name__)


async def delete_team(
    repository: MatchRepository, team_id: str, authorization: Authorization
) -> int:
    """Remove a team that has no recorded results.

    Scheduled and live matches involving the team are removed with it. Teams
    with completed matches are kept so the result history stays consistent.
    """

    team = await repository.read_team(team_id)
    tournament = await repository.read_tournament(team.tournament_id)
    require_organizer(tournament, authorization)

    completed = await repository.count_completed_matches_for_team(team_id)
    if completed:
        raise ConflictError(
            f"team '{team.name}' has {completed} completed match(es) and cannot be deleted"
        )

    async with repository.atomic():
        removed = await repository.delete_team(team_id)
    logger.info("Deleted team %s and %d unplayed matches", team_id, removed)
    return removed
