"""League scheduling helpers."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from ..domain import Authorization, MatchRecord, MatchStatus
from ..exceptions import ConflictError, NotFoundError
from ..time_utils import coerce_utc
from .access import require_organizer
from .repository import MatchRepository

logger = logging.getLogger(__name__)


def _unique_team_ids(team_ids: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for tid in team_ids:
        if not tid:
            continue
        if tid in seen:
            raise ValueError("duplicate team ids provided")
        seen[tid] = None
    return list(seen.keys())


def round_robin_rounds(team_ids: Sequence[str]) -> list[list[tuple[str, str]]]:
    """Pair every team with every other team once using the circle method.

    With an odd number of teams one team sits out each round.
    """

    unique_teams = _unique_team_ids(team_ids)
    if len(unique_teams) < 2:
        raise ValueError("Round-robin scheduling requires at least two teams")

    roster: list[str | None] = list(unique_teams)
    if len(roster) % 2 == 1:
        roster.append(None)

    rounds: list[list[tuple[str, str]]] = []
    for _ in range(len(roster) - 1):
        pairings: list[tuple[str, str]] = []
        for idx in range(len(roster) // 2):
            a = roster[idx]
            b = roster[-(idx + 1)]
            if not a or not b:
                continue
            pairings.append((a, b))
        rounds.append(pairings)

        # Rotate roster for next round (except the first element).
        anchor = roster[0]
        middle = roster[1:]
        middle = [middle[-1], *middle[:-1]]
        roster = [anchor, *middle]

    return rounds


@dataclass
class ScheduledSlot:
    side_a: str
    side_b: str
    court: int
    starts_at: datetime


def assign_courts(
    rounds: Sequence[Sequence[tuple[str, str]]],
    court_count: int,
    start_at: datetime,
    slot_minutes: int,
) -> list[ScheduledSlot]:
    """Spread each round over ``court_count`` courts, one time slot per batch."""

    if court_count < 1:
        raise ValueError("at least one court is required")
    if slot_minutes < 1:
        raise ValueError("slot length must be positive")

    slots: list[ScheduledSlot] = []
    slot_index = 0
    for pairings in rounds:
        for offset in range(0, len(pairings), court_count):
            batch = pairings[offset : offset + court_count]
            starts_at = start_at + timedelta(minutes=slot_minutes * slot_index)
            for court, (a, b) in enumerate(batch, start=1):
                slots.append(ScheduledSlot(a, b, court, starts_at))
            slot_index += 1
    return slots


async def schedule_round_robin(
    repository: MatchRepository,
    tournament_id: str,
    authorization: Authorization,
    *,
    start_at: datetime,
    slot_minutes: int = 30,
    team_ids: Sequence[str] | None = None,
) -> list[MatchRecord]:
    """Create a league schedule for a locked tournament."""

    tournament = await repository.read_tournament(tournament_id)
    require_organizer(tournament, authorization)
    if not tournament.is_locked:
        raise ConflictError("tournament must be locked before matches are scheduled")

    teams = {team.id: team for team in await repository.list_teams(tournament_id)}
    if team_ids is None:
        selected = sorted(teams, key=lambda tid: (teams[tid].name.casefold(), tid))
    else:
        selected = _unique_team_ids(team_ids)
        missing = [tid for tid in selected if tid not in teams]
        if missing:
            raise NotFoundError("team", missing[0])

    slots = assign_courts(
        round_robin_rounds(selected),
        tournament.court_count,
        coerce_utc(start_at),
        slot_minutes,
    )
    matches = [
        MatchRecord(
            id=uuid.uuid4().hex,
            tournament_id=tournament_id,
            side_a=slot.side_a,
            side_b=slot.side_b,
            format=tournament.match_format,
            status=MatchStatus.SCHEDULED,
            court=slot.court,
            scheduled_at=slot.starts_at,
        )
        for slot in slots
    ]

    async with repository.atomic():
        await repository.add_matches(matches)
    logger.info(
        "Scheduled %d matches for tournament %s on %d court(s)",
        len(matches),
        tournament_id,
        tournament.court_count,
    )
    return matches
