"""Storage access for match results and standings.

``MatchRepository`` is the only surface the finalizer and the standings
service talk to. ``SqlAlchemyMatchRepository`` adapts it to an
``AsyncSession``; ``services.memory.InMemoryMatchRepository`` keeps the same
contract in plain dictionaries.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping, Sequence

from sqlalchemy import delete, func, null, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import (
    MatchFormat,
    MatchRecord,
    MatchStatus,
    SetScore,
    TeamRecord,
    TieBreak,
    TournamentRecord,
)
from ..exceptions import NotFoundError
from ..models import CreditLog, Match, Team, Tournament, User
from ..time_utils import coerce_utc

logger = logging.getLogger(__name__)

MATCH_UPDATE_FIELDS = frozenset({"status", "sets", "winner_id", "completed_at"})


class MatchRepository(ABC):
    """Persistence operations needed by the match result core."""

    @abstractmethod
    def atomic(self) -> Any:
        """Async context manager: commit on success, roll back on error."""

    @abstractmethod
    async def read_match(self, match_id: str) -> MatchRecord:
        """Return the match or raise ``NotFoundError``."""

    @abstractmethod
    async def read_tournament(self, tournament_id: str) -> TournamentRecord:
        """Return the tournament or raise ``NotFoundError``."""

    @abstractmethod
    async def read_team(self, team_id: str) -> TeamRecord:
        """Return the team or raise ``NotFoundError``."""

    @abstractmethod
    async def conditional_update_match(
        self,
        match_id: str,
        expected_status: MatchStatus,
        fields: Mapping[str, Any],
    ) -> bool:
        """Apply ``fields`` only if the stored status equals ``expected_status``.

        Returns ``False`` when no row matched, which callers treat as a lost
        race against another writer.
        """

    @abstractmethod
    async def update_team_tally(
        self, team_id: str, delta_wins: int, delta_losses: int, delta_points: int
    ) -> None:
        ...

    @abstractmethod
    async def append_ledger_entry(
        self, account_id: str, amount: int, reason: str, related_match_id: str | None
    ) -> None:
        ...

    @abstractmethod
    async def list_completed_matches(self, tournament_id: str) -> list[MatchRecord]:
        ...

    @abstractmethod
    async def list_teams(self, tournament_id: str) -> list[TeamRecord]:
        ...

    @abstractmethod
    async def count_completed_matches_for_team(self, team_id: str) -> int:
        ...

    @abstractmethod
    async def delete_team(self, team_id: str) -> int:
        """Delete a team and its unplayed matches; return matches removed."""

    @abstractmethod
    async def add_matches(self, matches: Sequence[MatchRecord]) -> None:
        ...


def _check_fields(fields: Mapping[str, Any]) -> None:
    unknown = set(fields) - MATCH_UPDATE_FIELDS
    if unknown:
        raise ValueError(f"unsupported match fields: {', '.join(sorted(unknown))}")


def _sets_from_json(raw: Any) -> list[SetScore]:
    sets: list[SetScore] = []
    for entry in raw or []:
        if isinstance(entry, dict):
            sets.append(SetScore(int(entry.get("A", 0)), int(entry.get("B", 0))))
        else:
            sets.append(SetScore(int(entry[0]), int(entry[1])))
    return sets


def _sets_to_json(sets: Iterable[SetScore]) -> list[list[int]]:
    return [[int(score[0]), int(score[1])] for score in sets]


def _format_from_row(row: Match | Tournament) -> MatchFormat:
    return MatchFormat(
        best_of=row.best_of,
        points_to=row.points_to,
        win_by=row.win_by,
        max_points=row.max_points,
    )


def _uncapped_as_null(max_points: int | None):
    # A plain None is skipped on INSERT and the column default (30) applies.
    return null() if max_points is None else max_points


def _match_record(row: Match) -> MatchRecord:
    return MatchRecord(
        id=row.id,
        tournament_id=row.tournament_id,
        side_a=row.side_a_id,
        side_b=row.side_b_id,
        sets=_sets_from_json(row.sets),
        format=_format_from_row(row),
        status=MatchStatus(row.status),
        court=row.court,
        scheduled_at=coerce_utc(row.scheduled_at),
        winner_id=row.winner_id,
        completed_at=coerce_utc(row.completed_at),
    )


def _team_record(row: Team) -> TeamRecord:
    return TeamRecord(
        id=row.id,
        tournament_id=row.tournament_id,
        name=row.name,
        player_ids=list(row.player_ids or []),
        wins=row.wins or 0,
        losses=row.losses or 0,
        points=row.points or 0,
        owner_account_id=row.owner_account_id,
    )


def _tournament_record(row: Tournament) -> TournamentRecord:
    return TournamentRecord(
        id=row.id,
        name=row.name,
        organizer_id=row.organizer_id,
        scorer_pin=row.scorer_pin,
        is_locked=bool(row.is_locked),
        ranking_criteria=TieBreak.parse_many(row.ranking_criteria),
        points_per_win=row.points_per_win,
        points_per_loss=row.points_per_loss,
        court_count=row.court_count or 1,
        match_format=_format_from_row(row),
    )


class SqlAlchemyMatchRepository(MatchRepository):
    """``MatchRepository`` backed by an ``AsyncSession``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["SqlAlchemyMatchRepository"]:
        try:
            yield self
        except BaseException:
            await self.session.rollback()
            raise
        else:
            await self.session.commit()

    async def read_match(self, match_id: str) -> MatchRecord:
        row = await self.session.get(Match, match_id, populate_existing=True)
        if row is None:
            raise NotFoundError("match", match_id)
        return _match_record(row)

    async def read_tournament(self, tournament_id: str) -> TournamentRecord:
        row = await self.session.get(Tournament, tournament_id, populate_existing=True)
        if row is None:
            raise NotFoundError("tournament", tournament_id)
        return _tournament_record(row)

    async def read_team(self, team_id: str) -> TeamRecord:
        row = await self.session.get(Team, team_id, populate_existing=True)
        if row is None:
            raise NotFoundError("team", team_id)
        return _team_record(row)

    async def conditional_update_match(
        self,
        match_id: str,
        expected_status: MatchStatus,
        fields: Mapping[str, Any],
    ) -> bool:
        _check_fields(fields)
        values = dict(fields)
        if "sets" in values:
            values["sets"] = _sets_to_json(values["sets"])
        if "status" in values:
            values["status"] = MatchStatus(values["status"])

        result = await self.session.execute(
            update(Match)
            .where(Match.id == match_id, Match.status == MatchStatus(expected_status))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def update_team_tally(
        self, team_id: str, delta_wins: int, delta_losses: int, delta_points: int
    ) -> None:
        result = await self.session.execute(
            update(Team)
            .where(Team.id == team_id)
            .values(
                wins=Team.wins + delta_wins,
                losses=Team.losses + delta_losses,
                points=Team.points + delta_points,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("team", team_id)

    async def append_ledger_entry(
        self, account_id: str, amount: int, reason: str, related_match_id: str | None
    ) -> None:
        result = await self.session.execute(
            update(User)
            .where(User.id == account_id)
            .values(credits=User.credits + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("user", account_id)
        self.session.add(
            CreditLog(
                id=uuid.uuid4().hex,
                user_id=account_id,
                amount=amount,
                reason=reason,
                match_id=related_match_id,
            )
        )
        await self.session.flush()

    async def list_completed_matches(self, tournament_id: str) -> list[MatchRecord]:
        rows = (
            await self.session.execute(
                select(Match)
                .where(
                    Match.tournament_id == tournament_id,
                    Match.status == MatchStatus.COMPLETED,
                )
                .order_by(Match.completed_at, Match.id)
                .execution_options(populate_existing=True)
            )
        ).scalars().all()
        return [_match_record(row) for row in rows]

    async def list_teams(self, tournament_id: str) -> list[TeamRecord]:
        rows = (
            await self.session.execute(
                select(Team)
                .where(Team.tournament_id == tournament_id)
                .order_by(Team.name, Team.id)
                .execution_options(populate_existing=True)
            )
        ).scalars().all()
        return [_team_record(row) for row in rows]

    async def count_completed_matches_for_team(self, team_id: str) -> int:
        count = (
            await self.session.execute(
                select(func.count(Match.id)).where(
                    or_(Match.side_a_id == team_id, Match.side_b_id == team_id),
                    Match.status == MatchStatus.COMPLETED,
                )
            )
        ).scalar_one()
        return int(count or 0)

    async def delete_team(self, team_id: str) -> int:
        removed = await self.session.execute(
            delete(Match)
            .where(
                or_(Match.side_a_id == team_id, Match.side_b_id == team_id),
                Match.status != MatchStatus.COMPLETED,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(Team)
            .where(Team.id == team_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("team", team_id)
        return removed.rowcount or 0

    async def add_matches(self, matches: Sequence[MatchRecord]) -> None:
        self.session.add_all(
            [
                Match(
                    id=record.id,
                    tournament_id=record.tournament_id,
                    side_a_id=record.side_a,
                    side_b_id=record.side_b,
                    sets=_sets_to_json(record.sets),
                    best_of=record.format.best_of,
                    points_to=record.format.points_to,
                    win_by=record.format.win_by,
                    max_points=_uncapped_as_null(record.format.max_points),
                    court=record.court,
                    scheduled_at=record.scheduled_at,
                    status=record.status,
                    winner_id=record.winner_id,
                    completed_at=record.completed_at,
                )
                for record in matches
            ]
        )
        await self.session.flush()
        logger.debug("Added %d matches", len(matches))
