"""Dictionary backed ``MatchRepository`` for tests and local tooling."""

from __future__ import annotations

import copy
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any, AsyncIterator, Mapping, NamedTuple, Sequence

from ..domain import MatchRecord, MatchStatus, SetScore, TeamRecord, TournamentRecord
from ..exceptions import NotFoundError
from ..time_utils import utcnow
from .repository import MatchRepository, _check_fields


class LedgerEntry(NamedTuple):
    account_id: str
    amount: int
    reason: str
    related_match_id: str | None
    created_at: datetime


class InMemoryMatchRepository(MatchRepository):
    """Keeps records in instance dictionaries; nothing is shared between instances."""

    def __init__(
        self,
        *,
        tournaments: Sequence[TournamentRecord] = (),
        teams: Sequence[TeamRecord] = (),
        matches: Sequence[MatchRecord] = (),
        accounts: Mapping[str, int] | None = None,
    ) -> None:
        self.tournaments = {t.id: copy.deepcopy(t) for t in tournaments}
        self.teams = {t.id: copy.deepcopy(t) for t in teams}
        self.matches = {m.id: copy.deepcopy(m) for m in matches}
        self.accounts: dict[str, int] = dict(accounts or {})
        self.ledger: list[LedgerEntry] = []

    def _snapshot(self) -> tuple:
        return copy.deepcopy((self.teams, self.matches, self.accounts, self.ledger))

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["InMemoryMatchRepository"]:
        snapshot = self._snapshot()
        try:
            yield self
        except BaseException:
            self.teams, self.matches, self.accounts, self.ledger = snapshot
            raise

    async def read_match(self, match_id: str) -> MatchRecord:
        try:
            return copy.deepcopy(self.matches[match_id])
        except KeyError:
            raise NotFoundError("match", match_id) from None

    async def read_tournament(self, tournament_id: str) -> TournamentRecord:
        try:
            return copy.deepcopy(self.tournaments[tournament_id])
        except KeyError:
            raise NotFoundError("tournament", tournament_id) from None

    async def read_team(self, team_id: str) -> TeamRecord:
        try:
            return copy.deepcopy(self.teams[team_id])
        except KeyError:
            raise NotFoundError("team", team_id) from None

    async def conditional_update_match(
        self,
        match_id: str,
        expected_status: MatchStatus,
        fields: Mapping[str, Any],
    ) -> bool:
        _check_fields(fields)
        current = self.matches.get(match_id)
        if current is None or current.status != MatchStatus(expected_status):
            return False

        values = dict(fields)
        if "sets" in values:
            values["sets"] = [SetScore(*score) for score in values["sets"]]
        if "status" in values:
            values["status"] = MatchStatus(values["status"])
        self.matches[match_id] = replace(current, **values)
        return True

    async def update_team_tally(
        self, team_id: str, delta_wins: int, delta_losses: int, delta_points: int
    ) -> None:
        team = self.teams.get(team_id)
        if team is None:
            raise NotFoundError("team", team_id)
        team.wins += delta_wins
        team.losses += delta_losses
        team.points += delta_points

    async def append_ledger_entry(
        self, account_id: str, amount: int, reason: str, related_match_id: str | None
    ) -> None:
        if account_id not in self.accounts:
            raise NotFoundError("user", account_id)
        self.accounts[account_id] += amount
        self.ledger.append(
            LedgerEntry(account_id, amount, reason, related_match_id, utcnow())
        )

    async def list_completed_matches(self, tournament_id: str) -> list[MatchRecord]:
        return [
            copy.deepcopy(m)
            for m in self.matches.values()
            if m.tournament_id == tournament_id and m.status == MatchStatus.COMPLETED
        ]

    async def list_teams(self, tournament_id: str) -> list[TeamRecord]:
        return [
            copy.deepcopy(t)
            for t in self.teams.values()
            if t.tournament_id == tournament_id
        ]

    async def count_completed_matches_for_team(self, team_id: str) -> int:
        return sum(
            1
            for m in self.matches.values()
            if m.status == MatchStatus.COMPLETED and team_id in (m.side_a, m.side_b)
        )

    async def delete_team(self, team_id: str) -> int:
        if team_id not in self.teams:
            raise NotFoundError("team", team_id)
        doomed = [
            mid
            for mid, m in self.matches.items()
            if m.status != MatchStatus.COMPLETED and team_id in (m.side_a, m.side_b)
        ]
        for mid in doomed:
            del self.matches[mid]
        del self.teams[team_id]
        return len(doomed)

    async def add_matches(self, matches: Sequence[MatchRecord]) -> None:
        for record in matches:
            self.matches[record.id] = copy.deepcopy(record)
