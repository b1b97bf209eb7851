"""League table computation from completed matches."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, NamedTuple, Sequence

from ..config import POINTS_PER_LOSS, POINTS_PER_WIN
from ..domain import (
    MatchRecord,
    MatchStatus,
    StandingsRow,
    TeamRecord,
    TieBreak,
    TournamentRecord,
)
from ..scoring.badminton import count_set_wins
from .repository import MatchRepository

logger = logging.getLogger(__name__)

_METRICS: dict[TieBreak, Callable[[StandingsRow], int]] = {
    TieBreak.MATCHES_WON: lambda row: row.won,
    TieBreak.SETS_WON: lambda row: row.sets_won,
    TieBreak.POINTS_DIFF: lambda row: row.points_diff,
    TieBreak.POINTS: lambda row: row.points,
    TieBreak.SETS_DIFF: lambda row: row.sets_diff,
    TieBreak.POINTS_SCORED: lambda row: row.points_scored,
}


def _fallback_key(row: StandingsRow) -> tuple[str, str]:
    return (row.team_name.casefold(), row.team_id)


class StandingsCalculator:
    """Pure ranking of teams; instances hold no state between calls."""

    def compute(
        self,
        tournament: TournamentRecord | None,
        teams: Iterable[TeamRecord],
        completed_matches: Iterable[MatchRecord],
        criteria_order: Sequence[str | TieBreak] | None = None,
    ) -> list[StandingsRow]:
        if criteria_order is None and tournament is not None:
            criteria = TieBreak.parse_many(tournament.ranking_criteria)
        else:
            criteria = TieBreak.parse_many(criteria_order)
        points_per_win = tournament.points_per_win if tournament else POINTS_PER_WIN
        points_per_loss = tournament.points_per_loss if tournament else POINTS_PER_LOSS

        rows: dict[str, StandingsRow] = {}
        for team in teams:
            rows.setdefault(team.id, StandingsRow(team_id=team.id, team_name=team.name))

        head_to_head: dict[str, dict[str, int]] = {team_id: {} for team_id in rows}
        for match in completed_matches:
            self._accumulate(
                match, rows, head_to_head, points_per_win, points_per_loss
            )

        active = [row for row in rows.values() if row.played > 0]
        idle = [row for row in rows.values() if row.played == 0]
        ordered = self._order(active, criteria, head_to_head)
        ordered.extend(self._order(idle, criteria, head_to_head))

        for position, row in enumerate(ordered, start=1):
            row.rank = position
        return ordered

    def _accumulate(
        self,
        match: MatchRecord,
        rows: dict[str, StandingsRow],
        head_to_head: dict[str, dict[str, int]],
        points_per_win: int,
        points_per_loss: int,
    ) -> None:
        if match.status != MatchStatus.COMPLETED:
            logger.warning("Skipping match %s: status is %s", match.id, match.status.value)
            return
        if match.side_a == match.side_b:
            logger.warning("Skipping match %s: a team cannot play itself", match.id)
            return
        unknown = [tid for tid in (match.side_a, match.side_b) if tid not in rows]
        if unknown:
            logger.warning(
                "Skipping match %s: unknown teams %s", match.id, ", ".join(unknown)
            )
            return
        if match.winner_id not in (match.side_a, match.side_b):
            logger.warning("Skipping match %s: winner is not a participant", match.id)
            return

        played_sets = [score for score in match.sets if score.played]
        sets_a, sets_b = count_set_wins(played_sets)
        points_a = sum(score.a for score in played_sets)
        points_b = sum(score.b for score in played_sets)

        row_a = rows[match.side_a]
        row_b = rows[match.side_b]
        for row, sets_for, sets_against, scored, conceded in (
            (row_a, sets_a, sets_b, points_a, points_b),
            (row_b, sets_b, sets_a, points_b, points_a),
        ):
            row.played += 1
            row.sets_won += sets_for
            row.sets_lost += sets_against
            row.points_scored += scored
            row.points_conceded += conceded

        winner = rows[match.winner_id]
        loser = rows[match.opponent_of(match.winner_id)]
        winner.won += 1
        winner.points += points_per_win
        loser.lost += 1
        loser.points += points_per_loss

        record = head_to_head[winner.team_id]
        record[loser.team_id] = record.get(loser.team_id, 0) + 1
        record = head_to_head[loser.team_id]
        record[winner.team_id] = record.get(winner.team_id, 0) - 1

    def _order(
        self,
        group: list[StandingsRow],
        criteria: Sequence[TieBreak],
        head_to_head: dict[str, dict[str, int]],
    ) -> list[StandingsRow]:
        if len(group) <= 1:
            return list(group)
        if not criteria:
            return sorted(group, key=_fallback_key)

        criterion, remaining = criteria[0], criteria[1:]
        if criterion is TieBreak.HEAD_TO_HEAD:
            # Only a two-way tie between teams that met is settled here.
            if len(group) == 2:
                first, second = group
                net = head_to_head[first.team_id].get(second.team_id, 0)
                if net > 0:
                    return [first, second]
                if net < 0:
                    return [second, first]
            return self._order(group, remaining, head_to_head)

        metric = _METRICS[criterion]
        buckets: dict[int, list[StandingsRow]] = {}
        for row in group:
            buckets.setdefault(metric(row), []).append(row)

        ordered: list[StandingsRow] = []
        for value in sorted(buckets, reverse=True):
            ordered.extend(self._order(buckets[value], remaining, head_to_head))
        return ordered


class StandingsTable(NamedTuple):
    criteria: list[TieBreak]
    rows: list[StandingsRow]


async def load_standings_table(
    repository: MatchRepository,
    tournament_id: str,
    criteria_order: Sequence[str | TieBreak] | None = None,
) -> StandingsTable:
    """Rank a tournament's teams and report the criteria order that was used.

    ``criteria_order`` of ``None`` means the tournament's own ranking criteria.
    """

    tournament = await repository.read_tournament(tournament_id)
    if criteria_order is None:
        criteria_order = tournament.ranking_criteria
    criteria = TieBreak.parse_many(criteria_order)
    teams = await repository.list_teams(tournament_id)
    matches = await repository.list_completed_matches(tournament_id)
    rows = StandingsCalculator().compute(tournament, teams, matches, criteria)
    return StandingsTable(criteria, rows)


async def load_standings(
    repository: MatchRepository,
    tournament_id: str,
    criteria_order: Sequence[str | TieBreak] | None = None,
) -> list[StandingsRow]:
    """Fetch a tournament's teams and results and rank them."""

    table = await load_standings_table(repository, tournament_id, criteria_order)
    return table.rows
