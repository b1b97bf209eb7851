"""Value types shared by the finalizer, standings and storage adapters."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple, Sequence

from .config import DEFAULT_SCORER_PIN, POINTS_PER_LOSS, POINTS_PER_WIN


class MatchStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"


class UserRole(str, enum.Enum):
    PLAYER = "player"
    ORGANIZER = "organizer"
    SUPERADMIN = "superadmin"


class TieBreak(str, enum.Enum):
    """Ranking criteria, applied left to right to break remaining ties."""

    MATCHES_WON = "matches_won"
    SETS_WON = "sets_won"
    POINTS_DIFF = "points_diff"
    HEAD_TO_HEAD = "head_to_head"
    POINTS = "points"
    SETS_DIFF = "sets_diff"
    POINTS_SCORED = "points_scored"

    @classmethod
    def parse(cls, value: "str | TieBreak") -> "TieBreak":
        """Accept enum members, snake_case or camelCase names."""

        if isinstance(value, cls):
            return value
        raw = (value or "").strip().replace("-", "_").replace(" ", "_")
        normalized = "".join(
            f"_{ch.lower()}" if ch.isupper() else ch for ch in raw
        ).lstrip("_")
        normalized = normalized.replace("__", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"unknown ranking criterion: {value!r}") from None

    @classmethod
    def parse_many(cls, values: Sequence["str | TieBreak"] | None) -> list["TieBreak"]:
        if not values:
            return list(DEFAULT_CRITERIA)
        parsed: list[TieBreak] = []
        for value in values:
            criterion = cls.parse(value)
            if criterion not in parsed:
                parsed.append(criterion)
        return parsed


DEFAULT_CRITERIA: tuple[TieBreak, ...] = (
    TieBreak.MATCHES_WON,
    TieBreak.SETS_WON,
    TieBreak.POINTS_DIFF,
    TieBreak.HEAD_TO_HEAD,
)


class SetScore(NamedTuple):
    a: int
    b: int

    @property
    def played(self) -> bool:
        return self.a > 0 or self.b > 0


@dataclass(frozen=True)
class MatchFormat:
    best_of: int = 3
    points_to: int = 21
    win_by: int = 2
    max_points: int | None = 30

    @property
    def sets_needed(self) -> int:
        return self.best_of // 2 + 1


@dataclass
class TeamRecord:
    id: str
    tournament_id: str
    name: str
    player_ids: list[str] = field(default_factory=list)
    wins: int = 0
    losses: int = 0
    points: int = 0
    owner_account_id: str | None = None


@dataclass
class MatchRecord:
    id: str
    tournament_id: str
    side_a: str
    side_b: str
    sets: list[SetScore] = field(default_factory=list)
    format: MatchFormat = field(default_factory=MatchFormat)
    status: MatchStatus = MatchStatus.SCHEDULED
    court: int | None = None
    scheduled_at: datetime | None = None
    winner_id: str | None = None
    completed_at: datetime | None = None

    def opponent_of(self, team_id: str) -> str:
        if team_id == self.side_a:
            return self.side_b
        if team_id == self.side_b:
            return self.side_a
        raise ValueError(f"team {team_id!r} did not play match {self.id!r}")


@dataclass
class TournamentRecord:
    id: str
    name: str
    organizer_id: str | None = None
    scorer_pin: str | None = DEFAULT_SCORER_PIN
    is_locked: bool = False
    ranking_criteria: list[TieBreak] = field(
        default_factory=lambda: list(DEFAULT_CRITERIA)
    )
    points_per_win: int = POINTS_PER_WIN
    points_per_loss: int = POINTS_PER_LOSS
    court_count: int = 1
    match_format: MatchFormat = field(default_factory=MatchFormat)


@dataclass(frozen=True)
class Authorization:
    """Who is asking, plus an optional scorer PIN supplied with the request."""

    user_id: str | None = None
    role: UserRole = UserRole.PLAYER
    scorer_pin: str | None = None


@dataclass
class StandingsRow:
    team_id: str
    team_name: str
    played: int = 0
    won: int = 0
    lost: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    points_scored: int = 0
    points_conceded: int = 0
    points: int = 0
    rank: int = 0

    @property
    def points_diff(self) -> int:
        return self.points_scored - self.points_conceded

    @property
    def sets_diff(self) -> int:
        return self.sets_won - self.sets_lost


class FinalizedMatch(NamedTuple):
    match_id: str
    winner_id: str
    loser_id: str
    sets_a: int
    sets_b: int
    completed_at: datetime
