from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator, field_validator

from .domain import FinalizedMatch, MatchRecord, StandingsRow
from .scoring import badminton
from .time_utils import require_utc


class SetScore(BaseModel):
    A: int = Field(..., ge=0)
    B: int = Field(..., ge=0)

    @model_validator(mode="before")
    def _coerce(cls, value: Any) -> Dict[str, int]:
        """Allow incoming set scores to be provided as tuples or objects."""
        if isinstance(value, dict):
            return value
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return {"A": value[0], "B": value[1]}
        if hasattr(value, "A") or hasattr(value, "B"):
            return {"A": getattr(value, "A", None), "B": getattr(value, "B", None)}
        raise TypeError("Set scores must be a mapping or 2-item tuple/list.")


class FinalizeIn(BaseModel):
    """Optional final set list submitted together with the finalize call."""

    sets: Optional[List[SetScore]] = None


class ScoreDeltaIn(BaseModel):
    side: Literal["A", "B"]
    delta: int = Field(default=1, ge=-5, le=5)

    @field_validator("delta")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("delta must not be zero")
        return value


class MatchOut(BaseModel):
    """Match state returned by the API."""

    id: str
    tournamentId: str
    sideA: str
    sideB: str
    sets: List[List[int]] = Field(default_factory=list)
    bestOf: int
    pointsTo: int
    winBy: int = 2
    maxPoints: Optional[int] = None
    court: Optional[int] = None
    scheduledAt: Optional[datetime] = None
    status: Literal["scheduled", "live", "completed"]
    winnerId: Optional[str] = None
    completedAt: Optional[datetime] = None
    summary: Optional[Dict[str, Any]] = None

    @classmethod
    def from_record(cls, match: MatchRecord) -> "MatchOut":
        return cls(
            id=match.id,
            tournamentId=match.tournament_id,
            sideA=match.side_a,
            sideB=match.side_b,
            sets=[[score.a, score.b] for score in match.sets],
            bestOf=match.format.best_of,
            pointsTo=match.format.points_to,
            winBy=match.format.win_by,
            maxPoints=match.format.max_points,
            court=match.court,
            scheduledAt=match.scheduled_at,
            status=match.status.value,
            winnerId=match.winner_id,
            completedAt=match.completed_at,
            summary=badminton.summary(match.sets, match.format),
        )


class FinalizedMatchOut(BaseModel):
    matchId: str
    winnerId: str
    loserId: str
    sets: Dict[str, int]
    completedAt: datetime

    @classmethod
    def from_result(cls, result: FinalizedMatch) -> "FinalizedMatchOut":
        return cls(
            matchId=result.match_id,
            winnerId=result.winner_id,
            loserId=result.loser_id,
            sets={"A": result.sets_a, "B": result.sets_b},
            completedAt=result.completed_at,
        )


class StandingOut(BaseModel):
    """One line of a league table."""

    rank: int
    teamId: str
    teamName: str
    played: int
    won: int
    lost: int
    setsWon: int
    setsLost: int
    pointsScored: int
    pointsConceded: int
    pointsDiff: int
    points: int

    @classmethod
    def from_row(cls, row: StandingsRow) -> "StandingOut":
        return cls(
            rank=row.rank,
            teamId=row.team_id,
            teamName=row.team_name,
            played=row.played,
            won=row.won,
            lost=row.lost,
            setsWon=row.sets_won,
            setsLost=row.sets_lost,
            pointsScored=row.points_scored,
            pointsConceded=row.points_conceded,
            pointsDiff=row.points_diff,
            points=row.points,
        )


class StandingsOut(BaseModel):
    tournamentId: str
    criteria: List[str]
    standings: List[StandingOut] = Field(default_factory=list)


class ScheduleRequest(BaseModel):
    """Payload used to generate a league schedule."""

    startAt: datetime
    slotMinutes: int = Field(default=30, ge=5, le=240)
    teamIds: Optional[List[str]] = None

    @field_validator("startAt")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return require_utc(value, field_name="startAt")


class ScheduleResponse(BaseModel):
    tournamentId: str
    matches: List[MatchOut] = Field(default_factory=list)
