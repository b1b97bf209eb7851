from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from .config import DEFAULT_SCORER_PIN
from .db import Base
from .domain import MatchStatus, UserRole


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "user"
    id = Column(String, primary_key=True)
    username = Column(String, unique=True, nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=_enum_values),
        nullable=False,
        default=UserRole.PLAYER,
    )
    credits = Column(Integer, nullable=False, default=0)


class Player(Base):
    __tablename__ = "player"
    id = Column(String, primary_key=True)
    # ``None`` for guests entered by name only.
    user_id = Column(String, ForeignKey("user.id"), nullable=True)
    name = Column(String, nullable=False)


class Tournament(Base):
    __tablename__ = "tournament"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    organizer_id = Column(String, ForeignKey("user.id"), nullable=True)
    scorer_pin = Column(String, nullable=True, default=DEFAULT_SCORER_PIN)
    is_locked = Column(Boolean, nullable=False, default=False)
    court_count = Column(Integer, nullable=False, default=1)
    best_of = Column(Integer, nullable=False, default=3)
    points_to = Column(Integer, nullable=False, default=21)
    win_by = Column(Integer, nullable=False, default=2)
    max_points = Column(Integer, nullable=True, default=30)
    points_per_win = Column(Integer, nullable=False, default=2)
    points_per_loss = Column(Integer, nullable=False, default=0)
    ranking_criteria = Column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True
    )


class Team(Base):
    __tablename__ = "team"
    id = Column(String, primary_key=True)
    tournament_id = Column(String, ForeignKey("tournament.id"), nullable=False)
    name = Column(String, nullable=False)
    player_ids = Column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list
    )
    owner_account_id = Column(String, ForeignKey("user.id"), nullable=True)
    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)
    points = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("tournament_id", "name", name="uq_team_tournament_name"),
    )


class Match(Base):
    __tablename__ = "match"
    id = Column(String, primary_key=True)
    tournament_id = Column(String, ForeignKey("tournament.id"), nullable=False)
    side_a_id = Column(String, ForeignKey("team.id"), nullable=False)
    side_b_id = Column(String, ForeignKey("team.id"), nullable=False)
    # [[a, b], ...] one pair per set
    sets = Column(JSON, nullable=False, default=list)
    best_of = Column(Integer, nullable=False, default=3)
    points_to = Column(Integer, nullable=False, default=21)
    win_by = Column(Integer, nullable=False, default=2)
    max_points = Column(Integer, nullable=True, default=30)
    court = Column(Integer, nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(
        Enum(MatchStatus, name="match_status", values_callable=_enum_values),
        nullable=False,
        default=MatchStatus.SCHEDULED,
    )
    winner_id = Column(String, ForeignKey("team.id"), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_match_tournament_status", "tournament_id", "status"),
    )


class CreditLog(Base):
    __tablename__ = "credit_log"
    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("user.id"), nullable=False)
    amount = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)
    match_id = Column(String, ForeignKey("match.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
