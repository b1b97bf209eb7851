"""Internal application services."""

from .validation import ValidationError, validate_set_scores
from .repository import MatchRepository, SqlAlchemyMatchRepository
from .memory import InMemoryMatchRepository
from .finalizer import MatchResultFinalizer, decide_winner
from .standings import StandingsCalculator, load_standings, load_standings_table
from .live import apply_score_delta, start_match
from .teams import delete_team
from .tournaments import schedule_round_robin

__all__ = [
    "validate_set_scores",
    "ValidationError",
    "MatchRepository",
    "SqlAlchemyMatchRepository",
    "InMemoryMatchRepository",
    "MatchResultFinalizer",
    "decide_winner",
    "StandingsCalculator",
    "load_standings",
    "load_standings_table",
    "start_match",
    "apply_score_delta",
    "delete_team",
    "schedule_round_robin",
]
