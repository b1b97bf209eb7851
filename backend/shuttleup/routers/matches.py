# backend/shuttleup/routers/matches.py
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..domain import Authorization, SetScore
from ..schemas import FinalizeIn, FinalizedMatchOut, MatchOut, ScoreDeltaIn
from ..services import (
    MatchResultFinalizer,
    SqlAlchemyMatchRepository,
    apply_score_delta,
    start_match,
)
from ..services.notifications import MatchEventNotifier, RedisMatchNotifier
from .auth import (
    finalize_rate_limit,
    get_authorization,
    limiter,
    scoring_rate_limit,
)

logger = logging.getLogger(__name__)

# Resource-only prefix; versioning is added in main.py
router = APIRouter(prefix="/matches", tags=["matches"])


def get_notifier() -> MatchEventNotifier:
    return RedisMatchNotifier()


# GET /api/v0/matches/{mid}
@router.get("/{mid}", response_model=MatchOut)
async def get_match(mid: str, session: AsyncSession = Depends(get_session)):
    match = await SqlAlchemyMatchRepository(session).read_match(mid)
    return MatchOut.from_record(match)


# POST /api/v0/matches/{mid}/start
@router.post("/{mid}/start", response_model=MatchOut)
async def start_match_route(
    mid: str,
    session: AsyncSession = Depends(get_session),
    auth: Authorization = Depends(get_authorization),
):
    match = await start_match(SqlAlchemyMatchRepository(session), mid, auth)
    return MatchOut.from_record(match)


# POST /api/v0/matches/{mid}/score
@router.post("/{mid}/score", response_model=MatchOut)
@limiter.limit(scoring_rate_limit)
async def score_match_route(
    request: Request,
    mid: str,
    body: ScoreDeltaIn,
    session: AsyncSession = Depends(get_session),
    auth: Authorization = Depends(get_authorization),
    notifier: MatchEventNotifier = Depends(get_notifier),
):
    match = await apply_score_delta(
        SqlAlchemyMatchRepository(session),
        mid,
        body.side,
        body.delta,
        auth,
        notifier=notifier,
    )
    return MatchOut.from_record(match)


# POST /api/v0/matches/{mid}/finalize
@router.post("/{mid}/finalize", response_model=FinalizedMatchOut)
@limiter.limit(finalize_rate_limit)
async def finalize_match_route(
    request: Request,
    mid: str,
    body: FinalizeIn | None = None,
    session: AsyncSession = Depends(get_session),
    auth: Authorization = Depends(get_authorization),
    notifier: MatchEventNotifier = Depends(get_notifier),
):
    sets = None
    if body is not None and body.sets is not None:
        sets = [SetScore(s.A, s.B) for s in body.sets]

    finalizer = MatchResultFinalizer(
        SqlAlchemyMatchRepository(session), notifier=notifier
    )
    result = await finalizer.finalize(mid, auth, sets=sets)
    return FinalizedMatchOut.from_result(result)
