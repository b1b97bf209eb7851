from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..domain import Authorization, TieBreak
from ..exceptions import http_problem
from ..schemas import MatchOut, ScheduleRequest, ScheduleResponse, StandingOut, StandingsOut
from ..services import (
    SqlAlchemyMatchRepository,
    delete_team,
    load_standings_table,
    schedule_round_robin,
)
from .auth import get_authorization

router = APIRouter()


@router.get("/tournaments/{tournament_id}/standings", response_model=StandingsOut)
async def get_standings(
    tournament_id: str,
    criteria: Optional[List[str]] = Query(None),
    session: AsyncSession = Depends(get_session),
):
    order = None
    if criteria:
        try:
            order = TieBreak.parse_many(criteria)
        except ValueError as exc:
            raise http_problem(
                status_code=422,
                detail=str(exc),
                code="standings_invalid_criteria",
            )

    table = await load_standings_table(
        SqlAlchemyMatchRepository(session), tournament_id, order
    )
    return StandingsOut(
        tournamentId=tournament_id,
        criteria=[criterion.value for criterion in table.criteria],
        standings=[StandingOut.from_row(row) for row in table.rows],
    )


@router.post("/tournaments/{tournament_id}/schedule", response_model=ScheduleResponse)
async def schedule_tournament(
    tournament_id: str,
    body: ScheduleRequest,
    session: AsyncSession = Depends(get_session),
    auth: Authorization = Depends(get_authorization),
):
    try:
        matches = await schedule_round_robin(
            SqlAlchemyMatchRepository(session),
            tournament_id,
            auth,
            start_at=body.startAt,
            slot_minutes=body.slotMinutes,
            team_ids=body.teamIds,
        )
    except ValueError as exc:
        raise http_problem(
            status_code=400,
            detail=str(exc),
            code="schedule_invalid",
        )
    return ScheduleResponse(
        tournamentId=tournament_id,
        matches=[MatchOut.from_record(match) for match in matches],
    )


@router.delete("/tournaments/{tournament_id}/teams/{team_id}", status_code=204)
async def delete_team_route(
    tournament_id: str,
    team_id: str,
    session: AsyncSession = Depends(get_session),
    auth: Authorization = Depends(get_authorization),
):
    repository = SqlAlchemyMatchRepository(session)
    team = await repository.read_team(team_id)
    if team.tournament_id != tournament_id:
        raise http_problem(
            status_code=404,
            detail="team not found",
            code="team_not_found",
        )
    await delete_team(repository, team_id, auth)
    return Response(status_code=204)
