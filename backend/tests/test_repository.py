from dataclasses import replace

import pytest
from sqlalchemy import select

from factories import (
    CUP_START,
    ORGANIZER_ID,
    SCORER_PIN,
    create_session_maker,
    make_match,
    seed_league,
)
from shuttleup.domain import (
    Authorization,
    MatchFormat,
    MatchStatus,
    SetScore,
    TieBreak,
    UserRole,
)
from shuttleup.exceptions import ConflictError, NotFoundError
from shuttleup.models import CreditLog, Match, Team, Tournament, User
from shuttleup.services import (
    MatchResultFinalizer,
    SqlAlchemyMatchRepository,
    delete_team,
    load_standings,
)

SCORER = Authorization(scorer_pin=SCORER_PIN)
ORGANIZER = Authorization(user_id=ORGANIZER_ID, role=UserRole.ORGANIZER)


class FailingTallyRepository(SqlAlchemyMatchRepository):
    async def update_team_tally(self, team_id, delta_wins, delta_losses, delta_points):
        if delta_losses:
            raise RuntimeError("database went away")
        await super().update_team_tally(team_id, delta_wins, delta_losses, delta_points)


@pytest.mark.anyio
async def test_records_round_trip_through_models():
    engine, maker = await create_session_maker()
    await seed_league(maker)

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        match = await repo.read_match("m1")
        tournament = await repo.read_tournament("t1")
        teams = await repo.list_teams("t1")

    assert match.status is MatchStatus.LIVE
    assert match.sets == [SetScore(21, 15), SetScore(18, 21), SetScore(21, 19)]
    assert match.scheduled_at == CUP_START
    assert match.format.best_of == 3
    assert tournament.ranking_criteria[-1] is TieBreak.HEAD_TO_HEAD
    assert tournament.is_locked is True
    assert [team.id for team in teams] == ["x", "y", "z"]
    assert teams[0].owner_account_id == "captain-x"
    await engine.dispose()


@pytest.mark.anyio
async def test_match_format_round_trips_through_models():
    engine, maker = await create_session_maker()
    await seed_league(maker)
    rally_to_15 = MatchFormat(best_of=5, points_to=15, win_by=1, max_points=None)
    record = replace(
        make_match("m9", "x", "z", status=MatchStatus.SCHEDULED), format=rally_to_15
    )

    async with maker() as session:
        session.add(
            Tournament(
                id="t2",
                name="Short Sets Cup",
                organizer_id=ORGANIZER_ID,
                best_of=1,
                points_to=11,
                win_by=2,
                max_points=15,
            )
        )
        await SqlAlchemyMatchRepository(session).add_matches([record])
        await session.commit()

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        match = await repo.read_match("m9")
        seeded = await repo.read_match("m1")
        tournament = await repo.read_tournament("t2")

    assert match.format == rally_to_15
    assert seeded.format == MatchFormat()
    assert tournament.match_format == MatchFormat(
        best_of=1, points_to=11, win_by=2, max_points=15
    )
    await engine.dispose()


@pytest.mark.anyio
async def test_tournament_without_pin_gets_default_pin():
    engine, maker = await create_session_maker()
    await seed_league(maker)

    async with maker() as session:
        session.add(Tournament(id="t2", name="Open Night", organizer_id=ORGANIZER_ID))
        await session.commit()

    async with maker() as session:
        tournament = await SqlAlchemyMatchRepository(session).read_tournament("t2")

    assert tournament.scorer_pin == "0000"
    await engine.dispose()


@pytest.mark.anyio
async def test_missing_rows_raise_not_found():
    engine, maker = await create_session_maker()

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        for reader, code in (
            (repo.read_match, "match_not_found"),
            (repo.read_tournament, "tournament_not_found"),
            (repo.read_team, "team_not_found"),
        ):
            with pytest.raises(NotFoundError) as exc:
                await reader("missing")
            assert exc.value.code == code
    await engine.dispose()


@pytest.mark.anyio
async def test_finalize_commits_result_tallies_and_reward():
    engine, maker = await create_session_maker()
    await seed_league(maker)

    async with maker() as session:
        finalizer = MatchResultFinalizer(
            SqlAlchemyMatchRepository(session), reward_credits=5
        )
        result = await finalizer.finalize("m1", SCORER)

    assert (result.winner_id, result.sets_a, result.sets_b) == ("x", 2, 1)

    async with maker() as session:
        match = await session.get(Match, "m1")
        winner = await session.get(Team, "x")
        loser = await session.get(Team, "y")
        captain = await session.get(User, "captain-x")
        logs = (await session.execute(select(CreditLog))).scalars().all()

    assert match.status == MatchStatus.COMPLETED
    assert match.winner_id == "x"
    assert match.completed_at is not None
    assert (winner.wins, winner.losses, winner.points) == (1, 0, 2)
    assert (loser.wins, loser.losses, loser.points) == (0, 1, 0)
    assert captain.credits == 105
    assert [(log.user_id, log.amount, log.match_id) for log in logs] == [
        ("captain-x", 5, "m1")
    ]
    await engine.dispose()


@pytest.mark.anyio
async def test_conditional_update_only_succeeds_once():
    engine, maker = await create_session_maker()
    await seed_league(maker)
    fields = {"status": MatchStatus.COMPLETED, "winner_id": "x"}

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        async with repo.atomic():
            first = await repo.conditional_update_match("m1", MatchStatus.LIVE, fields)

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        async with repo.atomic():
            second = await repo.conditional_update_match("m1", MatchStatus.LIVE, fields)

    assert first is True
    assert second is False
    await engine.dispose()


@pytest.mark.anyio
async def test_conditional_update_rejects_unknown_fields():
    engine, maker = await create_session_maker()
    await seed_league(maker)

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        with pytest.raises(ValueError, match="side_a_id"):
            await repo.conditional_update_match(
                "m1", MatchStatus.LIVE, {"side_a_id": "z"}
            )
    await engine.dispose()


@pytest.mark.anyio
async def test_failed_tally_rolls_back_match_update():
    engine, maker = await create_session_maker()
    await seed_league(maker)

    async with maker() as session:
        finalizer = MatchResultFinalizer(FailingTallyRepository(session))
        with pytest.raises(RuntimeError):
            await finalizer.finalize("m1", SCORER)

    async with maker() as session:
        match = await session.get(Match, "m1")
        winner = await session.get(Team, "x")

    assert match.status == MatchStatus.LIVE
    assert match.winner_id is None
    assert winner.wins == 0
    await engine.dispose()


@pytest.mark.anyio
async def test_standings_from_database():
    engine, maker = await create_session_maker()
    await seed_league(maker)

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        await MatchResultFinalizer(repo).finalize("m1", SCORER)
        rows = await load_standings(repo, "t1")

    assert [(row.team_id, row.rank) for row in rows] == [("x", 1), ("y", 2), ("z", 3)]
    assert (rows[0].points_scored, rows[0].points_conceded) == (60, 55)
    assert rows[2].played == 0
    await engine.dispose()


@pytest.mark.anyio
async def test_delete_team_removes_unplayed_matches():
    engine, maker = await create_session_maker()
    await seed_league(maker)

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        async with repo.atomic():
            await repo.add_matches(
                [make_match("m2", "y", "z", status=MatchStatus.SCHEDULED)]
            )
        removed = await delete_team(repo, "z", ORGANIZER)

    assert removed == 1
    async with maker() as session:
        assert await session.get(Team, "z") is None
        assert await session.get(Match, "m2") is None
        assert await session.get(Match, "m1") is not None
    await engine.dispose()


@pytest.mark.anyio
async def test_delete_team_with_completed_match_is_refused():
    engine, maker = await create_session_maker()
    await seed_league(maker)

    async with maker() as session:
        repo = SqlAlchemyMatchRepository(session)
        await MatchResultFinalizer(repo).finalize("m1", SCORER)
        assert await repo.count_completed_matches_for_team("y") == 1
        with pytest.raises(ConflictError):
            await delete_team(repo, "y", ORGANIZER)

    async with maker() as session:
        assert await session.get(Team, "y") is not None
    await engine.dispose()
