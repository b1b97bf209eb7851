from collections import Counter
from datetime import timedelta

import pytest

from factories import CUP_START, ORGANIZER_ID, make_match, make_team, make_tournament
from shuttleup.domain import Authorization, MatchStatus, UserRole
from shuttleup.exceptions import ConflictError, NotFoundError, PermissionDenied
from shuttleup.services import delete_team, schedule_round_robin
from shuttleup.services.memory import InMemoryMatchRepository
from shuttleup.services.tournaments import assign_courts, round_robin_rounds

ORGANIZER = Authorization(user_id=ORGANIZER_ID, role=UserRole.ORGANIZER)


def _league(*team_ids, **tournament_overrides):
    return InMemoryMatchRepository(
        tournaments=[make_tournament(**tournament_overrides)],
        teams=[make_team(tid) for tid in team_ids],
    )


def test_round_robin_pairs_every_team_once():
    rounds = round_robin_rounds(["a", "b", "c", "d"])

    assert len(rounds) == 3
    pairs = Counter(frozenset(pair) for pairing in rounds for pair in pairing)
    assert len(pairs) == 6
    assert set(pairs.values()) == {1}
    for pairing in rounds:
        playing = [team for pair in pairing for team in pair]
        assert len(playing) == len(set(playing))


def test_round_robin_with_odd_team_count_gives_byes():
    rounds = round_robin_rounds(["a", "b", "c"])

    assert len(rounds) == 3
    assert all(len(pairing) == 1 for pairing in rounds)


@pytest.mark.parametrize("teams", [["a"], ["a", "a", "b"]], ids=["too-few", "duplicate"])
def test_round_robin_rejects_bad_rosters(teams):
    with pytest.raises(ValueError):
        round_robin_rounds(teams)


def test_assign_courts_batches_round_into_time_slots():
    rounds = [[("a", "b"), ("c", "d"), ("e", "f")]]

    slots = assign_courts(rounds, 2, CUP_START, 40)

    assert [(s.side_a, s.court) for s in slots] == [("a", 1), ("c", 2), ("e", 1)]
    assert slots[0].starts_at == slots[1].starts_at == CUP_START
    assert slots[2].starts_at == CUP_START + timedelta(minutes=40)


def test_assign_courts_needs_a_court():
    with pytest.raises(ValueError):
        assign_courts([[("a", "b")]], 0, CUP_START, 30)


@pytest.mark.anyio
async def test_schedule_round_robin_creates_scheduled_matches():
    repo = _league("a", "b", "c", "d", court_count=2)

    matches = await schedule_round_robin(repo, "t1", ORGANIZER, start_at=CUP_START)

    assert len(matches) == 6
    assert len(repo.matches) == 6
    assert all(m.status == MatchStatus.SCHEDULED for m in matches)
    assert {m.court for m in matches} == {1, 2}
    assert sorted({m.scheduled_at for m in matches}) == [
        CUP_START + timedelta(minutes=30 * slot) for slot in range(3)
    ]


@pytest.mark.anyio
async def test_schedule_subset_of_teams():
    repo = _league("a", "b", "c")

    matches = await schedule_round_robin(
        repo, "t1", ORGANIZER, start_at=CUP_START, team_ids=["a", "c"]
    )

    assert [(m.side_a, m.side_b) for m in matches] == [("a", "c")]


@pytest.mark.anyio
async def test_schedule_requires_locked_tournament():
    repo = _league("a", "b", is_locked=False)

    with pytest.raises(ConflictError, match="locked"):
        await schedule_round_robin(repo, "t1", ORGANIZER, start_at=CUP_START)
    assert repo.matches == {}


@pytest.mark.anyio
async def test_schedule_requires_organizer():
    repo = _league("a", "b")

    with pytest.raises(PermissionDenied):
        await schedule_round_robin(
            repo, "t1", Authorization(user_id="someone"), start_at=CUP_START
        )


@pytest.mark.anyio
async def test_schedule_unknown_team_is_not_found():
    repo = _league("a", "b")

    with pytest.raises(NotFoundError):
        await schedule_round_robin(
            repo, "t1", ORGANIZER, start_at=CUP_START, team_ids=["a", "ghost"]
        )


@pytest.mark.anyio
async def test_delete_team_keeps_teams_with_results():
    repo = InMemoryMatchRepository(
        tournaments=[make_tournament()],
        teams=[make_team("a"), make_team("b"), make_team("c")],
        matches=[
            make_match("m1", "a", "b", [(21, 3), (21, 3)],
                       status=MatchStatus.COMPLETED, winner_id="a"),
            make_match("m2", "b", "c", status=MatchStatus.SCHEDULED),
        ],
    )

    with pytest.raises(ConflictError, match="completed"):
        await delete_team(repo, "a", ORGANIZER)
    with pytest.raises(PermissionDenied):
        await delete_team(repo, "c", Authorization(user_id="someone"))

    assert await delete_team(repo, "c", ORGANIZER) == 1
    assert set(repo.teams) == {"a", "b"}
    assert set(repo.matches) == {"m1"}
