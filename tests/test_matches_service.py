"""Match result reconciliation against player counters (needs MongoDB)."""

import asyncio
from datetime import date, datetime, timedelta

import pytest

from app.core.exceptions import BadRequestError, ConflictError, ForbiddenError
from app.models.league_settings import LeagueSettings
from app.models.user import User
from app.services import matches as matches_service
from app.services.league_settings import get_or_create_settings

pytestmark = pytest.mark.asyncio


async def _counters(user: User) -> tuple[int, int, int, int]:
    fresh = await User.get(user.id)
    return fresh.points, fresh.matches_played, fresh.matches_won, fresh.matches_lost


async def test_first_completion_awards_points(make_user):
    a, b = await make_user("Alice"), await make_user("Bob")
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    await matches_service.update_match(match.id, a, winner_id=a.id)
    assert await _counters(a) == (3, 1, 1, 0)
    assert await _counters(b) == (1, 1, 0, 1)


async def test_changing_winner_swaps_result_but_not_played(make_user):
    a, b = await make_user("Alice"), await make_user("Bob")
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    await matches_service.update_match(match.id, a, winner_id=a.id)
    updated = await matches_service.update_match(match.id, b, winner_id=b.id)
    assert updated.status == "completed"
    assert await _counters(a) == (1, 1, 0, 1)
    assert await _counters(b) == (3, 1, 1, 0)


async def test_same_winner_again_changes_nothing(make_user):
    a, b = await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    await matches_service.update_match(match.id, a, winner_id=a.id)
    await matches_service.update_match(match.id, a, winner_id=a.id, scores=[21, 15])
    assert await _counters(a) == (3, 1, 1, 0)


async def test_delete_completed_match_restores_counters(make_user):
    a, b = await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    await matches_service.update_match(match.id, a, winner_id=b.id)
    await matches_service.delete_match(match.id, a)
    assert await _counters(a) == (0, 0, 0, 0)
    assert await _counters(b) == (0, 0, 0, 0)


async def test_leaving_completed_reverses_fully(make_user):
    a, b = await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    await matches_service.update_match(match.id, a, winner_id=a.id)
    updated = await matches_service.update_match(match.id, a, status="accepted")
    assert updated.format.winner is None
    assert await _counters(a) == (0, 0, 0, 0)
    assert await _counters(b) == (0, 0, 0, 0)


async def test_reversal_uses_points_in_force_at_completion(make_user):
    from app.services.league_settings import update_settings

    admin = await make_user(role="admin")
    a, b = await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    await matches_service.update_match(match.id, a, winner_id=a.id)
    await update_settings(str(admin.id), points_for_win=10, points_for_play=4)
    await matches_service.delete_match(match.id, admin)
    assert await _counters(a) == (0, 0, 0, 0)
    assert await _counters(b) == (0, 0, 0, 0)


async def test_doubles_completion(make_user):
    p = [await make_user() for _ in range(4)]
    match = await matches_service.create_doubles_match(
        p[0], (p[0].id, p[1].id), (p[2].id, p[3].id), date.today() + timedelta(days=2)
    )
    assert match.match_type == "2v2"
    await matches_service.update_match(match.id, p[2], winner_team="team2", scores=[15, 21])
    for loser in p[:2]:
        assert await _counters(loser) == (1, 1, 0, 1)
    for winner in p[2:]:
        assert await _counters(winner) == (3, 1, 1, 0)


async def test_doubles_requires_four_distinct_players(make_user):
    a, b, c = await make_user(), await make_user(), await make_user()
    with pytest.raises(BadRequestError):
        await matches_service.create_doubles_match(a, (a.id, b.id), (c.id, a.id), date.today() + timedelta(days=1))


async def test_doubles_must_be_in_future(make_user):
    p = [await make_user() for _ in range(4)]
    with pytest.raises(BadRequestError):
        await matches_service.create_doubles_match(
            p[0], (p[0].id, p[1].id), (p[2].id, p[3].id), date.today() - timedelta(days=1)
        )


async def test_outsider_cannot_update(make_user):
    a, b, outsider = await make_user(), await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    with pytest.raises(ForbiddenError):
        await matches_service.update_match(match.id, outsider, winner_id=a.id)


async def test_completed_requires_winner(make_user):
    a, b = await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    with pytest.raises(BadRequestError):
        await matches_service.update_match(match.id, a, status="completed")


async def test_winner_must_be_participant(make_user):
    a, b, c = await make_user(), await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    with pytest.raises(BadRequestError):
        await matches_service.update_match(match.id, a, winner_id=c.id)


async def test_missing_player_is_skipped(make_user):
    a, b = await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    await b.delete()
    await matches_service.update_match(match.id, a, winner_id=a.id)
    assert await _counters(a) == (3, 1, 1, 0)


async def test_list_matches_for_user_covers_both_formats(make_user):
    p = [await make_user() for _ in range(4)]
    await matches_service.create_singles_match(p[0], p[1].id, datetime.utcnow())
    await matches_service.create_doubles_match(
        p[1], (p[1].id, p[2].id), (p[3].id, p[0].id), date.today() + timedelta(days=3)
    )
    assert len(await matches_service.list_matches_for_user(p[0].id)) == 2
    assert len(await matches_service.list_matches_for_user(p[2].id)) == 1


async def test_stale_completion_is_rejected(make_user, monkeypatch):
    a, b = await make_user(), await make_user()
    match = await matches_service.create_singles_match(a, b.id, datetime.utcnow())
    stale = await matches_service.get_match(match.id)
    await matches_service.update_match(match.id, a, winner_id=a.id)

    async def _stale_get(match_id):
        return stale.model_copy(deep=True)

    monkeypatch.setattr(matches_service, "get_match", _stale_get)
    with pytest.raises(ConflictError):
        await matches_service.update_match(match.id, b, winner_id=a.id)
    with pytest.raises(ConflictError):
        await matches_service.delete_match(match.id, a)
    assert await _counters(a) == (3, 1, 1, 0)
    assert await _counters(b) == (1, 1, 0, 1)


async def test_settings_singleton_created_once(db):
    first, second = await asyncio.gather(get_or_create_settings(), get_or_create_settings())
    assert first.id == second.id
    assert (first.points_for_win, first.points_for_play) == (3, 1)
    assert await LeagueSettings.find_all().count() == 1
