from types import SimpleNamespace

from app.services.leaderboard import rank_users


def _u(name, points, won, played):
    return SimpleNamespace(name=name, points=points, matches_won=won, matches_played=played)


def test_points_then_wins_then_fewer_played():
    first = _u("first", 10, 2, 5)
    second = _u("second", 10, 3, 4)
    third = _u("third", 5, 1, 1)
    assert [u.name for u in rank_users([first, second, third])] == ["second", "first", "third"]


def test_fewer_played_breaks_remaining_tie():
    a = _u("a", 6, 2, 6)
    b = _u("b", 6, 2, 3)
    assert [u.name for u in rank_users([a, b])] == ["b", "a"]
