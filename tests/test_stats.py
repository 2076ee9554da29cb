from beanie import PydanticObjectId

from app.models.match import Doubles, Singles, Team
from app.services.stats import StatDelta, match_outcome, outcome_deltas, same_outcome

A, B, C, D = (PydanticObjectId() for _ in range(4))


def test_singles_outcome():
    assert match_outcome(Singles(player_one=A, player_two=B)) is None
    out = match_outcome(Singles(player_one=A, player_two=B, winner=B))
    assert out.winners == (B,)
    assert out.losers == (A,)


def test_doubles_outcome():
    fmt = Doubles(team1=Team(player1=A, player2=B), team2=Team(player1=C, player2=D), winner_team="team2")
    out = match_outcome(fmt)
    assert set(out.winners) == {C, D}
    assert set(out.losers) == {A, B}


def test_apply_deltas():
    out = match_outcome(Singles(player_one=A, player_two=B, winner=A))
    deltas = outcome_deltas(out, win_points=3, play_points=1)
    assert deltas[A] == StatDelta(points=3, played=1, won=1, lost=0)
    assert deltas[B] == StatDelta(points=1, played=1, won=0, lost=1)


def test_reverse_result_keeps_played():
    out = match_outcome(Singles(player_one=A, player_two=B, winner=A))
    deltas = outcome_deltas(out, 3, 1, multiplier=-1, include_played=False)
    assert deltas[A] == StatDelta(points=-3, played=0, won=-1, lost=0)
    assert deltas[B] == StatDelta(points=-1, played=0, won=0, lost=-1)


def test_full_reverse_cancels_apply():
    out = match_outcome(
        Doubles(team1=Team(player1=A, player2=B), team2=Team(player1=C, player2=D), winner_team="team1")
    )
    forward = outcome_deltas(out, 5, 2)
    backward = outcome_deltas(out, 5, 2, multiplier=-1, include_played=True)
    for uid in (A, B, C, D):
        assert tuple(x + y for x, y in zip(forward[uid], backward[uid])) == (0, 0, 0, 0)


def test_same_outcome():
    a = match_outcome(Singles(player_one=A, player_two=B, winner=A))
    b = match_outcome(Singles(player_one=A, player_two=B, winner=B))
    assert same_outcome(a, a)
    assert not same_outcome(a, b)
    assert not same_outcome(a, None)
    assert same_outcome(None, None)
