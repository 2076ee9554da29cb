"""Pure match-outcome arithmetic: who won, and what each player's counters move by."""

from typing import NamedTuple

from beanie import PydanticObjectId

from app.models.match import Doubles, Singles


class Outcome(NamedTuple):
    winners: tuple[PydanticObjectId, ...]
    losers: tuple[PydanticObjectId, ...]


class StatDelta(NamedTuple):
    points: int = 0
    played: int = 0
    won: int = 0
    lost: int = 0


def match_outcome(fmt: Singles | Doubles) -> Outcome | None:
    """Return winners/losers for a decided match, None while no winner is recorded."""
    if isinstance(fmt, Singles):
        if fmt.winner is None:
            return None
        if str(fmt.winner) == str(fmt.player_one):
            return Outcome((fmt.player_one,), (fmt.player_two,))
        return Outcome((fmt.player_two,), (fmt.player_one,))
    if isinstance(fmt, Doubles):
        if fmt.winner_team is None:
            return None
        if fmt.winner_team == "team1":
            return Outcome(tuple(fmt.team1.members()), tuple(fmt.team2.members()))
        return Outcome(tuple(fmt.team2.members()), tuple(fmt.team1.members()))
    raise TypeError(f"Unknown match format: {type(fmt).__name__}")


def outcome_deltas(
    outcome: Outcome,
    win_points: int,
    play_points: int,
    multiplier: int = 1,
    include_played: bool = True,
) -> dict[PydanticObjectId, StatDelta]:
    """
    Counter changes for every participant of a decided match.

    multiplier=1 applies the result, -1 reverses it. include_played controls the
    matches_played counter separately so that correcting a result (played stays)
    and undoing a completion (played goes back) are distinct operations.
    """
    played = multiplier if include_played else 0
    deltas: dict[PydanticObjectId, StatDelta] = {}
    for user_id in outcome.winners:
        deltas[user_id] = StatDelta(points=win_points * multiplier, played=played, won=multiplier)
    for user_id in outcome.losers:
        deltas[user_id] = StatDelta(points=play_points * multiplier, played=played, lost=multiplier)
    return deltas


def same_outcome(a: Outcome | None, b: Outcome | None) -> bool:
    if a is None or b is None:
        return a is b
    return {str(x) for x in a.winners} == {str(x) for x in b.winners} and {
        str(x) for x in a.losers
    } == {str(x) for x in b.losers}
