"""Match scheduling and result reconciliation against player counters."""

from datetime import date, datetime, time, timedelta

from beanie import PydanticObjectId
from beanie.operators import In, Inc, Set

from app.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.core.logging import get_logger
from app.models.match import Doubles, Match, MatchStatus, Singles, Team
from app.models.user import User
from app.services.league_settings import get_or_create_settings
from app.services.stats import match_outcome, outcome_deltas, same_outcome

log = get_logger(__name__)


async def _apply_outcome(
    fmt: Singles | Doubles,
    win_points: int,
    play_points: int,
    multiplier: int,
    include_played: bool,
) -> None:
    """Push counter deltas for a decided match. Users that no longer exist are skipped."""
    outcome = match_outcome(fmt)
    if outcome is None:
        return
    for user_id, delta in outcome_deltas(outcome, win_points, play_points, multiplier, include_played).items():
        await User.find_one(User.id == user_id).update(
            Inc(
                {
                    User.points: delta.points,
                    User.matches_played: delta.played,
                    User.matches_won: delta.won,
                    User.matches_lost: delta.lost,
                }
            )
        )


async def user_names(user_ids: list[PydanticObjectId]) -> dict[str, str]:
    """Map user id -> name for response payloads."""
    if not user_ids:
        return {}
    users = await User.find(In(User.id, list({str(u): u for u in user_ids}.values()))).to_list()
    return {str(u.id): u.name for u in users}


async def _require_users_exist(user_ids: list[PydanticObjectId]) -> None:
    found = await User.find(In(User.id, user_ids)).count()
    if found != len(user_ids):
        raise BadRequestError("One or more players not found")


async def create_singles_match(
    requester: User,
    opponent_id: PydanticObjectId,
    scheduled_date: datetime,
) -> Match:
    if str(opponent_id) == str(requester.id):
        raise BadRequestError("You cannot challenge yourself")
    await _require_users_exist([opponent_id])
    match = Match(
        format=Singles(player_one=requester.id, player_two=opponent_id),
        scheduled_date=scheduled_date,
        requester=requester.id,
    )
    await match.insert()
    log.info("match_created", match_id=str(match.id), match_type="1v1")
    return match


def combine_schedule(day: date, at: time | None) -> datetime:
    """Date plus optional time of day (midnight when missing), as a naive datetime."""
    return datetime.combine(day, (at or time.min).replace(tzinfo=None))


async def create_doubles_match(
    requester: User,
    team1: tuple[PydanticObjectId, PydanticObjectId],
    team2: tuple[PydanticObjectId, PydanticObjectId],
    day: date,
    at: time | None = None,
) -> Match:
    players = [*team1, *team2]
    if len({str(p) for p in players}) < 4:
        raise BadRequestError("Each player can only appear once in the match")
    scheduled = combine_schedule(day, at)
    if scheduled <= datetime.now():
        raise BadRequestError("Match must be scheduled in the future")
    await _require_users_exist(players)
    match = Match(
        format=Doubles(
            team1=Team(player1=team1[0], player2=team1[1]),
            team2=Team(player1=team2[0], player2=team2[1]),
        ),
        scheduled_date=scheduled,
        requester=requester.id,
    )
    await match.insert()
    log.info("match_created", match_id=str(match.id), match_type="2v2")
    return match


async def get_match(match_id: PydanticObjectId) -> Match:
    match = await Match.get(match_id)
    if not match:
        raise NotFoundError("Match not found")
    return match


def _ensure_can_modify(match: Match, user: User) -> None:
    if user.is_admin or match.has_participant(user.id):
        return
    raise ForbiddenError("You are not authorized to update this match")


async def list_matches_for_user(user_id: PydanticObjectId) -> list[Match]:
    """Matches of either format the user plays in, newest first."""
    fields = (
        "format.player_one",
        "format.player_two",
        "format.team1.player1",
        "format.team1.player2",
        "format.team2.player1",
        "format.team2.player2",
    )
    query = {"$or": [{f: user_id} for f in fields]}
    return await Match.find(query).sort(-Match.scheduled_date).to_list()


async def list_completed_matches() -> list[Match]:
    return await Match.find(Match.status == "completed").sort(-Match.scheduled_date).to_list()


def _set_result(
    fmt: Singles | Doubles,
    winner_id: PydanticObjectId | None,
    winner_team: str | None,
    scores: list[int] | None,
) -> bool:
    """Write winner/scores onto the format; return True when a winner was given."""
    if isinstance(fmt, Singles):
        if winner_team is not None:
            raise BadRequestError("winner_team applies to 2v2 matches")
        if scores is not None:
            fmt.player_one_score, fmt.player_two_score = scores
        if winner_id is None:
            return False
        if str(winner_id) not in (str(fmt.player_one), str(fmt.player_two)):
            raise BadRequestError("Winner must be one of the players")
        fmt.winner = winner_id
        return True
    if winner_id is not None:
        raise BadRequestError("winner_id applies to 1v1 matches; use winner_team")
    if scores is not None:
        fmt.team1.score, fmt.team2.score = scores
    if winner_team is None:
        return False
    fmt.winner_team = winner_team
    return True


def _clear_result(fmt: Singles | Doubles) -> None:
    if isinstance(fmt, Singles):
        fmt.winner = None
    else:
        fmt.winner_team = None


async def update_match(
    match_id: PydanticObjectId,
    actor: User,
    status: MatchStatus | None = None,
    winner_id: PydanticObjectId | None = None,
    winner_team: str | None = None,
    scores: list[int] | None = None,
    scheduled_date: datetime | None = None,
) -> Match:
    """
    Update status/result and keep player counters in step with the recorded outcome.

    - entering completed: full apply (points, win/loss, played)
    - completed -> completed with a different result: reverse old win/loss and points,
      apply new ones; played is untouched
    - leaving completed: full reverse, including played
    """
    match = await get_match(match_id)
    _ensure_can_modify(match, actor)

    was_completed = match.status == "completed"
    previous = match.format.model_copy(deep=True)
    previous_points = (match.awarded_win_points or 0, match.awarded_play_points or 0)

    if scheduled_date is not None:
        match.scheduled_date = scheduled_date
    if _set_result(match.format, winner_id, winner_team, scores):
        match.status = "completed"
    elif status is not None:
        match.status = status

    if match.status != "completed":
        _clear_result(match.format)
    elif match_outcome(match.format) is None:
        raise BadRequestError("A completed match needs a winner")
    now_completed = match.status == "completed"

    # claim the version we read so two concurrent edits cannot both move counters
    # stored times keep milliseconds only; always move forward by at least one
    now = max(datetime.utcnow(), match.updated_at + timedelta(milliseconds=1))
    claimed = await Match.find_one(Match.id == match.id, Match.updated_at == match.updated_at).update(
        Set({Match.updated_at: now})
    )
    if not claimed.matched_count:
        raise ConflictError("Match was changed by another request; reload and retry")

    if was_completed and not now_completed:
        await _apply_outcome(previous, *previous_points, multiplier=-1, include_played=True)
        match.awarded_win_points = match.awarded_play_points = None
        log.info("match_uncompleted", match_id=str(match.id))
    elif now_completed and not was_completed:
        settings = await get_or_create_settings()
        await _apply_outcome(
            match.format, settings.points_for_win, settings.points_for_play, multiplier=1, include_played=True
        )
        match.awarded_win_points = settings.points_for_win
        match.awarded_play_points = settings.points_for_play
        log.info("match_completed", match_id=str(match.id), match_type=match.match_type)
    elif now_completed and not same_outcome(match_outcome(previous), match_outcome(match.format)):
        settings = await get_or_create_settings()
        await _apply_outcome(previous, *previous_points, multiplier=-1, include_played=False)
        await _apply_outcome(
            match.format, settings.points_for_win, settings.points_for_play, multiplier=1, include_played=False
        )
        match.awarded_win_points = settings.points_for_win
        match.awarded_play_points = settings.points_for_play
        log.info("match_result_changed", match_id=str(match.id))

    match.updated_at = now
    await match.save()
    return match


async def delete_match(match_id: PydanticObjectId, actor: User) -> None:
    match = await get_match(match_id)
    _ensure_can_modify(match, actor)
    deleted = await Match.find_one(Match.id == match.id, Match.updated_at == match.updated_at).delete()
    if not deleted or not deleted.deleted_count:
        raise ConflictError("Match was changed by another request; reload and retry")
    if match.status == "completed":
        await _apply_outcome(
            match.format,
            match.awarded_win_points or 0,
            match.awarded_play_points or 0,
            multiplier=-1,
            include_played=True,
        )
    log.info("match_deleted", match_id=str(match_id), was_completed=match.status == "completed")
