from datetime import date, datetime, time
from typing import Annotated, Literal

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.deps import get_current_user, parse_object_id
from app.models.match import Match, MatchStatus, Singles
from app.models.user import User
from app.services import matches as matches_service

router = APIRouter()


class CreateMatchRequest(BaseModel):
    opponent_id: PydanticObjectId
    scheduled_date: datetime


class TeamIn(BaseModel):
    player1: PydanticObjectId
    player2: PydanticObjectId


class CreateDoublesRequest(BaseModel):
    team1: TeamIn
    team2: TeamIn
    scheduled_date: date
    match_time: time | None = None


class UpdateMatchRequest(BaseModel):
    status: MatchStatus | None = None
    winner_id: PydanticObjectId | None = None
    winner_team: Literal["team1", "team2"] | None = None
    scores: Annotated[list[int], Field(min_length=2, max_length=2)] | None = None
    scheduled_date: datetime | None = None


def _player(user_id: PydanticObjectId | None, names: dict[str, str]) -> dict | None:
    if user_id is None:
        return None
    return {"id": str(user_id), "name": names.get(str(user_id))}


def match_out(match: Match, names: dict[str, str]) -> dict:
    out = {
        "id": str(match.id),
        "match_type": match.match_type,
        "status": match.status,
        "scheduled_date": match.scheduled_date.isoformat(),
        "requester": _player(match.requester, names),
        "created_at": match.created_at.isoformat(),
        "updated_at": match.updated_at.isoformat(),
    }
    fmt = match.format
    if isinstance(fmt, Singles):
        out.update(
            player_one=_player(fmt.player_one, names),
            player_two=_player(fmt.player_two, names),
            player_one_score=fmt.player_one_score,
            player_two_score=fmt.player_two_score,
            winner=_player(fmt.winner, names),
        )
    else:
        out.update(
            team1={
                "player1": _player(fmt.team1.player1, names),
                "player2": _player(fmt.team1.player2, names),
                "score": fmt.team1.score,
            },
            team2={
                "player1": _player(fmt.team2.player1, names),
                "player2": _player(fmt.team2.player2, names),
                "score": fmt.team2.score,
            },
            winner_team=fmt.winner_team,
        )
    return out


async def _matches_out(matches: list[Match]) -> list[dict]:
    ids = [m.requester for m in matches] + [p for m in matches for p in m.participant_ids()]
    names = await matches_service.user_names(ids)
    return [match_out(m, names) for m in matches]


@router.get("")
async def matches_list(user: User = Depends(get_current_user)):
    """Matches the current user plays in (1v1 and 2v2), newest first."""
    matches = await matches_service.list_matches_for_user(user.id)
    return await _matches_out(matches)


@router.post("", status_code=status.HTTP_201_CREATED)
async def match_create(body: CreateMatchRequest, user: User = Depends(get_current_user)):
    """Challenge another player to a 1v1 match."""
    match = await matches_service.create_singles_match(user, body.opponent_id, body.scheduled_date)
    return (await _matches_out([match]))[0]


@router.post("/2v2", status_code=status.HTTP_201_CREATED)
async def match_create_doubles(body: CreateDoublesRequest, user: User = Depends(get_current_user)):
    """Create a 2v2 match: four distinct players, scheduled in the future."""
    match = await matches_service.create_doubles_match(
        user,
        (body.team1.player1, body.team1.player2),
        (body.team2.player1, body.team2.player2),
        body.scheduled_date,
        body.match_time,
    )
    return {
        "match_id": str(match.id),
        "message": "2v2 match created successfully. Waiting for opponent confirmation.",
    }


@router.get("/details")
async def matches_details():
    """All completed matches with player names."""
    matches = await matches_service.list_completed_matches()
    return await _matches_out(matches)


@router.get("/{match_id}")
async def match_get(match_id: str, user: User = Depends(get_current_user)):
    match = await matches_service.get_match(parse_object_id(match_id, "match id"))
    return (await _matches_out([match]))[0]


@router.patch("/{match_id}")
async def match_update(match_id: str, body: UpdateMatchRequest, user: User = Depends(get_current_user)):
    """Accept/decline, record or correct a result; player stats follow the result."""
    match = await matches_service.update_match(
        parse_object_id(match_id, "match id"),
        user,
        status=body.status,
        winner_id=body.winner_id,
        winner_team=body.winner_team,
        scores=body.scores,
        scheduled_date=body.scheduled_date,
    )
    return (await _matches_out([match]))[0]


@router.delete("/{match_id}")
async def match_delete(match_id: str, user: User = Depends(get_current_user)):
    await matches_service.delete_match(parse_object_id(match_id, "match id"), user)
    return {"status": "deleted"}
