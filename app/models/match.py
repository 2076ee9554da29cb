from datetime import datetime
from typing import Annotated, Literal, Union

from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field

MatchStatus = Literal["pending", "accepted", "completed", "declined"]


class Singles(BaseModel):
    match_type: Literal["1v1"] = "1v1"
    player_one: PydanticObjectId
    player_two: PydanticObjectId
    player_one_score: int = 0
    player_two_score: int = 0
    winner: PydanticObjectId | None = None

    def participants(self) -> list[PydanticObjectId]:
        return [self.player_one, self.player_two]


class Team(BaseModel):
    player1: PydanticObjectId
    player2: PydanticObjectId
    score: int = 0

    def members(self) -> list[PydanticObjectId]:
        return [self.player1, self.player2]


class Doubles(BaseModel):
    match_type: Literal["2v2"] = "2v2"
    team1: Team
    team2: Team
    winner_team: Literal["team1", "team2"] | None = None

    def participants(self) -> list[PydanticObjectId]:
        return self.team1.members() + self.team2.members()


MatchFormat = Annotated[Union[Singles, Doubles], Field(discriminator="match_type")]


class Match(Document):
    format: MatchFormat
    scheduled_date: datetime
    status: MatchStatus = "pending"
    requester: PydanticObjectId
    # Point values used when the current result was applied; reversal uses these, not live settings
    awarded_win_points: int | None = None
    awarded_play_points: int | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def match_type(self) -> str:
        return self.format.match_type

    def participant_ids(self) -> list[PydanticObjectId]:
        return self.format.participants()

    def has_participant(self, user_id: PydanticObjectId) -> bool:
        return any(str(p) == str(user_id) for p in self.participant_ids())

    class Settings:
        name = "matches"
        indexes = [
            [("status", 1), ("scheduled_date", -1)],
            [("format.player_one", 1)],
            [("format.player_two", 1)],
        ]
