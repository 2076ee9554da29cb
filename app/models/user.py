from datetime import datetime
from typing import Literal

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    name: str
    email: Indexed(str, unique=True)
    password_hash: str = ""
    role: Literal["user", "admin"] = "user"
    approved: bool = False
    points: int = 0
    matches_played: int = 0
    matches_won: int = 0
    matches_lost: int = 0
    outstanding_balance: float = 0.0
    dob: datetime | None = None
    anniversary: datetime | None = None
    session_version: int = 0
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    class Settings:
        name = "users"
        indexes = [[("approved", 1), ("created_at", -1)]]
