from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.deps import require_admin
from app.models.league_settings import LeagueSettings
from app.models.user import User
from app.services import league_settings as settings_service

router = APIRouter()


class UpdateSettingsRequest(BaseModel):
    points_for_win: int | None = Field(default=None, ge=0)
    points_for_play: int | None = Field(default=None, ge=0)


def settings_out(settings: LeagueSettings) -> dict:
    return {"points_for_win": settings.points_for_win, "points_for_play": settings.points_for_play}


@router.get("")
async def settings_get():
    """Public: current points per win and per played match."""
    return settings_out(await settings_service.get_or_create_settings())


@router.patch("")
async def settings_update(body: UpdateSettingsRequest, admin: User = Depends(require_admin)):
    settings = await settings_service.update_settings(
        str(admin.id),
        points_for_win=body.points_for_win,
        points_for_play=body.points_for_play,
    )
    return settings_out(settings)
