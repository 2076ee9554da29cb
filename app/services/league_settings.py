"""League points settings singleton."""

from pymongo.errors import DuplicateKeyError

from app.core.audit import log_event
from app.core.config import get_settings
from app.core.exceptions import BadRequestError
from app.core.logging import get_logger
from app.models.league_settings import SETTINGS_ID, LeagueSettings

log = get_logger(__name__)


async def get_or_create_settings() -> LeagueSettings:
    """Return the settings document, creating it from config defaults on first read."""
    settings = await LeagueSettings.get(SETTINGS_ID)
    if settings:
        return settings
    cfg = get_settings()
    settings = LeagueSettings(
        id=SETTINGS_ID,
        points_for_win=cfg.default_points_for_win,
        points_for_play=cfg.default_points_for_play,
    )
    try:
        await settings.insert()
    except DuplicateKeyError:
        # another request created it first
        return await LeagueSettings.get(SETTINGS_ID)
    log.info("settings_created", points_for_win=settings.points_for_win, points_for_play=settings.points_for_play)
    return settings


async def update_settings(
    actor_id: str,
    points_for_win: int | None = None,
    points_for_play: int | None = None,
) -> LeagueSettings:
    settings = await get_or_create_settings()
    for value in (points_for_win, points_for_play):
        if value is not None and value < 0:
            raise BadRequestError("Point values must be non-negative")
    before = {"points_for_win": settings.points_for_win, "points_for_play": settings.points_for_play}
    if points_for_win is not None:
        settings.points_for_win = points_for_win
    if points_for_play is not None:
        settings.points_for_play = points_for_play
    await settings.save()
    after = {"points_for_win": settings.points_for_win, "points_for_play": settings.points_for_play}
    log.info("settings_updated", **after)
    await log_event(actor_id, "settings_updated", "settings", str(settings.id), {"before": before, "after": after})
    return settings
