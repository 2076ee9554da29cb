"""Zero every user's points and match counters. Usage: python -m app.scripts.reset_leaderboard"""

import asyncio

from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger
from app.db.init import init_db
from app.services.users import reset_leaderboard

log = get_logger(__name__)


async def main() -> int:
    await init_db()
    modified = await reset_leaderboard(actor_id=None)
    log.info("script_done", script="reset_leaderboard", users=modified)
    return modified


if __name__ == "__main__":
    configure_logging(debug=get_settings().debug)
    asyncio.run(main())
