"""Create (or promote) an approved admin account.

Usage: python -m app.scripts.create_admin <email> <name> <password>
"""

import asyncio
import sys

from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger
from app.core.security import hash_password
from app.db.init import init_db
from app.models.user import User
from app.services.users import normalize_email

log = get_logger(__name__)


async def main(email: str, name: str, password: str) -> User:
    await init_db()
    email = normalize_email(email)
    user = await User.find_one(User.email == email)
    if user:
        user.role = "admin"
        user.approved = True
        user.password_hash = hash_password(password)
        user.session_version += 1
        await user.save()
        log.info("admin_promoted", user_id=str(user.id), email=email)
        return user
    user = User(name=name, email=email, password_hash=hash_password(password), role="admin", approved=True)
    await user.insert()
    log.info("admin_created", user_id=str(user.id), email=email)
    return user


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    configure_logging(debug=get_settings().debug)
    asyncio.run(main(*sys.argv[1:4]))
