"""Leaderboard ordering."""

from app.models.user import User


def standing_key(user: User) -> tuple[int, int, int]:
    """Points desc, then wins desc, then fewer matches played first."""
    return (-user.points, -user.matches_won, user.matches_played)


def rank_users(users: list[User]) -> list[User]:
    return sorted(users, key=standing_key)


async def get_leaderboard() -> list[User]:
    users = await User.find_all().to_list()
    return rank_users(users)
