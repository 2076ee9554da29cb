from fastapi import APIRouter, Response

from app.services import leaderboard as leaderboard_service

router = APIRouter()


@router.get("")
async def leaderboard(response: Response):
    """Standings: points desc, wins desc, matches played asc."""
    users = await leaderboard_service.get_leaderboard()
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate"
    return [
        {
            "id": str(u.id),
            "name": u.name,
            "points": u.points,
            "matches_played": u.matches_played,
            "matches_won": u.matches_won,
            "matches_lost": u.matches_lost,
        }
        for u in users
    ]
