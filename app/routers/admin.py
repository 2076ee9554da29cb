from typing import Literal

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.deps import require_admin
from app.models.user import User
from app.services import users as user_service

router = APIRouter()


class ReviewUserRequest(BaseModel):
    user_id: PydanticObjectId
    action: Literal["approve", "reject"] = "approve"


def _pending_out(user: User) -> dict:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "created_at": user.created_at.isoformat(),
    }


@router.get("/pending-users")
async def pending_users(admin: User = Depends(require_admin)):
    """Admin: accounts waiting for approval."""
    users = await user_service.list_pending_users()
    return [_pending_out(u) for u in users]


@router.get("/pending-approvals")
async def pending_approvals(admin: User = Depends(require_admin)):
    users = await user_service.list_pending_users()
    return {"count": len(users), "users": [_pending_out(u) for u in users]}


@router.patch("/pending-users")
async def review_pending_user(body: ReviewUserRequest, admin: User = Depends(require_admin)):
    """Admin: approve or reject (delete) a pending account."""
    message = await user_service.review_pending_user(str(admin.id), body.user_id, body.action)
    return {"message": message}


@router.post("/reset-leaderboard")
async def reset_leaderboard(admin: User = Depends(require_admin)):
    """Admin: zero points and match counters for everyone."""
    modified = await user_service.reset_leaderboard(str(admin.id))
    return {"modified": modified}
