from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field

from app.core.exceptions import ForbiddenError
from app.core.pagination import Page, paginate
from app.deps import get_current_user, parse_object_id, require_admin
from app.models.user import User
from app.services import ledger as ledger_service
from app.services import users as user_service

router = APIRouter()


def user_out(user: User) -> dict:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "approved": user.approved,
        "points": user.points,
        "matches_played": user.matches_played,
        "matches_won": user.matches_won,
        "matches_lost": user.matches_lost,
        "outstanding_balance": user.outstanding_balance,
        "dob": user.dob.isoformat() if user.dob else None,
        "anniversary": user.anniversary.isoformat() if user.anniversary else None,
        "created_at": user.created_at.isoformat(),
    }


class CreateUserRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Literal["user", "admin"] = "user"


class UpdateUserRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None
    role: Literal["user", "admin"] | None = None
    approved: bool | None = None
    dob: datetime | None = None
    anniversary: datetime | None = None


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class LedgerEntryOut(BaseModel):
    id: str
    amount: float
    reason: str
    reference_type: str | None
    reference_id: str | None
    created_at: str


@router.get("/list")
async def users_list_basic(user: User = Depends(get_current_user)):
    """Names for player pickers."""
    users = await user_service.list_users()
    return [{"id": str(u.id), "name": u.name, "email": u.email, "role": u.role} for u in users]


@router.get("")
async def users_list(user: User = Depends(get_current_user)):
    users = await user_service.list_users()
    return [user_out(u) for u in users]


@router.post("", status_code=status.HTTP_201_CREATED)
async def user_create(body: CreateUserRequest, admin: User = Depends(require_admin)):
    """Admin: create an approved account."""
    user = await user_service.create_user(str(admin.id), body.name, body.email, body.password, body.role)
    return user_out(user)


@router.get("/{user_id}")
async def user_get(user_id: str, user: User = Depends(get_current_user)):
    target = await user_service.get_user(parse_object_id(user_id, "user id"))
    return user_out(target)


@router.patch("/{user_id}")
async def user_update(user_id: str, body: UpdateUserRequest, user: User = Depends(get_current_user)):
    updated = await user_service.update_user(
        user,
        parse_object_id(user_id, "user id"),
        name=body.name,
        email=body.email,
        role=body.role,
        approved=body.approved,
        dob=body.dob,
        anniversary=body.anniversary,
    )
    return user_out(updated)


@router.delete("/{user_id}")
async def user_delete(user_id: str, admin: User = Depends(require_admin)):
    await user_service.delete_user(str(admin.id), parse_object_id(user_id, "user id"))
    return {"status": "deleted"}


@router.post("/{user_id}/change-password")
async def user_change_password(user_id: str, body: ChangePasswordRequest, user: User = Depends(get_current_user)):
    if str(user.id) != user_id:
        raise ForbiddenError("You can only change your own password")
    await user_service.change_password(user, body.old_password, body.new_password)
    return {"message": "Password changed successfully"}


@router.post("/{user_id}/confirm-payment")
async def user_confirm_payment(user_id: str, admin: User = Depends(require_admin)):
    """Admin: member paid what they owe; balance goes to zero."""
    user = await user_service.confirm_payment(str(admin.id), parse_object_id(user_id, "user id"))
    return {
        "message": "Payment confirmed successfully",
        "user": {"id": str(user.id), "name": user.name, "outstanding_balance": user.outstanding_balance},
    }


@router.get("/{user_id}/ledger", response_model=Page[LedgerEntryOut])
async def user_ledger(
    user_id: str,
    user: User = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Balance history for a member (newest first)."""
    if str(user.id) != user_id and not user.is_admin:
        raise ForbiddenError("You can only view your own balance history")
    target_id = parse_object_id(user_id, "user id")
    limit, offset = paginate(limit, offset)
    entries = await ledger_service.list_entries_for_user(target_id, limit, offset)
    total = await ledger_service.count_entries_for_user(target_id)
    items = [
        LedgerEntryOut(
            id=str(e.id),
            amount=e.amount,
            reason=e.reason,
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            created_at=e.created_at.isoformat(),
        )
        for e in entries
    ]
    return Page[LedgerEntryOut](items=items, limit=limit, offset=offset, total=total)
