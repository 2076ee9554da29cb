from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from app.deps import get_current_user, parse_object_id, require_admin
from app.models.fund_contribution import FundContribution
from app.models.user import User
from app.services import funds as funds_service
from app.services.matches import user_names

router = APIRouter()


class FundRequest(BaseModel):
    amount_per_person: float = Field(gt=0)
    user_ids: list[PydanticObjectId] = Field(min_length=1)


def contribution_out(c: FundContribution, names: dict[str, str]) -> dict:
    return {
        "id": str(c.id),
        "date": c.date.isoformat(),
        "amount_per_person": c.amount_per_person,
        "total_amount": c.total_amount,
        "users": [{"id": str(u), "name": names.get(str(u))} for u in c.user_ids],
    }


async def _contributions_out(items: list[FundContribution]) -> list[dict]:
    names = await user_names([u for c in items for u in c.user_ids])
    return [contribution_out(c, names) for c in items]


@router.get("")
async def funds_list(
    user: User = Depends(get_current_user),
    since_reset: bool = Query(False, description="Only contributions after the last balance reset"),
):
    items = await funds_service.list_contributions(since_reset=since_reset)
    return await _contributions_out(items)


@router.post("", status_code=status.HTTP_201_CREATED)
async def fund_create(body: FundRequest, admin: User = Depends(require_admin)):
    """Admin: record money collected; lowers each member's balance by amount_per_person."""
    contribution = await funds_service.create_contribution(str(admin.id), body.amount_per_person, body.user_ids)
    return (await _contributions_out([contribution]))[0]


@router.put("/{contribution_id}")
async def fund_update(contribution_id: str, body: FundRequest, admin: User = Depends(require_admin)):
    contribution = await funds_service.update_contribution(
        str(admin.id),
        parse_object_id(contribution_id, "contribution id"),
        body.amount_per_person,
        body.user_ids,
    )
    return (await _contributions_out([contribution]))[0]


@router.delete("/{contribution_id}")
async def fund_delete(contribution_id: str, admin: User = Depends(require_admin)):
    await funds_service.delete_contribution(str(admin.id), parse_object_id(contribution_id, "contribution id"))
    return {"message": "Contribution deleted successfully"}
