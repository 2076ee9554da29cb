from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.deps import get_current_user, parse_object_id, require_admin
from app.models.purchase import Purchase
from app.models.usage_log import UsageLog
from app.models.user import User
from app.services import inventory as inventory_service

router = APIRouter()


class StockRequest(BaseModel):
    company_name: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    total_price: float = Field(gt=0)
    selected_user_ids: list[PydanticObjectId] = Field(min_length=1)


class UsageRequest(BaseModel):
    quantity_used: int = Field(gt=0)


def purchase_out(p: Purchase) -> dict:
    return {
        "id": str(p.id),
        "company_name": p.company_name,
        "quantity": p.quantity,
        "total_price": p.total_price,
        "cost_per_player": p.cost_per_player,
        "split_among": [str(u) for u in p.split_among],
        "purchase_date": p.purchase_date.isoformat(),
        "updated_at": p.updated_at.isoformat(),
    }


def usage_out(u: UsageLog) -> dict:
    return {
        "id": str(u.id),
        "quantity_used": u.quantity_used,
        "logged_by": str(u.logged_by) if u.logged_by else None,
        "usage_date": u.usage_date.isoformat(),
    }


@router.get("")
async def inventory_get(user: User = Depends(get_current_user)):
    """Stock count, purchases, usage logs and member balances."""
    data = await inventory_service.inventory_overview()
    inventory = data["inventory"]
    return {
        "total_shuttles": inventory.total_shuttles,
        "last_reset_at": inventory.last_reset_at.isoformat() if inventory.last_reset_at else None,
        "purchases": [purchase_out(p) for p in data["purchases"]],
        "usage_logs": [usage_out(u) for u in data["usage_logs"]],
        "users": [
            {"id": str(u.id), "name": u.name, "role": u.role, "outstanding_balance": u.outstanding_balance}
            for u in data["users"]
        ],
    }


@router.post("/stock", status_code=status.HTTP_201_CREATED)
async def stock_add(body: StockRequest, admin: User = Depends(require_admin)):
    """Admin: add stock and split its cost evenly across the selected members."""
    purchase = await inventory_service.add_stock(
        str(admin.id), body.company_name, body.quantity, body.total_price, body.selected_user_ids
    )
    return {"message": "Stock added and costs split successfully", "purchase": purchase_out(purchase)}


@router.get("/purchases/{purchase_id}")
async def purchase_get(purchase_id: str, user: User = Depends(get_current_user)):
    purchase = await inventory_service.get_purchase(parse_object_id(purchase_id, "purchase id"))
    return purchase_out(purchase)


@router.put("/purchases/{purchase_id}")
async def purchase_update(purchase_id: str, body: StockRequest, admin: User = Depends(require_admin)):
    purchase = await inventory_service.update_purchase(
        str(admin.id),
        parse_object_id(purchase_id, "purchase id"),
        body.company_name,
        body.quantity,
        body.total_price,
        body.selected_user_ids,
    )
    return purchase_out(purchase)


@router.delete("/purchases/{purchase_id}")
async def purchase_delete(purchase_id: str, admin: User = Depends(require_admin)):
    await inventory_service.delete_purchase(str(admin.id), parse_object_id(purchase_id, "purchase id"))
    return {"message": "Purchase deleted successfully"}


@router.post("/usage", status_code=status.HTTP_201_CREATED)
async def usage_log(body: UsageRequest, user: User = Depends(get_current_user)):
    """Any member can record shuttles used."""
    usage = await inventory_service.log_usage(user.id, body.quantity_used)
    return usage_out(usage)


@router.get("/usage")
async def usage_list(user: User = Depends(get_current_user)):
    return [usage_out(u) for u in await inventory_service.list_usage()]


@router.get("/usage/{usage_id}")
async def usage_get(usage_id: str, user: User = Depends(get_current_user)):
    return usage_out(await inventory_service.get_usage(parse_object_id(usage_id, "usage id")))


@router.put("/usage/{usage_id}")
async def usage_update(usage_id: str, body: UsageRequest, admin: User = Depends(require_admin)):
    usage = await inventory_service.update_usage(parse_object_id(usage_id, "usage id"), body.quantity_used)
    return usage_out(usage)


@router.delete("/usage/{usage_id}")
async def usage_delete(usage_id: str, admin: User = Depends(require_admin)):
    await inventory_service.delete_usage(parse_object_id(usage_id, "usage id"))
    return {"message": "Usage log deleted successfully"}


@router.post("/reset-balances")
async def reset_balances(admin: User = Depends(require_admin)):
    """Admin: zero every member's balance and mark the reset time."""
    inventory = await inventory_service.reset_balances(str(admin.id))
    return {"success": True, "last_reset_at": inventory.last_reset_at.isoformat()}
