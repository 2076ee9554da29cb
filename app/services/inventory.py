"""Shuttle stock, purchases split across members, usage logs and balance resets."""

from datetime import datetime

from beanie import PydanticObjectId
from beanie.operators import Inc, Set
from pymongo.errors import DuplicateKeyError

from app.core.audit import log_event
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.db.init import transaction
from app.models.inventory import INVENTORY_ID, Inventory
from app.models.purchase import Purchase
from app.models.usage_log import UsageLog
from app.models.user import User
from app.services import ledger

log = get_logger(__name__)

PURCHASE_REF = "purchase"


async def get_or_create_inventory(session=None) -> Inventory:
    """Return the inventory singleton, creating an empty one on first read."""
    inventory = await Inventory.get(INVENTORY_ID, session=session)
    if inventory:
        return inventory
    try:
        return await Inventory(id=INVENTORY_ID, total_shuttles=0).insert(session=session)
    except DuplicateKeyError:
        # another request created it first
        return await Inventory.get(INVENTORY_ID, session=session)


async def adjust_shuttles(delta: int, session=None) -> None:
    if not delta:
        return
    inventory = await get_or_create_inventory(session)
    await Inventory.find_one(Inventory.id == inventory.id, session=session).update(
        Inc({Inventory.total_shuttles: delta}),
        session=session,
    )


async def add_stock(
    actor_id: str,
    company_name: str,
    quantity: int,
    total_price: float,
    user_ids: list[PydanticObjectId],
) -> Purchase:
    """Record a purchase, charge each selected member an even share, and add to stock."""
    ids = ledger.unique_ids(user_ids)
    cost_per_player = ledger.split_cost(total_price, len(ids))
    async with transaction() as session:
        purchase = Purchase(
            company_name=company_name,
            quantity=quantity,
            total_price=total_price,
            cost_per_player=cost_per_player,
            split_among=ids,
        )
        await purchase.insert(session=session)
        await ledger.post_entries(ids, cost_per_player, "purchase", PURCHASE_REF, str(purchase.id), session=session)
        await adjust_shuttles(quantity, session=session)
        await log_event(
            actor_id,
            "stock_added",
            "purchase",
            str(purchase.id),
            {"quantity": quantity, "total_price": total_price, "users": len(ids)},
            session=session,
        )
    log.info("stock_added", purchase_id=str(purchase.id), quantity=quantity, cost_per_player=cost_per_player)
    return purchase


async def get_purchase(purchase_id: PydanticObjectId, session=None) -> Purchase:
    purchase = await Purchase.get(purchase_id, session=session)
    if not purchase:
        raise NotFoundError("Purchase not found")
    return purchase


async def list_purchases() -> list[Purchase]:
    return await Purchase.find_all().sort(-Purchase.purchase_date).to_list()


async def update_purchase(
    actor_id: str,
    purchase_id: PydanticObjectId,
    company_name: str,
    quantity: int,
    total_price: float,
    user_ids: list[PydanticObjectId],
) -> Purchase:
    """Replace a purchase: reverse its old charges, post the new ones, move stock by the quantity change."""
    ids = ledger.unique_ids(user_ids)
    async with transaction() as session:
        purchase = await get_purchase(purchase_id, session=session)
        removed, added, kept = ledger.diff_participants(purchase.split_among, ids)
        cost_per_player = ledger.split_cost(total_price, len(ids))
        await ledger.reverse_entries(PURCHASE_REF, str(purchase.id), session=session)
        await ledger.post_entries(ids, cost_per_player, "purchase", PURCHASE_REF, str(purchase.id), session=session)
        await adjust_shuttles(quantity - purchase.quantity, session=session)
        old_quantity, old_total = purchase.quantity, purchase.total_price
        purchase.company_name = company_name
        purchase.quantity = quantity
        purchase.total_price = total_price
        purchase.cost_per_player = cost_per_player
        purchase.split_among = ids
        purchase.updated_at = datetime.utcnow()
        await purchase.save(session=session)
        await log_event(
            actor_id,
            "purchase_updated",
            "purchase",
            str(purchase.id),
            {
                "old_quantity": old_quantity,
                "quantity": quantity,
                "old_total_price": old_total,
                "total_price": total_price,
                "removed": removed,
                "added": added,
                "kept": kept,
            },
            session=session,
        )
    log.info("purchase_updated", purchase_id=str(purchase.id), added=len(added), removed=len(removed))
    return purchase


async def delete_purchase(actor_id: str, purchase_id: PydanticObjectId) -> None:
    async with transaction() as session:
        purchase = await get_purchase(purchase_id, session=session)
        reversed_total = await ledger.reverse_entries(PURCHASE_REF, str(purchase.id), session=session)
        await adjust_shuttles(-purchase.quantity, session=session)
        await purchase.delete(session=session)
        await log_event(
            actor_id,
            "purchase_deleted",
            "purchase",
            str(purchase_id),
            {"quantity": purchase.quantity, "reversed_total": reversed_total},
            session=session,
        )
    log.info("purchase_deleted", purchase_id=str(purchase_id))


async def log_usage(actor_id: PydanticObjectId | None, quantity_used: int) -> UsageLog:
    async with transaction() as session:
        usage = UsageLog(quantity_used=quantity_used, logged_by=actor_id)
        await usage.insert(session=session)
        await adjust_shuttles(-quantity_used, session=session)
    log.info("usage_logged", usage_id=str(usage.id), quantity_used=quantity_used)
    return usage


async def get_usage(usage_id: PydanticObjectId, session=None) -> UsageLog:
    usage = await UsageLog.get(usage_id, session=session)
    if not usage:
        raise NotFoundError("Usage log not found")
    return usage


async def list_usage() -> list[UsageLog]:
    return await UsageLog.find_all().sort(-UsageLog.usage_date).to_list()


async def update_usage(usage_id: PydanticObjectId, quantity_used: int) -> UsageLog:
    async with transaction() as session:
        usage = await get_usage(usage_id, session=session)
        # using more shuttles lowers stock
        await adjust_shuttles(usage.quantity_used - quantity_used, session=session)
        usage.quantity_used = quantity_used
        await usage.save(session=session)
    log.info("usage_updated", usage_id=str(usage_id), quantity_used=quantity_used)
    return usage


async def delete_usage(usage_id: PydanticObjectId) -> None:
    async with transaction() as session:
        usage = await get_usage(usage_id, session=session)
        await adjust_shuttles(usage.quantity_used, session=session)
        await usage.delete(session=session)
    log.info("usage_deleted", usage_id=str(usage_id))


async def reset_balances(actor_id: str) -> Inventory:
    """Zero every user's balance (recorded in the ledger) and stamp last_reset_at."""
    async with transaction() as session:
        owing = await User.find(User.outstanding_balance != 0, session=session).to_list()
        for user in owing:
            await ledger.post_entries(
                [user.id], -user.outstanding_balance, "reset", "inventory", None, session=session
            )
        await User.find_all(session=session).update(Set({User.outstanding_balance: 0.0}), session=session)
        inventory = await get_or_create_inventory(session)
        # only the reset stamp; total_shuttles may have moved since the read
        await Inventory.find_one(Inventory.id == inventory.id, session=session).update(
            Set({Inventory.last_reset_at: datetime.utcnow()}),
            session=session,
        )
        inventory = await Inventory.get(inventory.id, session=session)
        await log_event(actor_id, "balances_reset", "inventory", str(inventory.id), {"users": len(owing)}, session=session)
    log.info("balances_reset", users=len(owing))
    return inventory


async def inventory_overview() -> dict:
    inventory = await get_or_create_inventory()
    purchases = await list_purchases()
    usage_logs = await list_usage()
    users = await User.find_all().sort(+User.name).to_list()
    return {
        "inventory": inventory,
        "purchases": purchases,
        "usage_logs": usage_logs,
        "users": users,
    }
