"""Multi-document writes roll back as a unit (needs a MongoDB replica set)."""

import pytest

from app.models.balance_ledger import BalanceLedgerEntry
from app.models.purchase import Purchase
from app.models.user import User
from app.services import funds as funds_service
from app.services import inventory as inventory_service
from app.services import ledger

pytestmark = pytest.mark.asyncio


async def _fail(*args, **kwargs):
    raise RuntimeError("ledger write failed")


async def _balances(*users: User) -> list[float]:
    return [(await User.get(u.id)).outstanding_balance for u in users]


async def test_failed_purchase_edit_leaves_nothing_behind(transactional_db, make_user, monkeypatch):
    admin, a, b, c = await make_user(role="admin"), await make_user(), await make_user(), await make_user()
    purchase = await inventory_service.add_stock(str(admin.id), "Yonex", 10, 500, [a.id, b.id])

    monkeypatch.setattr(ledger, "post_entries", _fail)
    with pytest.raises(RuntimeError):
        await inventory_service.update_purchase(str(admin.id), purchase.id, "Li-Ning", 20, 900, [b.id, c.id])

    assert await _balances(a, b, c) == [250, 250, 0]
    assert (await inventory_service.get_or_create_inventory()).total_shuttles == 10
    stored = await Purchase.get(purchase.id)
    assert (stored.company_name, stored.quantity, stored.total_price) == ("Yonex", 10, 500)
    assert [str(u) for u in stored.split_among] == [str(a.id), str(b.id)]
    assert await BalanceLedgerEntry.find(BalanceLedgerEntry.reference_id == str(purchase.id)).count() == 2


async def test_failed_purchase_delete_keeps_stock_and_balances(transactional_db, make_user, monkeypatch):
    admin, a = await make_user(role="admin"), await make_user()
    purchase = await inventory_service.add_stock(str(admin.id), "Yonex", 10, 300, [a.id])

    monkeypatch.setattr(inventory_service, "adjust_shuttles", _fail)
    with pytest.raises(RuntimeError):
        await inventory_service.delete_purchase(str(admin.id), purchase.id)

    assert await _balances(a) == [300]
    assert await Purchase.get(purchase.id) is not None
    assert await BalanceLedgerEntry.find(BalanceLedgerEntry.reference_id == str(purchase.id)).count() == 1


async def test_failed_fund_edit_keeps_old_credit(transactional_db, make_user, monkeypatch):
    admin, a, b = await make_user(role="admin"), await make_user(), await make_user()
    contribution = await funds_service.create_contribution(str(admin.id), 50, [a.id])

    monkeypatch.setattr(ledger, "post_entries", _fail)
    with pytest.raises(RuntimeError):
        await funds_service.update_contribution(str(admin.id), contribution.id, 80, [a.id, b.id])

    assert await _balances(a, b) == [-50, 0]
    stored = await funds_service.get_contribution(contribution.id)
    assert stored.amount_per_person == 50
