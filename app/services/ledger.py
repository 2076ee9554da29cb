"""Outstanding-balance ledger: signed entries per record, reversed by reference."""

from beanie import PydanticObjectId
from beanie.operators import In, Inc

from app.core.exceptions import BadRequestError
from app.core.logging import get_logger
from app.models.balance_ledger import BalanceLedgerEntry
from app.models.user import User

log = get_logger(__name__)

REASONS = ("purchase", "fund", "payment", "reset")


def split_cost(total: float, count: int) -> float:
    """Even per-person share of a total; the whole total when nobody splits it."""
    if count <= 0:
        return total
    return total / count


def unique_ids(user_ids: list[PydanticObjectId]) -> list[PydanticObjectId]:
    """Drop repeated ids, keeping first-seen order."""
    seen: dict[str, PydanticObjectId] = {}
    for uid in user_ids:
        seen.setdefault(str(uid), uid)
    return list(seen.values())


def diff_participants(
    old_ids: list[PydanticObjectId],
    new_ids: list[PydanticObjectId],
) -> tuple[list[str], list[str], list[str]]:
    """Return (removed, added, kept) user ids as strings."""
    old = [str(u) for u in unique_ids(old_ids)]
    new = [str(u) for u in unique_ids(new_ids)]
    removed = [u for u in old if u not in new]
    added = [u for u in new if u not in old]
    kept = [u for u in old if u in new]
    return removed, added, kept


async def post_entries(
    user_ids: list[PydanticObjectId],
    amount: float,
    reason: str,
    reference_type: str | None = None,
    reference_id: str | None = None,
    session=None,
) -> list[BalanceLedgerEntry]:
    """
    Add `amount` to each listed user's outstanding balance and record one entry per user.
    Ids with no matching user are skipped.
    """
    if reason not in REASONS:
        raise BadRequestError(f"Invalid reason: {reason}")
    ids = unique_ids(user_ids)
    if not ids:
        return []
    users = await User.find(In(User.id, ids), session=session).to_list()
    if not users:
        return []
    await User.find(In(User.id, [u.id for u in users]), session=session).update(
        Inc({User.outstanding_balance: amount}),
        session=session,
    )
    entries = []
    for user in users:
        entry = BalanceLedgerEntry(
            user=user,
            amount=amount,
            reason=reason,
            reference_type=reference_type,
            reference_id=reference_id,
        )
        await entry.insert(session=session)
        entries.append(entry)
    log.debug("ledger_posted", reason=reason, reference_id=reference_id, users=len(entries), amount=amount)
    return entries


async def reverse_entries(reference_type: str, reference_id: str, session=None) -> float:
    """
    Undo every entry recorded for a reference: subtract each entry's amount from its
    user's balance, then delete the entries. Returns the total amount reversed.
    """
    entries = await BalanceLedgerEntry.find(
        BalanceLedgerEntry.reference_type == reference_type,
        BalanceLedgerEntry.reference_id == reference_id,
        session=session,
    ).to_list()
    total = 0.0
    for entry in entries:
        await User.find_one(User.id == entry.user.ref.id, session=session).update(
            Inc({User.outstanding_balance: -entry.amount}),
            session=session,
        )
        total += entry.amount
    if entries:
        await BalanceLedgerEntry.find(
            In(BalanceLedgerEntry.id, [e.id for e in entries]),
            session=session,
        ).delete(session=session)
    log.debug("ledger_reversed", reference_type=reference_type, reference_id=reference_id, total=total)
    return total


async def list_entries_for_user(user_id: PydanticObjectId, limit: int, offset: int) -> list[BalanceLedgerEntry]:
    """Newest first."""
    return (
        await BalanceLedgerEntry.find(BalanceLedgerEntry.user.id == user_id)
        .sort(-BalanceLedgerEntry.created_at)
        .skip(offset)
        .limit(limit)
        .to_list()
    )


async def count_entries_for_user(user_id: PydanticObjectId) -> int:
    return await BalanceLedgerEntry.find(BalanceLedgerEntry.user.id == user_id).count()
