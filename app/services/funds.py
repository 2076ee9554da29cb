"""Fund contributions: money collected from members that lowers their outstanding balance."""

from beanie import PydanticObjectId

from app.core.audit import log_event
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.db.init import transaction
from app.models.fund_contribution import FundContribution
from app.services import ledger
from app.services.inventory import get_or_create_inventory

log = get_logger(__name__)

FUND_REF = "fund_contribution"


async def list_contributions(since_reset: bool = False) -> list[FundContribution]:
    """All contributions, newest first; only those after the last balance reset when asked."""
    query = FundContribution.find_all()
    if since_reset:
        inventory = await get_or_create_inventory()
        if inventory.last_reset_at is not None:
            query = FundContribution.find(FundContribution.date >= inventory.last_reset_at)
    return await query.sort(-FundContribution.date).to_list()


async def get_contribution(contribution_id: PydanticObjectId, session=None) -> FundContribution:
    contribution = await FundContribution.get(contribution_id, session=session)
    if not contribution:
        raise NotFoundError("Contribution not found")
    return contribution


async def create_contribution(
    actor_id: str,
    amount_per_person: float,
    user_ids: list[PydanticObjectId],
) -> FundContribution:
    ids = ledger.unique_ids(user_ids)
    async with transaction() as session:
        contribution = FundContribution(
            amount_per_person=amount_per_person,
            total_amount=amount_per_person * len(ids),
            user_ids=ids,
        )
        await contribution.insert(session=session)
        await ledger.post_entries(ids, -amount_per_person, "fund", FUND_REF, str(contribution.id), session=session)
        await log_event(
            actor_id,
            "fund_created",
            "fund",
            str(contribution.id),
            {"amount_per_person": amount_per_person, "users": len(ids)},
            session=session,
        )
    log.info("fund_created", contribution_id=str(contribution.id), total_amount=contribution.total_amount)
    return contribution


async def update_contribution(
    actor_id: str,
    contribution_id: PydanticObjectId,
    amount_per_person: float,
    user_ids: list[PydanticObjectId],
) -> FundContribution:
    """Reverse the old credit for the old members, then credit the new members."""
    ids = ledger.unique_ids(user_ids)
    async with transaction() as session:
        contribution = await get_contribution(contribution_id, session=session)
        removed, added, kept = ledger.diff_participants(contribution.user_ids, ids)
        await ledger.reverse_entries(FUND_REF, str(contribution.id), session=session)
        await ledger.post_entries(ids, -amount_per_person, "fund", FUND_REF, str(contribution.id), session=session)
        old_amount = contribution.amount_per_person
        contribution.amount_per_person = amount_per_person
        contribution.total_amount = amount_per_person * len(ids)
        contribution.user_ids = ids
        await contribution.save(session=session)
        await log_event(
            actor_id,
            "fund_updated",
            "fund",
            str(contribution.id),
            {
                "old_amount_per_person": old_amount,
                "amount_per_person": amount_per_person,
                "removed": removed,
                "added": added,
                "kept": kept,
            },
            session=session,
        )
    log.info("fund_updated", contribution_id=str(contribution.id), added=len(added), removed=len(removed))
    return contribution


async def delete_contribution(actor_id: str, contribution_id: PydanticObjectId) -> None:
    async with transaction() as session:
        contribution = await get_contribution(contribution_id, session=session)
        reversed_total = await ledger.reverse_entries(FUND_REF, str(contribution.id), session=session)
        await contribution.delete(session=session)
        await log_event(
            actor_id,
            "fund_deleted",
            "fund",
            str(contribution_id),
            {"reversed_total": reversed_total},
            session=session,
        )
    log.info("fund_deleted", contribution_id=str(contribution_id))
