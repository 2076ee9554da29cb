from datetime import datetime
from typing import Literal

from beanie import Document, Link
from pydantic import Field

from app.models.user import User


class BalanceLedgerEntry(Document):
    user: Link[User]
    amount: float  # positive = owes more, negative = paid / reimbursed
    reason: Literal["purchase", "fund", "payment", "reset"]
    reference_type: str | None = None  # purchase, fund_contribution, user, inventory
    reference_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "balance_ledger"
        indexes = [
            [("user", 1), ("created_at", -1)],
            [("reference_type", 1), ("reference_id", 1)],
        ]
