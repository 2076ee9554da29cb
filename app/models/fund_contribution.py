from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field


class FundContribution(Document):
    """Money collected from members; lowers each listed user's outstanding balance."""
    amount_per_person: float
    total_amount: float
    user_ids: list[PydanticObjectId] = Field(default_factory=list)
    date: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "fund_contributions"
        indexes = [[("date", -1)]]
