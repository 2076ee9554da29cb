from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field


class Purchase(Document):
    company_name: str
    quantity: int
    total_price: float
    cost_per_player: float
    split_among: list[PydanticObjectId] = Field(default_factory=list)
    purchase_date: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "purchases"
        indexes = [[("purchase_date", -1)]]
