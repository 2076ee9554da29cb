from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field


class UsageLog(Document):
    quantity_used: int
    logged_by: PydanticObjectId | None = None
    usage_date: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "usage_logs"
        indexes = [[("usage_date", -1)]]
