from datetime import datetime

from beanie import Document, PydanticObjectId

# Fixed _id so concurrent first reads cannot create a second counter
INVENTORY_ID = PydanticObjectId("000000000000000000000001")


class Inventory(Document):
    """Singleton shuttle counter; last_reset_at marks the last balance reset."""
    total_shuttles: int = 0
    last_reset_at: datetime | None = None

    class Settings:
        name = "inventory"
