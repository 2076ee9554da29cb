from beanie import Document, PydanticObjectId

SETTINGS_ID = PydanticObjectId("000000000000000000000001")


class LeagueSettings(Document):
    """Singleton: points awarded per completed match."""
    points_for_win: int = 3
    points_for_play: int = 1

    class Settings:
        name = "settings"
