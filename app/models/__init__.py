from app.models.user import User
from app.models.match import Doubles, Match, Singles, Team
from app.models.league_settings import LeagueSettings
from app.models.inventory import Inventory
from app.models.purchase import Purchase
from app.models.usage_log import UsageLog
from app.models.fund_contribution import FundContribution
from app.models.balance_ledger import BalanceLedgerEntry
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Match",
    "Singles",
    "Doubles",
    "Team",
    "LeagueSettings",
    "Inventory",
    "Purchase",
    "UsageLog",
    "FundContribution",
    "BalanceLedgerEntry",
    "AuditLog",
]
