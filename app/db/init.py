from contextlib import asynccontextmanager
from typing import AsyncIterator

import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession

from app.core.config import get_settings
from app.models.audit_log import AuditLog
from app.models.balance_ledger import BalanceLedgerEntry
from app.models.fund_contribution import FundContribution
from app.models.inventory import Inventory
from app.models.league_settings import LeagueSettings
from app.models.match import Match
from app.models.purchase import Purchase
from app.models.usage_log import UsageLog
from app.models.user import User

DOCUMENT_MODELS = [
    User,
    Match,
    LeagueSettings,
    Inventory,
    Purchase,
    UsageLog,
    FundContribution,
    BalanceLedgerEntry,
    AuditLog,
]

_client: AsyncIOMotorClient | None = None


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def get_client() -> AsyncIOMotorClient:
    if _client is None:
        raise RuntimeError("Database not initialised; call init_db() first")
    return _client


async def init_db(server_selection_timeout_ms: int | None = None) -> None:
    global _client
    settings = get_settings()
    # Atlas in Docker: tlsCAFile + tlsDisableOCSPEndpointCheck avoid TLSV1_ALERT_INTERNAL_ERROR
    kwargs = {}
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    if server_selection_timeout_ms is not None:
        kwargs["serverSelectionTimeoutMS"] = server_selection_timeout_ms
    _client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
    database = _client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)


@asynccontextmanager
async def transaction() -> AsyncIterator[AsyncIOMotorClientSession | None]:
    """
    Yield a session bound to a multi-document transaction.
    Commits on normal exit, aborts if the block raises.
    With MONGODB_TRANSACTIONS=false yields None and the block runs without a session.
    """
    if not get_settings().mongodb_transactions:
        yield None
        return
    async with await get_client().start_session() as session:
        async with session.start_transaction():
            yield session
