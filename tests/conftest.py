import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Use test DB; standalone mongod has no transactions
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "badminton_league_test")
os.environ.setdefault("MONGODB_TRANSACTIONS", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[None, None]:
    """Initialise Beanie on a clean test database; skip when MongoDB is not reachable."""
    from pymongo.errors import PyMongoError

    from app.db.init import DOCUMENT_MODELS, init_db
    try:
        await init_db(server_selection_timeout_ms=1500)
    except PyMongoError as e:
        pytest.skip(f"MongoDB not available: {e}")
    for model in DOCUMENT_MODELS:
        await model.delete_all()
    yield


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    from app.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user(db):
    """Factory: insert an approved user with zeroed counters."""
    from app.core.security import hash_password
    from app.models.user import User

    counter = {"n": 0}

    async def _make(name: str | None = None, role: str = "user", password: str = "secret123", **fields) -> User:
        counter["n"] += 1
        name = name or f"Player {counter['n']}"
        user = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}.{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
            approved=True,
            **fields,
        )
        await user.insert()
        return user

    return _make


@pytest_asyncio.fixture
async def transactional_db(db, monkeypatch) -> AsyncGenerator[None, None]:
    """Like `db` with MONGODB_TRANSACTIONS on; skip unless the server is a replica set."""
    from app.core.config import get_settings
    from app.db.init import get_client

    hello = await get_client().admin.command("hello")
    if not hello.get("setName"):
        pytest.skip("MongoDB is not a replica set; transactions unavailable")
    monkeypatch.setattr(get_settings(), "mongodb_transactions", True)
    yield
