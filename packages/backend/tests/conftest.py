"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine on "sqlite+aiosqlite://" with a StaticPool,
   so every session in the test shares one in-memory database.
2. Tables are created from the ORM metadata, and the database simply
   disappears when the engine is disposed — no cleanup, no cross-test
   pollution, no external database server.
3. The app's get_db dependency is overridden to hand out that session.

The environment is set before any quill import: the settings singleton
is built at import time. bcrypt runs at its minimum cost so the suite
stays fast.
"""

import os

os.environ.setdefault("QUILL_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("QUILL_BCRYPT_ROUNDS", "4")
os.environ.setdefault("QUILL_JWT_SECRET", "test-secret-for-the-suite-only")
os.environ.setdefault("QUILL_AUTO_CREATE_TABLES", "false")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from quill.db.engine import get_db  # noqa: E402
from quill.db.models import Base  # noqa: E402
from quill.main import app  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    """Per-test session bound to the in-memory database."""
    session = AsyncSession(bind=db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client running the real auth pipeline with get_db overridden.

    Learn: Nothing about authentication is mocked. Tests register users
    and send real bearer tokens, so every request goes through token
    verification and the user re-lookup.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def make_user(client):
    """Factory: register a user over the API, return (user, auth_headers).

    Learn: Each call uses a fresh email unless one is given, so tests can
    create as many independent identities as they need.
    """
    counter = {"n": 0}

    async def _make(email=None, password="secret1"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        r = await client.post(
            "/api/v1/auth/register", json={"email": email, "password": password}
        )
        assert r.status_code == 201, r.text
        body = r.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _make
