"""
Test fixtures for the money-movement test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - scope / other_scope: Two households acting on the same database
  - make_account / balance_of: Helpers for service-level tests
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Test client carrying a JWT for `scope`
  - other_household_headers: Authorization header for `other_scope`

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database, no state leaks between tests.
  - The engine gets the same savepoint configuration as production, so
    nested units behave identically in tests.
  - We override FastAPI's get_db dependency to inject our test session,
    so the application code works exactly as it does in production.
  - Tokens are minted with create_access_token, the same way the external
    auth service issues them.
  - Service tests read balances back with column selects: a failed unit
    rolls the session back and expires every loaded ORM object.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from moneymove.database import Base, enable_sqlite_savepoints, get_db
from moneymove.main import app
from moneymove.models.account import Account, AccountType
from moneymove.scope import HouseholdScope
from moneymove.security import create_access_token
from moneymove.services import account_service


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest.fixture
def scope():
    """The household most tests act in."""
    return HouseholdScope(user_id=uuid.uuid4(), household_id=uuid.uuid4())


@pytest.fixture
def other_scope():
    """A second, unrelated household for cross-household tests."""
    return HouseholdScope(user_id=uuid.uuid4(), household_id=uuid.uuid4())


@pytest.fixture
def make_account(db_session, scope):
    """
    Open an account through the account service and return its id.

    Usage: account_id = await make_account("Checking", 10000)
    """
    async def _make(
        name: str = "Checking",
        opening_balance_cents: int = 0,
        account_type: AccountType = AccountType.CHECKING,
        in_scope: HouseholdScope | None = None,
    ) -> uuid.UUID:
        account = await account_service.create_account(
            db_session,
            in_scope or scope,
            name=name,
            account_type=account_type,
            opening_balance_cents=opening_balance_cents,
        )
        return account.id

    return _make


@pytest.fixture
def balance_of(db_session):
    """Read an account's stored balance straight from the table."""
    async def _balance(account_id: uuid.UUID) -> int:
        return await db_session.scalar(
            select(Account.current_balance_cents).where(Account.id == account_id)
        )

    return _balance


@pytest_asyncio.fixture
async def client(db_engine):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(client, scope):
    """Test client whose Authorization header carries `scope`."""
    token = create_access_token(scope.user_id, scope.household_id)
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest.fixture
def other_household_headers(other_scope):
    """
    Headers for a caller from another household.

    Pass as headers=... on individual requests of authenticated_client to
    act as the other household against the same database.
    """
    token = create_access_token(other_scope.user_id, other_scope.household_id)
    return {"Authorization": f"Bearer {token}"}
