import os
import sys
from datetime import date
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

sys.path.append(str(Path(__file__).parents[1] / "src"))

from moneyapp.api.deps import get_provider, get_session_factory
from moneyapp.categorization.suggestions import keyword_indexes
from moneyapp.db.session import get_db
from moneyapp.main import app
from moneyapp.models.base import Base
from moneyapp.schemas.provider import ExchangeResult, RawAccount, RawTransaction
from moneyapp.services.sync import SyncOrchestrator


class FakeProvider:
    """In-memory account-data provider.

    Tests set ``accounts``/``transactions`` (or ``error``) and inspect the
    recorded calls afterwards.
    """

    def __init__(self):
        self.accounts: list[RawAccount] = []
        self.transactions: list[RawTransaction] = []
        self.error: Exception | None = None
        self.transaction_windows: list[tuple[date, date]] = []
        self.exchanged: list[str] = []
        self.removed: list[str] = []
        self.institution_id: str | None = "ins_109508"
        self.institution_name: str | None = "First Platypus Bank"

    async def exchange_public_token(self, public_token: str) -> ExchangeResult:
        self.exchanged.append(public_token)
        n = len(self.exchanged)
        return ExchangeResult(access_token=f"access-sandbox-token-{n}", item_id=f"item-{n}")

    async def get_item_institution_id(self, access_token: str) -> str | None:
        return self.institution_id

    async def get_institution_name(self, institution_id: str) -> str | None:
        return self.institution_name

    async def get_accounts(self, access_token: str) -> list[RawAccount]:
        if self.error is not None:
            raise self.error
        return list(self.accounts)

    async def get_transactions(
        self, access_token: str, start_date: date, end_date: date
    ) -> list[RawTransaction]:
        self.transaction_windows.append((start_date, end_date))
        if self.error is not None:
            raise self.error
        return list(self.transactions)

    async def remove_item(self, access_token: str) -> None:
        self.removed.append(access_token)


def raw_account(account_id: str = "acc_1", balance: int = 10000, **kwargs) -> RawAccount:
    values = {"name": "Plaid Checking", "type": "depository", "subtype": "checking", "mask": "0000"}
    values.update(kwargs)
    return RawAccount(account_id=account_id, current_balance=balance, **values)


def raw_transaction(
    transaction_id: str = "tx_1",
    account_id: str = "acc_1",
    amount: int = 4500,
    category: list[str] | None = None,
    merchant_name: str | None = "Starbucks",
    name: str | None = None,
    txn_date: date | None = None,
    **kwargs,
) -> RawTransaction:
    return RawTransaction(
        transaction_id=transaction_id,
        account_id=account_id,
        name=name or merchant_name or "Purchase",
        merchant_name=merchant_name,
        amount=amount,
        date=txn_date or date.today(),
        category=category if category is not None else ["Food and Drink"],
        **kwargs,
    )


@pytest.fixture(autouse=True)
def reset_keyword_indexes():
    """Keyword indexes are per-process; start every test without any."""
    keyword_indexes.clear()
    yield
    keyword_indexes.clear()


@pytest.fixture
async def test_engine(tmp_path):
    """Fresh schema per test.

    Defaults to a SQLite file so the suite runs without Postgres; set
    TEST_DATABASE_URL to run against a real server.
    """
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, echo=False, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _create_user(db_session: AsyncSession, email: str, **kwargs):
    from moneyapp.models.user import User
    from moneyapp.repositories.user import UserRepository

    return await UserRepository(db_session).create(
        User(email=email, password_hash="not-a-real-hash", full_name="Test User", **kwargs)
    )


@pytest.fixture
async def test_user(db_session: AsyncSession):
    """A user without a provider link."""
    return await _create_user(db_session, "testuser@example.com")


@pytest.fixture
async def connected_user(db_session: AsyncSession):
    """A user with a linked institution who has never synced."""
    return await _create_user(
        db_session,
        "connected@example.com",
        provider_access_token="access-sandbox-existing",
        provider_item_id="item-existing",
        institution_id="ins_109508",
        institution_name="First Platypus Bank",
    )


@pytest.fixture
async def another_user(db_session: AsyncSession):
    return await _create_user(db_session, "another@example.com")


@pytest.fixture
def auth_headers_for():
    from moneyapp.core.security import create_access_token

    def _headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id=user.id)}"}

    return _headers


@pytest.fixture
def auth_headers(test_user, auth_headers_for):
    return auth_headers_for(test_user)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def orchestrator(session_factory, fake_provider) -> SyncOrchestrator:
    return SyncOrchestrator(session_factory, fake_provider)


@pytest.fixture
async def client(db_session: AsyncSession, session_factory, fake_provider):
    """Test client with the database and provider swapped for test doubles."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_provider] = lambda: fake_provider

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_account():
    return raw_account


@pytest.fixture
def make_transaction():
    return raw_transaction
