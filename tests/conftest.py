"""Shared test fixtures and configuration."""

import os
from datetime import datetime
from decimal import Decimal
from itertools import count
from typing import Optional

import httpx
import pytest

# Set up test environment variables before importing modules
os.environ.setdefault("API_KEY", "test_api_key_12345")
os.environ.setdefault("REPORT_RATE_LIMIT", "1000/minute")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

REPORT_DAY = datetime(2024, 3, 10, 12, 0, 0)


@pytest.fixture
def auth_headers():
    """Return headers with admin authentication."""
    return {"Authorization": f"Bearer {os.environ['API_KEY']}"}


@pytest.fixture
async def db_manager(tmp_path):
    """Database manager over a throwaway SQLite file.

    A file database (rather than :memory:) gives each session its own
    connection, which the concurrent report fetches rely on.
    """
    from marketplace_admin.database import DatabaseManager

    manager = DatabaseManager(database_url=f"sqlite+aiosqlite:///{tmp_path / 'admin.db'}")
    await manager.initialize()
    yield manager
    await manager.shutdown()


@pytest.fixture
async def empty_db_manager(tmp_path):
    """Database manager whose schema was never created, so every query fails."""
    from marketplace_admin.database import DatabaseManager

    manager = DatabaseManager(database_url=f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    await manager.initialize(create_tables=False)
    yield manager
    await manager.shutdown()


@pytest.fixture
async def client(db_manager):
    """HTTP client bound to an app using the test database."""
    from marketplace_admin.api import create_app

    app = create_app(db_manager=db_manager)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def user(db_manager):
    """A persisted user that owns settlements and orders."""
    from marketplace_admin.database import User

    async with db_manager.session() as session:
        u = User(first_name="Awa", last_name="Jallow", phone_number="+2207001234")
        session.add(u)
    return u


@pytest.fixture
def seed(db_manager):
    """Persist ORM objects in one committed session."""
    async def _seed(*objects):
        async with db_manager.session() as session:
            session.add_all(objects)
        return objects
    return _seed


@pytest.fixture
def settlement_row(user):
    """Factory for Settlement ORM rows; COMPLETED GMD by default."""
    from marketplace_admin.database import Settlement, SettlementStatus

    def _make(
        amount: Optional[str] = "100.00",
        currency: str = "GMD",
        status: str = SettlementStatus.COMPLETED.value,
        created_at: datetime = REPORT_DAY,
        **kwargs,
    ):
        return Settlement(
            user_id=user.id,
            amount=Decimal(amount) if amount is not None else None,
            currency=currency,
            status=status,
            created_at=created_at,
            **kwargs,
        )
    return _make


@pytest.fixture
def order_row(user):
    """Factory for Order ORM rows."""
    from marketplace_admin.database import Order

    numbers = count(1)

    def _make(
        total: Optional[str] = "250.00",
        currency: str = "GMD",
        created_at: datetime = REPORT_DAY,
        **kwargs,
    ):
        return Order(
            order_number=f"ORD-{next(numbers):05d}",
            user_id=user.id,
            total_amount=Decimal(total) if total is not None else None,
            currency_code=currency,
            created_at=created_at,
            **kwargs,
        )
    return _make


@pytest.fixture
def transaction_row():
    """Factory for ExternalTransaction ORM rows; SUCCESS by default."""
    from marketplace_admin.database import ExternalTransaction, TransactionStatus

    def _make(
        transaction_type: str,
        amount: Optional[str] = "100.00",
        currency: str = "GMD",
        status: str = TransactionStatus.SUCCESS.value,
        created_at: datetime = REPORT_DAY,
        **kwargs,
    ):
        return ExternalTransaction(
            transaction_type=transaction_type,
            amount=Decimal(amount) if amount is not None else None,
            currency_code=currency,
            status=status,
            provider="modempay",
            created_at=created_at,
            **kwargs,
        )
    return _make
