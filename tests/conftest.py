"""
Pytest configuration and fixtures.
"""

import os
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock

# Secrets must be in place before sammilan.config is imported
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "test_key_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "test_webhook_secret")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sammilan.database import Base, get_db
from sammilan.fsm.states import DonationStatus
from sammilan.models.donation import Donation
from factories import FakeGateway

# Use in-memory SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create async engine with a fresh schema for each test."""
    engine = create_async_engine(TEST_DB_URL, echo=False)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield engine
    
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for a test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def make_donation(db):
    """Insert a donation row directly."""
    
    async def _make(
        order_id: str,
        status: DonationStatus = DonationStatus.PENDING,
        payment_id: Optional[str] = None,
        amount: Decimal = Decimal("500"),
        created_at: Optional[datetime] = None,
        **fields,
    ) -> Donation:
        donation = Donation(
            order_id=order_id,
            payment_id=payment_id,
            amount=amount,
            currency="INR",
            donor_name=fields.pop("donor_name", "Jane Doe"),
            donor_email=fields.pop("donor_email", "jane@example.com"),
            donor_phone=fields.pop("donor_phone", "9999999999"),
            status=DonationStatus(status).value,
            created_at=created_at or datetime.now(timezone.utc),
            **fields,
        )
        db.add(donation)
        await db.commit()
        return donation
    
    return _make


@pytest_asyncio.fixture
async def fake_gateway():
    return FakeGateway()


@pytest_asyncio.fixture
async def fake_redis():
    redis = AsyncMock()
    redis.get.return_value = None
    return redis


@pytest_asyncio.fixture
async def client(session_factory, fake_gateway, fake_redis):
    """HTTP client bound to the app with test database, gateway and Redis."""
    from sammilan.api.deps import get_gateway
    from sammilan.main import app
    from sammilan.redis import get_redis
    
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_redis] = lambda: fake_redis
    
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    
    app.dependency_overrides.clear()
