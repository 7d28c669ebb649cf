"""Pytest configuration and shared fixtures."""

import os

# Must be set before dealheat.config is imported anywhere
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from dealheat.db.session import build_engine
from dealheat.models import Base, Category, Deal, DealStatus, Shop, User
from dealheat.services.auth_service import hash_password

TEST_PASSWORD = "hunter2hunter2"

_hashed_password = None


def _test_password_hash() -> str:
    # bcrypt is slow; hash once per run
    global _hashed_password
    if _hashed_password is None:
        _hashed_password = hash_password(TEST_PASSWORD)
    return _hashed_password


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine with the schema created."""
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """Session bound to the in-memory test database."""
    SessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with SessionLocal() as session:
        yield session


async def make_user(session: AsyncSession, username: str, is_admin: bool = False) -> User:
    user = User(
        email=f"{username}@example.com",
        username=username,
        hashed_password=_test_password_hash(),
        is_admin=is_admin,
    )
    session.add(user)
    await session.commit()
    return user


async def make_deal(
    session: AsyncSession,
    title: str = "Noise cancelling headphones",
    status: DealStatus = DealStatus.APPROVED,
    shop: Shop = None,
    category: Category = None,
    created_at: datetime = None,
    **fields,
) -> Deal:
    deal = Deal(
        title=title,
        slug=title.lower().replace(" ", "-"),
        status=status,
        shop_id=shop.id if shop else None,
        category_id=category.id if category else None,
        created_at=created_at or datetime.now(timezone.utc),
        **fields,
    )
    session.add(deal)
    await session.commit()
    return deal


@pytest_asyncio.fixture
async def sample_user(test_db: AsyncSession) -> User:
    return await make_user(test_db, "alice")


@pytest_asyncio.fixture
async def other_user(test_db: AsyncSession) -> User:
    return await make_user(test_db, "bob")


@pytest_asyncio.fixture
async def admin_user(test_db: AsyncSession) -> User:
    return await make_user(test_db, "moderator", is_admin=True)


@pytest_asyncio.fixture
async def sample_shop(test_db: AsyncSession) -> Shop:
    shop = Shop(
        name="Test Shop",
        slug="test-shop",
        website_url="https://shop.example.com",
    )
    test_db.add(shop)
    await test_db.commit()
    return shop


@pytest_asyncio.fixture
async def sample_category(test_db: AsyncSession) -> Category:
    category = Category(
        name="Electronics",
        slug="electronics",
        icon="Monitor",
        sort_order=1,
    )
    test_db.add(category)
    await test_db.commit()
    return category


@pytest_asyncio.fixture
async def sample_deal(test_db: AsyncSession, sample_user, sample_shop, sample_category) -> Deal:
    return await make_deal(
        test_db,
        shop=sample_shop,
        category=sample_category,
        user_id=sample_user.id,
        original_price=Decimal("199.99"),
        discounted_price=Decimal("149.99"),
        discount_percentage=25,
        created_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )
