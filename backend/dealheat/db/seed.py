"""Seed the shop and category catalog.

Runs on API startup outside the test environment, and can be run by hand:

    cd backend
    python -m dealheat.db.seed
"""

import asyncio

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.models.category import Category
from dealheat.models.shop import Shop

logger = structlog.get_logger(__name__)

SHOPS = [
    {"name": "Amazon UK", "slug": "amazon-uk", "website_url": "https://www.amazon.co.uk"},
    {"name": "Argos", "slug": "argos", "website_url": "https://www.argos.co.uk"},
    {"name": "Currys", "slug": "currys", "website_url": "https://www.currys.co.uk"},
    {"name": "John Lewis", "slug": "john-lewis", "website_url": "https://www.johnlewis.com"},
    {"name": "Tesco", "slug": "tesco", "website_url": "https://www.tesco.com"},
    {"name": "Steam", "slug": "steam", "website_url": "https://store.steampowered.com"},
]

CATEGORIES = [
    {"name": "Electronics", "slug": "electronics", "icon": "Monitor", "sort_order": 1},
    {"name": "Gaming", "slug": "gaming", "icon": "Gamepad2", "sort_order": 2},
    {"name": "Home & Garden", "slug": "home-garden", "icon": "Home", "sort_order": 3},
    {"name": "Fashion", "slug": "fashion", "icon": "Shirt", "sort_order": 4},
    {"name": "Groceries", "slug": "groceries", "icon": "ShoppingCart", "sort_order": 5},
    {"name": "Travel", "slug": "travel", "icon": "Plane", "sort_order": 6},
]


async def seed_catalog(session: AsyncSession) -> int:
    """Insert any missing shops and categories by slug.

    Returns:
        Number of rows inserted
    """
    existing_shops = set((await session.execute(select(Shop.slug))).scalars().all())
    existing_categories = set((await session.execute(select(Category.slug))).scalars().all())

    new_rows = [Shop(**s) for s in SHOPS if s["slug"] not in existing_shops]
    new_rows += [Category(**c) for c in CATEGORIES if c["slug"] not in existing_categories]

    if new_rows:
        session.add_all(new_rows)
        await session.commit()
        logger.info("catalog_seeded", inserted=len(new_rows))

    return len(new_rows)


async def main() -> None:
    from dealheat.core.logging import configure_logging
    from dealheat.db.session import async_session_factory, engine
    from dealheat.models import Base

    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        inserted = await seed_catalog(session)
    print(f"Inserted {inserted} catalog row(s).")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
