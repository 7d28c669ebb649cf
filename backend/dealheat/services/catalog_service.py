"""Read-only catalog lookups: shops and categories with deal counts."""

from typing import List, Tuple

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.models.category import Category
from dealheat.models.deal import Deal, DealStatus
from dealheat.models.shop import Shop


class CatalogService:
    """Lists shops and categories for the browse filters."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self) -> List[Tuple[Category, int]]:
        """All categories in display order, each with its approved deal count."""
        stmt = (
            select(Category, func.count(Deal.id))
            .outerjoin(
                Deal,
                and_(Deal.category_id == Category.id, Deal.status == DealStatus.APPROVED),
            )
            .group_by(Category.id)
            .order_by(Category.sort_order, Category.name)
        )
        result = await self.db.execute(stmt)
        return [(category, count) for category, count in result.all()]

    async def list_shops(self) -> List[Tuple[Shop, int]]:
        """All shops by name, each with its approved deal count."""
        stmt = (
            select(Shop, func.count(Deal.id))
            .outerjoin(
                Deal,
                and_(Deal.shop_id == Shop.id, Deal.status == DealStatus.APPROVED),
            )
            .group_by(Shop.id)
            .order_by(Shop.name)
        )
        result = await self.db.execute(stmt)
        return [(shop, count) for shop, count in result.all()]
