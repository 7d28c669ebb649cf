"""Deal service: listings, detail lookups and community submissions.

Listings only ever read the cached vote counters on the deal row; ranking
never touches the vote ledger.
"""

import re
import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import select, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dealheat.core.exceptions import InvalidDealError
from dealheat.models.category import Category
from dealheat.models.deal import Deal, DealStatus
from dealheat.models.shop import Shop

logger = structlog.get_logger(__name__)

SORT_OPTIONS = ("hot", "newest", "discount", "price_low", "price_high")
DEFAULT_SORT = "hot"


def calculate_discount_percentage(
    original_price: Optional[Decimal],
    discounted_price: Optional[Decimal],
) -> Optional[int]:
    """Rounded percentage saved, or None when there is no real discount."""
    if not original_price or not discounted_price:
        return None
    if original_price <= discounted_price:
        return None
    ratio = (original_price - discounted_price) / original_price * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def slugify(title: str) -> str:
    """Lowercase, hyphen-separated slug with a short random suffix."""
    base = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")[:80] or "deal"
    return f"{base}-{uuid.uuid4().hex[:6]}"


class DealService:
    """Service for reading and submitting deals."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="deal_service")

    def _sort_clause(self, sort_by: str):
        sort_map = {
            "hot": Deal.heat_score.desc(),
            "newest": Deal.created_at.desc(),
            "discount": Deal.discount_percentage.desc().nullslast(),
            "price_low": Deal.discounted_price.asc().nullslast(),
            "price_high": Deal.discounted_price.desc().nullslast(),
        }
        return sort_map.get(sort_by, sort_map[DEFAULT_SORT])

    async def get_deals(
        self,
        page: int = 1,
        limit: int = 12,
        sort_by: str = DEFAULT_SORT,
        category_slug: Optional[str] = None,
        shop_slug: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Deal], int]:
        """Get a page of approved deals.

        Args:
            page: Page number (1-indexed)
            limit: Results per page
            sort_by: One of SORT_OPTIONS; "hot" orders by heat_score
            category_slug: Filter by category
            shop_slug: Filter by shop
            search: Case-insensitive substring match on title/description

        Returns:
            Tuple of (deals list, total count)
        """
        self.logger.info(
            "fetching_deals",
            page=page,
            limit=limit,
            sort=sort_by,
            category=category_slug,
            shop=shop_slug,
        )

        filters = [Deal.status == DealStatus.APPROVED]

        query = select(Deal).options(
            selectinload(Deal.shop),
            selectinload(Deal.category),
        )
        count_query = select(func.count(Deal.id))

        if category_slug:
            query = query.join(Deal.category)
            count_query = count_query.join(Deal.category)
            filters.append(Category.slug == category_slug)

        if shop_slug:
            query = query.join(Deal.shop)
            count_query = count_query.join(Deal.shop)
            filters.append(Shop.slug == shop_slug)

        if search:
            pattern = f"%{search}%"
            filters.append(or_(Deal.title.ilike(pattern), Deal.description.ilike(pattern)))

        query = query.where(*filters).order_by(self._sort_clause(sort_by))
        count_query = count_query.where(*filters)

        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        deals = list(result.scalars().all())

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        self.logger.info("deals_fetched", count=len(deals), total=total, page=page)

        return deals, total

    async def get_deal_by_id(
        self,
        deal_id: UUID,
        approved_only: bool = True,
    ) -> Optional[Deal]:
        """Get a single deal with shop and category loaded, or None."""
        query = (
            select(Deal)
            .options(
                selectinload(Deal.shop),
                selectinload(Deal.category),
            )
            .where(Deal.id == deal_id)
        )
        if approved_only:
            query = query.where(Deal.status == DealStatus.APPROVED)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def record_view(self, deal_id: UUID) -> None:
        """Bump the view counter in its own transaction.

        Views are unrelated to the vote counters and are never written in
        the same transaction as a vote.
        """
        await self.db.execute(
            update(Deal)
            .where(Deal.id == deal_id)
            .values(views=Deal.views + 1)
        )
        await self.db.commit()

    async def create_deal(
        self,
        user_id: UUID,
        title: str,
        description: Optional[str] = None,
        deal_url: Optional[str] = None,
        image_url: Optional[str] = None,
        original_price: Optional[Decimal] = None,
        discounted_price: Optional[Decimal] = None,
        shop_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
        expires_at: Optional[datetime] = None,
    ) -> Deal:
        """Submit a new deal for moderation.

        The deal starts out pending with zeroed vote counters; the discount
        percentage is derived from the two prices.

        Raises:
            InvalidDealError: If a price is negative or the shop/category
                does not exist
        """
        for label, price in (("original_price", original_price), ("discounted_price", discounted_price)):
            if price is not None and price < 0:
                raise InvalidDealError(f"{label} must not be negative")

        if shop_id and await self.db.get(Shop, shop_id) is None:
            raise InvalidDealError(f"Unknown shop '{shop_id}'")
        if category_id and await self.db.get(Category, category_id) is None:
            raise InvalidDealError(f"Unknown category '{category_id}'")

        deal = Deal(
            user_id=user_id,
            title=title,
            slug=slugify(title),
            description=description,
            deal_url=deal_url,
            image_url=image_url,
            original_price=original_price,
            discounted_price=discounted_price,
            discount_percentage=calculate_discount_percentage(original_price, discounted_price),
            shop_id=shop_id,
            category_id=category_id,
            expires_at=expires_at,
            status=DealStatus.PENDING,
            upvotes=0,
            downvotes=0,
            heat_score=0,
            views=0,
        )
        self.db.add(deal)
        await self.db.flush()
        await self.db.refresh(deal, ["shop", "category"])

        self.logger.info("deal_submitted", deal_id=str(deal.id), user_id=str(user_id))
        return deal
