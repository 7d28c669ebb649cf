"""Moderation service: the admin review queue for submitted deals."""

from typing import List, Optional, Tuple, Union
from uuid import UUID

import structlog
from sqlalchemy import delete, select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dealheat.core.exceptions import InvalidDealError
from dealheat.models.comment import Comment
from dealheat.models.deal import Deal, DealStatus

logger = structlog.get_logger(__name__)


class ModerationService:
    """Approve, reject and delete deals. Never touches vote counters."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="moderation_service")

    async def get_queue(
        self,
        status: Optional[DealStatus] = DealStatus.PENDING,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Deal], int]:
        """List deals for review, oldest first. ``status=None`` lists all."""
        query = select(Deal).options(
            selectinload(Deal.shop),
            selectinload(Deal.category),
        )
        count_query = select(func.count(Deal.id))
        if status is not None:
            query = query.where(Deal.status == status)
            count_query = count_query.where(Deal.status == status)

        query = query.order_by(Deal.created_at.asc()).offset((page - 1) * limit).limit(limit)

        deals = list((await self.db.execute(query)).scalars().all())
        total = (await self.db.execute(count_query)).scalar() or 0
        return deals, total

    async def set_status(
        self,
        deal_id: UUID,
        status: Union[DealStatus, str],
        moderator_id: Optional[UUID] = None,
    ) -> Optional[Deal]:
        """Move a deal to pending, approved or rejected.

        Returns:
            The updated deal, or None if it does not exist

        Raises:
            InvalidDealError: If status is not a known deal status
        """
        try:
            status = DealStatus(status)
        except ValueError:
            raise InvalidDealError(f"Unknown deal status '{status}'") from None

        stmt = (
            select(Deal)
            .options(selectinload(Deal.shop), selectinload(Deal.category))
            .where(Deal.id == deal_id)
        )
        deal = (await self.db.execute(stmt)).scalar_one_or_none()
        if deal is None:
            return None

        previous = deal.status
        deal.status = status
        await self.db.flush()

        self.logger.info(
            "deal_status_changed",
            deal_id=str(deal_id),
            previous=previous.value,
            status=status.value,
            moderator_id=str(moderator_id) if moderator_id else None,
        )
        return deal

    async def delete_deal(self, deal_id: UUID, moderator_id: Optional[UUID] = None) -> bool:
        """Delete a deal together with its vote ledger rows and comments."""
        stmt = select(Deal).options(selectinload(Deal.votes)).where(Deal.id == deal_id)
        deal = (await self.db.execute(stmt)).scalar_one_or_none()
        if deal is None:
            return False

        # One statement so replies and parents go together
        await self.db.execute(delete(Comment).where(Comment.deal_id == deal_id))
        await self.db.delete(deal)
        await self.db.flush()

        self.logger.info(
            "deal_deleted",
            deal_id=str(deal_id),
            moderator_id=str(moderator_id) if moderator_id else None,
        )
        return True
