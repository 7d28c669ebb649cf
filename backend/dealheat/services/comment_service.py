"""Comment service for deal discussions."""

import uuid
from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dealheat.models.comment import Comment
from dealheat.models.deal import Deal, DealStatus

logger = structlog.get_logger(__name__)


class CommentService:
    """Lists and creates comments on approved deals."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="comment_service")

    async def _deal_is_public(self, deal_id: uuid.UUID) -> bool:
        stmt = select(Deal.id).where(Deal.id == deal_id, Deal.status == DealStatus.APPROVED)
        return (await self.db.execute(stmt)).scalar_one_or_none() is not None

    async def get_comments_for_deal(
        self, deal_id: uuid.UUID
    ) -> Optional[List[Comment]]:
        """All comments on a deal, oldest first, replies included.

        Returns None if the deal does not exist or is not approved.
        """
        if not await self._deal_is_public(deal_id):
            return None

        stmt = (
            select(Comment)
            .where(Comment.deal_id == deal_id)
            .options(selectinload(Comment.user))
            .order_by(Comment.created_at.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_comment(
        self,
        deal_id: uuid.UUID,
        user_id: uuid.UUID,
        content: str,
        parent_id: Optional[uuid.UUID] = None,
    ) -> Optional[Comment]:
        """Create a comment or reply.

        Returns None if the deal is not public or the parent comment does
        not belong to the same deal.
        """
        if not await self._deal_is_public(deal_id):
            return None

        if parent_id:
            parent_check = await self.db.execute(
                select(Comment.id).where(
                    Comment.id == parent_id,
                    Comment.deal_id == deal_id,
                )
            )
            if parent_check.scalar_one_or_none() is None:
                return None

        comment = Comment(
            deal_id=deal_id,
            user_id=user_id,
            content=content,
            parent_id=parent_id,
        )
        self.db.add(comment)
        await self.db.flush()
        await self.db.refresh(comment, ["user"])

        self.logger.info(
            "comment_created",
            comment_id=str(comment.id),
            deal_id=str(deal_id),
            user_id=str(user_id),
            is_reply=parent_id is not None,
        )
        return comment
