"""Deal model representing a community-submitted offer."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Enum, String, Text, ForeignKey, Numeric, DateTime, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealheat.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from dealheat.models.user import User
    from dealheat.models.shop import Shop
    from dealheat.models.category import Category
    from dealheat.models.deal_vote import DealVote
    from dealheat.models.comment import Comment


class DealStatus(str, enum.Enum):
    PENDING = "pending"      # awaiting moderation
    APPROVED = "approved"
    REJECTED = "rejected"


class Deal(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A deal posted by a user.

    Only approved deals are listed publicly. ``upvotes``, ``downvotes`` and
    ``heat_score`` are a cache of the vote ledger and are written exclusively
    by VoteService.
    """

    __tablename__ = "deals"

    # References
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Submitting user"
    )
    shop_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("shops.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(String(600), nullable=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deal_url: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True, comment="Link to the offer")
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Pricing
    original_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="Regular price"
    )
    discounted_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="Deal price"
    )
    discount_percentage: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Rounded discount percentage (0-100), computed on submission"
    )

    # Lifecycle
    status: Mapped[DealStatus] = mapped_column(
        Enum(
            DealStatus,
            name="deal_status",
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
            create_constraint=True,
        ),
        nullable=False,
        default=DealStatus.PENDING,
        index=True,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Vote-derived cache
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    heat_score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
        comment="+2 per upvote, -1 per downvote; drives the Hot sort"
    )

    # Independent of voting
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        Index("idx_deals_status_heat", "status", "heat_score"),
        Index("idx_deals_status_created", "status", "created_at"),
    )

    # Relationships
    submitter: Mapped[Optional["User"]] = relationship(back_populates="deals")
    shop: Mapped[Optional["Shop"]] = relationship(back_populates="deals")
    category: Mapped[Optional["Category"]] = relationship(back_populates="deals")
    votes: Mapped[List["DealVote"]] = relationship(
        back_populates="deal", cascade="all, delete-orphan"
    )
    comments: Mapped[List["Comment"]] = relationship(
        back_populates="deal", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, title='{self.title[:50]}', heat_score={self.heat_score})>"
