"""DealVote model: the per-user vote ledger."""

import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealheat.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from dealheat.models.user import User
    from dealheat.models.deal import Deal


class VoteDirection(str, enum.Enum):
    UP = "up"
    DOWN = "down"


class DealVote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A user's current vote on a deal. At most one row per (deal, user)."""

    __tablename__ = "deal_votes"

    deal_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    vote_type: Mapped[VoteDirection] = mapped_column(
        Enum(
            VoteDirection,
            name="vote_direction",
            native_enum=False,
            length=4,
            values_callable=lambda e: [m.value for m in e],
            create_constraint=True,
        ),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("deal_id", "user_id", name="uq_deal_votes_deal_user"),
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="votes")
    deal: Mapped["Deal"] = relationship(back_populates="votes")

    def __repr__(self) -> str:
        return f"<DealVote(deal={self.deal_id}, user={self.user_id}, type={self.vote_type.value})>"
