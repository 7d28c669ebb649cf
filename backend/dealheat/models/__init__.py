"""SQLAlchemy models for DealHeat.

All models are imported here so metadata.create_all sees every table.
"""

from dealheat.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from dealheat.models.user import User
from dealheat.models.shop import Shop
from dealheat.models.category import Category
from dealheat.models.deal import Deal, DealStatus
from dealheat.models.deal_vote import DealVote, VoteDirection
from dealheat.models.comment import Comment

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "User",
    "Shop",
    "Category",
    "Deal",
    "DealStatus",
    "DealVote",
    "VoteDirection",
    "Comment",
]
