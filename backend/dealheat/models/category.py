"""Category model for deal classification."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealheat.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from dealheat.models.deal import Deal


class Category(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Deal category (e.g. 'Electronics', 'Groceries')."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False, comment="URL-friendly identifier")
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, comment="Icon identifier")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="Display order")

    deals: Mapped[list["Deal"]] = relationship(back_populates="category")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug='{self.slug}')>"
