"""Shop model representing the retailers deals link to."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealheat.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from dealheat.models.deal import Deal


class Shop(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Retailer a deal is offered by (e.g. Amazon UK, Argos)."""

    __tablename__ = "shops"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False, comment="URL-friendly identifier")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    website_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    deals: Mapped[list["Deal"]] = relationship(back_populates="shop")

    def __repr__(self) -> str:
        return f"<Shop(id={self.id}, slug='{self.slug}')>"
