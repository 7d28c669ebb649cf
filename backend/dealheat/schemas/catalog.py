"""Shop and category Pydantic schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ShopResponse(BaseModel):
    """Shop with its approved deal count."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    deal_count: int = 0  # Computed field


class CategoryResponse(BaseModel):
    """Category with its approved deal count."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    icon: Optional[str] = None
    sort_order: int
    deal_count: int = 0  # Computed field
