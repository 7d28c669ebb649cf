"""Deal Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, computed_field

from dealheat.models.deal import DealStatus
from dealheat.models.deal_vote import VoteDirection
from dealheat.services.heat_score import heat_level as heat_level_for


class ShopBrief(BaseModel):
    """Brief shop information for deal responses."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    slug: str
    logo_url: Optional[str] = None


class CategoryBrief(BaseModel):
    """Brief category information for deal responses."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    slug: str


class DealResponse(BaseModel):
    """Deal as shown in listings.

    ``user_vote`` is the caller's current vote and is filled in by the route
    when a user is known.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: Optional[str] = None
    deal_url: Optional[str] = None
    image_url: Optional[str] = None
    original_price: Optional[Decimal] = None
    discounted_price: Optional[Decimal] = None
    discount_percentage: Optional[int] = None
    upvotes: int
    downvotes: int
    heat_score: int
    views: int
    expires_at: Optional[datetime] = None
    created_at: datetime
    shop: Optional[ShopBrief] = None
    category: Optional[CategoryBrief] = None
    user_vote: Optional[VoteDirection] = None

    @computed_field
    @property
    def heat_level(self) -> str:
        return heat_level_for(self.heat_score)


class DealDetailResponse(DealResponse):
    """Detailed deal response with additional fields."""

    description: Optional[str] = None


class AdminDealResponse(DealDetailResponse):
    """Deal as seen in the moderation queue."""

    status: DealStatus
    user_id: Optional[UUID] = None


class DealCreateRequest(BaseModel):
    """Community deal submission."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=3, max_length=500)
    description: Optional[str] = Field(None, max_length=10000)
    deal_url: Optional[HttpUrl] = None
    image_url: Optional[HttpUrl] = None
    original_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    discounted_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    shop_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None


class DealStatusUpdateRequest(BaseModel):
    """Moderation decision for a deal."""

    status: DealStatus


class VoteRequest(BaseModel):
    """Request schema for voting on a deal."""

    vote_type: VoteDirection


class VoteResponse(BaseModel):
    """Authoritative counters after a vote, for the client to reconcile."""

    deal_id: UUID
    upvotes: int
    downvotes: int
    heat_score: int
    user_vote: Optional[VoteDirection] = None
    transition: str

    @computed_field
    @property
    def heat_level(self) -> str:
        return heat_level_for(self.heat_score)
