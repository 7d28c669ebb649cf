"""Deals API endpoints: listings, detail, submission and voting."""

from typing import Literal, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.config import settings
from dealheat.core.exceptions import VoteFailedError
from dealheat.dependencies import get_current_user, get_db, get_optional_user
from dealheat.models.user import User
from dealheat.schemas import (
    AdminDealResponse,
    ApiResponse,
    DealCreateRequest,
    DealDetailResponse,
    DealResponse,
    PaginationMeta,
    VoteRequest,
    VoteResponse,
)
from dealheat.services.cache_service import CacheService, cache_key_for_deals, get_cache
from dealheat.services.deal_service import DealService
from dealheat.services.vote_service import VoteService

logger = structlog.get_logger(__name__)

router = APIRouter()

SortOption = Literal["hot", "newest", "discount", "price_low", "price_high"]


@router.get("", response_model=ApiResponse)
async def list_deals(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"),
    sort_by: SortOption = Query("hot", description="Sort method"),
    category: Optional[str] = Query(None, description="Filter by category slug"),
    shop: Optional[str] = Query(None, description="Filter by shop slug"),
    q: Optional[str] = Query(None, min_length=1, max_length=100, description="Search title and description"),
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """List approved deals.

    Sort options:
    - hot: Highest heat score first (default)
    - newest: Most recently posted first
    - discount: Highest discount percentage first
    - price_low / price_high: By deal price

    Anonymous listings are cached briefly. Listings for a signed-in user
    include ``user_vote`` on each deal and are never cached.
    """
    cache_key = None
    if current_user is None:
        cache_key = cache_key_for_deals(
            page=page,
            limit=limit,
            sort_by=sort_by,
            category_slug=category,
            shop_slug=shop,
            search=q,
        )
        cached = await cache.get(cache_key)
        if cached:
            return ApiResponse.model_validate_json(cached)

    service = DealService(db)
    deals, total = await service.get_deals(
        page=page,
        limit=limit,
        sort_by=sort_by,
        category_slug=category,
        shop_slug=shop,
        search=q,
    )

    items = [DealResponse.model_validate(d) for d in deals]
    if current_user is not None:
        votes = await VoteService(db).get_user_votes([d.id for d in deals], current_user.id)
        for item in items:
            item.user_vote = votes.get(item.id)

    response = ApiResponse(
        status="success",
        data=items,
        meta=PaginationMeta.build(page=page, limit=limit, total=total),
    )

    if cache_key is not None:
        await cache.set(cache_key, response.model_dump_json(), ttl=settings.LISTING_CACHE_TTL_SECONDS)

    return response


@router.post("", response_model=ApiResponse, status_code=201)
async def submit_deal(
    body: DealCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit a deal. It stays pending until a moderator approves it."""
    service = DealService(db)
    deal = await service.create_deal(
        user_id=current_user.id,
        title=body.title,
        description=body.description,
        deal_url=str(body.deal_url) if body.deal_url else None,
        image_url=str(body.image_url) if body.image_url else None,
        original_price=body.original_price,
        discounted_price=body.discounted_price,
        shop_id=body.shop_id,
        category_id=body.category_id,
        expires_at=body.expires_at,
    )
    return ApiResponse(status="success", data=AdminDealResponse.model_validate(deal))


@router.get("/{deal_id}", response_model=ApiResponse)
async def get_deal(
    deal_id: UUID,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Get an approved deal by ID and count the view."""
    service = DealService(db)
    deal = await service.get_deal_by_id(deal_id)

    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")

    await service.record_view(deal_id)

    deal_data = DealDetailResponse.model_validate(deal)
    if current_user is not None:
        deal_data.user_vote = await VoteService(db).get_user_vote(deal_id, current_user.id)

    return ApiResponse(status="success", data=deal_data)


@router.get("/{deal_id}/vote", response_model=ApiResponse)
async def get_vote_status(
    deal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current user's vote on a deal ('up', 'down' or null)."""
    service = VoteService(db)
    user_vote = await service.get_user_vote(deal_id, current_user.id)
    return ApiResponse(status="success", data={"deal_id": str(deal_id), "user_vote": user_vote})


@router.post("/{deal_id}/vote", response_model=ApiResponse)
async def vote_on_deal(
    deal_id: UUID,
    vote: VoteRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Vote on a deal. Requires authentication.

    Voting the same direction again removes the vote.
    Voting the opposite direction switches it.
    The response carries the deal's authoritative counters, and is only
    sent once the vote has been committed.
    """
    service = VoteService(db)
    result = await service.cast_vote(
        deal_id,
        current_user.id if current_user else None,
        vote.vote_type,
    )

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "vote_commit_failed",
            deal_id=str(deal_id),
            user_id=str(current_user.id),
            error=str(e),
            exc_info=True,
        )
        raise VoteFailedError() from e

    return ApiResponse(status="success", data=VoteResponse(**result.to_dict()))
