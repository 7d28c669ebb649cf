"""Admin endpoints: moderation queue, status changes, deletion, counter repair."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.dependencies import get_current_admin, get_db
from dealheat.models.deal import DealStatus
from dealheat.models.user import User
from dealheat.schemas import AdminDealResponse, ApiResponse, DealStatusUpdateRequest, PaginationMeta
from dealheat.services.cache_service import CacheService, get_cache, invalidate_deals_cache
from dealheat.services.moderation_service import ModerationService
from dealheat.services.vote_service import VoteService

router = APIRouter()


@router.get("/deals", response_model=ApiResponse)
async def moderation_queue(
    status: Optional[DealStatus] = Query(DealStatus.PENDING, description="Filter by status; omit for pending"),
    all_statuses: bool = Query(False, alias="all", description="Ignore the status filter"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """List deals for moderation, oldest first."""
    service = ModerationService(db)
    deals, total = await service.get_queue(
        status=None if all_statuses else status,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        status="success",
        data=[AdminDealResponse.model_validate(d) for d in deals],
        meta=PaginationMeta.build(page=page, limit=limit, total=total),
    )


@router.patch("/deals/{deal_id}/status", response_model=ApiResponse)
async def update_deal_status(
    deal_id: UUID,
    body: DealStatusUpdateRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Approve, reject or re-queue a deal."""
    service = ModerationService(db)
    deal = await service.set_status(deal_id, body.status, moderator_id=admin.id)

    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")

    await invalidate_deals_cache(cache)
    return ApiResponse(status="success", data=AdminDealResponse.model_validate(deal))


@router.delete("/deals/{deal_id}", response_model=ApiResponse)
async def delete_deal(
    deal_id: UUID,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Delete a deal and its votes."""
    service = ModerationService(db)
    deleted = await service.delete_deal(deal_id, moderator_id=admin.id)

    if not deleted:
        raise HTTPException(status_code=404, detail="Deal not found")

    await invalidate_deals_cache(cache)
    return ApiResponse(status="success", data={"deleted": True})


@router.post("/deals/{deal_id}/recalculate", response_model=ApiResponse)
async def recalculate_counters(
    deal_id: UUID,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Rebuild a deal's vote counters from the vote ledger."""
    service = VoteService(db)
    drifted, counters = await service.recalculate_counters(deal_id)
    return ApiResponse(
        status="success",
        data={"deal_id": str(deal_id), "drifted": drifted, **counters._asdict()},
    )
