"""Comments API endpoints (nested under /deals/{deal_id}/comments)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.dependencies import get_current_user, get_db
from dealheat.models.user import User
from dealheat.schemas import ApiResponse, CommentCreateRequest, CommentResponse
from dealheat.services.comment_service import CommentService

router = APIRouter()


@router.get("/{deal_id}/comments", response_model=ApiResponse)
async def list_comments(deal_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get every comment on a deal, oldest first."""
    service = CommentService(db)
    comments = await service.get_comments_for_deal(deal_id)

    if comments is None:
        raise HTTPException(status_code=404, detail="Deal not found")

    return ApiResponse(
        status="success",
        data=[CommentResponse.model_validate(c) for c in comments],
    )


@router.post("/{deal_id}/comments", response_model=ApiResponse, status_code=201)
async def create_comment(
    deal_id: UUID,
    body: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Comment on a deal, or reply to a comment. Requires authentication."""
    service = CommentService(db)
    comment = await service.create_comment(
        deal_id=deal_id,
        user_id=current_user.id,
        content=body.content,
        parent_id=body.parent_id,
    )

    if not comment:
        raise HTTPException(status_code=404, detail="Deal or parent comment not found")

    return ApiResponse(status="success", data=CommentResponse.model_validate(comment))
