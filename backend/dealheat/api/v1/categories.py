"""Categories API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.dependencies import get_db
from dealheat.schemas import ApiResponse, CategoryResponse
from dealheat.services.catalog_service import CatalogService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_categories(db: AsyncSession = Depends(get_db)):
    """List categories in display order with approved deal counts."""
    rows = await CatalogService(db).list_categories()
    data = []
    for category, count in rows:
        item = CategoryResponse.model_validate(category)
        item.deal_count = count
        data.append(item)
    return ApiResponse(status="success", data=data)
