"""Shops API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.dependencies import get_db
from dealheat.schemas import ApiResponse, ShopResponse
from dealheat.services.catalog_service import CatalogService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_shops(db: AsyncSession = Depends(get_db)):
    """List shops with approved deal counts."""
    rows = await CatalogService(db).list_shops()
    data = []
    for shop, count in rows:
        item = ShopResponse.model_validate(shop)
        item.deal_count = count
        data.append(item)
    return ApiResponse(status="success", data=data)
