"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from dealheat.api.v1 import admin, auth, categories, comments, deals, health, shops

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_v1_router.include_router(deals.router, prefix="/deals", tags=["deals"])
api_v1_router.include_router(comments.router, prefix="/deals", tags=["comments"])
api_v1_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_v1_router.include_router(shops.router, prefix="/shops", tags=["shops"])
api_v1_router.include_router(admin.router, prefix="/admin", tags=["admin"])
