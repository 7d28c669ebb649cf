"""Pydantic schemas for the DealHeat API.

All request/response models are defined here for easy import.
"""

from dealheat.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, PaginationMeta
from dealheat.schemas.deal import (
    AdminDealResponse,
    CategoryBrief,
    DealCreateRequest,
    DealDetailResponse,
    DealResponse,
    DealStatusUpdateRequest,
    ShopBrief,
    VoteRequest,
    VoteResponse,
)
from dealheat.schemas.catalog import CategoryResponse, ShopResponse
from dealheat.schemas.comment import CommentAuthor, CommentCreateRequest, CommentResponse
from dealheat.schemas.health import HealthCheckResponse
from dealheat.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Deal
    "AdminDealResponse",
    "CategoryBrief",
    "DealCreateRequest",
    "DealDetailResponse",
    "DealResponse",
    "DealStatusUpdateRequest",
    "ShopBrief",
    "VoteRequest",
    "VoteResponse",
    # Catalog
    "CategoryResponse",
    "ShopResponse",
    # Comment
    "CommentAuthor",
    "CommentCreateRequest",
    "CommentResponse",
    # Health
    "HealthCheckResponse",
    # Auth
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
]
