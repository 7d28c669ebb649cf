"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealheat.dependencies import get_current_user, get_db
from dealheat.models.user import User
from dealheat.schemas import ApiResponse, LoginRequest, RegisterRequest, TokenResponse, UserResponse
from dealheat.services.auth_service import AuthService, create_access_token

router = APIRouter()


def _session_payload(user: User) -> dict:
    return {
        "user": UserResponse.model_validate(user).model_dump(mode="json"),
        "token": TokenResponse(access_token=create_access_token(user.id)).model_dump(),
    }


@router.post("/register", response_model=ApiResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Register a new user account."""
    service = AuthService(db)
    try:
        user = await service.register(
            email=body.email,
            username=body.username,
            password=body.password,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ApiResponse(status="success", data=_session_payload(user))


@router.post("/login", response_model=ApiResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with email and password."""
    service = AuthService(db)
    user = await service.authenticate(email=body.email, password=body.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    return ApiResponse(status="success", data=_session_payload(user))


@router.get("/me", response_model=ApiResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user info."""
    return ApiResponse(
        status="success",
        data=UserResponse.model_validate(current_user).model_dump(mode="json"),
    )
