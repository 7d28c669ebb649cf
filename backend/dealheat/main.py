"""DealHeat Backend -- FastAPI Application Entry Point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dealheat import __version__
from dealheat.api.v1.router import api_v1_router
from dealheat.config import settings
from dealheat.core.exceptions import DealHeatException
from dealheat.core.logging import configure_logging
from dealheat.db.seed import seed_catalog
from dealheat.db.session import async_session_factory, engine
from dealheat.models import Base
from dealheat.schemas import ErrorDetail, ErrorResponse
from dealheat.services.cache_service import get_cache_service

logger = structlog.get_logger(__name__)

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthenticated",
    403: "permission_denied",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
}


def _error_response(status_code: int, code: str, message: str, field: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, field=field))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    configure_logging()
    logger.info(
        "api_starting",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        version=__version__,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_verified")

    if settings.ENVIRONMENT != "test":
        async with async_session_factory() as session:
            await seed_catalog(session)

    cache = get_cache_service()
    if await cache.health_check():
        logger.info("cache_ready", enabled=cache.enabled)
    else:
        logger.warning("cache_unavailable", detail="operating without listing cache")

    yield

    logger.info("api_stopping")
    await cache.close()
    await engine.dispose()


app = FastAPI(
    title="DealHeat API",
    description="Community deal aggregator with voting and heat ranking",
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DealHeatException)
async def dealheat_exception_handler(request: Request, exc: DealHeatException):
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            code=exc.code,
            error=exc.message,
        )
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    return _error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    return _error_response(
        422,
        "validation_error",
        first.get("msg", "Invalid request"),
        field=".".join(loc) or None,
    )


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "DealHeat API",
        "version": __version__,
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
