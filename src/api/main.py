"""Tadabbur API - Main FastAPI Application.

This module provides the main FastAPI application for the Tadabbur core.
It includes:
- CORS middleware configuration
- API versioning (/api/v1)
- Health check endpoints
- Feed, item, moderation, member, notification and report endpoints
- Prometheus metrics at /metrics

Usage:
    # Run with uvicorn
    uvicorn src.api.main:app --reload

    # Or run directly
    python -m src.api.main
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

import structlog
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import close_dependencies, reset_dependencies
from src.api.models import ErrorResponse, ValidationErrorDetail, ValidationErrorResponse
from src.api.routes.feed import router as feed_router
from src.api.routes.health import API_VERSION, router as health_router, set_server_start_time
from src.api.routes.items import router as items_router
from src.api.routes.moderation import router as moderation_router
from src.api.routes.notifications import router as notifications_router
from src.api.routes.reports import router as reports_router
from src.api.routes.users import router as users_router
from src.config.settings import get_settings
from src.core.exceptions import ErrorKind, ServiceError
from src.core.logging_config import configure_logging
from src.monitoring.metrics import get_metrics_app

logger = structlog.get_logger(__name__)

API_TITLE = "Tadabbur API"
API_DESCRIPTION = """
## Devotional content moderation and engagement

- **Feed**: the viewer's own and public items in one list, with all/mine/favorites tabs
- **Likes**: optimistic like/unlike with server-confirmed counts
- **Moderation**: approve, reject with reason, verify, resubmit
- **Members**: role and account status changes within the role hierarchy

### Identity

Authentication happens upstream. Every request names the acting member in the
`X-Actor-Id` header.
"""

STATUS_FOR_KIND = {
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Configure logging, record start time
    - Shutdown: Close the content store client
    """
    configure_logging()
    logger.info("application_starting", store_backend=get_settings().store_backend)
    set_server_start_time()

    yield

    logger.info("application_stopping")
    await close_dependencies()
    reset_dependencies()
    logger.info("application_stopped")


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map a ServiceError's kind to its HTTP status."""
    status_code = STATUS_FOR_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "service_error",
        path=request.url.path,
        method=request.method,
        kind=exc.kind.value,
        operation=exc.operation,
        item_id=exc.item_id,
        actor_id=exc.actor_id,
        error=exc.message,
    )

    response = ErrorResponse(
        error=exc.kind.value,
        message=exc.message,
        operation=exc.operation,
        item_id=exc.item_id,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with detailed response."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append(ValidationErrorDetail(
            field=field,
            message=error["msg"],
            value=error.get("input"),
        ))

    response = ValidationErrorResponse(
        errors=errors,
        timestamp=datetime.now(timezone.utc),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=response.model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )

    response = ErrorResponse(
        error="internal_server_error",
        message="An unexpected error occurred",
        detail=str(exc) if get_settings().debug else None,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=response.model_dump(mode="json"),
    )


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {"name": "Health", "description": "System health and status endpoints"},
            {"name": "Feed", "description": "Viewer feed projections"},
            {"name": "Items", "description": "Likes and lifecycle transitions"},
            {"name": "Moderation", "description": "Review queue and approval stats"},
            {"name": "Users", "description": "Role and account status management"},
            {"name": "Notifications", "description": "Member inbox"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Actor-Id", "Accept"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(feed_router)
    api_v1_router.include_router(items_router)
    api_v1_router.include_router(moderation_router)
    api_v1_router.include_router(users_router)
    api_v1_router.include_router(notifications_router)
    api_v1_router.include_router(reports_router)
    app.include_router(api_v1_router)

    app.mount("/metrics", get_metrics_app())

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {
            "name": API_TITLE,
            "version": API_VERSION,
            "docs": "/docs",
            "health": "/health",
            "api": "/api/v1",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
