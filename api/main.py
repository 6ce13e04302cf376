"""
FastAPI application factory for the Library Management API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import APIConfig
from api.middleware import (
    RateLimiter, RateLimitMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware
)
from api.models import ErrorResponse, HealthResponse, ServiceInfo
from api.routes import router as books_router
from catalog.database import BookStore
from catalog.exceptions import CatalogError, InternalError, ValidationError
from catalog.validation import format_errors

logger = structlog.get_logger(__name__)

DOCS_URL = "/api-docs"
OPENAPI_URL = "/swagger.json"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to MongoDB on startup unless a store was supplied."""
    config: APIConfig = app.state.config
    logger.info("Starting Library Management API", environment=config.environment)

    owns_store = app.state.store is None
    if owns_store:
        store = BookStore(
            connection_url=config.mongodb_url,
            database_name=config.mongodb_database,
            collection_name=config.mongodb_collection,
        )
        try:
            await store.connect()
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            raise
        app.state.store = store

    yield

    logger.info("Shutting down Library Management API")
    if owns_store:
        await app.state.store.disconnect()
        app.state.store = None


def _error_content(
    message: str,
    status_code: int,
    detail: Optional[str] = None,
    details: Optional[list] = None,
) -> dict:
    return ErrorResponse(
        error=message,
        detail=detail,
        status_code=status_code,
        details=details,
    ).model_dump(exclude_none=True)


def register_exception_handlers(app: FastAPI, config: APIConfig) -> None:
    """Map catalog and framework errors to JSON error responses."""

    @app.exception_handler(CatalogError)
    async def catalog_exception_handler(request: Request, exc: CatalogError):
        detail = exc.detail
        if isinstance(exc, InternalError):
            logger.error("Internal error", error=exc.message, detail=exc.detail, path=request.url.path)
            if config.is_production():
                detail = None
        details = exc.details if isinstance(exc, ValidationError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_content(exc.message, exc.status_code, detail, details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_content(
                "Validation Error",
                status.HTTP_400_BAD_REQUEST,
                details=format_errors(exc.errors()),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_content(str(exc.detail), exc.status_code),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_content(
                "Internal server error",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=None if config.is_production() else str(exc),
            ),
        )


def create_app(config: Optional[APIConfig] = None, store: Optional[BookStore] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings; read from the environment when omitted
        store: Record store to use; when omitted the lifespan handler
            connects to MongoDB using `config`
    """
    config = config or APIConfig()

    app = FastAPI(
        title=config.app_name,
        description=config.api_description,
        version=config.api_version,
        docs_url=DOCS_URL,
        redoc_url=None,
        openapi_url=OPENAPI_URL,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store

    # Added innermost first
    if config.rate_limit_enabled:
        app.state.rate_limiter = RateLimiter(config.rate_limit_requests, config.rate_limit_window)
        app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)
    app.add_middleware(SecurityHeadersMiddleware, docs_path=DOCS_URL)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app, config)

    @app.get("/", response_model=ServiceInfo, tags=["Service"])
    async def root():
        """Service information and useful links."""
        return ServiceInfo(
            message=config.app_name,
            documentation=DOCS_URL,
            swagger_json=OPENAPI_URL,
            health="/health",
            version=config.api_version,
            environment=config.environment,
        )

    @app.get("/health", response_model=HealthResponse, tags=["Service"])
    async def health_check(request: Request):
        """Health check endpoint."""
        db_status = "unavailable"
        current_store = request.app.state.store
        if current_store is not None:
            health_info = await current_store.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=config.api_version,
            environment=config.environment,
            database_status=db_status,
        )

    app.include_router(books_router)
    return app
