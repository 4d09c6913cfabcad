"""
LiveVote Backend Application

Live audience voting: attendees enter an access code and pick one of four
options; presenter screens follow the results in real time over /live.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.live import router as live_router
from api.routes import router as api_router
from core.config import settings
from core.errors import DataAccessError, LiveVoteError, NotFoundError
from core.events import create_start_app_handler, create_stop_app_handler
from core.logging import configure_logging
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from services.live_channel import LiveChannel
from services.role_gate import RoleGate

logger = structlog.get_logger(__name__)

VERSION = "1.0.0"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    await create_start_app_handler(app)()
    yield
    # Shutdown
    await create_stop_app_handler(app)()


def register_exception_handlers(application: FastAPI) -> None:
    """Map the error taxonomy onto JSON responses."""

    @application.exception_handler(LiveVoteError)
    async def live_vote_error_handler(request: Request, exc: LiveVoteError) -> JSONResponse:
        if isinstance(exc, DataAccessError):
            logger.error(
                "data_access_error",
                error=exc.message,
                path=request.url.path,
                method=request.method,
            )
        else:
            logger.info(
                "request_rejected",
                error_type=type(exc).__name__,
                error=exc.message,
                path=request.url.path,
            )
        return error_response(exc.status_code, exc.client_message)

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed bodies are a ValidationError (400), not FastAPI's default 422
        logger.info("request_body_invalid", path=request.url.path, errors=len(exc.errors()))
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return error_response(exc.status_code, NotFoundError.public_message)
        return error_response(exc.status_code, str(exc.detail))

    @application.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            "data_access_error",
            error=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, DataAccessError.public_message)

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all so unexpected errors still produce a JSON body without internals."""
        logger.exception(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    application = FastAPI(
        title=settings.APP_NAME,
        description="Live audience voting with real-time presenter displays",
        version=VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # The live room and its role gate are injected into handlers from app.state
    application.state.live_channel = LiveChannel()
    application.state.role_gate = RoleGate(settings.LIVE_ADMIN_POLICY, settings.ADMIN_PASSWORD)

    # Add middleware (order matters - processed in reverse)
    # 1. Security headers - added to all responses
    application.add_middleware(
        SecurityHeadersMiddleware,
        enforce_csp=not settings.is_development,
    )

    # 2. Request logging in development
    if settings.is_development:
        application.add_middleware(RequestLoggingMiddleware)

    # 3. CORS - restricted to the configured frontend origins
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    application.include_router(api_router, prefix="/api")
    application.include_router(live_router)

    register_exception_handlers(application)

    return application


app = create_application()


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": VERSION,
        "live": "/live",
        "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
    }
