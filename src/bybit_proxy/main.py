"""FastAPI application entry point.

This module sets up the FastAPI application with all necessary middleware,
routers, and configuration.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
import structlog

from bybit_proxy.auth.gate import ProxyTokenGate
from bybit_proxy.core.config import Settings, get_settings
from bybit_proxy.core.exceptions import (
    AuthenticationError,
    BaseAppException,
    ConfigurationError,
    ExternalServiceError,
    ValidationError,
)
from bybit_proxy.core.logging import setup_logging
from bybit_proxy.core.middleware import CorrelationIDMiddleware, LoggingMiddleware
from bybit_proxy.core.monitoring import setup_monitoring, track_error
from bybit_proxy.models.common import ErrorResponse, HealthResponse
from bybit_proxy.proxy.router import router as proxy_router
from bybit_proxy.proxy.service import ProxyService

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the upstream HTTP client on startup and closes it on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting Bybit signing proxy",
        version=settings.app_version,
        route_prefix=settings.route_prefix,
        default_environment=settings.default_environment,
    )

    setup_monitoring(settings.app_name, settings.app_version)

    async with app.state.proxy_service:
        yield

    logger.info("Shutting down Bybit signing proxy")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings to build the app with, read from the environment when omitted.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Signing reverse proxy for the Bybit REST API",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    # Immutable after startup, shared by all requests
    app.state.settings = settings
    app.state.token_gate = ProxyTokenGate.from_settings(settings)
    app.state.proxy_service = ProxyService.from_settings(settings)

    # Correlation ID is added last so it wraps request logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)

    app.include_router(proxy_router, prefix=settings.route_prefix, tags=["proxy"])

    add_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(version=settings.app_version)

    if settings.metrics_enabled:
        app.mount("/metrics", make_asgi_app())

    return app


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Add global exception handlers to the FastAPI app.

    Every failure the proxy produces itself is answered with
    ``{"error": <message>}``. Upstream error statuses are not exceptions and
    never reach these handlers.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle proxy token rejections."""
        track_error(type(exc).__name__, "auth")
        return _error(exc.http_status, str(exc))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle client input errors."""
        logger.warning(
            "Validation error",
            error=str(exc),
            path=request.url.path,
        )
        track_error(type(exc).__name__, "request")
        return _error(exc.http_status, str(exc))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle missing configuration."""
        logger.error(
            "Configuration error",
            error=str(exc),
            path=request.url.path,
        )
        track_error(type(exc).__name__, "config")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        """Handle failed upstream calls."""
        logger.error(
            "External service error",
            error=str(exc),
            path=request.url.path,
            service=exc.service,
        )
        track_error(type(exc).__name__, "upstream")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(BaseAppException)
    async def app_exception_handler(
        request: Request, exc: BaseAppException
    ) -> JSONResponse:
        """Handle remaining application errors."""
        logger.error(
            "Application error",
            error=str(exc),
            path=request.url.path,
        )
        return _error(exc.http_status, str(exc))

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.exception(
            "Unhandled exception",
            error=str(exc),
            path=request.url.path,
        )
        track_error(type(exc).__name__, "app")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or type(exc).__name__)


def run() -> None:
    """Run the proxy with uvicorn until terminated."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "bybit_proxy.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=1 if settings.reload else settings.workers,
        log_level=settings.log_level.lower(),
    )


# Create the app instance
app = create_app()

if __name__ == "__main__":
    run()
