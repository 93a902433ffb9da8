"""
FastAPI Relay Application Factory
=================================

This is the main entry point for the relay service that sits between the
client application and the Telegram Bot API.

Architecture:
    Client App → Relay (this service) → Telegram Bot API

Routers:
    - /api/*   : Relayed Bot API calls and file streaming
    - /health  : Health check endpoint

Environment Variables:
    - TELEGRAM_TOKEN: Bot access token (required)
    - TELEGRAM_CHAT_ID: Destination chat id (required)
    - TELEGRAM_API_URL: Bot API host (default: https://api.telegram.org)
    - RELAY_PUBLIC_URL: Absolute base for rewritten file paths (optional)
    - ALLOWED_ORIGINS: Comma-separated CORS origins (default: *)
    - HTTP_TIMEOUT_SECONDS: Outbound read timeout (default: 60)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn relay.app.main:app --reload --host 0.0.0.0 --port 8080

    Production:
        uvicorn relay.app.main:app --host 0.0.0.0 --port 8080 --workers 4
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from relay.app.config import Settings, get_settings, validate_configuration
from relay.app.models import ErrorResponse, HealthResponse
from relay.app.proxy import proxy_router
from relay.app.telegram import FileProxy, TelegramForwarder

SERVICE_NAME = "telegram-relay"
SERVICE_VERSION = "1.0.0"


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


class AppState:
    """
    Application state container.

    Holds the shared resources built at startup: settings, the outbound
    HTTP client and the two components that use it.
    """
    def __init__(self, settings: Settings):
        self.settings: Settings = settings
        self.http_client: Optional[httpx.AsyncClient] = None
        self.forwarder: Optional[TelegramForwarder] = None
        self.file_proxy: Optional[FileProxy] = None


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - CORS middleware
        - Route handlers
        - Exception handlers

    Args:
        settings: Explicit settings; loaded from the environment when omitted
        transport: Optional httpx transport for outbound calls (tests pass a MockTransport)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    app_state = AppState(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: configure logging, report configuration problems, open the
        outbound client. Shutdown: close it.
        """
        setup_logging(settings.LOG_LEVEL)
        logger = logging.getLogger("relay.main")

        report = validate_configuration(settings)
        if not report["valid"]:
            # Keep serving; every relayed call will fail at the Bot API instead.
            for error in report["errors"]:
                logger.critical(f"CRITICAL: {error}")
        for warning in report["warnings"]:
            logger.warning(warning)

        app_state.http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS, connect=10.0),
            transport=transport,
        )
        app_state.forwarder = TelegramForwarder(settings, app_state.http_client)
        app_state.file_proxy = FileProxy(settings, app_state.http_client)

        logger.info(
            "Relay service started",
            extra={
                "telegram_api_url": settings.telegram_api_url_str,
                "allowed_origins": settings.ALLOWED_ORIGINS,
                "log_level": settings.LOG_LEVEL,
            }
        )

        try:
            yield
        finally:
            logger.info("Shutting down relay service")
            await app_state.http_client.aclose()
            app_state.forwarder = None
            app_state.file_proxy = None

    app = FastAPI(
        title="Telegram Relay",
        description="Stateless relay between a client application and the Telegram Bot API",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.app_state = app_state

    # Wildcard origins cannot be combined with credentials
    origins = settings.allowed_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(proxy_router, tags=["Telegram Relay"])

    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint. Does not call the Bot API."""
        return HealthResponse(
            status="ok",
            service=SERVICE_NAME,
            configured=validate_configuration(settings)["valid"],
        )

    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        """Service metadata and available endpoints."""
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {
                "health": "/health",
                "docs": "/docs",
                "api": "/api",
            }
        }

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Render malformed requests as 400 in the Bot API error shape."""
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        description = f"Invalid request: {location} {first.get('msg', '')}".strip()
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(description=description).model_dump(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(description=str(exc.detail)).model_dump(),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response.
        """
        logger = logging.getLogger("relay.main")
        logger.error(
            f"Unhandled exception: {settings.redact(str(exc))}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(description="Internal server error").model_dump(),
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "relay.app.main:app",
        host=settings.RELAY_HOST,
        port=settings.RELAY_PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
