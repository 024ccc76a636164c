"""
Document Request Backend - Main FastAPI Application

This is the entry point for the FastAPI application.
It configures middleware, routes, and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import settings
from .api.envelope import ALLOW_HEADERS, success_response
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import close_connection
from .repositories.mongo_store import MongoTabularStore
from .services.container import ServiceContainer, build_container
from .utils.logger import setup_logging, get_logger
from .utils.time import format_iso, utc_now

# Setup logging first
setup_logging()
logger = get_logger(__name__)

SERVICE_NAME = "docrequest"


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Builds the service container unless one was injected
        - Ensures table schemas (failures are retried on first use)

    Shutdown:
        - Closes HTTP clients and database connections
    """
    logger.info("Starting document request backend...")

    if getattr(app.state, "container", None) is None:
        app.state.container = build_container(settings)
    container: ServiceContainer = app.state.container

    try:
        container.schema.ensure_ready()
        logger.info("Table schemas ready")
    except Exception as e:
        logger.error(f"Failed to ensure schemas: {e}")

    logger.info(f"Application started successfully (environment={container.settings.environment})")

    yield

    logger.info("Shutting down...")
    container.close()
    if isinstance(container.store, MongoTabularStore):
        close_connection()
    logger.info("Application shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Prebuilt services; built from settings at startup when omitted

    Returns:
        Configured FastAPI application instance
    """
    app_settings = container.settings if container is not None else settings
    application = FastAPI(
        title="Document Request Backend",
        description="Draft storage, progress notifications and admin review for the LIFF document request form",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs" if app_settings.debug else None,
        redoc_url="/api/redoc" if app_settings.debug else None,
        openapi_url="/api/openapi.json" if app_settings.debug else None,
    )
    application.state.container = container

    _configure_middleware(application, app_settings)

    register_error_handlers(application)

    _configure_routes(application)

    return application


def _configure_middleware(app: FastAPI, app_settings) -> None:
    """Configure application middleware."""
    # Empty allow-list means any origin; credentials are never used
    allowed = app_settings.allowed_origins_list

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed or ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[header.strip() for header in ALLOW_HEADERS.split(",")],
        expose_headers=["X-Correlation-Id"],
    )

    app.add_middleware(CorrelationIdMiddleware)


def _configure_routes(app: FastAPI) -> None:
    """Configure application routes."""
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    def health(request: Request, origin: Optional[str] = None):
        """
        Health check endpoint.

        Reports whether the backing store is reachable and its schemas are ready.
        """
        container: ServiceContainer = request.app.state.container
        store_ok = container.store.ping()
        return success_response(
            {
                "service": SERVICE_NAME,
                "timestamp": format_iso(utc_now()),
                "store": {
                    "status": "healthy" if store_ok else "unhealthy",
                    "backend": type(container.store).__name__,
                    "schema_ready": container.schema.ready,
                    "schema_error": container.schema.last_error or "",
                    "audit_dropped": container.audit.dropped_count,
                },
            },
            origin or request.headers.get("Origin"),
            container.settings,
        )


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()
