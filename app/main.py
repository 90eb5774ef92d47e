# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the CodeVimarsh API gateway.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Request pipeline (outermost first):
#   request log -> CORS policy -> unhandled errors -> body limit -> routing
#   routing: /api/health | handler group by prefix | /uploads static files
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager
from typing import Mapping

from fastapi import APIRouter, FastAPI

from app.config import Settings, settings as default_settings
from app.cors import CorsConfig, CorsPolicy, CorsPolicyMiddleware
from app.exceptions import GatewayException, gateway_exception_handler
from app.middleware import (
    BodyLimitMiddleware,
    BodyTooLargeError,
    RequestLogMiddleware,
    UnhandledErrorMiddleware,
    body_too_large_handler,
)
from app.routers import health
from app.routing import DEFAULT_ROUTE_TABLE, RouteTable, load_handler_groups, mount_routes
from lib.database import ConnectionPool

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: log the effective configuration, open the pool, run the
      database diagnostic
    - Shutdown: close the connection pool
    """
    app_settings: Settings = app.state.settings
    cors_config: CorsConfig = app.state.cors_policy.config
    pool: ConnectionPool = app.state.db_pool

    # Startup
    logger.info(f"Starting CodeVimarsh API in {app_settings.NODE_ENV} mode")
    logger.info(f"CORS allow-list: {list(cors_config.allowed_origins)}")
    if cors_config.allow_any_origin:
        logger.warning("CORS accepts any origin (development bypass is on)")

    # Fresh aiomysql pool per startup, bound to the serving event loop
    await pool.open()
    # Non-fatal: the health check must stay reachable without a database
    await pool.check_connection()

    yield

    # Shutdown
    logger.info("Shutting down CodeVimarsh API")
    await pool.close()


def create_app(
    settings: Settings | None = None,
    *,
    pool: ConnectionPool | None = None,
    handler_groups: Mapping[str, APIRouter] | None = None,
    route_table: RouteTable = DEFAULT_ROUTE_TABLE,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        settings: Application settings (defaults to the global instance)
        pool: Connection pool to use (defaults to a MySQL pool from settings);
            opened on startup and closed on shutdown
        handler_groups: Routers by group name (defaults to importing them
            from settings.HANDLERS_PACKAGE)
        route_table: Prefix table to mount

    Returns:
        FastAPI: The configured application
    """
    settings = settings or default_settings
    if pool is None:
        pool = ConnectionPool.from_settings(settings)
    if handler_groups is None:
        handler_groups = load_handler_groups(settings.HANDLERS_PACKAGE, route_table)

    cors_policy = CorsPolicy(CorsConfig.from_settings(settings))

    app = FastAPI(
        title="CodeVimarsh API",
        description="API gateway for the CodeVimarsh platform.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db_pool = pool
    app.state.cors_policy = cors_policy
    app.state.route_table = route_table

    # =========================================================================
    # Middleware (last added runs first)
    # =========================================================================

    app.add_middleware(BodyLimitMiddleware, max_bytes=settings.max_body_size_bytes)
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(CorsPolicyMiddleware, policy=cors_policy)
    app.add_middleware(RequestLogMiddleware, route_table=route_table)

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    app.add_exception_handler(GatewayException, gateway_exception_handler)
    app.add_exception_handler(BodyTooLargeError, body_too_large_handler)

    # =========================================================================
    # Routes
    # =========================================================================

    mount_routes(
        app,
        route_table,
        handler_groups,
        uploads_dir=settings.UPLOADS_DIR,
        health_router=health.router,
    )

    return app


# Module-level application for `uvicorn app.main:app` and api/index.py
app = create_app()
