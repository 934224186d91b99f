"""FastAPI status service exposing an RpcManager over HTTP.

Startup: configure logging, build the manager from settings, start validation.
Shutdown: stop the scheduler and wait for any in-flight cycle.

Run with ``uvicorn rpcpool.main:create_app --factory``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rpcpool.config.settings import PoolSettings
from rpcpool.logging_config import configure_logging
from rpcpool.middleware.error_handler import register_error_handlers
from rpcpool.pool.manager import RpcManager
from rpcpool.routers.endpoints import create_endpoints_router
from rpcpool.routers.health import create_health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    settings: PoolSettings = app.state.settings

    configure_logging(settings.log_level)
    logger.info("Starting rpcpool service for network %s", settings.network_id)

    manager = RpcManager(settings)
    await manager.start()

    # Mount routers
    app.include_router(create_health_router(manager=manager))
    app.include_router(create_endpoints_router(manager=manager))

    app.state.manager = manager

    logger.info("rpcpool service started")

    yield

    # --- Shutdown ---
    logger.info("Shutting down rpcpool service…")
    await manager.aclose()
    logger.info("rpcpool service shut down")


def create_app(settings: PoolSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Loads ``PoolSettings`` eagerly so that a missing ``RPCPOOL_NETWORK_ID``
    causes an immediate startup failure.
    """
    settings = settings or PoolSettings()  # type: ignore[call-arg]

    app = FastAPI(
        title="rpcpool",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_error_handlers(app)

    return app
