"""Health and readiness endpoints.

- GET /health: service status + pool and failure stats
- GET /readiness: 200 only when at least one HTTPS endpoint is validated
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Response

from rpcpool.models.endpoint import TransportKind
from rpcpool.models.responses import ApiResponse

if TYPE_CHECKING:
    from rpcpool.pool.manager import RpcManager


def create_health_router(*, manager: RpcManager | Any = None) -> APIRouter:
    """Factory that creates the health router with the injected manager."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health() -> dict:
        """Service health check with pool statistics."""
        pool_stats = manager.get_stats() if manager else {}

        return ApiResponse(
            success=True,
            data={
                "status": "healthy",
                "rpc_pool": pool_stats,
            },
        ).model_dump()

    @health_router.get("/readiness")
    async def readiness(response: Response) -> dict:
        """Readiness probe: 200 iff the HTTPS pool is non-empty."""
        https_valid = (
            manager.get_valid_endpoint_count(TransportKind.HTTPS) if manager else 0
        )
        ws_valid = manager.get_valid_endpoint_count(TransportKind.WS) if manager else 0

        is_ready = https_valid > 0

        if not is_ready:
            response.status_code = 503

        return ApiResponse(
            success=is_ready,
            data={
                "ready": is_ready,
                "https_valid": https_valid,
                "ws_valid": ws_valid,
            },
            error=None if is_ready else "No valid HTTPS endpoints",
        ).model_dump()

    return health_router
