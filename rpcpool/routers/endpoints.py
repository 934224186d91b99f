"""Endpoint selection and control routes.

- GET /endpoints/{kind}: one endpoint chosen by the active strategy
- GET /endpoints/{kind}/all: every validated endpoint, fastest first
- POST /endpoints/drop: report a failing endpoint
- POST /refresh: run (or join) a validation cycle and wait for it
- DELETE /failures: clear all failure records
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from rpcpool.models.endpoint import TransportKind
from rpcpool.models.requests import DropRequest
from rpcpool.models.responses import ApiResponse, EndpointView

if TYPE_CHECKING:
    from rpcpool.pool.manager import RpcManager


def create_endpoints_router(*, manager: RpcManager) -> APIRouter:
    """Factory that creates the endpoint router bound to ``manager``."""

    router = APIRouter(tags=["endpoints"])

    @router.get("/endpoints/{kind}")
    async def get_endpoint(kind: str) -> dict:
        url = manager.get_endpoint(kind)
        return ApiResponse(success=True, data={"url": url}).model_dump()

    @router.get("/endpoints/{kind}/all")
    async def get_all_endpoints(kind: str) -> dict:
        endpoints = [
            EndpointView(url=ep.url, latency_ms=ep.latency_ms).model_dump()
            for ep in manager.get_all_valid_endpoints(kind)
        ]
        return ApiResponse(
            success=True,
            data=endpoints,
            meta={"count": len(endpoints)},
        ).model_dump()

    @router.post("/endpoints/drop")
    async def drop_endpoint(body: DropRequest) -> dict:
        manager.drop(body.url)
        return ApiResponse(
            success=True,
            data={"failures": manager.get_failure_stats().to_dict()},
        ).model_dump()

    @router.post("/refresh")
    async def refresh() -> dict:
        await manager.refresh()
        return ApiResponse(
            success=True,
            data={
                "valid": {
                    kind.value: manager.get_valid_endpoint_count(kind)
                    for kind in TransportKind
                }
            },
        ).model_dump()

    @router.delete("/failures")
    async def clear_failures() -> dict:
        manager.clear_failed_records()
        return ApiResponse(
            success=True,
            data={"failures": manager.get_failure_stats().to_dict()},
        ).model_dump()

    return router
