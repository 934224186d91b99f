"""Unit tests for the HTTP status service."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import yaml
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import ValidationError

from conftest import make_http_post, make_ws_connect
from rpcpool.config.settings import PoolSettings
from rpcpool.main import create_app
from rpcpool.middleware.error_handler import register_error_handlers
from rpcpool.models.endpoint import Endpoint, TransportKind
from rpcpool.pool.manager import RpcManager
from rpcpool.routers.endpoints import create_endpoints_router
from rpcpool.routers.health import create_health_router


@pytest.fixture()
def manager(candidate_source) -> RpcManager:
    return RpcManager(
        network_id="0x1", refresh_interval_seconds=60, candidate_source=candidate_source
    )


@pytest.fixture()
def client(manager) -> TestClient:
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(create_health_router(manager=manager))
    app.include_router(create_endpoints_router(manager=manager))
    return TestClient(app, raise_server_exceptions=False)


class TestHealth:
    def test_health_reports_pool_stats(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert body["data"]["rpc_pool"]["network_id"] == "0x1"
        assert body["data"]["rpc_pool"]["valid"] == {"https": 2, "ws": 2}

    def test_readiness_with_seeded_pool(self, client):
        resp = client.get("/readiness")
        assert resp.status_code == 200
        assert resp.json()["data"]["ready"] is True


class TestEndpoints:
    def test_get_endpoint(self, client, manager):
        manager._pool.replace(
            {
                TransportKind.HTTPS: [
                    Endpoint("https://a.example", 50.0),
                    Endpoint("https://b.example", 20.0),
                ]
            }
        )
        resp = client.get("/endpoints/https")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"url": "https://b.example"}

    def test_invalid_kind_is_400(self, client):
        resp = client.get("/endpoints/ftp")
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["meta"] == {"kind": "ftp"}

    def test_empty_pool_is_503(self, client, manager):
        manager._pool.replace({})
        resp = client.get("/endpoints/ws")
        assert resp.status_code == 503
        assert resp.json()["meta"] == {"transport": "ws"}

    def test_list_all(self, client):
        resp = client.get("/endpoints/ws/all")
        assert resp.status_code == 200
        body = resp.json()
        assert body["meta"] == {"count": 2}
        assert body["data"][0] == {"url": "wss://a.example", "latency_ms": None}

    def test_drop_then_clear(self, client):
        resp = client.post("/endpoints/drop", json={"url": "https://a.example"})
        assert resp.status_code == 200
        assert resp.json()["data"]["failures"]["over_max_retries"] == 1

        resp = client.delete("/failures")
        assert resp.json()["data"]["failures"]["total_tracked"] == 0

    def test_drop_requires_url(self, client):
        resp = client.post("/endpoints/drop", json={"url": ""})
        assert resp.status_code == 422
        assert resp.json()["error"] == "Validation error"

    def test_refresh_runs_cycle(self, client, manager):
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            side_effect=make_http_post({"https://a.example"}),
        ), patch(
            "rpcpool.probe.runner.websockets.connect",
            side_effect=make_ws_connect(set()),
        ):
            resp = client.post("/refresh")
        assert resp.status_code == 200
        assert resp.json()["data"]["valid"] == {"https": 1, "ws": 0}
        manager.shutdown()


class TestApp:
    """create_app wires settings, lifespan, and routers together."""

    def test_lifespan_starts_and_stops_manager(self, tmp_path: Path):
        candidates = tmp_path / "rpc_list.yaml"
        candidates.write_text(
            yaml.dump({"networks": {"0x1": {"https": ["https://a.example"], "ws": []}}})
        )
        settings = PoolSettings(
            network_id="0x1", candidates_path=str(candidates), refresh_interval_seconds=60
        )

        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            with patch(
                "httpx.AsyncClient.post",
                new_callable=AsyncMock,
                side_effect=make_http_post({"https://a.example"}),
            ), patch(
                "rpcpool.probe.runner.websockets.connect",
                side_effect=make_ws_connect(set()),
            ):
                app = create_app(settings)
                with TestClient(app) as client:
                    assert client.get("/health").status_code == 200
                    assert client.get("/endpoints/https").json()["data"] == {
                        "url": "https://a.example"
                    }
                    manager = app.state.manager
                assert manager.closed is True
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_missing_network_id_fails_fast(self):
        with pytest.raises(ValidationError):
            create_app()

    def test_settings_from_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RPCPOOL_NETWORK_ID", "0x89")
        app = create_app()
        assert app.state.settings.network_id == "0x89"

