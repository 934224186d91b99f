"""Property tests for JSON envelope consistency.

Every status-service response, success or failure, carries the
{ success, data, error, meta } envelope, and errors map to their status codes.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import StaticCandidateSource, unique_url_lists
from rpcpool.middleware.error_handler import (
    ConfigurationError,
    InvalidFormatError,
    InvalidTransportKindError,
    NetworkNotFoundError,
    NoValidEndpointsError,
    RpcPoolError,
    SourceUnavailableError,
    register_error_handlers,
)
from rpcpool.pool.manager import RpcManager
from rpcpool.routers.endpoints import create_endpoints_router
from rpcpool.routers.health import create_health_router

_ERROR_CLASSES: list[type[RpcPoolError]] = [
    ConfigurationError,
    InvalidTransportKindError,
    NoValidEndpointsError,
    SourceUnavailableError,
    NetworkNotFoundError,
    InvalidFormatError,
]


def _create_error_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    for cls in _ERROR_CLASSES:
        def _make_handler(error_cls: type[RpcPoolError]):
            async def handler() -> None:
                raise error_cls()
            return handler

        app.add_api_route(f"/raise/{cls.__name__}", _make_handler(cls), methods=["GET"])

    return app


_error_client = TestClient(_create_error_app(), raise_server_exceptions=False)


def _service_client(https: list[str]) -> TestClient:
    manager = RpcManager(
        network_id="0x1",
        refresh_interval_seconds=60,
        candidate_source=StaticCandidateSource(https=https),
    )
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(create_health_router(manager=manager))
    app.include_router(create_endpoints_router(manager=manager))
    return TestClient(app, raise_server_exceptions=False)


def _assert_envelope(body: dict) -> None:
    assert set(body) == {"success", "data", "error", "meta"}


@settings(max_examples=100)
@given(error_cls=st.sampled_from(_ERROR_CLASSES))
def test_error_responses_have_envelope_with_success_false(error_cls) -> None:
    resp = _error_client.get(f"/raise/{error_cls.__name__}")
    body = resp.json()

    _assert_envelope(body)
    assert resp.status_code == error_cls.status_code
    assert body["success"] is False
    assert body["error"] == error_cls.message


@settings(max_examples=50)
@given(
    https=st.one_of(st.just([]), unique_url_lists),
    path=st.sampled_from(["/health", "/readiness", "/endpoints/https", "/endpoints/https/all"]),
)
def test_service_responses_always_enveloped(https: list[str], path: str) -> None:
    resp = _service_client(https).get(path)
    body = resp.json()

    _assert_envelope(body)
    assert body["success"] is (resp.status_code < 400)
    if resp.status_code >= 400:
        assert body["error"] is not None


@settings(max_examples=50)
@given(kind=st.text(min_size=1, max_size=10, alphabet="abcdefghijklmnopqrstuvwxyz"))
def test_unknown_kinds_are_rejected_with_envelope(kind: str) -> None:
    resp = _service_client(["https://a.example"]).get(f"/endpoints/{kind}")
    body = resp.json()

    _assert_envelope(body)
    if kind in ("https", "ws"):
        assert resp.status_code in (200, 503)
    else:
        assert resp.status_code == 400
        assert body["meta"] == {"kind": kind}
