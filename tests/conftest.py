"""Shared test fixtures, fakes, and hypothesis strategies for the rpcpool test suite."""

from __future__ import annotations

import json
import os

import httpx
import pytest
from hypothesis import strategies as st

from rpcpool.config.settings import PoolSettings
from rpcpool.middleware.error_handler import NetworkNotFoundError
from rpcpool.models.endpoint import TransportKind
from rpcpool.resilience.failure_tracker import FailureTracker


# ---------------------------------------------------------------------------
# Keep RPCPOOL_* from the developer's shell out of PoolSettings
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("RPCPOOL_"):
            monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class StaticCandidateSource:
    """In-memory candidate source keyed by transport kind."""

    def __init__(
        self,
        https: list[str] | None = None,
        ws: list[str] | None = None,
        network_id: str = "0x1",
    ) -> None:
        self.network_id = network_id
        self.lists = {
            TransportKind.HTTPS: list(https or []),
            TransportKind.WS: list(ws or []),
        }
        self.calls = 0

    def get(self, network_id: str, kind: TransportKind) -> list[str]:
        self.calls += 1
        if network_id != self.network_id:
            raise NetworkNotFoundError(f"Network {network_id} not found")
        return list(self.lists[kind])


def rpc_response(request_id: object, status_code: int = 200) -> httpx.Response:
    """A JSON-RPC reply echoing ``request_id``."""
    return httpx.Response(
        status_code,
        json={"jsonrpc": "2.0", "id": request_id, "result": "0x10"},
    )


def make_http_post(healthy: set[str]):
    """Side effect for a patched ``httpx.AsyncClient.post``: only ``healthy`` URLs answer."""

    async def _post(url, json=None, **kwargs):
        if url not in healthy:
            raise httpx.ConnectError(f"connection refused: {url}")
        return rpc_response(json["id"])

    return _post


class FakeWebSocket:
    """Async-context-manager stand-in for a ``websockets`` connection."""

    def __init__(self, url: str, reply: str | None = None, echo: bool = True) -> None:
        self.url = url
        self.sent: list[dict] = []
        self._reply = reply
        self._echo = echo
        self.closed = False

    async def __aenter__(self) -> FakeWebSocket:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True

    async def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    async def recv(self) -> str:
        if self._reply is not None:
            return self._reply
        request_id = self.sent[-1]["id"] if self._echo else -1
        return json.dumps({"jsonrpc": "2.0", "id": request_id, "result": "0x10"})


def make_ws_connect(healthy: set[str]):
    """Replacement for ``websockets.connect``: only ``healthy`` URLs open."""

    def _connect(url, **kwargs):
        if url not in healthy:
            raise OSError(f"connection refused: {url}")
        return FakeWebSocket(url)

    return _connect


# ---------------------------------------------------------------------------
# Settings / component fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> PoolSettings:
    """Test settings with safe defaults."""
    return PoolSettings(
        network_id="0x1",
        refresh_interval_seconds=60,
        max_retry=3,
        probe_timeout_seconds=1.0,
    )


@pytest.fixture
def tracker() -> FailureTracker:
    return FailureTracker(max_retry=3)


@pytest.fixture
def candidate_source() -> StaticCandidateSource:
    return StaticCandidateSource(
        https=["https://a.example", "https://b.example"],
        ws=["wss://a.example", "wss://b.example"],
    )


# ---------------------------------------------------------------------------
# Hypothesis strategies (reusable across property tests)
# ---------------------------------------------------------------------------

endpoint_urls = st.integers(min_value=1, max_value=9999).map(
    lambda n: f"https://rpc{n}.example"
)

unique_url_lists = st.lists(endpoint_urls, min_size=1, max_size=15, unique=True)

latencies = st.floats(min_value=0.0, max_value=30000.0, allow_nan=False, allow_infinity=False)

optional_latencies = st.one_of(st.none(), latencies)
