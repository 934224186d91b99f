"""Liveness probes for HTTP and WebSocket RPC endpoints.

A probe sends one JSON-RPC 2.0 ``eth_blockNumber`` request carrying a unique,
monotonically increasing id and succeeds only if the response echoes that id.
Latency is the wall time of the whole exchange, connection setup included.

Endpoints the failure tracker considers ineligible are skipped without any
network call. Every other failure (transport error, timeout, bad status,
malformed body, id mismatch) is recorded on the tracker.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass

import httpx
import websockets

from rpcpool.models.endpoint import TransportKind
from rpcpool.resilience.failure_tracker import FailureTracker

logger = logging.getLogger(__name__)

PROBE_METHOD = "eth_blockNumber"
DEFAULT_PROBE_TIMEOUT_SECONDS = 10.0


class ProbeError(Exception):
    """Raised inside a probe when the endpoint answered but not acceptably."""


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of probing a single endpoint."""

    url: str
    kind: TransportKind
    success: bool
    latency_ms: float | None = None
    error: str | None = None
    skipped: bool = False


def build_probe_payload(request_id: int) -> dict:
    """JSON-RPC request body used by both transports."""
    return {
        "jsonrpc": "2.0",
        "method": PROBE_METHOD,
        "params": [],
        "id": request_id,
    }


def check_response_id(data: object, request_id: int) -> None:
    """Raise ``ProbeError`` unless ``data`` is a JSON-RPC object echoing ``request_id``."""
    if not isinstance(data, dict):
        raise ProbeError("Response is not a JSON-RPC object")
    if data.get("id") != request_id:
        raise ProbeError(f"ID mismatch: expected {request_id}, got {data.get('id')!r}")


class ProbeRunner:
    """Issues probes and feeds failures into the tracker.

    Parameters
    ----------
    tracker:
        Failure tracker consulted before and updated after each probe.
    timeout_seconds:
        Ceiling for a single probe on either transport.
    verbose:
        Log per-probe outcomes at INFO instead of DEBUG.
    """

    def __init__(
        self,
        tracker: FailureTracker,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        verbose: bool = False,
    ) -> None:
        self._tracker = tracker
        self._timeout_seconds = timeout_seconds
        self._log_level = logging.INFO if verbose else logging.DEBUG
        self._ids = itertools.count(1)

    def next_request_id(self) -> int:
        return next(self._ids)

    # ------------------------------------------------------------------
    # Single probe
    # ------------------------------------------------------------------

    async def probe(self, url: str, kind: TransportKind) -> ProbeResult:
        """Probe one endpoint; never raises for endpoint-side failures."""
        if not self._tracker.is_eligible(url):
            logger.log(
                self._log_level,
                "Skipping %s endpoint %s (backoff or max retries)",
                kind.value,
                url,
                extra={"event": "probe_skipped", "url": url, "transport": kind.value},
            )
            return ProbeResult(
                url=url,
                kind=kind,
                success=False,
                error="Endpoint is in backoff period",
                skipped=True,
            )

        request_id = self.next_request_id()
        start = time.perf_counter()
        try:
            if kind is TransportKind.HTTPS:
                await self._http_call(url, request_id)
            else:
                await self._ws_call(url, request_id)
        except Exception as exc:  # noqa: BLE001
            error = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
            self._tracker.record_failure(url)
            logger.log(
                self._log_level,
                "Probe failed for %s endpoint %s: %s",
                kind.value,
                url,
                error,
                extra={"event": "probe_failed", "url": url, "transport": kind.value},
            )
            return ProbeResult(url=url, kind=kind, success=False, error=error)

        latency_ms = (time.perf_counter() - start) * 1000.0
        logger.log(
            self._log_level,
            "Probe succeeded for %s endpoint %s in %.1fms",
            kind.value,
            url,
            latency_ms,
            extra={
                "event": "probe_succeeded",
                "url": url,
                "transport": kind.value,
                "latency_ms": latency_ms,
            },
        )
        return ProbeResult(url=url, kind=kind, success=True, latency_ms=latency_ms)

    async def _http_call(self, url: str, request_id: int) -> None:
        # httpx timeouts bound each phase separately; this bounds the whole exchange.
        await asyncio.wait_for(
            self._http_exchange(url, request_id), timeout=self._timeout_seconds
        )

    async def _http_exchange(self, url: str, request_id: int) -> None:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout_seconds),
        ) as client:
            response = await client.post(url, json=build_probe_payload(request_id))
        if not response.is_success:
            raise ProbeError(f"HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise ProbeError("Invalid JSON in HTTP response") from exc
        check_response_id(data, request_id)

    async def _ws_call(self, url: str, request_id: int) -> None:
        # One awaitable per probe: connect, send, first reply. The timeout
        # cancels the whole exchange, so exactly one outcome is produced.
        await asyncio.wait_for(
            self._ws_exchange(url, request_id), timeout=self._timeout_seconds
        )

    async def _ws_exchange(self, url: str, request_id: int) -> None:
        async with websockets.connect(
            url,
            open_timeout=self._timeout_seconds,
            close_timeout=1,
        ) as ws:
            await ws.send(json.dumps(build_probe_payload(request_id)))
            raw = await ws.recv()
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ProbeError("Invalid JSON in WebSocket message") from exc
        check_response_id(data, request_id)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def probe_all(
        self, targets: Iterable[tuple[str, TransportKind]]
    ) -> list[ProbeResult]:
        """Probe every target concurrently and collect every outcome.

        One slow or failing endpoint never short-circuits its siblings.
        """
        targets = list(targets)
        outcomes = await asyncio.gather(
            *(self.probe(url, kind) for url, kind in targets),
            return_exceptions=True,
        )

        results: list[ProbeResult] = []
        for (url, kind), outcome in zip(targets, outcomes):
            if isinstance(outcome, ProbeResult):
                results.append(outcome)
                continue
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            # Errors escaping probe() are unexpected; count them as failures.
            self._tracker.record_failure(url)
            logger.error(
                "Unexpected probe error for %s: %s",
                url,
                outcome,
                extra={"event": "probe_error", "url": url, "transport": kind.value},
            )
            results.append(
                ProbeResult(url=url, kind=kind, success=False, error=str(outcome))
            )
        return results
