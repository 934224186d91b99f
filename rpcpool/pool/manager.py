"""RPC endpoint manager: validated pool, failure tracking, and load balancing.

Candidates for the configured network are loaded from a candidate source and
probed on every validation cycle. Endpoints that answer are ranked by probe
latency; endpoints that fail are backed off exponentially and exiled after
``max_retry`` failures until the recovery window passes. Callers ask for an
endpoint with ``get_endpoint`` and report bad ones with ``drop``.

Typical use::

    async with RpcManager(network_id="0x1", strategy="round-robin") as rpc:
        url = await rpc.get_endpoint_async("https")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from rpcpool.config.candidates import CandidateSource, FileCandidateSource
from rpcpool.config.settings import PoolSettings
from rpcpool.middleware.error_handler import CandidateSourceError, ConfigurationError
from rpcpool.models.endpoint import (
    Endpoint,
    FailureStats,
    Strategy,
    TransportKind,
    parse_transport_kind,
)
from rpcpool.pool.endpoint_pool import EndpointPool
from rpcpool.pool.selector import Selector
from rpcpool.probe.runner import ProbeRunner
from rpcpool.resilience.failure_tracker import FailureTracker
from rpcpool.services.scheduler import RefreshScheduler, SchedulerState

logger = logging.getLogger(__name__)


def _build_settings(settings: PoolSettings | None, options: dict[str, Any]) -> PoolSettings:
    if settings is not None:
        if options:
            raise ConfigurationError(
                "Pass either a PoolSettings instance or keyword options, not both",
                options=sorted(options),
            )
        return settings
    try:
        return PoolSettings(**options)
    except ValidationError as exc:
        field_errors = [
            {
                "field": " -> ".join(str(loc) for loc in err["loc"]),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        raise ConfigurationError(
            "; ".join(f"{e['field']}: {e['message']}" for e in field_errors),
            fields=field_errors,
        ) from exc


class RpcManager:
    """Owns the endpoint pool, failure tracker, selector, and refresh scheduler.

    Parameters
    ----------
    settings:
        Pre-built settings. When omitted, ``options`` (plus ``RPCPOOL_*``
        environment variables) are validated into ``PoolSettings``.
    candidate_source:
        Where candidate URLs come from; defaults to ``FileCandidateSource``
        over ``settings.candidates_path``.
    **options:
        ``network_id``, ``refresh_interval_seconds``, ``max_retry``,
        ``strategy``, ``candidates_path``, ``verbose``, ``probe_timeout_seconds``.

    Raises
    ------
    ConfigurationError
        If the configuration is invalid.
    """

    def __init__(
        self,
        settings: PoolSettings | None = None,
        *,
        candidate_source: CandidateSource | None = None,
        **options: Any,
    ) -> None:
        self._settings = _build_settings(settings, options)
        self._network_id = self._settings.network_id
        self._tracker = FailureTracker(max_retry=self._settings.max_retry)
        self._runner = ProbeRunner(
            self._tracker,
            timeout_seconds=self._settings.probe_timeout_seconds,
            verbose=self._settings.verbose,
        )
        self._pool = EndpointPool()
        self._selector = Selector(self._settings.strategy)
        self._source: CandidateSource = candidate_source or FileCandidateSource(
            self._settings.candidates_path
        )
        self._scheduler = RefreshScheduler(
            self._validate, interval_seconds=self._settings.refresh_interval_seconds
        )
        self._closed = False

        # Usable before the first cycle: every candidate, unranked.
        self._pool.seed(self._load_candidates())

        logger.info(
            "RPC manager initialized for network %s (strategy=%s, interval=%ds, max_retry=%d)",
            self._network_id,
            self._settings.strategy.value,
            self._settings.refresh_interval_seconds,
            self._settings.max_retry,
            extra={"event": "manager_initialized", "network_id": self._network_id},
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def settings(self) -> PoolSettings:
        return self._settings

    @property
    def network_id(self) -> str:
        return self._network_id

    @property
    def strategy(self) -> Strategy:
        return self._selector.strategy

    @property
    def scheduler_state(self) -> SchedulerState:
        return self._scheduler.state

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Kick off the first validation cycle; later cycles follow on the timer."""
        if self._closed:
            raise RuntimeError("RpcManager has been shut down")
        self._scheduler.trigger()

    def shutdown(self) -> None:
        """Stop scheduling further cycles. Idempotent.

        An in-flight cycle runs to completion but its results are discarded.
        """
        if self._closed:
            return
        self._closed = True
        self._scheduler.stop()
        logger.info(
            "RPC manager for network %s shut down",
            self._network_id,
            extra={"event": "manager_shutdown", "network_id": self._network_id},
        )

    async def aclose(self) -> None:
        """Shut down and wait for any in-flight cycle to settle."""
        self.shutdown()
        await self._scheduler.wait_idle()

    async def __aenter__(self) -> RpcManager:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Validation cycle
    # ------------------------------------------------------------------

    def _load_candidates(self) -> dict[TransportKind, list[str]]:
        """Candidate URLs per kind; a failing source yields an empty list for that kind."""
        candidates: dict[TransportKind, list[str]] = {}
        for kind in TransportKind:
            try:
                candidates[kind] = self._source.get(self._network_id, kind)
            except CandidateSourceError as exc:
                logger.error(
                    "Cannot load %s candidates for network %s: %s",
                    kind.value,
                    self._network_id,
                    exc.message,
                    extra={
                        "event": "candidates_unavailable",
                        "network_id": self._network_id,
                        "transport": kind.value,
                    },
                )
                candidates[kind] = []
        return candidates

    async def _validate(self) -> None:
        # File read and YAML parse stay off the event loop.
        candidates = await asyncio.to_thread(self._load_candidates)
        targets = [(url, kind) for kind, urls in candidates.items() for url in urls]
        results = await self._runner.probe_all(targets)

        if self._closed:
            logger.debug("Discarding validation results after shutdown")
            return

        self._pool.rebuild(results)

    async def refresh(self) -> None:
        """Run a validation cycle now, or join the one in flight, and wait for it."""
        await self._scheduler.run_once()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def get_endpoint(self, kind: TransportKind | str) -> str:
        """Return an endpoint URL chosen by the configured strategy.

        Raises
        ------
        InvalidTransportKindError
            ``kind`` is not ``"https"`` or ``"ws"``.
        NoValidEndpointsError
            The pool for ``kind`` is empty.
        """
        transport = parse_transport_kind(kind)
        return self._selector.select(transport, self._pool.snapshot(transport)).url

    async def get_endpoint_async(self, kind: TransportKind | str) -> str:
        """Like ``get_endpoint``, after the in-flight or a fresh cycle completes."""
        transport = parse_transport_kind(kind)
        await self._scheduler.run_once()
        return self.get_endpoint(transport)

    def get_valid_endpoint_count(self, kind: TransportKind | str) -> int:
        return self._pool.count(parse_transport_kind(kind))

    def get_all_valid_endpoints(self, kind: TransportKind | str) -> list[Endpoint]:
        """Copy of the current pool for ``kind``, fastest first."""
        return list(self._pool.snapshot(parse_transport_kind(kind)))

    # ------------------------------------------------------------------
    # Failure reporting
    # ------------------------------------------------------------------

    def drop(self, url: str) -> None:
        """Report an application-level failure; exiles the URL immediately."""
        weight = max(self._tracker.max_retry, 1)
        self._tracker.record_failure(url, weight=weight)
        logger.info(
            "Endpoint %s dropped by caller",
            url,
            extra={"event": "endpoint_dropped", "url": url, "network_id": self._network_id},
        )

    def get_failure_stats(self) -> FailureStats:
        return self._tracker.stats()

    def clear_failed_records(self) -> None:
        self._tracker.clear_all()
        logger.info(
            "Cleared all failure records",
            extra={"event": "failures_cleared", "network_id": self._network_id},
        )

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Pool statistics for the health endpoint."""
        return {
            "network_id": self._network_id,
            "strategy": self._selector.strategy.value,
            "scheduler": self._scheduler.get_stats(),
            "valid": {kind.value: self._pool.count(kind) for kind in TransportKind},
            "failures": self._tracker.stats().to_dict(),
        }
