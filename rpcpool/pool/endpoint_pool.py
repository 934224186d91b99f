"""Sorted snapshots of validated endpoints, one sequence per transport kind.

The whole mapping is rebuilt from a cycle's probe results and swapped in with
a single assignment, so readers see either the old or the new snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from rpcpool.models.endpoint import Endpoint, TransportKind
from rpcpool.probe.runner import ProbeResult

logger = logging.getLogger(__name__)


def _sorted(endpoints: Iterable[Endpoint]) -> tuple[Endpoint, ...]:
    return tuple(sorted(endpoints, key=Endpoint.sort_key))


class EndpointPool:
    """Holds the current immutable pool snapshot."""

    def __init__(self) -> None:
        self._snapshot: Mapping[TransportKind, tuple[Endpoint, ...]] = MappingProxyType(
            {kind: () for kind in TransportKind}
        )

    def snapshot(self, kind: TransportKind) -> tuple[Endpoint, ...]:
        """Return the current sequence for ``kind``; callers may hold it freely."""
        return self._snapshot[kind]

    def count(self, kind: TransportKind) -> int:
        return len(self._snapshot[kind])

    def replace(self, pools: Mapping[TransportKind, Iterable[Endpoint]]) -> None:
        """Swap in new sequences; kinds missing from ``pools`` become empty."""
        self._snapshot = MappingProxyType(
            {kind: _sorted(pools.get(kind, ())) for kind in TransportKind}
        )

    def seed(self, candidates: Mapping[TransportKind, Iterable[str]]) -> None:
        """Fill the pool with unranked endpoints before the first cycle."""
        self.replace(
            {
                kind: [Endpoint(url=url) for url in urls]
                for kind, urls in candidates.items()
            }
        )

    def rebuild(self, results: Iterable[ProbeResult]) -> None:
        """Rebuild from probe results, keeping only successful probes."""
        pools: dict[TransportKind, list[Endpoint]] = {kind: [] for kind in TransportKind}
        for result in results:
            if result.success:
                pools[result.kind].append(
                    Endpoint(url=result.url, latency_ms=result.latency_ms)
                )
        self.replace(pools)
        logger.info(
            "Validated %d HTTPS and %d WS endpoints",
            len(pools[TransportKind.HTTPS]),
            len(pools[TransportKind.WS]),
            extra={
                "event": "pool_rebuilt",
                "valid_count": {kind.value: len(eps) for kind, eps in pools.items()},
            },
        )
