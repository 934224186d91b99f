"""Load-balancing selection over a pool snapshot.

- fastest: first element (the snapshot is sorted by latency).
- round-robin: per-kind cursor, advanced modulo the current snapshot length.
- random: uniform choice.
"""

from __future__ import annotations

import random
from collections.abc import Sequence

from rpcpool.middleware.error_handler import NoValidEndpointsError
from rpcpool.models.endpoint import Endpoint, Strategy, TransportKind


class Selector:
    """Picks an endpoint from a snapshot according to the configured strategy."""

    def __init__(self, strategy: Strategy = Strategy.FASTEST) -> None:
        self._strategy = strategy
        self._cursors: dict[TransportKind, int] = {kind: 0 for kind in TransportKind}

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    def select(self, kind: TransportKind, endpoints: Sequence[Endpoint]) -> Endpoint:
        """Return one endpoint; raises ``NoValidEndpointsError`` if ``endpoints`` is empty."""
        if not endpoints:
            raise NoValidEndpointsError(
                f"No valid {kind.value} endpoints found", transport=kind.value
            )

        size = len(endpoints)

        if self._strategy is Strategy.ROUND_ROBIN:
            # The cursor may predate a pool that shrank; re-wrap before indexing.
            index = self._cursors[kind] % size
            self._cursors[kind] = (index + 1) % size
            return endpoints[index]

        if self._strategy is Strategy.RANDOM:
            return endpoints[random.randrange(size)]

        return endpoints[0]
