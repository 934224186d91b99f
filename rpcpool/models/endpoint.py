"""Core value types shared by the tracker, probe runner, pool, and selector."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from rpcpool.middleware.error_handler import InvalidTransportKindError


class TransportKind(str, Enum):
    """Endpoint categories: short-lived HTTP request/response vs persistent WebSocket."""

    HTTPS = "https"
    WS = "ws"


class Strategy(str, Enum):
    """Load-balancing policies."""

    FASTEST = "fastest"
    ROUND_ROBIN = "round-robin"
    RANDOM = "random"


def parse_transport_kind(kind: TransportKind | str) -> TransportKind:
    """Coerce a member or its string value into a ``TransportKind``.

    Raises ``InvalidTransportKindError`` for anything else.
    """
    if isinstance(kind, TransportKind):
        return kind
    try:
        return TransportKind(kind)
    except ValueError:
        raise InvalidTransportKindError(
            f"Invalid transport kind: {kind!r}. Must be 'https' or 'ws'.",
            kind=str(kind),
        ) from None


@dataclass(frozen=True)
class Endpoint:
    """A validated endpoint inside a pool snapshot.

    ``latency_ms`` is ``None`` while the endpoint is unranked (never measured),
    otherwise the probe round-trip in milliseconds.
    """

    url: str
    latency_ms: float | None = None

    @property
    def is_ranked(self) -> bool:
        return self.latency_ms is not None

    def sort_key(self) -> tuple[bool, float]:
        """Ascending latency; unranked endpoints after every measured one."""
        if self.latency_ms is None:
            return (True, 0.0)
        return (False, self.latency_ms)


@dataclass(frozen=True)
class FailureStats:
    """Snapshot of failure tracker counters."""

    total_tracked: int = 0
    in_backoff: int = 0
    over_max_retries: int = 0

    def to_dict(self) -> dict:
        return {
            "total_tracked": self.total_tracked,
            "in_backoff": self.in_backoff,
            "over_max_retries": self.over_max_retries,
        }
