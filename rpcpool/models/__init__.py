"""Public models for the RPC endpoint pool."""

from rpcpool.models.endpoint import (
    Endpoint,
    FailureStats,
    Strategy,
    TransportKind,
    parse_transport_kind,
)
from rpcpool.models.requests import DropRequest
from rpcpool.models.responses import ApiResponse, EndpointView

__all__ = [
    "ApiResponse",
    "DropRequest",
    "Endpoint",
    "EndpointView",
    "FailureStats",
    "Strategy",
    "TransportKind",
    "parse_transport_kind",
]
