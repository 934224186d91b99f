"""Health-checked, load-balanced pool of RPC endpoints."""

from rpcpool.config.settings import PoolSettings
from rpcpool.middleware.error_handler import (
    ConfigurationError,
    InvalidFormatError,
    InvalidTransportKindError,
    NetworkNotFoundError,
    NoValidEndpointsError,
    RpcPoolError,
    SourceUnavailableError,
)
from rpcpool.models.endpoint import Endpoint, FailureStats, Strategy, TransportKind
from rpcpool.pool.manager import RpcManager

__all__ = [
    "ConfigurationError",
    "Endpoint",
    "FailureStats",
    "InvalidFormatError",
    "InvalidTransportKindError",
    "NetworkNotFoundError",
    "NoValidEndpointsError",
    "PoolSettings",
    "RpcManager",
    "RpcPoolError",
    "SourceUnavailableError",
    "Strategy",
    "TransportKind",
]
