"""Middleware package: error hierarchy and FastAPI exception handlers."""

from rpcpool.middleware.error_handler import (
    CandidateSourceError,
    ConfigurationError,
    InvalidFormatError,
    InvalidTransportKindError,
    NetworkNotFoundError,
    NoValidEndpointsError,
    RpcPoolError,
    SourceUnavailableError,
    register_error_handlers,
)

__all__ = [
    "CandidateSourceError",
    "ConfigurationError",
    "InvalidFormatError",
    "InvalidTransportKindError",
    "NetworkNotFoundError",
    "NoValidEndpointsError",
    "RpcPoolError",
    "SourceUnavailableError",
    "register_error_handlers",
]
