"""Endpoint liveness probing over HTTP and WebSocket."""

from rpcpool.probe.runner import ProbeError, ProbeResult, ProbeRunner

__all__ = ["ProbeError", "ProbeResult", "ProbeRunner"]
