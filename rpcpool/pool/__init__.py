"""Endpoint pool package: snapshots, selection, and the manager facade."""

from rpcpool.pool.endpoint_pool import EndpointPool
from rpcpool.pool.manager import RpcManager
from rpcpool.pool.selector import Selector

__all__ = ["EndpointPool", "RpcManager", "Selector"]
