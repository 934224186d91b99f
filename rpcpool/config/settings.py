"""Pydantic Settings for the RPC endpoint pool.

All environment variables use the RPCPOOL_ prefix.
Example: RPCPOOL_NETWORK_ID=0x1, RPCPOOL_STRATEGY=round-robin
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from rpcpool.models.endpoint import Strategy


class PoolSettings(BaseSettings):
    """Pool configuration validated from constructor arguments or environment."""

    # Network
    network_id: str = Field(..., min_length=1)  # hex, e.g. "0x1"

    # Validation cycle
    refresh_interval_seconds: int = Field(default=10, ge=1, le=3600)
    probe_timeout_seconds: float = Field(default=10.0, gt=0, le=60)

    # Failure policy
    max_retry: int = Field(default=3, ge=0, le=10)

    # Selection
    strategy: Strategy = Strategy.FASTEST

    # Candidate list source; None means the bundled list
    candidates_path: str | None = None

    # Emit per-probe events at INFO
    verbose: bool = False

    # Status service
    port: int = 8002
    log_level: str = "INFO"

    model_config = {"env_prefix": "RPCPOOL_"}

    @field_validator("network_id")
    @classmethod
    def _network_id_is_hex(cls, value: str) -> str:
        value = value.strip()
        if not value.lower().startswith("0x") or len(value) < 3:
            raise ValueError("network_id must be in hex format (e.g. '0x1')")
        try:
            int(value, 16)
        except ValueError:
            raise ValueError("network_id must be in hex format (e.g. '0x1')") from None
        return value
