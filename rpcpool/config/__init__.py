"""Configuration module: settings and candidate endpoint lists."""

from rpcpool.config.candidates import (
    BUNDLED_CANDIDATES_PATH,
    CandidateSource,
    FileCandidateSource,
)
from rpcpool.config.settings import PoolSettings

__all__ = [
    "BUNDLED_CANDIDATES_PATH",
    "CandidateSource",
    "FileCandidateSource",
    "PoolSettings",
]
