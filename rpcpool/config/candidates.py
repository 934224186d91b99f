"""Candidate endpoint list loader.

The list is a YAML (or JSON, which YAML accepts) document keyed by network id:

    networks:
      "0x1":
        https: ["https://rpc.example.org"]
        ws: ["wss://rpc.example.org/ws"]

The file is re-read on every call so edits are picked up by the next
validation cycle. A custom path that does not exist falls back to the list
bundled with the package.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import yaml

from rpcpool.middleware.error_handler import (
    InvalidFormatError,
    NetworkNotFoundError,
    SourceUnavailableError,
)
from rpcpool.models.endpoint import TransportKind

logger = logging.getLogger(__name__)

BUNDLED_CANDIDATES_PATH = Path(__file__).with_name("rpc_list.yaml")


class CandidateSource(Protocol):
    """Anything that can list candidate URLs for a network and transport kind."""

    def get(self, network_id: str, kind: TransportKind) -> list[str]: ...


def _same_network(key: object, network_id: str) -> bool:
    """Match ids exactly, or by numeric value so "0x0001" finds "0x1"."""
    try:
        if isinstance(key, int):
            # Unquoted 0x89 in YAML loads as the integer 137.
            return key == int(network_id, 16)
        text = str(key)
        if text == network_id:
            return True
        return int(text, 16) == int(network_id, 16)
    except ValueError:
        return False


class FileCandidateSource:
    """Reads candidate URLs from a YAML/JSON file.

    Args:
        path: Custom list location. ``None`` or a missing file selects the
            bundled list.
    """

    def __init__(self, path: str | None = None) -> None:
        self._path = self._resolve(path)

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def _resolve(path: str | None) -> Path:
        if path:
            custom = Path(path)
            if custom.exists():
                return custom
            logger.warning(
                "Candidate list not found at %s, using bundled list", path
            )
        return BUNDLED_CANDIDATES_PATH

    def _load_networks(self) -> dict:
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SourceUnavailableError(
                f"Cannot read candidate list {self._path}: {exc}", path=str(self._path)
            ) from exc

        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise InvalidFormatError(
                f"Invalid candidate list format in {self._path}: {exc}",
                path=str(self._path),
            ) from exc

        if not isinstance(raw, dict) or not isinstance(raw.get("networks"), dict):
            raise InvalidFormatError(
                f"Candidate list {self._path} is missing a 'networks' mapping",
                path=str(self._path),
            )
        return raw["networks"]

    def get(self, network_id: str, kind: TransportKind) -> list[str]:
        """Return the ordered candidate URLs for ``network_id`` and ``kind``.

        Raises
        ------
        SourceUnavailableError
            The file cannot be read.
        InvalidFormatError
            The file or the network's entry cannot be parsed.
        NetworkNotFoundError
            ``network_id`` is absent from the list.
        """
        networks = self._load_networks()

        entry = None
        for key, value in networks.items():
            if _same_network(key, network_id):
                entry = value
                break
        if entry is None:
            raise NetworkNotFoundError(
                f"Network {network_id} not found in {self._path}",
                network_id=network_id,
            )
        if not isinstance(entry, dict):
            raise InvalidFormatError(
                f"Entry for network {network_id} must be a mapping of transport kinds",
                network_id=network_id,
            )

        urls = entry.get(kind.value) or []
        if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
            raise InvalidFormatError(
                f"'{kind.value}' for network {network_id} must be a list of URLs",
                network_id=network_id,
            )

        # Drop blanks and duplicates, keep first-seen order.
        seen: set[str] = set()
        result: list[str] = []
        for url in urls:
            url = url.strip()
            if url and url not in seen:
                seen.add(url)
                result.append(url)
        return result
