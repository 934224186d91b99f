"""Per-endpoint failure tracking with exponential backoff and time-based recovery.

Each failing URL gets a record holding its failure count, the time of the last
failure, and the earliest time it may be probed again.

Eligibility rules:
- No record: eligible.
- Record older than the recovery window: count reset to 0 in place, eligible.
- Count at or above ``max_retry``: exiled until recovery.
- Inside the backoff period: not eligible.

Backoff after the n-th failure is ``min(BASE_DELAY * 2**(n-1), MAX_BACKOFF)``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from rpcpool.models.endpoint import FailureStats

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 1.0
MAX_BACKOFF_SECONDS = 60.0
RECOVERY_WINDOW_SECONDS = 6 * 60 * 60


@dataclass
class FailureRecord:
    """Failure state tracked per URL. Times are ``time.monotonic()`` values."""

    url: str
    count: int = 0
    last_failure_time: float = 0.0
    next_eligible_time: float = 0.0


def compute_backoff(count: int) -> float:
    """Backoff delay in seconds after ``count`` consecutive failures."""
    if count <= 0:
        return 0.0
    return min(BASE_DELAY_SECONDS * 2 ** (count - 1), MAX_BACKOFF_SECONDS)


class FailureTracker:
    """Tracks endpoint failures and decides which URLs may be probed.

    Args:
        max_retry: Failure count at which an endpoint is exiled until recovery.
        recovery_window_seconds: Age after which a record is treated as expired.
    """

    def __init__(
        self,
        max_retry: int = 3,
        recovery_window_seconds: float = RECOVERY_WINDOW_SECONDS,
    ) -> None:
        self._max_retry = max_retry
        self._recovery_window_seconds = recovery_window_seconds
        self._records: dict[str, FailureRecord] = {}

    @property
    def max_retry(self) -> int:
        return self._max_retry

    def record_failure(self, url: str, weight: int = 1) -> FailureRecord:
        """Add ``weight`` failures to the URL's record and push its backoff forward."""
        record = self._records.get(url)
        if record is None:
            record = FailureRecord(url=url)
            self._records[url] = record

        now = time.monotonic()
        record.count += weight
        backoff = compute_backoff(record.count)
        record.last_failure_time = now
        record.next_eligible_time = now + backoff

        logger.warning(
            "Endpoint %s failed %d times, next probe in %.0fms",
            url,
            record.count,
            backoff * 1000,
            extra={
                "event": "endpoint_failure",
                "url": url,
                "failure_count": record.count,
                "backoff_ms": backoff * 1000,
            },
        )
        return record

    def is_eligible(self, url: str) -> bool:
        """Check whether the URL may be probed now.

        An expired record is reset to ``count=0`` as a side effect.
        """
        record = self._records.get(url)
        if record is None:
            return True

        now = time.monotonic()
        if now - record.last_failure_time > self._recovery_window_seconds:
            record.count = 0
            record.last_failure_time = now
            record.next_eligible_time = now
            logger.info(
                "Endpoint %s recovered after quiet period",
                url,
                extra={"event": "endpoint_recovered", "url": url},
            )
            return True

        if self._is_exiled(record):
            return False

        if now < record.next_eligible_time:
            return False

        return True

    def get_record(self, url: str) -> FailureRecord | None:
        """Return the live record for a URL, or None if it never failed."""
        return self._records.get(url)

    def _is_exiled(self, record: FailureRecord) -> bool:
        return record.count > 0 and record.count >= self._max_retry

    def clear_all(self) -> None:
        """Drop every failure record."""
        self._records.clear()

    def stats(self) -> FailureStats:
        """Count tracked, backed-off, and exiled URLs against the current time."""
        now = time.monotonic()
        in_backoff = 0
        over_max_retries = 0

        for record in self._records.values():
            if self._is_exiled(record):
                over_max_retries += 1
            elif now < record.next_eligible_time:
                in_backoff += 1

        return FailureStats(
            total_tracked=len(self._records),
            in_backoff=in_backoff,
            over_max_retries=over_max_retries,
        )
