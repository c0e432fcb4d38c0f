"""Throttled progress reporting for long aggregation runs."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from .buckets import format_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressSnapshot:
    keys: int
    bytes_consumed: int | None
    total_bytes: int | None
    percent: float | None

    def describe(self) -> str:
        line = f"[progress] keys={self.keys}"
        if self.bytes_consumed is None:
            return line
        if self.total_bytes:
            line += f" read={format_bytes(self.bytes_consumed)}/{format_bytes(self.total_bytes)}"
        else:
            line += f" read={format_bytes(self.bytes_consumed)}"
        if self.percent is not None:
            line += f" ({self.percent:.1f}%)"
        return line


def percent_complete(bytes_consumed: int | None, total_bytes: int | None) -> float | None:
    """Return percent of input consumed, ``None`` when it cannot be known."""
    if bytes_consumed is None or not total_bytes or total_bytes <= 0:
        return None
    return bytes_consumed / total_bytes * 100


class ProgressReporter:
    """Emit at most one progress line per ``min_interval`` seconds.

    An interval of zero disables reporting entirely. The reporter only
    remembers when it last emitted; it never touches aggregation state.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sink: logging.Logger | None = None,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._logger = sink or logger
        self._last_emit = clock()

    @property
    def enabled(self) -> bool:
        return self.min_interval > 0

    def maybe_report(
        self,
        keys_processed: int,
        bytes_consumed: int | None = None,
        total_bytes: int | None = None,
    ) -> ProgressSnapshot | None:
        """Log and return a snapshot when the interval has elapsed."""
        if not self.enabled:
            return None
        now = self._clock()
        if now - self._last_emit < self.min_interval:
            return None
        snapshot = ProgressSnapshot(
            keys=keys_processed,
            bytes_consumed=bytes_consumed,
            total_bytes=total_bytes,
            percent=percent_complete(bytes_consumed, total_bytes),
        )
        self._logger.info(snapshot.describe())
        self._last_emit = now
        return snapshot
