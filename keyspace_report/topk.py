"""Bounded tracker of the largest keys seen in a stream."""

from __future__ import annotations

import heapq
import itertools

from .models import BigKeyRecord


class BigKeyTracker:
    """Keep the ``capacity`` largest records by size.

    Backed by a min-heap so the smallest held record is always at the root.
    Records of equal size are kept in no particular order.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._heap: list[tuple[int, int, BigKeyRecord]] = []
        # Insertion counter breaks size ties so records are never compared.
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    @property
    def enabled(self) -> bool:
        return self.capacity > 0

    def min_size(self) -> int | None:
        """Size of the smallest held record, ``None`` when empty."""
        return self._heap[0][0] if self._heap else None

    def would_accept(self, size: int) -> bool:
        """Whether a record of ``size`` bytes would currently be kept."""
        if not self.enabled:
            return False
        return len(self._heap) < self.capacity or size > self._heap[0][0]

    def offer(self, candidate: BigKeyRecord) -> bool:
        """Offer a record; return whether it is now held."""
        if not self.enabled:
            return False
        entry = (candidate.size, next(self._seq), candidate)
        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
            return True
        if candidate.size > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def drain(self) -> list[BigKeyRecord]:
        """Return the held records, largest first. The tracker is left intact."""
        ordered = sorted(self._heap, key=lambda item: item[0], reverse=True)
        return [record for _, _, record in ordered]
