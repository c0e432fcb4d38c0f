"""Single-pass aggregation of decoded records into bounded-memory state."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .buckets import NO_EXPIRE, SIZE_LABELS, TTL_LABELS, classify_size, classify_ttl
from .errors import AccumulatorClosedError
from .models import AuxEntry, BigKeyRecord, RecordEvent, ReportConfig
from .prefixes import PrefixAggregate, Tally, record_prefixes, record_prefixes_by_type
from .progress import ProgressReporter
from .source import RecordSource
from .topk import BigKeyTracker

logger = logging.getLogger(__name__)


@dataclass
class AggregateState:
    """Live counters for one run. Mutated only through :class:`Accumulator`."""

    now: datetime
    top_n: int
    total_keys: int = 0
    total_size: int = 0
    db_keys: dict[int, int] = field(default_factory=lambda: defaultdict(int))
    types: dict[str, Tally] = field(default_factory=dict)
    ttl_counts: dict[str, int] = field(default_factory=lambda: dict.fromkeys(TTL_LABELS, 0))
    size_counts: dict[str, int] = field(default_factory=lambda: dict.fromkeys(SIZE_LABELS, 0))
    prefixes: PrefixAggregate = field(default_factory=dict)
    prefixes_by_type: dict[str, PrefixAggregate] = field(default_factory=dict)
    bigkeys: BigKeyTracker = field(init=False)
    aux: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.bigkeys = BigKeyTracker(self.top_n)

    @property
    def with_ttl(self) -> int:
        return self.total_keys - self.ttl_counts[NO_EXPIRE]


class Accumulator:
    """Owns the aggregate state of a run and folds records into it."""

    def __init__(
        self,
        config: ReportConfig | None = None,
        *,
        progress: ProgressReporter | None = None,
    ) -> None:
        self.config = config or ReportConfig()
        # Captured once so TTL classification is stable across a long pass.
        now = self.config.reference_now or datetime.now(timezone.utc)
        self.state = AggregateState(now=now, top_n=self.config.top_n)
        self.progress = progress
        self.closed = False
        # Diagnostic only; dropped records never reach the aggregate state.
        self.skipped = 0

    def ingest(
        self,
        event: RecordEvent,
        *,
        bytes_consumed: int | None = None,
        total_bytes: int | None = None,
    ) -> None:
        """Fold one record into the aggregate state."""
        if self.closed:
            raise AccumulatorClosedError("accumulator already finalized")
        state = self.state
        if not event.key:
            self.skipped += 1
            return

        size = event.size
        state.total_keys += 1
        state.total_size += size
        state.db_keys[event.db] += 1
        type_tally = state.types.get(event.type)
        if type_tally is None:
            type_tally = state.types[event.type] = Tally()
        type_tally.add(size)

        state.ttl_counts[classify_ttl(event.expiration, state.now)] += 1
        state.size_counts[classify_size(size)] += 1

        sep = self.config.prefix_separator
        depth = self.config.max_prefix_depth
        record_prefixes(state.prefixes, event.key, size, sep, depth)
        record_prefixes_by_type(state.prefixes_by_type, event.type, event.key, size, sep, depth)

        if state.bigkeys.would_accept(size):
            state.bigkeys.offer(BigKeyRecord.from_event(event))

        if self.progress is not None:
            try:
                self.progress.maybe_report(state.total_keys, bytes_consumed, total_bytes)
            except Exception:
                logger.warning("progress reporting failed; disabling it", exc_info=True)
                self.progress = None

    def absorb_aux(self, entry: AuxEntry) -> None:
        """Record a metadata entry; it never counts as a key."""
        if self.closed:
            raise AccumulatorClosedError("accumulator already finalized")
        self.state.aux[entry.aux.strip()] = entry.value.strip()

    def consume(self, source: RecordSource, *, max_keys: int | None = None) -> AggregateState:
        """Pull every entry from ``source`` and return the closed state.

        Iteration stops early once ``max_keys`` keys have been counted.
        """
        limit = max_keys if max_keys is not None else self.config.max_keys
        for item in source:
            if isinstance(item, AuxEntry):
                self.absorb_aux(item)
                continue
            self.ingest(
                item,
                bytes_consumed=source.bytes_consumed,
                total_bytes=source.total_bytes,
            )
            if limit is not None and self.state.total_keys >= limit:
                logger.info("stopping after %d keys", self.state.total_keys)
                break
        return self.close()

    def close(self) -> AggregateState:
        """Freeze the state; further ingestion raises."""
        if not self.closed:
            self.closed = True
            if self.skipped:
                logger.debug("skipped %d records with empty keys", self.skipped)
        return self.state
