from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from keyspace_report.accumulator import Accumulator
from keyspace_report.errors import AccumulatorClosedError
from keyspace_report.models import AuxEntry, RecordEvent, ReportConfig
from keyspace_report.progress import ProgressReporter
from keyspace_report.source import InMemoryRecordSource

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _event(
    key: str,
    size: int,
    *,
    db: int = 0,
    type_: str = "string",
    expiration: datetime | None = None,
) -> RecordEvent:
    return RecordEvent(
        db=db,
        key=key,
        type=type_,
        size=size,
        encoding="raw",
        element_count=1,
        expiration=expiration,
    )


def _config(**overrides: object) -> ReportConfig:
    values: dict[str, object] = {"reference_now": NOW, "progress_interval_s": 0, "top_n": 3}
    values.update(overrides)
    return ReportConfig(**values)


def _sample() -> list[RecordEvent]:
    return [
        _event("user:1:profile", 100, type_="hash"),
        _event("user:2:profile", 2_000, type_="hash", expiration=NOW + timedelta(minutes=30)),
        _event("session:abc", 50, db=1, expiration=NOW),
        _event("counter", 8, db=2, expiration=NOW + timedelta(days=40)),
        _event("queue:jobs", 20_000, type_="list"),
    ]


def test_counters_agree_across_dimensions() -> None:
    acc = Accumulator(_config())
    for event in _sample():
        acc.ingest(event)
    state = acc.close()

    assert state.total_keys == 5
    assert state.total_size == 100 + 2_000 + 50 + 8 + 20_000
    assert sum(t.count for t in state.types.values()) == state.total_keys
    assert sum(state.db_keys.values()) == state.total_keys
    assert sum(state.ttl_counts.values()) == state.total_keys
    assert sum(state.size_counts.values()) == state.total_keys
    assert dict(state.db_keys) == {0: 3, 1: 1, 2: 1}
    assert state.types["hash"].size == 2_100


def test_ttl_and_size_buckets_are_filled() -> None:
    acc = Accumulator(_config())
    for event in _sample():
        acc.ingest(event)
    state = acc.close()

    assert state.ttl_counts["no-expire"] == 2
    assert state.ttl_counts["expired"] == 1
    assert state.ttl_counts["<=1h"] == 1
    assert state.ttl_counts["30d-90d"] == 1
    assert state.with_ttl == 3
    assert state.size_counts["0-1KB"] == 3
    assert state.size_counts["1KB-10KB"] == 1
    assert state.size_counts["10KB-100KB"] == 1


def test_prefixes_tracked_globally_and_per_type() -> None:
    acc = Accumulator(_config())
    for event in _sample():
        acc.ingest(event)
    state = acc.close()

    assert state.prefixes["user:"].count == 2
    assert state.prefixes["user:"].size == 2_100
    assert state.prefixes["counter"].count == 1
    assert set(state.prefixes_by_type) == {"hash", "string", "list"}
    assert "user:" not in state.prefixes_by_type["string"]


def test_empty_keys_are_dropped_silently() -> None:
    acc = Accumulator(_config())
    acc.ingest(_event("", 999))
    acc.ingest(_event("a", 1))
    state = acc.close()

    assert state.total_keys == 1
    assert state.total_size == 1
    assert acc.skipped == 1
    assert len(state.bigkeys) == 1
    assert "" not in state.prefixes


def test_bigkeys_bounded_by_top_n() -> None:
    acc = Accumulator(_config(top_n=2))
    for event in _sample():
        acc.ingest(event)
    sizes = [r.size for r in acc.close().bigkeys.drain()]
    assert sizes == [20_000, 2_000]


def test_aux_entries_do_not_count_as_keys() -> None:
    source = InMemoryRecordSource(
        items=[AuxEntry(aux=" redis-ver ", value=" 7.2.4 "), _event("a", 1)]
    )
    state = Accumulator(_config()).consume(source)
    assert state.aux == {"redis-ver": "7.2.4"}
    assert state.total_keys == 1


def test_consume_stops_after_max_keys() -> None:
    pulled: list[str] = []

    def items():
        for event in _sample():
            pulled.append(event.key)
            yield event

    state = Accumulator(_config(max_keys=2)).consume(InMemoryRecordSource(items=items()))
    assert state.total_keys == 2
    assert len(pulled) == 2


def test_ingest_after_close_raises() -> None:
    acc = Accumulator(_config())
    acc.close()
    with pytest.raises(AccumulatorClosedError):
        acc.ingest(_event("a", 1))
    with pytest.raises(AccumulatorClosedError):
        acc.absorb_aux(AuxEntry(aux="ctime", value="1"))


def test_reference_now_defaults_to_run_start() -> None:
    before = datetime.now(timezone.utc)
    acc = Accumulator(ReportConfig(progress_interval_s=0))
    assert before <= acc.state.now <= datetime.now(timezone.utc)


def test_naive_expiration_is_treated_as_utc() -> None:
    naive = datetime(2026, 1, 1, 0, 30)
    acc = Accumulator(_config())
    acc.ingest(_event("a", 1, expiration=naive))
    assert acc.close().ttl_counts["<=1h"] == 1


class _RecordingProgress:
    def __init__(self) -> None:
        self.calls: list[tuple[int, int | None, int | None]] = []

    def maybe_report(self, keys: int, consumed: int | None, total: int | None) -> None:
        self.calls.append((keys, consumed, total))


def test_progress_receives_external_byte_counts() -> None:
    progress = _RecordingProgress()
    acc = Accumulator(_config(), progress=progress)  # type: ignore[arg-type]
    acc.ingest(_event("a", 1), bytes_consumed=10, total_bytes=100)
    acc.ingest(_event("", 1), bytes_consumed=20, total_bytes=100)
    acc.ingest(_event("b", 1), bytes_consumed=30, total_bytes=100)
    assert progress.calls == [(1, 10, 100), (2, 30, 100)]


def test_failing_progress_does_not_change_aggregation() -> None:
    ticks = iter([0.0])
    progress = ProgressReporter(1.0, clock=lambda: next(ticks))
    with_progress = Accumulator(_config(), progress=progress)
    without_progress = Accumulator(_config())
    for event in _sample():
        with_progress.ingest(event, bytes_consumed=1, total_bytes=10)
        without_progress.ingest(event)

    failed = with_progress.close()
    baseline = without_progress.close()
    assert with_progress.progress is None
    assert failed.total_keys == baseline.total_keys == 5
    assert failed.total_size == baseline.total_size
    assert failed.ttl_counts == baseline.ttl_counts
    assert failed.size_counts == baseline.size_counts
    assert failed.prefixes == baseline.prefixes
    assert [r.key for r in failed.bigkeys.drain()] == [r.key for r in baseline.bigkeys.drain()]
