"""Turn a finished aggregate state into an ordered, immutable report."""

from __future__ import annotations

from datetime import datetime

from .accumulator import AggregateState
from .buckets import EXPIRED, NO_EXPIRE, SIZE_LABELS, TTL_LABELS
from .models import (
    Bucket,
    PrefixStat,
    PrefixTypeGroup,
    Report,
    ReportMeta,
    ReportSummary,
    TypeStat,
)
from .prefixes import PrefixAggregate

_AUX_META_FIELDS = {
    "redis-ver": "redis_version",
    "redis-bits": "redis_bits",
    "ctime": "ctime",
    "used-mem": "used_mem",
    "aof-base": "aof_base",
}


def _ranked_prefixes(prefix_map: PrefixAggregate, top_n: int) -> list[PrefixStat]:
    items = sorted(prefix_map.items(), key=lambda item: item[1].size, reverse=True)
    if top_n > 0:
        items = items[:top_n]
    return [PrefixStat(prefix=p, count=t.count, size=t.size) for p, t in items]


def build_meta(
    state: AggregateState, *, source: str = "", generated_at: datetime | None = None
) -> ReportMeta:
    """Assemble report metadata from harvested aux entries."""
    known = {
        field: state.aux[name] for name, field in _AUX_META_FIELDS.items() if name in state.aux
    }
    return ReportMeta(
        source=source,
        generated_at=generated_at or state.now,
        aux=dict(sorted(state.aux.items())) or None,
        **known,
    )


def build_summary(state: AggregateState) -> ReportSummary:
    db_keys = dict(sorted(state.db_keys.items()))
    return ReportSummary(
        total_keys=state.total_keys,
        total_size=state.total_size,
        db_count=len(db_keys),
        db_keys=db_keys,
        with_ttl=state.with_ttl,
        no_ttl=state.ttl_counts[NO_EXPIRE],
        expired=state.ttl_counts[EXPIRED],
        now=state.now,
        type_counts={t: tally.count for t, tally in sorted(state.types.items())},
    )


def finalize(
    state: AggregateState,
    top_n: int,
    *,
    source: str = "",
    generated_at: datetime | None = None,
) -> Report:
    """Build the report for ``state`` without modifying it.

    Unordered internal maps are always sorted here so the same state yields the
    same document every time. Prefix lists are cut to ``top_n`` entries when it
    is positive.
    """
    types = sorted(state.types.items(), key=lambda item: item[1].size, reverse=True)
    groups = [
        PrefixTypeGroup(type=type_tag, prefixes=_ranked_prefixes(prefix_map, top_n))
        for type_tag, prefix_map in sorted(state.prefixes_by_type.items())
    ]
    return Report(
        meta=build_meta(state, source=source, generated_at=generated_at),
        summary=build_summary(state),
        types=[TypeStat(type=t, count=tally.count, size=tally.size) for t, tally in types],
        ttl_buckets=[Bucket(label=label, count=state.ttl_counts[label]) for label in TTL_LABELS],
        size_buckets=[
            Bucket(label=label, count=state.size_counts[label]) for label in SIZE_LABELS
        ],
        prefixes=_ranked_prefixes(state.prefixes, top_n),
        prefixes_by_type=groups,
        bigkeys=state.bigkeys.drain(),
    )


def render_report(report: Report, *, indent: int | None = 2) -> str:
    """Serialize a report to JSON, omitting absent optional fields."""
    return report.model_dump_json(indent=indent, exclude_none=True)
