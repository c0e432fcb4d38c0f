"""Hierarchical key-namespace aggregation."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(slots=True)
class Tally:
    count: int = 0
    size: int = 0

    def add(self, size: int) -> None:
        self.count += 1
        self.size += size


# Maps "user:" (namespace) and "user:1001:profile" (exact key) style prefixes to totals.
PrefixAggregate = dict[str, Tally]


def iter_prefixes(key: str, separator: str, max_depth: int) -> Iterable[str]:
    """Yield the prefixes of ``key`` from depth 1 up to ``max_depth``.

    A prefix that stops short of the full key keeps a trailing separator so a
    namespace never collides with a key spelled the same way.
    """
    if not separator or max_depth <= 0:
        return
    parts = key.split(separator)
    depth = min(max_depth, len(parts))
    for i in range(1, depth + 1):
        prefix = separator.join(parts[:i])
        if i < len(parts):
            prefix += separator
        yield prefix


def record_prefixes(
    prefix_map: PrefixAggregate, key: str, size: int, separator: str, max_depth: int
) -> None:
    """Add one key of ``size`` bytes to every prefix level it belongs to."""
    for prefix in iter_prefixes(key, separator, max_depth):
        tally = prefix_map.get(prefix)
        if tally is None:
            tally = prefix_map[prefix] = Tally()
        tally.add(size)


def record_prefixes_by_type(
    by_type: dict[str, PrefixAggregate],
    type_tag: str,
    key: str,
    size: int,
    separator: str,
    max_depth: int,
) -> None:
    """Same as :func:`record_prefixes`, against the sub-map of ``type_tag``."""
    if not separator or max_depth <= 0:
        return
    prefix_map = by_type.get(type_tag)
    if prefix_map is None:
        prefix_map = by_type[type_tag] = {}
    record_prefixes(prefix_map, key, size, separator, max_depth)
