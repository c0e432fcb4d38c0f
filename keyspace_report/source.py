"""Record sources feeding the accumulator.

Snapshot decoding happens upstream; a source only hands over already decoded
entries, one at a time, in file order.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .errors import SourceError
from .models import AuxEntry, RecordEvent

SourceItem = RecordEvent | AuxEntry


class RecordSource(Protocol):
    """Lazy stream of decoded entries plus byte accounting for progress."""

    def __iter__(self) -> Iterator[SourceItem]: ...

    @property
    def bytes_consumed(self) -> int | None: ...

    @property
    def total_bytes(self) -> int | None: ...


@dataclass
class InMemoryRecordSource(RecordSource):
    """Source over already built items, convenient for tests."""

    items: Iterable[SourceItem] = field(default_factory=list)
    _consumed: int = 0

    def __iter__(self) -> Iterator[SourceItem]:
        for item in self.items:
            self._consumed += 1
            yield item

    @property
    def bytes_consumed(self) -> int | None:
        return None

    @property
    def total_bytes(self) -> int | None:
        return None

    @property
    def items_consumed(self) -> int:
        return self._consumed


def parse_item(data: dict) -> SourceItem:
    """Validate one decoded object as either a metadata entry or a key record."""
    if "aux" in data:
        return AuxEntry.model_validate(data)
    return RecordEvent.model_validate(data)


@dataclass
class JsonlRecordSource(RecordSource):
    """Read decoder output stored as JSON lines.

    Each non-blank line is either a record object (``db``, ``key``, ``type``,
    ``size``, ...) or a metadata object ``{"aux": name, "value": text}``.
    """

    path: Path
    _consumed: int = 0
    _total: int | None = None

    def __iter__(self) -> Iterator[SourceItem]:
        self._consumed = 0
        try:
            self._total = self.path.stat().st_size
            fh = self.path.open("rb")
        except OSError as exc:
            raise SourceError(f"cannot open {self.path}: {exc}") from exc
        with fh:
            for lineno, raw in enumerate(fh, start=1):
                self._consumed += len(raw)
                line = raw.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                    raise SourceError(f"malformed JSON: {exc}", line=lineno) from exc
                if not isinstance(data, dict):
                    raise SourceError("expected a JSON object", line=lineno)
                try:
                    item = parse_item(data)
                except ValidationError as exc:
                    raise SourceError(f"invalid entry: {exc}", line=lineno) from exc
                yield item

    @property
    def bytes_consumed(self) -> int | None:
        return self._consumed

    @property
    def total_bytes(self) -> int | None:
        return self._total


def open_source(path: str | Path) -> JsonlRecordSource:
    """Factory helper for file-backed sources."""
    return JsonlRecordSource(path=Path(path))
