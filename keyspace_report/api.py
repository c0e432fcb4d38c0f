"""Public API facade for the keyspace reporter."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .models import Report, ReportConfig
from .service import KeyspaceReportService
from .source import InMemoryRecordSource, SourceItem
from .storage import create_store


class KeyspaceReportAPI:
    """High-level façade consumed by scripts or orchestration code."""

    def __init__(self, config: ReportConfig, *, out_path: str | Path | None = None) -> None:
        self._service = KeyspaceReportService(config, create_store(out_path))

    def report_items(self, items: Iterable[SourceItem]) -> Report:
        """Report on in-memory decoded entries."""
        return self._service.run(InMemoryRecordSource(items=items), source_name="<memory>")

    def report_file(self, path: str | Path) -> Report:
        """Report on a JSONL file of decoded entries."""
        return self._service.run_file(Path(path))

    def latest(self) -> Report | None:
        """Return the last stored report."""
        return self._service.latest()

    def latest_json(self) -> str | None:
        """Serialize the last stored report as JSON."""
        return self._service.dump_json()


def build_api(
    config: ReportConfig | None = None, *, out_path: str | Path | None = None
) -> KeyspaceReportAPI:
    """Convenience constructor with defaults."""
    return KeyspaceReportAPI(config or ReportConfig(), out_path=out_path)
