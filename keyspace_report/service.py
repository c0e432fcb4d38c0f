"""Service orchestrating a run: source, aggregation, report, persistence."""

from __future__ import annotations

import logging
from pathlib import Path

from .accumulator import Accumulator
from .models import Report, ReportConfig
from .progress import ProgressReporter
from .report import finalize, render_report
from .source import RecordSource, open_source
from .storage import ReportStore, create_store

logger = logging.getLogger(__name__)


class KeyspaceReportService:
    """Coordinates one reporting run per call."""

    def __init__(self, config: ReportConfig, store: ReportStore | None = None) -> None:
        self.config = config
        self.store = store or create_store(None)

    def build(self, source: RecordSource, *, source_name: str = "") -> Report:
        """Aggregate ``source`` into a report without persisting it."""
        config = self.config
        progress = None
        if config.progress_interval_s > 0:
            progress = ProgressReporter(config.progress_interval_s)
        accumulator = Accumulator(config, progress=progress)
        state = accumulator.consume(source)
        logger.info(
            "aggregated %d keys (%d bytes) from %s",
            state.total_keys,
            state.total_size,
            source_name or "stream",
        )
        return finalize(state, config.top_n, source=source_name)

    def run(self, source: RecordSource, *, source_name: str = "") -> Report:
        """Build a report and hand it to the store.

        Source failures propagate before anything is saved.
        """
        report = self.build(source, source_name=source_name)
        self.store.save(report)
        return report

    def run_file(self, path: Path) -> Report:
        """Read a decoded record file and report on it."""
        return self.run(open_source(path), source_name=str(path.resolve()))

    def latest(self) -> Report | None:
        """Return the most recently stored report."""
        return self.store.load()

    def dump_json(self) -> str | None:
        """Serialize the stored report for callers that need a blob."""
        report = self.store.load()
        return render_report(report) if report is not None else None
