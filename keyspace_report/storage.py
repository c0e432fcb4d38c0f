"""Storage backends for finished reports."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .errors import ReportReadError, ReportWriteError
from .models import Report
from .report import render_report


class ReportStore(Protocol):
    """Abstract store contract."""

    def save(self, report: Report) -> None: ...

    def load(self) -> Report | None: ...


@dataclass
class InMemoryReportStore(ReportStore):
    """Simple in-memory store, convenient for tests."""

    report: Report | None = None

    def save(self, report: Report) -> None:
        self.report = report

    def load(self) -> Report | None:
        return self.report


@dataclass
class JsonReportStore(ReportStore):
    """Persist a report as a single pretty-printed JSON document."""

    path: Path

    def save(self, report: Report) -> None:
        """Write the report atomically; a failed write leaves no file behind."""
        payload = render_report(report) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as exc:
            raise ReportWriteError(f"cannot create {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise ReportWriteError(f"cannot write {self.path}: {exc}") from exc

    def load(self) -> Report | None:
        if not self.path.exists():
            return None
        try:
            return Report.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise ReportReadError(f"cannot read report {self.path}: {exc}") from exc


def create_store(path: str | Path | None) -> ReportStore:
    """Factory helper selecting the appropriate store."""
    if path:
        return JsonReportStore(path=Path(path))
    return InMemoryReportStore()
