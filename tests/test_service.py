from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from keyspace_report.api import KeyspaceReportAPI
from keyspace_report.errors import ReportReadError, ReportWriteError, SourceError
from keyspace_report.models import AuxEntry, RecordEvent, ReportConfig
from keyspace_report.report import render_report
from keyspace_report.storage import JsonReportStore

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _config() -> ReportConfig:
    return ReportConfig(reference_now=NOW, progress_interval_s=0, top_n=5)


def test_report_items_and_persist(tmp_path: Path) -> None:
    out = tmp_path / "out" / "report.json"
    api = KeyspaceReportAPI(_config(), out_path=out)
    report = api.report_items(
        [
            AuxEntry(aux="redis-ver", value="7.2.4"),
            RecordEvent(db=0, key="a:1", type="string", size=10),
            RecordEvent(db=0, key="a:2", type="hash", size=30),
        ]
    )
    assert report.summary.total_keys == 2
    assert out.exists()
    assert not [p for p in out.parent.iterdir() if p.name.endswith(".tmp")]

    data = json.loads(out.read_text())
    assert data["meta"]["redis_version"] == "7.2.4"
    assert data["bigkeys"][0]["key"] == "a:2"

    # Round-trip through the store
    reloaded = KeyspaceReportAPI(_config(), out_path=out).latest()
    assert reloaded is not None
    assert render_report(reloaded) == render_report(report)


def test_in_memory_store_when_no_path() -> None:
    api = KeyspaceReportAPI(_config())
    assert api.latest() is None
    api.report_items([RecordEvent(db=0, key="k", type="set", size=1)])
    latest = api.latest_json()
    assert latest is not None
    assert json.loads(latest)["summary"]["total_keys"] == 1


def test_source_failure_writes_nothing(tmp_path: Path) -> None:
    src = tmp_path / "bad.jsonl"
    src.write_text('{"db": 0, "key": "a", "type": "string", "size": 1}\n{oops\n')
    out = tmp_path / "report.json"
    api = KeyspaceReportAPI(_config(), out_path=out)
    with pytest.raises(SourceError):
        api.report_file(src)
    assert not out.exists()


def test_unwritable_destination_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    api = KeyspaceReportAPI(_config(), out_path=blocker / "report.json")
    with pytest.raises(ReportWriteError):
        api.report_items([RecordEvent(db=0, key="k", type="set", size=1)])


def test_corrupt_report_raises_on_load(tmp_path: Path) -> None:
    path = tmp_path / "report.json"
    path.write_text("{}")
    with pytest.raises(ReportReadError):
        JsonReportStore(path=path).load()
