"""Streaming keyspace report package."""

from .accumulator import Accumulator, AggregateState
from .api import KeyspaceReportAPI, build_api
from .models import RecordEvent, Report, ReportConfig
from .report import finalize, render_report
from .service_http import create_app

__all__ = [
    "Accumulator",
    "AggregateState",
    "KeyspaceReportAPI",
    "RecordEvent",
    "Report",
    "ReportConfig",
    "build_api",
    "create_app",
    "finalize",
    "render_report",
]

__version__ = "0.1.0"
