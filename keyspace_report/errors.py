"""Exceptions raised by the keyspace reporter."""

from __future__ import annotations


class KeyspaceReportError(Exception):
    """Base class for fatal reporter failures."""


class SourceError(KeyspaceReportError):
    """The record source could not be read or decoded."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class ReportWriteError(KeyspaceReportError):
    """The report destination could not be created or written."""


class AccumulatorClosedError(KeyspaceReportError):
    """A record was offered after the accumulator was finalized."""


class ReportReadError(KeyspaceReportError):
    """A persisted report exists but cannot be loaded."""
