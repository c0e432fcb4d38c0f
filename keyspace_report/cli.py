"""CLI entrypoint for the keyspace reporter."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from .api import KeyspaceReportAPI
from .buckets import format_bytes
from .errors import KeyspaceReportError
from .models import Report, ReportConfig
from .storage import JsonReportStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyspace-report", description="Summarize a decoded key-value snapshot."
    )
    parser.add_argument("--prefix-sep", default=":", help="Key namespace separator.")
    parser.add_argument(
        "--prefix-depth",
        type=int,
        default=3,
        help="Maximum namespace depth to aggregate (0 disables).",
    )
    parser.add_argument(
        "--topn",
        type=int,
        default=50,
        help="Top N for prefix lists and big keys.",
    )
    parser.add_argument(
        "--progress",
        type=float,
        default=5.0,
        help="Progress interval in seconds (0 to disable).",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors.")

    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Build a report from a decoded JSONL dump.")
    analyze.add_argument("source", type=Path, help="Path to decoded records (JSONL).")
    analyze.add_argument("--out", type=Path, required=True, help="Output report.json path.")
    analyze.add_argument(
        "--max-keys", type=int, default=None, help="Stop after this many keys."
    )

    summary = sub.add_parser("summary", help="Print the headline numbers of a report.")
    summary.add_argument("report", type=Path, help="Path to report.json.")

    return parser


def _config_from_args(args: argparse.Namespace) -> ReportConfig:
    return ReportConfig(
        prefix_separator=args.prefix_sep,
        max_prefix_depth=args.prefix_depth,
        top_n=args.topn,
        progress_interval_s=max(args.progress, 0.0),
        max_keys=getattr(args, "max_keys", None),
    )


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, stream=sys.stderr, format="%(message)s")


def _print_summary(report: Report) -> None:
    s = report.summary
    print(f"source:     {report.meta.source}")
    print(f"keys:       {s.total_keys}")
    print(f"size:       {format_bytes(s.total_size)}")
    print(f"databases:  {s.db_count}")
    print(f"with ttl:   {s.with_ttl} (expired {s.expired})")
    for stat in report.types:
        print(f"  {stat.type:<10} {stat.count:>12} {format_bytes(stat.size):>12}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "analyze" and args.max_keys is not None and args.max_keys < 1:
        parser.error("--max-keys must be at least 1")
    _configure_logging(args)

    try:
        if args.command == "analyze":
            api = KeyspaceReportAPI(_config_from_args(args), out_path=args.out)
            api.report_file(args.source)
            print(f"report written: {args.out}")
            return 0
        if args.command == "summary":
            report = JsonReportStore(path=args.report).load()
            if report is None:
                print(f"error: no report at {args.report}", file=sys.stderr)
                return 1
            _print_summary(report)
            return 0
    except KeyspaceReportError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
