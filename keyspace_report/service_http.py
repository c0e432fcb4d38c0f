from __future__ import annotations

import argparse
from collections.abc import Iterable
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware

from .errors import ReportReadError
from .models import BigKeyRecord, PrefixStat, Report, ReportSummary
from .storage import JsonReportStore

ALL_TYPES = "__all__"


def _load_report(request: Request) -> Report:
    store: JsonReportStore = request.app.state.store
    try:
        report = store.load()
    except ReportReadError as exc:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    if report is None:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND,
            detail=f"no report at {store.path}; run `keyspace-report analyze` first",
        )
    return report


def create_app(
    report_path: str | Path = "data/report.json",
    *,
    cors_origins: Iterable[str] | None = None,
) -> FastAPI:
    """Construct a FastAPI app serving a persisted report to the charting front end.

    The report file is re-read on every request, so regenerating it needs no restart.
    """

    app = FastAPI(title="Keyspace Report", version="0.1.0")
    app.state.store = JsonReportStore(path=Path(report_path))

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/healthz", status_code=status.HTTP_200_OK)
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/report", response_model=Report, response_model_exclude_none=True)
    def report(request: Request) -> Report:
        return _load_report(request)

    @app.get("/report/summary", response_model=ReportSummary)
    def summary(request: Request) -> ReportSummary:
        return _load_report(request).summary

    @app.get("/report/prefixes", response_model=list[PrefixStat])
    def prefixes(
        request: Request,
        type_: str = Query(default=ALL_TYPES, alias="type", description="Type tag, or __all__."),
    ) -> list[PrefixStat]:
        loaded = _load_report(request)
        if type_ == ALL_TYPES:
            return loaded.prefixes
        for group in loaded.prefixes_by_type:
            if group.type == type_:
                return group.prefixes
        return []

    @app.get(
        "/report/bigkeys", response_model=list[BigKeyRecord], response_model_exclude_none=True
    )
    def bigkeys(
        request: Request,
        limit: int | None = Query(default=None, ge=1, le=10_000),
    ) -> list[BigKeyRecord]:
        keys = _load_report(request).bigkeys
        return keys[:limit] if limit is not None else keys

    return app


def run(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Serve a keyspace report over HTTP.")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind.")
    parser.add_argument("--port", type=int, default=8000, help="TCP port for the service.")
    parser.add_argument(
        "--report", type=str, default="data/report.json", help="Path to the report JSON."
    )
    parser.add_argument(
        "--cors-origin",
        action="append",
        dest="cors_origins",
        default=None,
        help="Optional CORS origin (repeatable).",
    )
    args = parser.parse_args(argv)

    app = create_app(args.report, cors_origins=args.cors_origins)
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")


app = create_app()
