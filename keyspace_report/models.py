"""Typed data models used across the keyspace reporter."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RecordEvent(BaseModel):
    """Single decoded key with its metadata."""

    db: int = Field(..., ge=0)
    key: str = ""
    type: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)
    encoding: str = ""
    element_count: int = Field(0, ge=0)
    expiration: datetime | None = None

    @field_validator("key", mode="before")
    @classmethod
    def missing_key_as_empty(cls, value: object) -> object:
        # Keyless records are dropped by the accumulator rather than rejected.
        return "" if value is None else value

    @field_validator("expiration")
    @classmethod
    def expiration_as_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class AuxEntry(BaseModel):
    """Metadata pseudo-record emitted by the decoder (tool version, ctime, ...)."""

    aux: str
    value: str = ""


class BigKeyRecord(BaseModel):
    """Identifying fields of a record retained among the largest keys."""

    db: int
    key: str
    type: str
    size: int
    encoding: str
    elements: int
    expiration: datetime | None = None

    @classmethod
    def from_event(cls, event: RecordEvent) -> BigKeyRecord:
        return cls(
            db=event.db,
            key=event.key,
            type=event.type,
            size=event.size,
            encoding=event.encoding,
            elements=event.element_count,
            expiration=event.expiration,
        )


class TypeStat(BaseModel):
    type: str
    count: int
    size: int


class Bucket(BaseModel):
    label: str
    count: int


class PrefixStat(BaseModel):
    prefix: str
    count: int
    size: int


class PrefixTypeGroup(BaseModel):
    type: str
    prefixes: list[PrefixStat]


class ReportMeta(BaseModel):
    """Source description plus metadata harvested from aux entries."""

    source: str = ""
    generated_at: datetime
    redis_version: str | None = None
    redis_bits: str | None = None
    ctime: str | None = None
    used_mem: str | None = None
    aof_base: str | None = None
    aux: dict[str, str] | None = None


class ReportSummary(BaseModel):
    """Headline counters of a finished run."""

    total_keys: int = Field(..., ge=0)
    total_size: int = Field(..., ge=0)
    db_count: int = Field(..., ge=0)
    db_keys: dict[int, int]
    with_ttl: int = Field(..., ge=0)
    no_ttl: int = Field(..., ge=0)
    expired: int = Field(..., ge=0)
    now: datetime
    type_counts: dict[str, int]


class Report(BaseModel):
    """Finalized, deterministically ordered snapshot handed to consumers."""

    model_config = ConfigDict(frozen=True)

    meta: ReportMeta
    summary: ReportSummary
    types: list[TypeStat]
    ttl_buckets: list[Bucket]
    size_buckets: list[Bucket]
    prefixes: list[PrefixStat]
    prefixes_by_type: list[PrefixTypeGroup]
    bigkeys: list[BigKeyRecord]


class ReportConfig(BaseModel):
    """Runtime configuration switches."""

    prefix_separator: str = ":"
    max_prefix_depth: int = 3
    top_n: int = 50
    progress_interval_s: float = Field(5.0, ge=0.0)
    reference_now: datetime | None = None
    max_keys: int | None = Field(None, ge=1)

    @field_validator("reference_now")
    @classmethod
    def reference_now_as_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)
