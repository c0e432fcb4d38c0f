"""Bucket tables for TTL-remaining and byte-size classification."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import NamedTuple

NO_EXPIRE = "no-expire"
EXPIRED = "expired"


class TTLBucket(NamedTuple):
    label: str
    upper: timedelta


class SizeBucket(NamedTuple):
    label: str
    upper: int


TTL_BUCKETS: tuple[TTLBucket, ...] = (
    TTLBucket("<=1h", timedelta(hours=1)),
    TTLBucket("1h-1d", timedelta(days=1)),
    TTLBucket("1d-7d", timedelta(days=7)),
    TTLBucket("7d-30d", timedelta(days=30)),
    TTLBucket("30d-90d", timedelta(days=90)),
    TTLBucket(">90d", timedelta(days=36_500)),
)

SIZE_BUCKETS: tuple[SizeBucket, ...] = (
    SizeBucket("0-1KB", 1024),
    SizeBucket("1KB-10KB", 10 * 1024),
    SizeBucket("10KB-100KB", 100 * 1024),
    SizeBucket("100KB-1MB", 1024 * 1024),
    SizeBucket("1MB-10MB", 10 * 1024 * 1024),
    SizeBucket("10MB-100MB", 100 * 1024 * 1024),
    SizeBucket(">100MB", 2**63 - 1),
)

# Canonical emission order, independent of counts.
TTL_LABELS: tuple[str, ...] = (NO_EXPIRE, EXPIRED, *(b.label for b in TTL_BUCKETS))
SIZE_LABELS: tuple[str, ...] = tuple(b.label for b in SIZE_BUCKETS)


def classify_ttl(expiration: datetime | None, now: datetime) -> str:
    """Return the TTL bucket label for an absolute expiration time."""
    if expiration is None:
        return NO_EXPIRE
    if expiration <= now:
        return EXPIRED
    delta = expiration - now
    for bucket in TTL_BUCKETS:
        if delta <= bucket.upper:
            return bucket.label
    return TTL_BUCKETS[-1].label


def classify_size(size: int) -> str:
    """Return the size bucket label for a byte count."""
    for bucket in SIZE_BUCKETS:
        if size <= bucket.upper:
            return bucket.label
    return SIZE_BUCKETS[-1].label


def format_bytes(num_bytes: int) -> str:
    """Render a byte count as a short human-readable string."""
    if num_bytes < 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB", "TB")
    value = float(num_bytes)
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    if value < 10 and idx > 0:
        return f"{value:.2f} {units[idx]}"
    return f"{value:.1f} {units[idx]}"
