"""Read-time folding of raw samples into fixed-width time buckets.

Samples are assigned to bucket ``floor(epoch_ms / width_ms)``. Within a bucket
the last non-null value per key wins, in time order; samples sharing a
timestamp keep their input order, so the later write wins there too.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from station_telemetry_service.domain.models import EPOCH, BucketPoint, Sample

MIN_LOOKBACK_MINUTES = 1
MAX_LOOKBACK_MINUTES = 1440
MIN_BUCKET_SECONDS = 1
MAX_BUCKET_SECONDS = 3600

_ONE_MS = timedelta(milliseconds=1)


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


def clamp_lookback_minutes(minutes: int) -> int:
    return clamp(minutes, MIN_LOOKBACK_MINUTES, MAX_LOOKBACK_MINUTES)


def clamp_bucket_seconds(seconds: int) -> int:
    return clamp(seconds, MIN_BUCKET_SECONDS, MAX_BUCKET_SECONDS)


def epoch_ms(dt: datetime) -> int:
    # exact integer milliseconds
    return (dt - EPOCH) // _ONE_MS


def bucket_index(dt: datetime, bucket_seconds: int) -> int:
    return epoch_ms(dt) // (bucket_seconds * 1000)


def bucket_start(index: int, bucket_seconds: int) -> datetime:
    return EPOCH + timedelta(milliseconds=index * bucket_seconds * 1000)


def fold_into_buckets(samples: Iterable[Sample], bucket_seconds: int) -> list[BucketPoint]:
    """Return one point per populated bucket, ordered by bucket start."""
    buckets: dict[int, dict[str, float]] = {}
    # sorted() is stable: equal timestamps keep storage (insertion) order
    for sample in sorted(samples, key=lambda s: s.time):
        if sample.value is None:
            continue
        index = bucket_index(sample.time, bucket_seconds)
        buckets.setdefault(index, {})[sample.key] = sample.value
    return [
        BucketPoint(start=bucket_start(index, bucket_seconds), values=values)
        for index, values in sorted(buckets.items())
    ]
