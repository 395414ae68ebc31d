"""UTC time helpers shared by the projections and the workflow."""

from __future__ import annotations

from datetime import datetime, timezone

import pendulum

SECONDS_PER_DAY = 86400


def utc_now() -> pendulum.DateTime:
    return pendulum.now("UTC")


def as_utc(value: datetime) -> pendulum.DateTime:
    """Return ``value`` as an aware UTC pendulum DateTime.

    Naive values, including those read back from SQLite, are taken as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return pendulum.instance(value).in_timezone("UTC")


def whole_days_between(start: datetime, end: datetime) -> int:
    """Elapsed whole days from ``start`` to ``end``, floored and never negative."""
    elapsed = (as_utc(end) - as_utc(start)).total_seconds()
    return max(0, int(elapsed // SECONDS_PER_DAY))
