# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for OnSite FinSight.

This module defines the PeriodBucket value object and builds the ordered
sequence of calendar-aligned buckets used by trend reports, for one of the
supported timeframes:

    6months    6 trailing months, ending with the anchor's month
    year       12 trailing months
    2years     24 trailing months
    quarterly  4 trailing calendar quarters, ending with the anchor's quarter
    forecast   12 forward months, starting with the anchor's month

Buckets always use calendar boundaries (first and last day of the month or
quarter), never rolling 30-day windows. "now" is an explicit parameter so
that reports are deterministic.
"""

from calendar import monthrange
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from .log import get_logger

logger = get_logger(__name__)

# timeframe -> (unit, number of buckets, direction)
TIMEFRAMES: dict[str, tuple[str, int, str]] = {
    "6months": ("month", 6, "trailing"),
    "year": ("month", 12, "trailing"),
    "2years": ("month", 24, "trailing"),
    "quarterly": ("quarter", 4, "trailing"),
    "forecast": ("month", 12, "forward"),
}

DEFAULT_TIMEFRAME = "6months"

_MONTH_ABBR = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class PeriodBucket:
    """A calendar-aligned reporting window, [start, end] inclusive."""

    label: str
    start: date
    end: date
    is_future: bool = False

    def contains(self, day: DateLike) -> bool:
        """True if the calendar day of ``day`` falls within the bucket."""
        d = as_day(day)
        return self.start <= d <= self.end

    @property
    def months(self) -> int:
        """Number of calendar months covered by the bucket."""
        return (self.end.year - self.start.year) * 12 + self.end.month - self.start.month + 1


def as_day(value: DateLike) -> date:
    """Drop the time of day: records and buckets are compared by calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def _month_bucket(year: int, month: int, now: date) -> PeriodBucket:
    start = date(year, month, 1)
    end = date(year, month, monthrange(year, month)[1])
    return PeriodBucket(
        label=f"{_MONTH_ABBR[month - 1]} {year}",
        start=start,
        end=end,
        is_future=start > now,
    )


def _quarter_bucket(year: int, quarter: int, now: date) -> PeriodBucket:
    first_month = (quarter - 1) * 3 + 1
    last_month = first_month + 2
    start = date(year, first_month, 1)
    end = date(year, last_month, monthrange(year, last_month)[1])
    return PeriodBucket(
        label=f"Q{quarter} {year}",
        start=start,
        end=end,
        is_future=start > now,
    )


def build_buckets(
    timeframe: str,
    anchor: DateLike,
    now: Optional[DateLike] = None,
) -> list[PeriodBucket]:
    """
    Build the ordered list of period buckets for a timeframe.

    Parameters
    ----------
    timeframe:
        One of the keys of ``TIMEFRAMES``.
    anchor:
        Date used to place the buckets (the last trailing bucket, or the
        first forecast bucket, contains it).
    now:
        Instant used to decide ``is_future`` (a bucket is future when it
        starts after ``now``). Defaults to ``anchor``.

    Returns
    -------
    list[PeriodBucket]
        Buckets in strictly chronological order, oldest first, contiguous
        and non-overlapping.

    Raises
    ------
    ValueError
        If the timeframe is unknown.
    """
    try:
        unit, count, direction = TIMEFRAMES[timeframe]
    except KeyError as exc:
        raise ValueError(
            f"Unknown timeframe: {timeframe!r}. "
            f"Expected one of: {', '.join(TIMEFRAMES)}."
        ) from exc

    anchor_day = as_day(anchor)
    now_day = as_day(now) if now is not None else anchor_day

    if direction == "forward":
        offsets = range(0, count)
    else:
        offsets = range(-(count - 1), 1)

    buckets: list[PeriodBucket] = []
    if unit == "month":
        for offset in offsets:
            year, month = _shift_month(anchor_day.year, anchor_day.month, offset)
            buckets.append(_month_bucket(year, month, now_day))
    else:
        anchor_quarter = (anchor_day.month - 1) // 3
        for offset in offsets:
            index = anchor_day.year * 4 + anchor_quarter + offset
            buckets.append(_quarter_bucket(index // 4, index % 4 + 1, now_day))

    logger.debug(
        "buckets_built",
        timeframe=timeframe,
        anchor=anchor_day.isoformat(),
        first=buckets[0].start.isoformat(),
        last=buckets[-1].end.isoformat(),
    )
    return buckets


def bucket_index_for(buckets: Sequence[PeriodBucket], day: DateLike) -> Optional[int]:
    """
    Index of the bucket containing ``day``, or None when it is out of window.

    Buckets are sorted, so a bisection over end dates finds the only
    candidate.
    """
    d = as_day(day)
    lo, hi = 0, len(buckets)
    while lo < hi:
        mid = (lo + hi) // 2
        if buckets[mid].end < d:
            lo = mid + 1
        else:
            hi = mid
    if lo < len(buckets) and buckets[lo].contains(d):
        return lo
    return None
