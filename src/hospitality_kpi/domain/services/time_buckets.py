"""
Calendar time buckets for KPI aggregation.

A requested ``[start, end]`` range (both inclusive) is cut into contiguous
half-open buckets ``[bucket.start, bucket.end)``:

- daily/weekly step a fixed 1/7 days from the range start
- monthly/quarterly/yearly close on the next calendar month, quarter or year
  boundary, so the first bucket may start mid-period

The last bucket is clipped to ``end + 1 day`` and may be partial.
"""

from datetime import date, datetime, timedelta
from typing import List, Union

from dateutil.relativedelta import relativedelta

from hospitality_kpi.domain.exceptions import InvalidInputError
from hospitality_kpi.domain.models import Period, TimeBucket

ONE_DAY = timedelta(days=1)


def coerce_period(period: Union[Period, str]) -> Period:
    if isinstance(period, Period):
        return period
    try:
        return Period(str(period).strip().lower())
    except ValueError:
        valid = [p.value for p in Period]
        raise InvalidInputError(f"Unknown period '{period}', expected one of {valid}")


def as_date(value: Union[date, datetime]) -> date:
    """Drop the time component of datetimes."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _next_boundary(current: date, period: Period) -> date:
    if period == Period.DAILY:
        return current + ONE_DAY
    if period == Period.WEEKLY:
        return current + timedelta(days=7)
    if period == Period.MONTHLY:
        return current.replace(day=1) + relativedelta(months=1)
    if period == Period.QUARTERLY:
        quarter_start_month = ((current.month - 1) // 3) * 3 + 1
        return date(current.year, quarter_start_month, 1) + relativedelta(months=3)
    return date(current.year + 1, 1, 1)


def bucket_label(start: date, period: Period) -> str:
    if period == Period.DAILY:
        return start.isoformat()
    if period == Period.WEEKLY:
        return f"Week of {start.isoformat()}"
    if period == Period.MONTHLY:
        return start.strftime("%B %Y")
    if period == Period.QUARTERLY:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    return str(start.year)


def build_time_buckets(start_date: date, end_date: date, period: Union[Period, str]) -> List[TimeBucket]:
    """
    Divide ``[start_date, end_date]`` into contiguous buckets.

    Raises:
        InvalidInputError: If the range is inverted or the period is unknown
    """
    period = coerce_period(period)
    start_date = as_date(start_date)
    end_date = as_date(end_date)
    if start_date > end_date:
        raise InvalidInputError(f"start_date {start_date} is after end_date {end_date}")

    limit = end_date + ONE_DAY
    buckets: List[TimeBucket] = []
    current = start_date
    while current < limit:
        bucket_end = min(_next_boundary(current, period), limit)
        buckets.append(TimeBucket(start=current, end=bucket_end, label=bucket_label(current, period)))
        current = bucket_end
    return buckets
