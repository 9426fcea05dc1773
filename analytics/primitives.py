"""Pure aggregation helpers shared by the metrics, trend and engagement modules."""

import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from .models import TrendPeriod

SECONDS_PER_DAY = 24 * 60 * 60


def round1(value: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def round_half_up(value: float) -> int:
    """Round half up to the nearest integer."""
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def clamp_percentage(value: float) -> float:
    return clamp(value, 0.0, 100.0)


def clamp_unit(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is zero."""
    return numerator / denominator if denominator else 0.0


def calculate_average(values: Iterable[float]) -> float:
    """Mean of values rounded to one decimal; 0 for an empty sequence."""
    values = list(values)
    if not values:
        return 0.0
    return round1(sum(values) / len(values))


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def period_key(moment: datetime, period: TrendPeriod) -> str:
    """
    Derive the bucket key for a timestamp.

    Daily keys are the ISO date, weekly keys the ISO date of the preceding
    Sunday (or the day itself on a Sunday), monthly keys "YYYY-MM".
    """
    moment = as_utc(moment)
    period = TrendPeriod(period)

    if period is TrendPeriod.WEEKLY:
        # weekday() counts from Monday = 0; weeks here start on Sunday = 0
        days_since_sunday = (moment.weekday() + 1) % 7
        return (moment - timedelta(days=days_since_sunday)).date().isoformat()
    if period is TrendPeriod.MONTHLY:
        return f"{moment.year:04d}-{moment.month:02d}"
    return moment.date().isoformat()


def days_between(start: datetime, end: datetime) -> float:
    return (as_utc(end) - as_utc(start)).total_seconds() / SECONDS_PER_DAY


def response_frequency(
    count: int, earliest: Optional[datetime], latest: Optional[datetime]
) -> float:
    """Responses per day over the window, with a one-day minimum span."""
    if count == 0 or earliest is None or latest is None:
        return 0.0
    return count / max(1.0, days_between(earliest, latest))
