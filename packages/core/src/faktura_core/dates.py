"""Calendar helpers for the statistics engine.

All comparisons happen at day granularity: invoice dates carry no time,
and the reference ``now`` is reduced to its calendar date.
"""

from calendar import month_name, monthrange
from datetime import date, datetime
from typing import NamedTuple, Optional, Union

DateLike = Union[date, datetime]


def resolve_now(now: Optional[DateLike] = None) -> datetime:
    """Return the reference time, defaulting to the current local time."""
    if now is None:
        return datetime.now()
    if isinstance(now, datetime):
        return now
    return datetime(now.year, now.month, now.day)


def as_date(value: DateLike) -> date:
    """Calendar date of a date or datetime."""
    return value.date() if isinstance(value, datetime) else value


def day_of_year(value: DateLike) -> int:
    """1-based day of the year (January 1st is 1)."""
    return as_date(value).timetuple().tm_yday


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month."""
    return monthrange(year, month)[1]


def start_of_month(value: DateLike) -> date:
    """First day of the month."""
    d = as_date(value)
    return d.replace(day=1)


def end_of_month(value: DateLike) -> date:
    """Last day of the month."""
    d = as_date(value)
    return d.replace(day=days_in_month(d.year, d.month))


def days_between_inclusive(start: DateLike, end: DateLike) -> int:
    """Days from ``start`` to ``end`` counting both ends (0 or less if reversed)."""
    return (as_date(end) - as_date(start)).days + 1


def month_key(year: int, month: int) -> str:
    """YYYY-MM key for a month."""
    return f"{year:04d}-{month:02d}"


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move a (year, month) pair by ``offset`` months."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


class BillingPeriod(NamedTuple):
    """The month an invoice effectively bills."""
    year: int
    month: int

    @property
    def key(self) -> str:
        """YYYY-MM key."""
        return month_key(self.year, self.month)

    @property
    def label(self) -> str:
        """Human-readable label (e.g., 'January 2025')."""
        return f"{month_name[self.month]} {self.year}"


def effective_billing_period(value: DateLike, cutoff_day: int = 20) -> BillingPeriod:
    """Billing period for an invoice date.

    Invoices issued before ``cutoff_day`` bill the previous month's work,
    so they roll back one month (January rolls back to December of the
    previous year).
    """
    d = as_date(value)
    if d.day < cutoff_day:
        return BillingPeriod(*shift_month(d.year, d.month, -1))
    return BillingPeriod(d.year, d.month)
