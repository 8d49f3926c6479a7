"""Kleinunternehmer (§19 UStG) threshold monitor.

Tracks last year's revenue against the previous-year limit and projects
the current year's revenue against the current-year limit. Unlike the VAT
simulation, invoices of any sign count here.
"""

import math
from datetime import timedelta
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from .classification import iter_active
from .config import DEFAULT_CONFIG, FakturaConfig
from .dates import DateLike, day_of_year, resolve_now
from .models import Invoice, KleinunternehmerMonitor

logger = structlog.get_logger()

ZERO = Decimal("0")


def compute_kleinunternehmer_monitor(
    invoices: Iterable[Invoice],
    now: Optional[DateLike] = None,
    config: Optional[FakturaConfig] = None,
) -> KleinunternehmerMonitor:
    """Check the small-business thresholds.

    The current year is projected with a day-of-year run-rate. When
    revenue is positive and still below the current-year limit, the date
    the limit will be reached at that rate is estimated.

    Args:
        invoices: All invoices, any year
        now: Reference time (default: current time)
        config: Engine configuration (thresholds)

    Returns:
        KleinunternehmerMonitor for the year of ``now``
    """
    config = config or DEFAULT_CONFIG
    thresholds = config.thresholds
    today = resolve_now(now).date()
    year = today.year

    previous_year_total = ZERO
    current_year_total = ZERO
    for _, invoice_date, net in iter_active(invoices):
        if invoice_date is None:
            continue
        if invoice_date.year == year - 1:
            previous_year_total += net
        elif invoice_date.year == year:
            current_year_total += net

    elapsed = max(1, day_of_year(today))
    average_per_day = current_year_total / elapsed
    projection = average_per_day * config.metrics.days_per_year
    remaining = thresholds.kleinunternehmer_current_year - current_year_total

    crossing_date = None
    if current_year_total > 0 and remaining > 0 and average_per_day > 0:
        days_needed = math.ceil(remaining / average_per_day)
        crossing_date = today + timedelta(days=days_needed)

    monitor = KleinunternehmerMonitor(
        previous_year_total=previous_year_total,
        current_year_total_ytd=current_year_total,
        kleinunternehmer_previous_year_exceeded=(
            previous_year_total > thresholds.kleinunternehmer_previous_year
        ),
        kleinunternehmer_current_year_projection=projection,
        kleinunternehmer_current_year_projection_exceeded=(
            projection > thresholds.kleinunternehmer_current_year
        ),
        current_year_threshold_remaining=remaining,
        estimated_threshold_crossing_date=crossing_date,
    )

    if (
        monitor.kleinunternehmer_previous_year_exceeded
        or monitor.kleinunternehmer_current_year_projection_exceeded
    ):
        logger.info(
            "kleinunternehmer_threshold_exceeded",
            year=year,
            previous_year_total=str(previous_year_total),
            projection=str(projection),
        )
    return monitor
