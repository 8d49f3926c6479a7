"""Revenue projection.

Two annualization strategies for the current year:

- ``DAY_OF_YEAR``: total / day-of-year * 365.
- ``FIRST_INVOICE_SPAN``: scale the total from the first invoice of the
  year to today over the span from that invoice to December 31st. This
  does not dilute the run-rate of a business that started mid-year.

The refined projection blends billing-cutoff smoothed actuals with the
time tracked in the current month and a trailing-median baseline, which
is steadier than a raw run-rate early in the year or with sparse invoicing.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from statistics import median
from typing import Iterable, Optional

import structlog

from .aggregation import smoothed_totals_by_period
from .classification import iter_active_in_year
from .config import DEFAULT_CONFIG, FakturaConfig
from .dates import (
    DateLike,
    day_of_year,
    days_between_inclusive,
    days_in_month,
    month_key,
    resolve_now,
    shift_month,
)
from .models import (
    ClientTotal,
    CustomerTimeIndex,
    Invoice,
    MonthProjection,
    MonthSource,
    ProjectionStrategy,
    RefinedProjection,
    RevenueMetrics,
    RoiItem,
)

logger = structlog.get_logger()

ZERO = Decimal("0")
MINUTES_PER_HOUR = Decimal("60")


def _project_current_year(
    total: Decimal,
    first_invoice: date,
    today: date,
    strategy: ProjectionStrategy,
    days_per_year: int,
) -> Decimal:
    if strategy == ProjectionStrategy.FIRST_INVOICE_SPAN:
        days_elapsed = days_between_inclusive(first_invoice, today)
        if days_elapsed <= 0:
            # First invoice still ahead of today; nothing to extrapolate
            return total
        year_end = date(first_invoice.year, 12, 31)
        days_in_period = max(days_elapsed, days_between_inclusive(first_invoice, year_end))
        return total / days_elapsed * days_in_period

    elapsed = day_of_year(today)
    return total / elapsed * days_per_year if elapsed > 0 else ZERO


def compute_revenue_metrics(
    invoices: Iterable[Invoice],
    year: Optional[int] = None,
    now: Optional[DateLike] = None,
    strategy: ProjectionStrategy = ProjectionStrategy.DAY_OF_YEAR,
    config: Optional[FakturaConfig] = None,
) -> RevenueMetrics:
    """Revenue total, monthly average and annual projection for a year.

    Args:
        invoices: All invoices, any year
        year: Target year (default: year of ``now``)
        now: Reference time (default: current time)
        strategy: Annualization strategy for the current year
        config: Engine configuration

    Returns:
        RevenueMetrics; past and future years are not extrapolated
    """
    config = config or DEFAULT_CONFIG
    today = resolve_now(now).date()
    target_year = year if year is not None else today.year

    entries = list(iter_active_in_year(invoices, target_year))
    if not entries:
        return RevenueMetrics(
            average_monthly=ZERO,
            projected_annual=ZERO,
            total_ytd=ZERO,
            strategy=strategy,
        )

    total = sum((entry.net for entry in entries), ZERO)

    if target_year != today.year:
        return RevenueMetrics(
            average_monthly=total / 12,
            projected_annual=total,
            total_ytd=total,
            strategy=strategy,
        )

    first_invoice = min(entry.invoice_date for entry in entries)
    months_elapsed = max(1, today.month - first_invoice.month + 1)
    projected = _project_current_year(
        total, first_invoice, today, strategy, config.metrics.days_per_year
    )

    logger.debug(
        "revenue_projected",
        year=target_year,
        strategy=strategy.value,
        total_ytd=str(total),
        projected_annual=str(projected),
    )
    return RevenueMetrics(
        average_monthly=total / months_elapsed,
        projected_annual=projected,
        total_ytd=total,
        strategy=strategy,
    )


def tracked_revenue_for_month(
    time_index: Iterable[CustomerTimeIndex],
    key: str,
) -> Decimal:
    """Revenue implied by tracked time in a month (hours * hourly rate)."""
    revenue = ZERO
    for customer in time_index:
        if customer.hourly_rate is None:
            continue
        hours = Decimal(customer.minutes_for(key)) / MINUTES_PER_HOUR
        revenue += hours * customer.hourly_rate
    return revenue


def compute_refined_projection(
    invoices: Iterable[Invoice],
    now: Optional[DateLike] = None,
    time_index: Optional[Iterable[CustomerTimeIndex]] = None,
    cutoff_day: Optional[int] = None,
    baseline_window: Optional[int] = None,
    config: Optional[FakturaConfig] = None,
) -> RefinedProjection:
    """Month-by-month projection of the current year.

    Completed months use smoothed actuals. The current month uses the
    largest of the amount already billed, the tracked-time revenue
    extrapolated to the full month, and the baseline. Months ahead use
    the baseline: the median of the trailing smoothed months (only months
    from the first billed period on count).

    Args:
        invoices: All invoices, any year
        now: Reference time (default: current time)
        time_index: Tracked minutes per customer and month
        cutoff_day: Billing cutoff day (default: configured)
        baseline_window: Trailing months in the median (default: configured)
        config: Engine configuration

    Returns:
        RefinedProjection for the year of ``now``
    """
    config = config or DEFAULT_CONFIG
    today = resolve_now(now).date()
    year, current_month = today.year, today.month
    cutoff = cutoff_day if cutoff_day is not None else config.metrics.billing_cutoff_day
    window = baseline_window if baseline_window is not None else config.metrics.baseline_window_months

    smoothed = smoothed_totals_by_period(invoices, cutoff)
    first_period = min(smoothed) if smoothed else None

    trailing: list[Decimal] = []
    for offset in range(1, window + 1):
        period = shift_month(year, current_month, -offset)
        if first_period is not None and period >= first_period:
            trailing.append(smoothed.get(period, ZERO))
    baseline = median(trailing) if trailing else ZERO

    current_key = month_key(year, current_month)
    tracked = tracked_revenue_for_month(time_index or [], current_key)
    extrapolated = tracked / today.day * days_in_month(year, current_month)
    current_actual = smoothed.get((year, current_month), ZERO)
    current_projection = max(current_actual, extrapolated, baseline)

    months: list[MonthProjection] = []
    actual_total = ZERO
    for month in range(1, 13):
        key = month_key(year, month)
        if month < current_month:
            actual = smoothed.get((year, month), ZERO)
            actual_total += actual
            months.append(MonthProjection(
                month=key, actual=actual, projected=actual, source=MonthSource.ACTUAL,
            ))
        elif month == current_month:
            months.append(MonthProjection(
                month=key,
                actual=current_actual,
                projected=current_projection,
                source=MonthSource.CURRENT,
            ))
        else:
            months.append(MonthProjection(
                month=key, projected=baseline, source=MonthSource.BASELINE,
            ))

    remaining = current_projection + baseline * (12 - current_month)

    logger.debug(
        "refined_projection_computed",
        year=year,
        baseline=str(baseline),
        tracked=str(tracked),
        projected_annual=str(actual_total + remaining),
    )
    return RefinedProjection(
        year=year,
        months=months,
        baseline_monthly=baseline,
        time_tracking_extrapolation=extrapolated,
        current_month_projection=current_projection,
        actual_total=actual_total,
        projected_remaining=remaining,
        projected_annual=actual_total + remaining,
    )


def compute_invoice_based_roi(
    per_client_totals: Iterable[ClientTotal],
    time_index: Iterable[CustomerTimeIndex],
    year: int,
) -> list[RoiItem]:
    """Invoiced revenue per tracked hour for each client in ``year``.

    Hours are rounded to 0.1 and the hourly figure to cents. Clients
    without tracked time get 0. Sorted by revenue per hour, then revenue.
    """
    prefix = f"{year:04d}-"
    minutes_by_client: dict[str, int] = {}
    for customer in time_index:
        minutes_by_client[customer.customer_name] = sum(
            minutes
            for key, minutes in customer.per_month_minutes.items()
            if key.startswith(prefix)
        )

    items: list[RoiItem] = []
    for entry in per_client_totals:
        minutes = minutes_by_client.get(entry.client, 0)
        hours = (Decimal(minutes) / MINUTES_PER_HOUR).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        )
        revenue = max(ZERO, entry.total)
        roi = (
            (revenue / hours).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            if hours > 0
            else ZERO
        )
        items.append(RoiItem(
            customer_name=entry.client,
            total_hours=hours,
            revenue=revenue,
            roi_per_hour=roi,
        ))

    return sorted(items, key=lambda item: (item.roi_per_hour, item.revenue), reverse=True)
