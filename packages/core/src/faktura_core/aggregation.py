"""Invoice aggregation: YTD/MTD/all-time totals and monthly breakdowns.

Each function re-scans the invoice list; there is no shared state between
calls. Deleted invoices never contribute. Invoices without a valid date
still count towards the all-time total and outstanding receivables but
are left out of every date-bucketed figure.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from .classification import iter_active, iter_active_in_year
from .config import DEFAULT_CONFIG, FakturaConfig
from .dates import (
    DateLike,
    effective_billing_period,
    end_of_month,
    month_key,
    resolve_now,
    start_of_month,
)
from .models import (
    BasicMetrics,
    ClientMonthlyBreakdown,
    ClientTotal,
    Invoice,
    MonthlyTotal,
    TopClient,
)

logger = structlog.get_logger()

ZERO = Decimal("0")


def _sorted_monthly(totals: dict[str, Decimal]) -> list[MonthlyTotal]:
    return [MonthlyTotal(month=key, total=totals[key]) for key in sorted(totals)]


def _sorted_clients(totals: dict[str, Decimal]) -> list[ClientTotal]:
    # Stable sort keeps first-seen order for equal totals
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [ClientTotal(client=client, total=total) for client, total in ranked]


def compute_basic_metrics(
    invoices: Iterable[Invoice],
    now: Optional[DateLike] = None,
    config: Optional[FakturaConfig] = None,
) -> BasicMetrics:
    """Compute the headline invoice totals.

    Args:
        invoices: All invoices, any year
        now: Reference time (default: current time)
        config: Engine configuration (default: built-in defaults)

    Returns:
        BasicMetrics for the calendar year and month of ``now``
    """
    config = config or DEFAULT_CONFIG
    today = resolve_now(now).date()
    year = today.year
    month_start = start_of_month(today)
    month_end = end_of_month(today)

    total_all_time = ZERO
    total_ytd = ZERO
    total_mtd = ZERO
    unpaid_total = ZERO
    outstanding_count = 0
    paid_total_ytd = ZERO
    num_invoices_ytd = 0

    monthly: dict[str, Decimal] = defaultdict(Decimal)
    per_client: dict[str, Decimal] = defaultdict(Decimal)

    for invoice, invoice_date, net in iter_active(invoices):
        total_all_time += net

        # Outstanding receivables: positive unpaid amounts, any year
        if not invoice.is_paid and net > 0:
            unpaid_total += net
            outstanding_count += 1

        if invoice_date is None:
            continue

        if invoice_date.year == year:
            total_ytd += net
            num_invoices_ytd += 1
            if invoice.is_paid:
                paid_total_ytd += net
            monthly[month_key(invoice_date.year, invoice_date.month)] += net
            per_client[invoice.client_display_name] += net

        if month_start <= invoice_date <= month_end:
            total_mtd += net

    per_client_totals = _sorted_clients(per_client)
    top_clients = [
        TopClient(
            client=item.client,
            total=item.total,
            share=item.total / total_ytd if total_ytd > 0 else ZERO,
        )
        for item in per_client_totals[: config.metrics.top_clients_limit]
    ]

    metrics = BasicMetrics(
        total_all_time=total_all_time,
        total_ytd=total_ytd,
        total_mtd=total_mtd,
        unpaid_total=unpaid_total,
        outstanding_count=outstanding_count,
        paid_total_ytd=paid_total_ytd,
        num_invoices_ytd=num_invoices_ytd,
        average_invoice_ytd=total_ytd / num_invoices_ytd if num_invoices_ytd > 0 else ZERO,
        monthly_totals_current_year=_sorted_monthly(monthly),
        per_client_totals_ytd=per_client_totals,
        top_clients_ytd=top_clients,
        top_client_share_ytd=top_clients[0].share if top_clients else ZERO,
    )
    logger.debug(
        "basic_metrics_computed",
        year=year,
        total_ytd=str(total_ytd),
        invoices_ytd=num_invoices_ytd,
        outstanding=outstanding_count,
    )
    return metrics


def compute_monthly_totals_for_year(
    invoices: Iterable[Invoice],
    year: int,
) -> list[MonthlyTotal]:
    """Net totals per calendar month of ``year``, ascending by month."""
    monthly: dict[str, Decimal] = defaultdict(Decimal)
    for _, invoice_date, net in iter_active_in_year(invoices, year):
        monthly[month_key(invoice_date.year, invoice_date.month)] += net
    return _sorted_monthly(monthly)


def smoothed_totals_by_period(
    invoices: Iterable[Invoice],
    cutoff_day: int,
) -> dict[tuple[int, int], Decimal]:
    """Net totals keyed by effective billing period (year, month), all years."""
    totals: dict[tuple[int, int], Decimal] = defaultdict(Decimal)
    for _, invoice_date, net in iter_active(invoices):
        if invoice_date is None:
            continue
        period = effective_billing_period(invoice_date, cutoff_day)
        totals[(period.year, period.month)] += net
    return dict(totals)


def compute_smoothed_monthly_totals(
    invoices: Iterable[Invoice],
    year: int,
    cutoff_day: Optional[int] = None,
    config: Optional[FakturaConfig] = None,
) -> list[MonthlyTotal]:
    """Monthly totals of ``year`` by billing period rather than issue date.

    Invoices dated before the cutoff day are attributed to the previous
    month, so early-January invoices land in December of the prior year.
    """
    if cutoff_day is None:
        cutoff_day = (config or DEFAULT_CONFIG).metrics.billing_cutoff_day

    monthly = {
        month_key(y, m): total
        for (y, m), total in smoothed_totals_by_period(invoices, cutoff_day).items()
        if y == year
    }
    return _sorted_monthly(monthly)


def compute_smoothed_client_monthly_totals(
    invoices: Iterable[Invoice],
    year: int,
    cutoff_day: Optional[int] = None,
    config: Optional[FakturaConfig] = None,
) -> list[ClientMonthlyBreakdown]:
    """Per-client split of the smoothed monthly totals of ``year``."""
    if cutoff_day is None:
        cutoff_day = (config or DEFAULT_CONFIG).metrics.billing_cutoff_day

    by_month: dict[str, dict[str, Decimal]] = defaultdict(lambda: defaultdict(Decimal))
    for invoice, invoice_date, net in iter_active(invoices):
        if invoice_date is None:
            continue
        period = effective_billing_period(invoice_date, cutoff_day)
        if period.year != year:
            continue
        by_month[period.key][invoice.client_display_name] += net

    return [
        ClientMonthlyBreakdown(
            month=key,
            total=sum(by_month[key].values(), ZERO),
            clients=_sorted_clients(by_month[key]),
        )
        for key in sorted(by_month)
    ]


def extract_invoice_years(
    invoices: Iterable[Invoice],
    now: Optional[DateLike] = None,
) -> list[int]:
    """Years with invoices, plus the current year, newest first."""
    years = {
        invoice_date.year
        for _, invoice_date, _ in iter_active(invoices)
        if invoice_date is not None
    }
    years.add(resolve_now(now).year)
    return sorted(years, reverse=True)
