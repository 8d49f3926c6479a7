"""Statistics dashboard snapshot.

Runs every metric once against the same reference time, so all figures
on one statistics page agree on what "today" is.
"""

from typing import Iterable, Optional

import structlog

from .aggregation import (
    compute_basic_metrics,
    compute_monthly_totals_for_year,
    compute_smoothed_client_monthly_totals,
    compute_smoothed_monthly_totals,
    extract_invoice_years,
)
from .config import DEFAULT_CONFIG, FakturaConfig
from .dates import DateLike, resolve_now
from .income_tax import IncomeTaxEstimator
from .kleinunternehmer import compute_kleinunternehmer_monitor
from .models import (
    CompanyInfo,
    CustomerTimeIndex,
    DashboardSnapshot,
    Invoice,
    PersonalTaxSettings,
    ProjectionStrategy,
)
from .revenue import (
    compute_invoice_based_roi,
    compute_refined_projection,
    compute_revenue_metrics,
)
from .vat import compute_vat_simulation

logger = structlog.get_logger()


def compute_dashboard(
    invoices: Iterable[Invoice],
    company: Optional[CompanyInfo] = None,
    tax_settings: Optional[PersonalTaxSettings] = None,
    now: Optional[DateLike] = None,
    year: Optional[int] = None,
    time_index: Optional[Iterable[CustomerTimeIndex]] = None,
    strategy: ProjectionStrategy = ProjectionStrategy.DAY_OF_YEAR,
    config: Optional[FakturaConfig] = None,
) -> DashboardSnapshot:
    """Compute all statistics for one rendering pass.

    Args:
        invoices: All invoices, any year
        company: Company VAT configuration
        tax_settings: Personal tax settings
        now: Reference time, resolved once (default: current time)
        year: Year shown in the year selector (default: year of ``now``)
        time_index: Tracked time per customer
        strategy: Annualization strategy for the revenue projection
        config: Engine configuration, loaded once when omitted

    Returns:
        DashboardSnapshot
    """
    config = config or DEFAULT_CONFIG
    reference = resolve_now(now)
    selected_year = year if year is not None else reference.year
    invoices = list(invoices)
    time_index = list(time_index or [])

    basic = compute_basic_metrics(invoices, reference, config)
    snapshot = DashboardSnapshot(
        generated_at=reference,
        selected_year=selected_year,
        available_years=extract_invoice_years(invoices, reference),
        basic=basic,
        revenue=compute_revenue_metrics(invoices, selected_year, reference, strategy, config),
        monthly_totals=compute_monthly_totals_for_year(invoices, selected_year),
        smoothed_monthly_totals=compute_smoothed_monthly_totals(
            invoices, selected_year, config=config
        ),
        smoothed_client_breakdown=compute_smoothed_client_monthly_totals(
            invoices, selected_year, config=config
        ),
        refined_projection=compute_refined_projection(
            invoices, reference, time_index, config=config
        ),
        roi=compute_invoice_based_roi(basic.per_client_totals_ytd, time_index, reference.year),
        vat=compute_vat_simulation(invoices, company, reference, config=config),
        kleinunternehmer=compute_kleinunternehmer_monitor(invoices, reference, config),
        income_tax=IncomeTaxEstimator(config).estimate(invoices, tax_settings, reference),
    )

    logger.info(
        "dashboard_computed",
        selected_year=selected_year,
        invoices=len(invoices),
        total_ytd=str(basic.total_ytd),
    )
    return snapshot
