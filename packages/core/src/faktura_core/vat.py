"""VAT simulation for the current year.

Answers "what would VAT registration cost?" for a business currently
invoicing without VAT. Positive invoices of the year are split into
reverse-charge, explicitly non-taxable and taxable buckets; the two
pricing scenarios only consider the taxable bucket.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from .classification import is_explicitly_non_taxable, is_reverse_charge, iter_active_in_year
from .config import DEFAULT_CONFIG, FakturaConfig
from .dates import DateLike, resolve_now
from .models import (
    CompanyInfo,
    GrossInvariantScenario,
    Invoice,
    NetInvariantScenario,
    VatSimulation,
    to_decimal,
)

logger = structlog.get_logger()

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def effective_vat_rate(
    company: Optional[CompanyInfo],
    rate_override: Optional[Decimal] = None,
    config: Optional[FakturaConfig] = None,
) -> Decimal:
    """VAT rate in percent.

    The explicit override wins, then the company's rate when VAT is
    enabled, then the statutory default.
    """
    override = to_decimal(rate_override)
    if override is not None:
        return override
    if company is not None and company.is_vat_enabled:
        return company.default_tax_rate
    return (config or DEFAULT_CONFIG).thresholds.default_vat_rate


def compute_vat_simulation(
    invoices: Iterable[Invoice],
    company: Optional[CompanyInfo] = None,
    now: Optional[DateLike] = None,
    rate_override: Optional[Decimal] = None,
    config: Optional[FakturaConfig] = None,
) -> VatSimulation:
    """Split the year's revenue into VAT buckets and price both scenarios.

    Args:
        invoices: All invoices, any year
        company: Company VAT configuration
        now: Reference time (default: current time)
        rate_override: VAT rate in percent overriding the company setting
        config: Engine configuration

    Returns:
        VatSimulation for the year of ``now``
    """
    year = resolve_now(now).year
    rate = effective_vat_rate(company, rate_override, config)
    factor = rate / HUNDRED

    taxable = ZERO
    reverse_charge = ZERO
    non_taxable = ZERO

    for invoice, _, net in iter_active_in_year(invoices, year):
        # Cancellations carry no VAT of their own
        if net <= 0:
            continue
        if is_reverse_charge(invoice):
            reverse_charge += net
        elif is_explicitly_non_taxable(invoice):
            non_taxable += net
        else:
            taxable += net

    # Net-invariant: prices stay, VAT is added on top
    vat_on_top = taxable * factor

    # Gross-invariant: current totals already include VAT
    net_after_vat = taxable / (1 + factor)
    vat_included = taxable - net_after_vat

    logger.debug(
        "vat_simulation_computed",
        year=year,
        rate=str(rate),
        taxable=str(taxable),
        reverse_charge=str(reverse_charge),
        non_taxable=str(non_taxable),
    )
    return VatSimulation(
        rate=rate,
        taxable_net_ytd=taxable,
        reverse_charge_net_ytd=reverse_charge,
        non_taxable_net_ytd=non_taxable,
        scenario_net_invariant=NetInvariantScenario(
            vat_due=vat_on_top,
            gross_increase=vat_on_top,
        ),
        scenario_gross_invariant=GrossInvariantScenario(
            vat_due=vat_included,
            net_after_vat=net_after_vat,
            revenue_delta=net_after_vat - taxable,
        ),
    )
