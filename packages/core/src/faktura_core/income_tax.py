"""Income tax, church tax and solidarity surcharge estimate.

The estimator projects the year's revenue with a day-of-year run-rate and
applies the approximated §32a EStG curve from ``tax_standards``. Every
step is recorded in an audit log so the figures shown to the user can be
traced back to their inputs.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from .classification import iter_active_in_year
from .config import DEFAULT_CONFIG, FakturaConfig
from .dates import DateLike, day_of_year, resolve_now
from .models import AuditEntry, IncomeTaxEstimate, Invoice, PersonalTaxSettings
from .tax_standards import (
    church_tax_rate_percent,
    german_income_tax,
    solidarity_surcharge,
)

logger = structlog.get_logger()

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class IncomeTaxEstimator:
    """
    Estimate the annual income-related taxes of a freelancer.

    Revenue counts positive invoices only: rectifications do not reduce
    the taxable revenue in this model. Taxes are split into a "current"
    part (owed on the year-to-date base) and a "projected" part (the
    increment expected from the rest of the year).

    All calculations are logged for audit trail.
    """

    def __init__(self, config: Optional[FakturaConfig] = None):
        """
        Initialize the estimator.

        Args:
            config: Engine configuration (default: built-in defaults)
        """
        self.config = config or DEFAULT_CONFIG
        self._audit_log: list[AuditEntry] = []

    def _log_step(
        self,
        step: str,
        input_value: str,
        output_value: str,
        source: str,
        notes: Optional[str] = None
    ) -> None:
        """Add an entry to the audit log."""
        entry = AuditEntry(
            step=step,
            input_value=input_value,
            output_value=output_value,
            source=source,
            notes=notes,
        )
        self._audit_log.append(entry)
        logger.debug(
            "tax_calculation_step",
            step=step,
            input=input_value,
            output=output_value,
            source=source,
        )

    def estimate(
        self,
        invoices: Iterable[Invoice],
        tax_settings: Optional[PersonalTaxSettings] = None,
        now: Optional[DateLike] = None,
    ) -> IncomeTaxEstimate:
        """
        Estimate income tax, church tax and solidarity surcharge for the year.

        Args:
            invoices: All invoices, any year
            tax_settings: Personal tax settings (default: single, no deductions)
            now: Reference time (default: current time)

        Returns:
            IncomeTaxEstimate with full audit trail
        """
        self._audit_log = []  # Reset audit log
        settings = tax_settings or PersonalTaxSettings()
        reference = resolve_now(now)
        year = reference.year
        joint = settings.joint_assessment
        days_per_year = self.config.metrics.days_per_year

        table = self.config.tax.income_tax_table_for(year)
        solidarity_table = self.config.tax.solidarity
        source = f"§32a EStG approximation {table.version}"

        # Step 1: Positive revenue of the year
        revenue_ytd = sum(
            (max(ZERO, net) for _, _, net in iter_active_in_year(invoices, year)),
            ZERO,
        )
        self._log_step(
            step="revenue_ytd",
            input_value=f"invoices dated {year}",
            output_value=str(revenue_ytd),
            source="Invoices",
            notes="Negative invoices do not reduce taxable revenue",
        )

        # Step 2: Annualize by day of year
        elapsed = max(1, day_of_year(reference))
        projected_revenue = revenue_ytd / elapsed * days_per_year
        self._log_step(
            step="projected_annual_revenue",
            input_value=f"{revenue_ytd} / {elapsed} * {days_per_year}",
            output_value=str(projected_revenue),
            source="Day-of-year run-rate",
        )

        # Step 3: Deduct expenses (pro rata for the YTD base)
        deductible = max(ZERO, settings.annual_deductible_expenses)
        deductible_ytd = deductible * elapsed / days_per_year
        taxable_self_annual = max(ZERO, projected_revenue - deductible)
        taxable_ytd = max(ZERO, revenue_ytd - deductible_ytd)
        self._log_step(
            step="taxable_base_self",
            input_value=f"annual={projected_revenue} - {deductible}, ytd={revenue_ytd} - {deductible_ytd}",
            output_value=f"annual={taxable_self_annual}, ytd={taxable_ytd}",
            source="Personal tax settings",
        )

        # Step 4: Partner income under joint assessment (annual base only)
        taxable_annual = taxable_self_annual
        if joint:
            partner = max(ZERO, settings.partner_taxable_annual_projection)
            taxable_annual = taxable_self_annual + partner
            self._log_step(
                step="taxable_base_joint",
                input_value=f"{taxable_self_annual} + {partner}",
                output_value=str(taxable_annual),
                source="Personal tax settings",
                notes="Partner income is not attributed to the year-to-date base",
            )

        # Step 5: Income tax on the annual base
        income_tax_annual = german_income_tax(taxable_annual, joint, table)
        self._log_step(
            step="income_tax_annual",
            input_value=str(taxable_annual),
            output_value=str(income_tax_annual),
            source=source,
            notes="Splitting tariff" if joint else None,
        )

        # Step 6: Current vs projected split
        income_tax_current = german_income_tax(taxable_ytd, joint, table)
        income_tax_projected = max(ZERO, income_tax_annual - income_tax_current)
        self._log_step(
            step="income_tax_split",
            input_value=str(taxable_ytd),
            output_value=f"current={income_tax_current}, projected={income_tax_projected}",
            source=source,
        )

        # Step 7: Church tax
        church_rate = max(ZERO, church_tax_rate_percent(settings, self.config.tax.church))
        church_factor = church_rate / HUNDRED
        church_current = income_tax_current * church_factor
        church_projected = income_tax_projected * church_factor
        church_tax = church_current + church_projected
        self._log_step(
            step="church_tax",
            input_value=f"({income_tax_current} + {income_tax_projected}) * {church_rate}%",
            output_value=str(church_tax),
            source="Kirchensteuer by federal state",
            notes=settings.federal_state.value if settings.federal_state else None,
        )

        # Step 8: Solidarity surcharge
        soli_current = solidarity_surcharge(income_tax_current, joint, solidarity_table)
        soli_projected = max(
            ZERO,
            solidarity_surcharge(income_tax_annual, joint, solidarity_table) - soli_current,
        )
        soli = soli_current + soli_projected
        self._log_step(
            step="solidarity_surcharge",
            input_value=f"current={income_tax_current}, annual={income_tax_annual}",
            output_value=str(soli),
            source="SolZG 1995",
        )

        # Step 9: Amount still due
        prepayments = max(ZERO, settings.prepayments_year_to_date)
        total_due = income_tax_annual + church_tax + soli - prepayments
        self._log_step(
            step="total_due",
            input_value=f"{income_tax_annual} + {church_tax} + {soli} - {prepayments}",
            output_value=str(total_due),
            source="Calculated",
        )

        return IncomeTaxEstimate(
            tax_year=year,
            joint_assessment=joint,
            revenue_ytd=revenue_ytd,
            projected_annual_revenue=projected_revenue,
            taxable_base_ytd=taxable_ytd,
            taxable_base_annual=taxable_annual,
            income_tax=income_tax_annual,
            church_tax_rate=church_rate,
            church_tax=church_tax,
            solidarity_surcharge=soli,
            prepayments_year_to_date=prepayments,
            total_due=total_due,
            income_tax_current=income_tax_current,
            income_tax_projected=income_tax_projected,
            church_tax_current=church_current,
            church_tax_projected=church_projected,
            solidarity_surcharge_current=soli_current,
            solidarity_surcharge_projected=soli_projected,
            tax_table_version=table.version,
            audit_log=self._audit_log,
            calculated_at=reference,
        )


def estimate_income_taxes(
    invoices: Iterable[Invoice],
    tax_settings: Optional[PersonalTaxSettings] = None,
    now: Optional[DateLike] = None,
    config: Optional[FakturaConfig] = None,
) -> IncomeTaxEstimate:
    """Estimate the year's income-related taxes with a fresh estimator."""
    return IncomeTaxEstimator(config).estimate(invoices, tax_settings, now)
