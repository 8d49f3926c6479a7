"""Result models produced by the metrics engine.

Every result is a plain pydantic model without behaviour beyond derived
read-only values; ``model_dump(mode="json")`` yields a JSON-ready
structure for the presentation layer. Money is ``Decimal`` in EUR and is
never rounded or formatted here.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# ENUMERATIONS
# =============================================================================

class ProjectionStrategy(str, Enum):
    """How a partial-year revenue total is annualized."""
    DAY_OF_YEAR = "day_of_year"  # total / day-of-year * 365
    FIRST_INVOICE_SPAN = "first_invoice_span"  # scaled over first invoice -> Dec 31


class MonthSource(str, Enum):
    """Origin of a month's value in the refined projection."""
    ACTUAL = "actual"
    CURRENT = "current"
    BASELINE = "baseline"


# =============================================================================
# CLASSIFICATION
# =============================================================================

class InvoiceActions(BaseModel):
    """Actions a user may take on an invoice."""
    mark_paid: bool
    download: bool = True
    rectify: bool
    delete: bool = True


# =============================================================================
# AGGREGATION
# =============================================================================

class MonthlyTotal(BaseModel):
    """Net total for one calendar (or billing) month."""
    month: str = Field(description="Month key in YYYY-MM format")
    total: Decimal


class ClientTotal(BaseModel):
    """Net total for one client."""
    client: str
    total: Decimal


class TopClient(ClientTotal):
    """Client total with its share of the year-to-date total."""
    share: Decimal = Field(description="client total / YTD total, 0 when YTD total is 0")


class ClientMonthlyBreakdown(BaseModel):
    """Per-client split of a smoothed billing month."""
    month: str
    total: Decimal
    clients: list[ClientTotal] = Field(default_factory=list)


class BasicMetrics(BaseModel):
    """Year-to-date, month-to-date and all-time invoice totals."""
    total_all_time: Decimal
    total_ytd: Decimal
    total_mtd: Decimal
    unpaid_total: Decimal
    outstanding_count: int
    paid_total_ytd: Decimal
    num_invoices_ytd: int
    average_invoice_ytd: Decimal
    monthly_totals_current_year: list[MonthlyTotal] = Field(default_factory=list)
    per_client_totals_ytd: list[ClientTotal] = Field(default_factory=list)
    top_clients_ytd: list[TopClient] = Field(default_factory=list)
    top_client_share_ytd: Decimal


# =============================================================================
# REVENUE
# =============================================================================

class RevenueMetrics(BaseModel):
    """Revenue total and annual projection for one year."""
    average_monthly: Decimal
    projected_annual: Decimal
    total_ytd: Decimal
    strategy: ProjectionStrategy = ProjectionStrategy.DAY_OF_YEAR


class MonthProjection(BaseModel):
    """One month of the refined projection."""
    month: str
    actual: Optional[Decimal] = Field(
        default=None,
        description="Smoothed invoiced amount; None for months still ahead",
    )
    projected: Decimal
    source: MonthSource


class RefinedProjection(BaseModel):
    """Annual projection blending smoothed actuals, tracked time and a baseline."""
    year: int
    months: list[MonthProjection] = Field(default_factory=list)
    baseline_monthly: Decimal = Field(description="Median of the trailing smoothed months")
    time_tracking_extrapolation: Decimal
    current_month_projection: Decimal
    actual_total: Decimal = Field(description="Smoothed actuals of the completed months")
    projected_remaining: Decimal
    projected_annual: Decimal


class RoiItem(BaseModel):
    """Invoiced revenue per tracked hour for one client."""
    customer_name: str
    total_hours: Decimal
    revenue: Decimal
    roi_per_hour: Decimal


# =============================================================================
# VAT
# =============================================================================

class NetInvariantScenario(BaseModel):
    """Net prices kept, VAT added on top."""
    vat_due: Decimal
    gross_increase: Decimal


class GrossInvariantScenario(BaseModel):
    """Current totals reinterpreted as gross prices."""
    vat_due: Decimal
    net_after_vat: Decimal
    revenue_delta: Decimal = Field(description="net_after_vat - taxable net; never positive")


class VatSimulation(BaseModel):
    """VAT buckets for the year and the two pricing scenarios."""
    rate: Decimal = Field(description="VAT rate in percent")
    taxable_net_ytd: Decimal
    reverse_charge_net_ytd: Decimal
    non_taxable_net_ytd: Decimal
    scenario_net_invariant: NetInvariantScenario
    scenario_gross_invariant: GrossInvariantScenario


# =============================================================================
# TAX
# =============================================================================

class KleinunternehmerMonitor(BaseModel):
    """Small-business VAT exemption thresholds (§19 UStG)."""
    previous_year_total: Decimal
    current_year_total_ytd: Decimal
    kleinunternehmer_previous_year_exceeded: bool
    kleinunternehmer_current_year_projection: Decimal
    kleinunternehmer_current_year_projection_exceeded: bool
    current_year_threshold_remaining: Decimal
    estimated_threshold_crossing_date: Optional[date] = None


class AuditEntry(BaseModel):
    """Audit log entry for calculation transparency."""
    step: str
    input_value: str
    output_value: str
    source: str
    notes: Optional[str] = None


class IncomeTaxEstimate(BaseModel):
    """Projected annual income tax, church tax and solidarity surcharge."""

    tax_year: int
    joint_assessment: bool

    # Revenue and taxable bases
    revenue_ytd: Decimal
    projected_annual_revenue: Decimal
    taxable_base_ytd: Decimal
    taxable_base_annual: Decimal

    # Annual amounts
    income_tax: Decimal
    church_tax_rate: Decimal = Field(description="Applied church tax rate in percent")
    church_tax: Decimal
    solidarity_surcharge: Decimal
    prepayments_year_to_date: Decimal
    total_due: Decimal = Field(description="Annual taxes minus prepayments; may be negative")

    # Current vs projected split
    income_tax_current: Decimal
    income_tax_projected: Decimal
    church_tax_current: Decimal
    church_tax_projected: Decimal
    solidarity_surcharge_current: Decimal
    solidarity_surcharge_projected: Decimal

    tax_table_version: str
    audit_log: list[AuditEntry] = Field(default_factory=list)
    calculated_at: datetime


# =============================================================================
# DASHBOARD
# =============================================================================

class DashboardSnapshot(BaseModel):
    """Every statistics output computed against one reference time."""
    generated_at: datetime
    selected_year: int
    available_years: list[int]
    basic: BasicMetrics
    revenue: RevenueMetrics
    monthly_totals: list[MonthlyTotal]
    smoothed_monthly_totals: list[MonthlyTotal]
    smoothed_client_breakdown: list[ClientMonthlyBreakdown]
    refined_projection: RefinedProjection
    roi: list[RoiItem] = Field(default_factory=list)
    vat: VatSimulation
    kleinunternehmer: KleinunternehmerMonitor
    income_tax: IncomeTaxEstimate
