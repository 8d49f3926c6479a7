"""German tax constants and curves used by the statistics estimates.

This module holds the statutory figures behind the income-tax estimate,
the solidarity surcharge, church tax and the Kleinunternehmer thresholds.
The income-tax curve is a piecewise-linear approximation of §32a EStG,
not the exact statutory formula.

Sources:
- §32a EStG (Einkommensteuertarif)
- §§3, 4 SolZG 1995 (Solidaritätszuschlag, Freigrenze and Milderungszone)
- §19 UStG (Kleinunternehmerregelung)

Updated: 2025 (approximate values)
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .models import FederalState, PersonalTaxSettings, to_decimal


# =============================================================================
# VERSION TRACKING
# =============================================================================

TAX_STANDARDS_VERSION = "2025-approx"
TAX_STANDARDS_YEAR = 2025


def get_tax_standards_version() -> str:
    """Return the version label of the built-in tax constants."""
    return TAX_STANDARDS_VERSION


# =============================================================================
# INCOME TAX (§32a EStG, approximated)
# =============================================================================

BASIC_ALLOWANCE = Decimal("12096")  # Grundfreibetrag
PROGRESSION_END = Decimal("68480")  # 42% reached
TOP_RATE_START = Decimal("277826")  # 45% ("Reichensteuer")

ENTRY_RATE = Decimal("0.14")
PROGRESSION_END_RATE = Decimal("0.42")
TOP_RATE = Decimal("0.45")


class IncomeTaxTable(BaseModel):
    """Bracket thresholds and rates for one tax year."""

    model_config = {"extra": "ignore"}

    year: int = TAX_STANDARDS_YEAR
    basic_allowance: Decimal = Field(default=BASIC_ALLOWANCE, ge=0)
    progression_end: Decimal = Field(default=PROGRESSION_END, gt=0)
    top_rate_start: Decimal = Field(default=TOP_RATE_START, gt=0)
    entry_rate: Decimal = Field(default=ENTRY_RATE, ge=0, le=1)
    progression_end_rate: Decimal = Field(default=PROGRESSION_END_RATE, ge=0, le=1)
    top_rate: Decimal = Field(default=TOP_RATE, ge=0, le=1)

    @model_validator(mode="after")
    def thresholds_ascending(self):
        """Bracket thresholds must be strictly ascending."""
        if not self.basic_allowance < self.progression_end < self.top_rate_start:
            raise ValueError(
                "basic_allowance < progression_end < top_rate_start must hold"
            )
        return self

    @property
    def version(self) -> str:
        """Label identifying this table in results."""
        return f"{self.year}-approx"


DEFAULT_INCOME_TAX_TABLE = IncomeTaxTable()


def german_income_tax(
    taxable_annual: Decimal,
    joint_assessment: bool = False,
    table: Optional[IncomeTaxTable] = None,
) -> Decimal:
    """Approximate annual income tax for a taxable income.

    Zero up to the basic allowance. Between the allowance and
    ``progression_end`` the marginal rate rises linearly from
    ``entry_rate`` to ``progression_end_rate``; the tax there is the
    average of the entry rate and the marginal rate at ``taxable_annual``
    times the amount above the allowance (trapezoid). Flat
    ``progression_end_rate`` up to ``top_rate_start``, ``top_rate`` above.

    Under joint assessment (Splittingtarif) the tax on half the combined
    income is doubled.

    Args:
        taxable_annual: Taxable income (zu versteuerndes Einkommen) in EUR
        joint_assessment: Apply the splitting tariff
        table: Bracket table (default: built-in 2025 table)

    Returns:
        Annual income tax in EUR, never negative
    """
    table = table or DEFAULT_INCOME_TAX_TABLE
    base = to_decimal(taxable_annual) or Decimal("0")

    if base <= 0:
        return Decimal("0")
    if joint_assessment:
        return german_income_tax(base / 2, False, table) * 2
    if base <= table.basic_allowance:
        return Decimal("0")

    span = table.progression_end - table.basic_allowance
    if base <= table.progression_end:
        progress = (base - table.basic_allowance) / span
        marginal = table.entry_rate + (table.progression_end_rate - table.entry_rate) * progress
        average_rate = (table.entry_rate + marginal) / 2
        return average_rate * (base - table.basic_allowance)

    tax_up_to_progression_end = (table.entry_rate + table.progression_end_rate) / 2 * span
    if base <= table.top_rate_start:
        return tax_up_to_progression_end + table.progression_end_rate * (base - table.progression_end)

    tax_up_to_top = tax_up_to_progression_end + table.progression_end_rate * (
        table.top_rate_start - table.progression_end
    )
    return tax_up_to_top + table.top_rate * (base - table.top_rate_start)


# =============================================================================
# SOLIDARITY SURCHARGE (SolZG 1995, post-2021)
# =============================================================================
# Thresholds refer to the assessed income tax, not the taxable income.

SOLI_EXEMPTION_LIMIT = Decimal("16956")  # Freigrenze, single assessment
SOLI_FULL_RATE_THRESHOLD = Decimal("31527")  # full surcharge from here
SOLI_RATE = Decimal("0.055")
SOLI_PHASE_IN_RATE = Decimal("0.119")  # Milderungszone


class SolidarityTable(BaseModel):
    """Solidarity surcharge thresholds (single assessment; doubled when joint)."""

    model_config = {"extra": "ignore"}

    exemption_limit: Decimal = Field(default=SOLI_EXEMPTION_LIMIT, ge=0)
    full_rate_threshold: Decimal = Field(default=SOLI_FULL_RATE_THRESHOLD, ge=0)
    rate: Decimal = Field(default=SOLI_RATE, ge=0, le=1)
    phase_in_rate: Decimal = Field(default=SOLI_PHASE_IN_RATE, ge=0, le=1)

    @model_validator(mode="after")
    def thresholds_ascending(self):
        """The full-rate threshold must lie above the exemption limit."""
        if self.full_rate_threshold <= self.exemption_limit:
            raise ValueError("full_rate_threshold must exceed exemption_limit")
        return self


DEFAULT_SOLIDARITY_TABLE = SolidarityTable()


def solidarity_surcharge(
    income_tax: Decimal,
    joint_assessment: bool = False,
    table: Optional[SolidarityTable] = None,
) -> Decimal:
    """Solidarity surcharge on an annual income tax amount.

    Zero up to the Freigrenze, the full rate from the upper threshold,
    and a linear phase-in of ``(tax - Freigrenze) * phase_in_rate`` in
    between. Both thresholds double under joint assessment.
    """
    table = table or DEFAULT_SOLIDARITY_TABLE
    income_tax = to_decimal(income_tax) or Decimal("0")
    factor = 2 if joint_assessment else 1
    exemption = table.exemption_limit * factor
    full = table.full_rate_threshold * factor

    if income_tax <= 0 or income_tax <= exemption:
        return Decimal("0")
    if income_tax >= full:
        return income_tax * table.rate
    return (income_tax - exemption) * table.phase_in_rate


# =============================================================================
# CHURCH TAX
# =============================================================================

class ChurchTaxRateClass(str, Enum):
    """The two church tax rate levels in Germany."""
    REDUCED = "reduced"  # 8%
    STANDARD = "standard"  # 9%


CHURCH_TAX_REDUCED_RATE = Decimal("8")
CHURCH_TAX_STANDARD_RATE = Decimal("9")


class ChurchTaxRates(BaseModel):
    """Church tax rates in percent of the income tax."""

    model_config = {"extra": "ignore"}

    reduced_rate: Decimal = Field(default=CHURCH_TAX_REDUCED_RATE, ge=0, le=100)
    standard_rate: Decimal = Field(default=CHURCH_TAX_STANDARD_RATE, ge=0, le=100)

    def rate_for(self, rate_class: ChurchTaxRateClass) -> Decimal:
        """Percent rate for a rate class."""
        if rate_class == ChurchTaxRateClass.REDUCED:
            return self.reduced_rate
        return self.standard_rate


DEFAULT_CHURCH_TAX_RATES = ChurchTaxRates()

CHURCH_TAX_RATE_BY_STATE: dict[FederalState, ChurchTaxRateClass] = {
    FederalState.BW: ChurchTaxRateClass.REDUCED,
    FederalState.BY: ChurchTaxRateClass.REDUCED,
    FederalState.BE: ChurchTaxRateClass.STANDARD,
    FederalState.BB: ChurchTaxRateClass.STANDARD,
    FederalState.HB: ChurchTaxRateClass.STANDARD,
    FederalState.HH: ChurchTaxRateClass.STANDARD,
    FederalState.HE: ChurchTaxRateClass.STANDARD,
    FederalState.MV: ChurchTaxRateClass.STANDARD,
    FederalState.NI: ChurchTaxRateClass.STANDARD,
    FederalState.NW: ChurchTaxRateClass.STANDARD,
    FederalState.RP: ChurchTaxRateClass.STANDARD,
    FederalState.SL: ChurchTaxRateClass.STANDARD,
    FederalState.SN: ChurchTaxRateClass.STANDARD,
    FederalState.ST: ChurchTaxRateClass.STANDARD,
    FederalState.SH: ChurchTaxRateClass.STANDARD,
    FederalState.TH: ChurchTaxRateClass.STANDARD,
}


def get_church_tax_rate_class(state: Optional[FederalState]) -> ChurchTaxRateClass:
    """Rate class for a federal state; unknown states get the standard rate."""
    if state is None:
        return ChurchTaxRateClass.STANDARD
    return CHURCH_TAX_RATE_BY_STATE.get(state, ChurchTaxRateClass.STANDARD)


def church_tax_rate_percent(
    settings: PersonalTaxSettings,
    rates: Optional[ChurchTaxRates] = None,
) -> Decimal:
    """Church tax rate in percent for the given personal settings.

    Church members pay the rate of their federal state. Otherwise the
    explicitly configured rate applies (floored at zero).
    """
    rates = rates or DEFAULT_CHURCH_TAX_RATES
    if settings.is_church_member:
        return rates.rate_for(get_church_tax_rate_class(settings.federal_state))
    return max(Decimal("0"), settings.church_tax_rate_percent)


# =============================================================================
# VAT AND KLEINUNTERNEHMER (§19 UStG)
# =============================================================================

DEFAULT_VAT_RATE = Decimal("19")
KLEINUNTERNEHMER_PREVIOUS_YEAR_LIMIT = Decimal("22000")
KLEINUNTERNEHMER_CURRENT_YEAR_LIMIT = Decimal("50000")
