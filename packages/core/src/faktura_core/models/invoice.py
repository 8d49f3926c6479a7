"""Input models for invoice statistics.

These models describe the records the storage layer hands to the metrics
engine: invoices with their line items, the company VAT configuration and
the personal tax settings used for the income-tax estimate.

The storage layer writes camelCase keys for some fields (``isDeleted``,
``isRectified``, ``rectifiedBy``, the tax settings). Both the legacy keys
and the snake_case field names are accepted. Parsing is lenient: an
unparseable date becomes ``None`` and a non-numeric amount falls back to
``None``/zero, so a sparse record never makes a computation fail.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# COERCION HELPERS
# =============================================================================

def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a raw numeric value to Decimal.

    Returns None for missing, boolean, non-numeric and non-finite values.
    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return result if result.is_finite() else None


def parse_date(value: Any) -> Optional[date]:
    """Parse an invoice date.

    Accepts ``date``/``datetime`` objects and ISO 8601 strings, with or
    without a time part. Anything else yields None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


# =============================================================================
# ENUMERATIONS
# =============================================================================

class InvoiceStatus(str, Enum):
    """Stored invoice status."""
    UNPAID = "unpaid"
    PAID = "paid"
    OVERDUE = "overdue"
    RECTIFIED = "rectified"


class FederalState(str, Enum):
    """German federal states (Bundesländer) by their two-letter code."""
    BW = "BW"  # Baden-Württemberg
    BY = "BY"  # Bayern
    BE = "BE"  # Berlin
    BB = "BB"  # Brandenburg
    HB = "HB"  # Bremen
    HH = "HH"  # Hamburg
    HE = "HE"  # Hessen
    MV = "MV"  # Mecklenburg-Vorpommern
    NI = "NI"  # Niedersachsen
    NW = "NW"  # Nordrhein-Westfalen
    RP = "RP"  # Rheinland-Pfalz
    SL = "SL"  # Saarland
    SN = "SN"  # Sachsen
    ST = "ST"  # Sachsen-Anhalt
    SH = "SH"  # Schleswig-Holstein
    TH = "TH"  # Thüringen


# =============================================================================
# RECTIFICATION LINK
# =============================================================================

class NotRectified(BaseModel):
    """The invoice has not been superseded by a rectification."""
    kind: Literal["none"] = "none"


class RectifiedBy(BaseModel):
    """The invoice has been superseded by a rectification invoice."""
    kind: Literal["rectified_by"] = "rectified_by"
    invoice_number: Optional[str] = Field(
        default=None,
        description="Number of the correcting invoice, if recorded",
    )


RectificationLink = Annotated[
    Union[NotRectified, RectifiedBy],
    Field(discriminator="kind"),
]


# =============================================================================
# INVOICE MODELS
# =============================================================================

class InvoiceItem(BaseModel):
    """A single invoice line."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    name: str = ""
    quantity: Decimal = Decimal("0")
    price: Decimal = Field(
        default=Decimal("0"),
        description="Unit price; negative for corrections",
    )
    description: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v):
        """Missing names become an empty string."""
        return v if isinstance(v, str) else ""

    @field_validator("quantity", "price", mode="before")
    @classmethod
    def coerce_number(cls, v):
        """Missing or non-numeric values count as zero."""
        amount = to_decimal(v)
        return amount if amount is not None else Decimal("0")

    @property
    def line_total(self) -> Decimal:
        """Quantity times unit price."""
        return self.quantity * self.price


class Customer(BaseModel):
    """Customer reference carried on an invoice."""

    model_config = {"extra": "ignore"}

    id: Optional[str] = None
    name: Optional[str] = None


class Invoice(BaseModel):
    """An invoice record as supplied by the storage layer."""

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "json_schema_extra": {
            "examples": [
                {
                    "invoice_number": "2025-014",
                    "invoice_date": "2025-03-21",
                    "due_date": "2025-04-04",
                    "customer": {"id": "c-1", "name": "Muster GmbH"},
                    "items": [{"name": "Beratung", "quantity": 10, "price": 95}],
                    "total": 950,
                    "is_paid": False,
                }
            ]
        },
    }

    invoice_number: str = ""
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    customer: Optional[Customer] = None
    client_name: Optional[str] = Field(
        default=None,
        description="Legacy client display name, used when no customer name is set",
    )
    items: list[InvoiceItem] = Field(default_factory=list)
    total: Optional[Decimal] = Field(
        default=None,
        description="Authoritative net amount; computed from items when absent",
    )
    is_paid: bool = False
    status: Optional[InvoiceStatus] = None
    rectification: RectificationLink = Field(default_factory=NotRectified)
    notes: Optional[str] = None
    client_vat_id: Optional[str] = None
    client_vat_exempt: bool = False
    tax_exemption_reason: Optional[str] = None
    is_deleted: bool = Field(default=False, alias="isDeleted")

    @model_validator(mode="before")
    @classmethod
    def fold_rectification_flags(cls, data):
        """Fold the legacy ``isRectified``/``rectifiedBy`` pair into one link."""
        if not isinstance(data, dict) or "rectification" in data:
            return data

        data = dict(data)
        flag = data.pop("isRectified", None)
        flag = data.pop("is_rectified", flag)
        number = data.pop("rectifiedBy", None)
        number = data.pop("rectified_by", number)

        number = number.strip() if isinstance(number, str) else None
        if flag or number:
            data["rectification"] = RectifiedBy(invoice_number=number or None)
        return data

    @field_validator("invoice_number", mode="before")
    @classmethod
    def coerce_invoice_number(cls, v):
        """Invoice numbers are kept as text."""
        if v is None:
            return ""
        return str(v)

    @field_validator("invoice_date", "due_date", mode="before")
    @classmethod
    def coerce_date(cls, v):
        """Unparseable dates become None."""
        return parse_date(v)

    @field_validator("total", mode="before")
    @classmethod
    def coerce_total(cls, v):
        """Non-numeric totals are treated as absent."""
        return to_decimal(v)

    @field_validator("items", mode="before")
    @classmethod
    def coerce_items(cls, v):
        """A missing item list is an empty one."""
        return v if isinstance(v, list) else []

    @field_validator("customer", mode="before")
    @classmethod
    def coerce_customer(cls, v):
        """Only mappings and Customer instances are kept."""
        return v if isinstance(v, (dict, Customer)) else None

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v):
        """Unknown stored statuses are dropped."""
        if isinstance(v, InvoiceStatus):
            return v
        try:
            return InvoiceStatus(v)
        except ValueError:
            return None

    @field_validator("is_paid", "client_vat_exempt", "is_deleted", mode="before")
    @classmethod
    def coerce_flag(cls, v):
        """Missing flags are False."""
        return bool(v) if v is not None else False

    @property
    def is_superseded(self) -> bool:
        """True when this invoice has been rectified by another invoice."""
        return (
            isinstance(self.rectification, RectifiedBy)
            or self.status == InvoiceStatus.RECTIFIED
        )

    @property
    def client_display_name(self) -> str:
        """Customer name, falling back to the legacy client name."""
        name = self.customer.name if self.customer else None
        return name or self.client_name or "Unknown"


# =============================================================================
# CONFIGURATION RECORDS
# =============================================================================

class CompanyInfo(BaseModel):
    """Company VAT configuration."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    is_vat_enabled: bool = False
    default_tax_rate: Decimal = Field(
        default=Decimal("19"),
        description="Default VAT rate in percent",
    )

    @field_validator("default_tax_rate", mode="before")
    @classmethod
    def coerce_rate(cls, v):
        """Fall back to the statutory 19% for missing rates."""
        rate = to_decimal(v)
        return rate if rate is not None else Decimal("19")


class PersonalTaxSettings(BaseModel):
    """Personal settings for the income, church and solidarity tax estimate."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    annual_deductible_expenses: Decimal = Field(
        default=Decimal("0"), alias="annualDeductibleExpenses"
    )
    joint_assessment: bool = Field(default=False, alias="jointAssessment")
    partner_taxable_annual_projection: Decimal = Field(
        default=Decimal("0"), alias="partnerTaxableAnnualProjection"
    )
    is_church_member: bool = Field(default=False, alias="isChurchMember")
    church_tax_rate_percent: Decimal = Field(
        default=Decimal("0"), alias="churchTaxRatePercent"
    )
    federal_state: Optional[FederalState] = Field(default=None, alias="federalState")
    prepayments_year_to_date: Decimal = Field(
        default=Decimal("0"), alias="prepaymentsYearToDate"
    )

    @field_validator(
        "annual_deductible_expenses",
        "partner_taxable_annual_projection",
        "church_tax_rate_percent",
        "prepayments_year_to_date",
        mode="before",
    )
    @classmethod
    def coerce_amount(cls, v):
        """Missing amounts are zero."""
        amount = to_decimal(v)
        return amount if amount is not None else Decimal("0")

    @field_validator("joint_assessment", "is_church_member", mode="before")
    @classmethod
    def coerce_flag(cls, v):
        """Missing flags are False."""
        return bool(v) if v is not None else False

    @field_validator("federal_state", mode="before")
    @classmethod
    def coerce_state(cls, v):
        """Unknown state codes are treated as absent."""
        if isinstance(v, FederalState):
            return v
        if not isinstance(v, str):
            return None
        try:
            return FederalState(v.strip().upper())
        except ValueError:
            return None


class CustomerTimeIndex(BaseModel):
    """Tracked time for one customer, summed per month."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    customer_name: str = Field(alias="customerName")
    per_month_minutes: dict[str, int] = Field(
        default_factory=dict,
        alias="perMonthMinutes",
        description="Tracked minutes keyed by YYYY-MM",
    )
    hourly_rate: Optional[Decimal] = Field(default=None, alias="hourlyRate")

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def coerce_rate(cls, v):
        """Non-numeric rates are treated as absent."""
        return to_decimal(v)

    def minutes_for(self, month_key: str) -> int:
        """Tracked minutes for a YYYY-MM key (0 when nothing was tracked)."""
        return self.per_month_minutes.get(month_key, 0)
