"""Tests for the invoice input models."""

from datetime import date
from decimal import Decimal

import pytest

from faktura_core.models import (
    CompanyInfo,
    Customer,
    CustomerTimeIndex,
    FederalState,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    NotRectified,
    PersonalTaxSettings,
    RectifiedBy,
    parse_date,
    to_decimal,
)


class TestCoercionHelpers:
    """Tests for to_decimal and parse_date."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (100, Decimal("100")),
            (0.1, Decimal("0.1")),
            ("42.50", Decimal("42.50")),
            (Decimal("7"), Decimal("7")),
        ],
    )
    def test_to_decimal_numbers(self, value, expected):
        """Numbers and numeric strings become Decimal."""
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", [None, True, "abc", float("nan"), float("inf"), [1]])
    def test_to_decimal_rejects_non_numbers(self, value):
        """Non-numeric and non-finite values become None."""
        assert to_decimal(value) is None

    def test_parse_date_formats(self):
        """Dates, ISO strings and timestamps are accepted."""
        assert parse_date(date(2024, 3, 5)) == date(2024, 3, 5)
        assert parse_date("2024-03-05") == date(2024, 3, 5)
        assert parse_date("2024-03-05T10:00:00.000Z") == date(2024, 3, 5)

    @pytest.mark.parametrize("value", [None, "", "   ", "05.03.2024", "not a date", 20240305])
    def test_parse_date_invalid(self, value):
        """Unparseable values become None."""
        assert parse_date(value) is None


class TestInvoiceItem:
    """Tests for InvoiceItem."""

    def test_line_total(self):
        """Line total is quantity times price."""
        item = InvoiceItem(name="Beratung", quantity=10, price=95)
        assert item.line_total == Decimal("950")

    def test_missing_values_default_to_zero(self):
        """Missing or invalid numbers count as zero."""
        item = InvoiceItem.model_validate({"name": None, "quantity": "abc"})
        assert item.name == ""
        assert item.quantity == Decimal("0")
        assert item.price == Decimal("0")


class TestInvoice:
    """Tests for the Invoice record."""

    def test_minimal_invoice(self):
        """An empty record is a valid invoice."""
        invoice = Invoice()
        assert invoice.invoice_date is None
        assert invoice.total is None
        assert invoice.items == []
        assert invoice.is_deleted is False
        assert isinstance(invoice.rectification, NotRectified)

    def test_invalid_date_becomes_none(self):
        """Unparseable invoice dates do not fail validation."""
        invoice = Invoice(invoice_date="sometime in May", due_date="2024-13-45")
        assert invoice.invoice_date is None
        assert invoice.due_date is None

    def test_non_numeric_total_is_absent(self):
        """A non-numeric total is treated as missing."""
        invoice = Invoice(total="n/a")
        assert invoice.total is None

    def test_camel_case_deleted_flag(self):
        """Storage records use isDeleted."""
        invoice = Invoice.model_validate({"isDeleted": True})
        assert invoice.is_deleted is True

    def test_snake_case_deleted_flag(self):
        """The field name is accepted as well."""
        invoice = Invoice(is_deleted=True)
        assert invoice.is_deleted is True

    def test_unknown_status_dropped(self):
        """Unknown stored statuses are ignored."""
        invoice = Invoice(status="archived")
        assert invoice.status is None

    def test_known_status_kept(self):
        """Known statuses are parsed into the enum."""
        invoice = Invoice(status="overdue")
        assert invoice.status == InvoiceStatus.OVERDUE

    def test_invoice_number_as_text(self):
        """Numeric invoice numbers are kept as text."""
        assert Invoice(invoice_number=17).invoice_number == "17"

    def test_non_mapping_customer_dropped(self):
        """A customer that is not a mapping is ignored."""
        invoice = Invoice.model_validate({"customer": "Muster GmbH"})
        assert invoice.customer is None


class TestRectificationLink:
    """Tests for folding the legacy rectification flags."""

    def test_flag_only(self):
        """isRectified without a number links to an unknown invoice."""
        invoice = Invoice.model_validate({"isRectified": True})
        assert isinstance(invoice.rectification, RectifiedBy)
        assert invoice.rectification.invoice_number is None
        assert invoice.is_superseded

    def test_number_only(self):
        """rectifiedBy alone marks the invoice as superseded."""
        invoice = Invoice.model_validate({"rectifiedBy": "2024-007"})
        assert invoice.rectification == RectifiedBy(invoice_number="2024-007")
        assert invoice.is_superseded

    def test_false_flag(self):
        """A false flag and empty number leave the invoice unlinked."""
        invoice = Invoice.model_validate({"isRectified": False, "rectifiedBy": "  "})
        assert isinstance(invoice.rectification, NotRectified)
        assert not invoice.is_superseded

    def test_explicit_link(self):
        """The tagged link can be passed directly."""
        invoice = Invoice.model_validate(
            {"rectification": {"kind": "rectified_by", "invoice_number": "R-1"}}
        )
        assert invoice.rectification.invoice_number == "R-1"

    def test_rectified_status_supersedes(self):
        """A stored rectified status also counts as superseded."""
        invoice = Invoice(status=InvoiceStatus.RECTIFIED)
        assert invoice.is_superseded


class TestClientDisplayName:
    """Tests for the client display name fallback."""

    def test_customer_name(self):
        """Customer name wins."""
        invoice = Invoice(customer=Customer(name="Muster GmbH"), client_name="Legacy")
        assert invoice.client_display_name == "Muster GmbH"

    def test_legacy_client_name(self):
        """The legacy client name is used without a customer name."""
        invoice = Invoice(customer=Customer(id="c-1"), client_name="Legacy AG")
        assert invoice.client_display_name == "Legacy AG"

    def test_unknown(self):
        """Invoices without any name show as Unknown."""
        assert Invoice().client_display_name == "Unknown"


class TestCompanyInfo:
    """Tests for CompanyInfo."""

    def test_defaults(self):
        """VAT is disabled and the rate defaults to 19%."""
        company = CompanyInfo()
        assert company.is_vat_enabled is False
        assert company.default_tax_rate == Decimal("19")

    def test_missing_rate_falls_back(self):
        """An unusable rate falls back to 19%."""
        company = CompanyInfo.model_validate({"is_vat_enabled": True, "default_tax_rate": None})
        assert company.default_tax_rate == Decimal("19")


class TestPersonalTaxSettings:
    """Tests for PersonalTaxSettings."""

    def test_defaults(self):
        """All amounts default to zero."""
        settings = PersonalTaxSettings()
        assert settings.annual_deductible_expenses == Decimal("0")
        assert settings.joint_assessment is False
        assert settings.federal_state is None

    def test_camel_case_record(self):
        """Stored camelCase keys are parsed."""
        settings = PersonalTaxSettings.model_validate({
            "annualDeductibleExpenses": "5000",
            "jointAssessment": True,
            "partnerTaxableAnnualProjection": 30000,
            "isChurchMember": True,
            "federalState": "by",
            "prepaymentsYearToDate": 1200.5,
        })
        assert settings.annual_deductible_expenses == Decimal("5000")
        assert settings.joint_assessment is True
        assert settings.partner_taxable_annual_projection == Decimal("30000")
        assert settings.is_church_member is True
        assert settings.federal_state == FederalState.BY
        assert settings.prepayments_year_to_date == Decimal("1200.5")

    def test_unknown_state(self):
        """Unknown state codes are treated as absent."""
        settings = PersonalTaxSettings.model_validate({"federalState": "XX"})
        assert settings.federal_state is None


class TestCustomerTimeIndex:
    """Tests for CustomerTimeIndex."""

    def test_minutes_for(self):
        """Tracked minutes are looked up per month key."""
        index = CustomerTimeIndex.model_validate({
            "customerName": "Muster GmbH",
            "perMonthMinutes": {"2024-05": 90},
            "hourlyRate": "85",
        })
        assert index.minutes_for("2024-05") == 90
        assert index.minutes_for("2024-06") == 0
        assert index.hourly_rate == Decimal("85")
