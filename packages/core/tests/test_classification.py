"""Tests for invoice classification."""

from datetime import date
from decimal import Decimal

import pytest

from faktura_core.classification import (
    display_status,
    is_explicitly_non_taxable,
    is_rectification_invoice,
    is_reverse_charge,
    iter_active,
    iter_active_in_year,
    net_amount,
    status_label,
    valid_actions,
)
from faktura_core.models import Invoice, InvoiceItem, InvoiceStatus, RectifiedBy


@pytest.fixture
def itemized_invoice() -> Invoice:
    """Create an invoice without an explicit total."""
    return Invoice(
        invoice_number="2024-001",
        invoice_date="2024-03-01",
        items=[
            InvoiceItem(name="Entwicklung", quantity=8, price=90),
            InvoiceItem(name="Reisekosten", quantity=1, price=Decimal("45.50")),
        ],
    )


class TestNetAmount:
    """Tests for net_amount."""

    def test_sum_of_items(self, itemized_invoice: Invoice):
        """Without a total the items are summed."""
        assert net_amount(itemized_invoice) == Decimal("765.50")

    def test_explicit_total_wins(self, itemized_invoice: Invoice):
        """An explicit total overrides the items."""
        invoice = itemized_invoice.model_copy(update={"total": Decimal("700")})
        assert net_amount(invoice) == Decimal("700")

    def test_empty_invoice(self):
        """No items and no total is zero."""
        assert net_amount(Invoice()) == Decimal("0")


class TestRectificationInvoice:
    """Tests for is_rectification_invoice."""

    def test_negative_total(self):
        """A negative total marks a correction."""
        assert is_rectification_invoice(Invoice(total=-100))

    def test_negative_item_price(self):
        """A negative line price marks a correction."""
        invoice = Invoice(items=[InvoiceItem(name="Gutschrift", quantity=1, price=-50)])
        assert is_rectification_invoice(invoice)

    def test_storno_in_notes(self):
        """Notes mentioning Storno mark a correction, case-insensitively."""
        assert is_rectification_invoice(Invoice(total=0, notes="STORNORECHNUNG zu 2024-001"))

    def test_storno_in_first_item(self):
        """The first item's name is checked as well."""
        invoice = Invoice(items=[InvoiceItem(name="Storno Beratung", quantity=1, price=0)])
        assert is_rectification_invoice(invoice)

    def test_regular_invoice(self, itemized_invoice: Invoice):
        """A plain positive invoice is not a correction."""
        assert not is_rectification_invoice(itemized_invoice)

    def test_superseded_invoice_is_not_a_correction(self):
        """Being rectified is a different property from being a rectification."""
        invoice = Invoice(total=500, rectification=RectifiedBy(invoice_number="2024-009"))
        assert invoice.is_superseded
        assert not is_rectification_invoice(invoice)


class TestStatusLabel:
    """Tests for status_label and display_status."""

    def test_rectified_first(self):
        """Superseded invoices are rectified even when paid."""
        invoice = Invoice(is_paid=True, rectification=RectifiedBy())
        assert status_label(invoice, date(2024, 5, 1)) == InvoiceStatus.RECTIFIED

    def test_paid_flag(self):
        """The paid flag beats a stored overdue status."""
        invoice = Invoice(is_paid=True, status=InvoiceStatus.OVERDUE)
        assert status_label(invoice, date(2024, 5, 1)) == InvoiceStatus.PAID

    def test_stored_status(self):
        """An explicit stored status is used before the due date."""
        invoice = Invoice(status=InvoiceStatus.UNPAID, due_date="2024-01-01")
        assert status_label(invoice, date(2024, 5, 1)) == InvoiceStatus.UNPAID

    def test_overdue_by_due_date(self):
        """A due date strictly before today means overdue."""
        invoice = Invoice(due_date="2024-04-30")
        assert status_label(invoice, date(2024, 5, 1)) == InvoiceStatus.OVERDUE

    def test_due_today_is_unpaid(self):
        """An invoice due today is not yet overdue."""
        invoice = Invoice(due_date="2024-05-01")
        assert status_label(invoice, date(2024, 5, 1)) == InvoiceStatus.UNPAID

    def test_display_status_for_correction(self):
        """Corrections always display as rectification."""
        invoice = Invoice(total=-100, is_paid=True)
        assert display_status(invoice, date(2024, 5, 1)) == "rectification"

    def test_display_status_value(self):
        """Other invoices display their status value."""
        invoice = Invoice(total=100, is_paid=True)
        assert display_status(invoice, date(2024, 5, 1)) == "paid"


class TestValidActions:
    """Tests for valid_actions."""

    def test_regular_invoice(self, itemized_invoice: Invoice):
        """All actions are allowed on a regular invoice."""
        actions = valid_actions(itemized_invoice)
        assert actions.mark_paid
        assert actions.rectify
        assert actions.download
        assert actions.delete

    def test_correction_is_locked(self):
        """Corrections cannot be paid or rectified again."""
        actions = valid_actions(Invoice(total=-100))
        assert not actions.mark_paid
        assert not actions.rectify
        assert actions.download
        assert actions.delete

    def test_superseded_is_locked(self):
        """Superseded invoices cannot be paid or rectified again."""
        actions = valid_actions(Invoice.model_validate({"total": 100, "isRectified": True}))
        assert not actions.mark_paid
        assert not actions.rectify


class TestVatPredicates:
    """Tests for the VAT classification predicates."""

    @pytest.mark.parametrize(
        "vat_id,expected",
        [
            ("ATU12345678", True),
            ("FR12345678901", True),
            ("DE123456789", False),
            ("de123456789", False),
            ("", False),
            ("   ", False),
            (None, False),
        ],
    )
    def test_reverse_charge(self, vat_id, expected):
        """Foreign VAT IDs indicate reverse charge."""
        assert is_reverse_charge(Invoice(client_vat_id=vat_id)) is expected

    def test_exempt_client(self):
        """Exempt clients are non-taxable."""
        assert is_explicitly_non_taxable(Invoice(client_vat_exempt=True))

    @pytest.mark.parametrize(
        "reason",
        [
            "Kein Ausweis der Umsatzsteuer gem. § 19 UStG",
            "Kleinunternehmerregelung",
            "Reverse Charge",
        ],
    )
    def test_exemption_reasons(self, reason):
        """Exemption reasons naming §19, Kleinunternehmer or reverse charge."""
        assert is_explicitly_non_taxable(Invoice(tax_exemption_reason=reason))

    def test_other_reason(self):
        """Other reasons do not make an invoice non-taxable."""
        assert not is_explicitly_non_taxable(Invoice(tax_exemption_reason="Rabatt"))


class TestIterActive:
    """Tests for the active-invoice iterators."""

    def test_skips_deleted(self):
        """Deleted invoices are never yielded."""
        invoices = [
            Invoice(invoice_number="1", total=100, invoice_date="2024-01-01"),
            Invoice(invoice_number="2", total=200, invoice_date="2024-01-01", is_deleted=True),
        ]
        entries = list(iter_active(invoices))
        assert [entry.invoice.invoice_number for entry in entries] == ["1"]
        assert entries[0].net == Decimal("100")

    def test_keeps_undated(self):
        """Undated invoices are yielded with a None date."""
        entries = list(iter_active([Invoice(total=100, invoice_date="garbage")]))
        assert entries[0].invoice_date is None

    def test_in_year(self):
        """Only invoices dated in the year are yielded."""
        invoices = [
            Invoice(total=100, invoice_date="2023-12-31"),
            Invoice(total=200, invoice_date="2024-01-01"),
            Invoice(total=300),
        ]
        entries = list(iter_active_in_year(invoices, 2024))
        assert [entry.net for entry in entries] == [Decimal("200")]
