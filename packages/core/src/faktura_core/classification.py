"""Invoice classification.

Derives amounts, rectification status, display status and permitted
actions from raw invoice fields. Nothing here is stored back on the
invoice; every value is recomputed from the record.

Two distinct notions are involved:

- A *rectification invoice* IS a correction (negative total, negative
  line price, or "storno" in its notes or first line).
- A *superseded* invoice HAS BEEN corrected by another invoice
  (``Invoice.rectification`` or a stored ``rectified`` status).
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, NamedTuple, Optional

from .dates import DateLike, as_date, resolve_now
from .models import Invoice, InvoiceActions, InvoiceStatus

RECTIFICATION_MARKER = "storno"
REVERSE_CHARGE_HOME_PREFIX = "DE"
NON_TAXABLE_MARKERS = ("§ 19", "kleinunternehmer", "reverse")


def net_amount(invoice: Invoice) -> Decimal:
    """Net amount of an invoice.

    The explicit total wins; otherwise the sum of quantity * price.
    """
    if invoice.total is not None:
        return invoice.total
    return sum((item.line_total for item in invoice.items), Decimal("0"))


def is_rectification_invoice(invoice: Invoice) -> bool:
    """True when the invoice is itself a cancellation/correction."""
    if invoice.total is not None and invoice.total < 0:
        return True
    if any(item.price < 0 for item in invoice.items):
        return True
    if RECTIFICATION_MARKER in (invoice.notes or "").lower():
        return True
    first_name = invoice.items[0].name if invoice.items else ""
    return RECTIFICATION_MARKER in first_name.lower()


def status_label(invoice: Invoice, today: Optional[DateLike] = None) -> InvoiceStatus:
    """Stored or derived status.

    Precedence: rectified, paid flag, explicit stored status, overdue by
    due date (strictly before today), unpaid.
    """
    if invoice.is_superseded:
        return InvoiceStatus.RECTIFIED
    if invoice.is_paid:
        return InvoiceStatus.PAID
    if invoice.status in (InvoiceStatus.UNPAID, InvoiceStatus.PAID, InvoiceStatus.OVERDUE):
        return invoice.status
    if invoice.due_date is not None:
        reference = as_date(today) if today is not None else as_date(resolve_now())
        if invoice.due_date < reference:
            return InvoiceStatus.OVERDUE
    return InvoiceStatus.UNPAID


def display_status(invoice: Invoice, today: Optional[DateLike] = None) -> str:
    """Status shown in invoice lists; corrections show as 'rectification'."""
    if is_rectification_invoice(invoice):
        return "rectification"
    return status_label(invoice, today).value


def valid_actions(invoice: Invoice) -> InvoiceActions:
    """Actions permitted for an invoice.

    Corrections and superseded invoices can neither be marked paid nor
    rectified again. Download and delete are always allowed.
    """
    locked = is_rectification_invoice(invoice) or invoice.is_superseded
    return InvoiceActions(
        mark_paid=not locked,
        download=True,
        rectify=not locked,
        delete=True,
    )


def is_reverse_charge(invoice: Invoice) -> bool:
    """EU B2B heuristic: a client VAT ID that is not German."""
    vat_id = (invoice.client_vat_id or "").strip()
    if not vat_id:
        return False
    return not vat_id.upper().startswith(REVERSE_CHARGE_HOME_PREFIX)


def is_explicitly_non_taxable(invoice: Invoice) -> bool:
    """Exempt client, or an exemption reason naming §19/Kleinunternehmer/reverse charge."""
    if invoice.client_vat_exempt:
        return True
    reason = (invoice.tax_exemption_reason or "").lower()
    return any(marker in reason for marker in NON_TAXABLE_MARKERS)


class ActiveInvoice(NamedTuple):
    """A non-deleted invoice with its parsed date and net amount."""
    invoice: Invoice
    invoice_date: Optional[date]
    net: Decimal


def iter_active(invoices: Iterable[Invoice]) -> Iterator[ActiveInvoice]:
    """Yield every non-deleted invoice with its date and net amount."""
    for invoice in invoices:
        if invoice.is_deleted:
            continue
        yield ActiveInvoice(invoice, invoice.invoice_date, net_amount(invoice))


def iter_active_in_year(invoices: Iterable[Invoice], year: int) -> Iterator[ActiveInvoice]:
    """Yield non-deleted invoices dated in ``year``."""
    for entry in iter_active(invoices):
        if entry.invoice_date is not None and entry.invoice_date.year == year:
            yield entry
