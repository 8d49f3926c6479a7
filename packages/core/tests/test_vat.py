"""Tests for the VAT simulation."""

from datetime import date
from decimal import Decimal

import pytest

from faktura_core.config import FakturaConfig, ThresholdConfig
from faktura_core.models import CompanyInfo, Invoice
from faktura_core.vat import compute_vat_simulation, effective_vat_rate


NOW = date(2024, 6, 1)
TOLERANCE = Decimal("0.01")


@pytest.fixture
def bucket_invoices() -> list[Invoice]:
    """One invoice per VAT bucket plus a cancellation."""
    return [
        Invoice(invoice_date="2024-01-10", total=1000),
        Invoice(invoice_date="2024-02-10", total=100, client_vat_id="DE123456789"),
        Invoice(invoice_date="2024-03-10", total=500, client_vat_id="ATU12345678"),
        Invoice(invoice_date="2024-04-10", total=300, client_vat_exempt=True),
        Invoice(
            invoice_date="2024-05-10",
            total=200,
            tax_exemption_reason="Kein Ausweis der Umsatzsteuer gem. § 19 UStG",
        ),
        Invoice(invoice_date="2024-05-20", total=-400, notes="Storno"),
        Invoice(invoice_date="2023-12-10", total=9999),
    ]


class TestVatBuckets:
    """Tests for the bucket classification."""

    def test_buckets(self, bucket_invoices: list[Invoice]):
        """Positive invoices of the year are split into three buckets."""
        simulation = compute_vat_simulation(bucket_invoices, CompanyInfo(), now=NOW)

        assert simulation.taxable_net_ytd == Decimal("1100")
        assert simulation.reverse_charge_net_ytd == Decimal("500")
        assert simulation.non_taxable_net_ytd == Decimal("500")

    def test_reverse_charge_beats_exemption(self):
        """Reverse charge is checked before explicit exemptions."""
        invoices = [
            Invoice(
                invoice_date="2024-01-10",
                total=100,
                client_vat_id="FR12345678901",
                client_vat_exempt=True,
            )
        ]
        simulation = compute_vat_simulation(invoices, CompanyInfo(), now=NOW)
        assert simulation.reverse_charge_net_ytd == Decimal("100")
        assert simulation.non_taxable_net_ytd == Decimal("0")

    def test_negative_invoices_ignored(self, bucket_invoices: list[Invoice]):
        """Cancellations do not change any bucket."""
        without = [inv for inv in bucket_invoices if (inv.total or 0) >= 0]
        with_cancellation = compute_vat_simulation(bucket_invoices, CompanyInfo(), now=NOW)
        without_cancellation = compute_vat_simulation(without, CompanyInfo(), now=NOW)
        assert with_cancellation.model_dump() == without_cancellation.model_dump()

    def test_empty(self):
        """No invoices means no VAT."""
        simulation = compute_vat_simulation([], CompanyInfo(), now=NOW)
        assert simulation.taxable_net_ytd == Decimal("0")
        assert simulation.scenario_net_invariant.vat_due == Decimal("0")
        assert simulation.scenario_gross_invariant.net_after_vat == Decimal("0")


class TestVatScenarios:
    """Tests for the pricing scenarios."""

    def test_single_invoice_at_19_percent(self):
        """1000 EUR taxable at 19%."""
        invoices = [Invoice(invoice_date="2024-01-10", total=1000)]
        simulation = compute_vat_simulation(invoices, CompanyInfo(), now=NOW)

        assert simulation.rate == Decimal("19")
        assert simulation.scenario_net_invariant.vat_due == Decimal("190")
        assert simulation.scenario_net_invariant.gross_increase == Decimal("190")

        gross = simulation.scenario_gross_invariant
        assert abs(gross.net_after_vat - Decimal("840.34")) < TOLERANCE
        assert abs(gross.vat_due - Decimal("159.66")) < TOLERANCE
        assert abs(gross.revenue_delta - Decimal("-159.66")) < TOLERANCE

    def test_gross_scenario_consistency(self, bucket_invoices: list[Invoice]):
        """Net after VAT plus VAT equals the taxable net."""
        simulation = compute_vat_simulation(bucket_invoices, CompanyInfo(), now=NOW)
        gross = simulation.scenario_gross_invariant
        assert abs(gross.net_after_vat + gross.vat_due - simulation.taxable_net_ytd) < TOLERANCE
        assert gross.revenue_delta <= 0


class TestVatRate:
    """Tests for the effective VAT rate."""

    def test_override_wins(self):
        """An explicit override beats the company setting."""
        company = CompanyInfo(is_vat_enabled=True, default_tax_rate=Decimal("7"))
        assert effective_vat_rate(company, Decimal("16")) == Decimal("16")

    def test_company_rate_when_enabled(self):
        """The company rate applies when VAT is enabled."""
        company = CompanyInfo(is_vat_enabled=True, default_tax_rate=Decimal("7"))
        invoices = [Invoice(invoice_date="2024-01-10", total=1000)]
        simulation = compute_vat_simulation(invoices, company, now=NOW)
        assert simulation.rate == Decimal("7")
        assert simulation.scenario_net_invariant.vat_due == Decimal("70")

    def test_statutory_default(self):
        """Without VAT setup the statutory rate applies."""
        company = CompanyInfo(is_vat_enabled=False, default_tax_rate=Decimal("7"))
        assert effective_vat_rate(company) == Decimal("19")
        assert effective_vat_rate(None) == Decimal("19")

    def test_configured_default(self):
        """The statutory default comes from configuration."""
        config = FakturaConfig(thresholds=ThresholdConfig(default_vat_rate=Decimal("20")))
        assert effective_vat_rate(CompanyInfo(), config=config) == Decimal("20")

    def test_zero_rate(self):
        """A zero rate yields no VAT in either scenario."""
        invoices = [Invoice(invoice_date="2024-01-10", total=1000)]
        simulation = compute_vat_simulation(
            invoices, CompanyInfo(), now=NOW, rate_override=Decimal("0")
        )
        assert simulation.scenario_net_invariant.vat_due == Decimal("0")
        assert simulation.scenario_gross_invariant.net_after_vat == Decimal("1000")
