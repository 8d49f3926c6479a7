"""Faktura Core - Invoice statistics and German tax estimates."""

__version__ = "0.1.0"

from .aggregation import compute_basic_metrics
from .dashboard import compute_dashboard
from .income_tax import IncomeTaxEstimator, estimate_income_taxes
from .kleinunternehmer import compute_kleinunternehmer_monitor
from .models import Invoice, PersonalTaxSettings, CompanyInfo
from .revenue import compute_refined_projection, compute_revenue_metrics
from .vat import compute_vat_simulation

__all__ = [
    "Invoice",
    "CompanyInfo",
    "PersonalTaxSettings",
    "compute_basic_metrics",
    "compute_revenue_metrics",
    "compute_refined_projection",
    "compute_vat_simulation",
    "compute_kleinunternehmer_monitor",
    "IncomeTaxEstimator",
    "estimate_income_taxes",
    "compute_dashboard",
]
