"""Data models for faktura-core.

- Input records supplied by the storage layer (invoice.py)
- Result structures consumed by the presentation layer (metrics.py)
"""

from faktura_core.models.invoice import (
    # Enumerations
    InvoiceStatus,
    FederalState,
    # Rectification link
    NotRectified,
    RectifiedBy,
    RectificationLink,
    # Records
    InvoiceItem,
    Customer,
    Invoice,
    CompanyInfo,
    PersonalTaxSettings,
    CustomerTimeIndex,
    # Helpers
    parse_date,
    to_decimal,
)
from faktura_core.models.metrics import (
    ProjectionStrategy,
    MonthSource,
    InvoiceActions,
    MonthlyTotal,
    ClientTotal,
    TopClient,
    ClientMonthlyBreakdown,
    BasicMetrics,
    RevenueMetrics,
    MonthProjection,
    RefinedProjection,
    RoiItem,
    NetInvariantScenario,
    GrossInvariantScenario,
    VatSimulation,
    KleinunternehmerMonitor,
    AuditEntry,
    IncomeTaxEstimate,
    DashboardSnapshot,
)

__all__ = [
    # Inputs
    "InvoiceStatus",
    "FederalState",
    "NotRectified",
    "RectifiedBy",
    "RectificationLink",
    "InvoiceItem",
    "Customer",
    "Invoice",
    "CompanyInfo",
    "PersonalTaxSettings",
    "CustomerTimeIndex",
    "parse_date",
    "to_decimal",
    # Results
    "ProjectionStrategy",
    "MonthSource",
    "InvoiceActions",
    "MonthlyTotal",
    "ClientTotal",
    "TopClient",
    "ClientMonthlyBreakdown",
    "BasicMetrics",
    "RevenueMetrics",
    "MonthProjection",
    "RefinedProjection",
    "RoiItem",
    "NetInvariantScenario",
    "GrossInvariantScenario",
    "VatSimulation",
    "KleinunternehmerMonitor",
    "AuditEntry",
    "IncomeTaxEstimate",
    "DashboardSnapshot",
]
