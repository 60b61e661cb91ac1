"""Data models for travelnurse-core.

This package provides the value objects shared by every calculator:
- Tax brackets, obligation inputs and results (tax.py)
- Quarterly estimated payments and reminders (payments.py)
- Tax home compliance checklist and reports (compliance.py)
- Job offers and GSA per-diem checks (offers.py)
- Calculation audit trail (audit.py)
"""

from travelnurse_core.models.audit import AuditEntry

from travelnurse_core.models.tax import (
    # Enumerations
    FilingStatus,
    CalculationMethod,
    USState,
    NO_INCOME_TAX_STATES,
    # Brackets
    TaxBracket,
    # Inputs
    IncomeTotals,
    TaxObligationInput,
    StateIncomeAllocation,
    # Results
    SelfEmploymentTaxBreakdown,
    TaxObligationResult,
    MultiStateTaxResult,
)

from travelnurse_core.models.payments import (
    PaymentStatus,
    QuarterlyPayment,
    PaymentSummary,
    PaymentReminder,
)

from travelnurse_core.models.compliance import (
    ChecklistCategory,
    ComplianceItemStatus,
    ComplianceLevel,
    ComplianceChecklistItem,
    TaxHomeCompliance,
    ComplianceReport,
    default_checklist_items,
)

from travelnurse_core.models.offers import (
    JobOffer,
    OfferComparisonResult,
    GSAComplianceResult,
)

__all__ = [
    "AuditEntry",
    # Tax
    "FilingStatus",
    "CalculationMethod",
    "USState",
    "NO_INCOME_TAX_STATES",
    "TaxBracket",
    "IncomeTotals",
    "TaxObligationInput",
    "StateIncomeAllocation",
    "SelfEmploymentTaxBreakdown",
    "TaxObligationResult",
    "MultiStateTaxResult",
    # Payments
    "PaymentStatus",
    "QuarterlyPayment",
    "PaymentSummary",
    "PaymentReminder",
    # Compliance
    "ChecklistCategory",
    "ComplianceItemStatus",
    "ComplianceLevel",
    "ComplianceChecklistItem",
    "TaxHomeCompliance",
    "ComplianceReport",
    "default_checklist_items",
    # Offers
    "JobOffer",
    "OfferComparisonResult",
    "GSAComplianceResult",
]
