"""Collaborator interfaces for the TravelNurse tax engine.

The engine never reads ambient state or touches a database. Everything it
needs from the outside world (year-to-date income, the declared tax home,
persistence and reminder delivery) is reached through the protocols below.
They use structural subtyping via typing.Protocol: any class with matching
method signatures is compatible, no inheritance required.

Example Usage:
    ```python
    from travelnurse_core.interfaces import IncomeSource
    from travelnurse_core.models import IncomeTotals

    class LedgerIncomeSource:
        def totals_for_year(self, tax_year: int) -> IncomeTotals:
            return IncomeTotals(
                tax_year=tax_year,
                gross_income=ledger.income(tax_year),
                deductions=ledger.deductible_expenses(tax_year),
            )

    assert isinstance(LedgerIncomeSource(), IncomeSource)
    ```
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, runtime_checkable
from uuid import UUID

from .models import (
    IncomeTotals,
    PaymentReminder,
    QuarterlyPayment,
    TaxHomeCompliance,
    USState,
)


# =============================================================================
# INPUT SOURCES
# =============================================================================

@runtime_checkable
class IncomeSource(Protocol):
    """Supplies year-to-date income and deductible expense totals."""

    def totals_for_year(self, tax_year: int) -> IncomeTotals:
        """Return gross income and deductions recorded for ``tax_year``."""
        ...


@runtime_checkable
class TaxHomeStateSource(Protocol):
    """Supplies the user's declared tax home state."""

    def tax_home_state(self) -> Optional[USState]:
        """Return the declared state, or None when the user has not set one."""
        ...


# =============================================================================
# PERSISTENCE
# =============================================================================

@runtime_checkable
class PaymentStore(Protocol):
    """Persists quarterly payment records.

    Implementations own storage mechanics; the scheduler only reads a year's
    records and writes back the ones it changed.
    """

    def list_payments(self, tax_year: int) -> list[QuarterlyPayment]:
        """Return the year's records ordered by quarter (empty if none)."""
        ...

    def save_payment(self, payment: QuarterlyPayment) -> None:
        """Insert or replace one record, keyed by ``payment.id``."""
        ...


@runtime_checkable
class ComplianceStore(Protocol):
    """Persists one TaxHomeCompliance record per tax year."""

    def get_compliance(self, tax_year: int) -> Optional[TaxHomeCompliance]:
        ...

    def save_compliance(self, record: TaxHomeCompliance) -> None:
        ...


# =============================================================================
# REMINDERS
# =============================================================================

@runtime_checkable
class ReminderDelivery(Protocol):
    """Schedules and cancels payment reminders (push, email, ...)."""

    def schedule(self, reminder: PaymentReminder, payment: QuarterlyPayment) -> None:
        """Schedule ``reminder`` for delivery on ``reminder.remind_on``."""
        ...

    def cancel(self, reminder_ids: Iterable[str]) -> None:
        """Cancel previously scheduled reminders; unknown ids are ignored."""
        ...


# =============================================================================
# REFERENCE IMPLEMENTATION
# =============================================================================

class InMemoryStore:
    """Dict-backed PaymentStore and ComplianceStore.

    Holds records for the lifetime of the process. Useful for tests and for
    callers that persist snapshots themselves.
    """

    def __init__(self) -> None:
        self._payments: dict[UUID, QuarterlyPayment] = {}
        self._compliance: dict[int, TaxHomeCompliance] = {}

    def list_payments(self, tax_year: int) -> list[QuarterlyPayment]:
        payments = [p for p in self._payments.values() if p.tax_year == tax_year]
        return sorted(payments, key=lambda p: p.quarter)

    def save_payment(self, payment: QuarterlyPayment) -> None:
        self._payments[payment.id] = payment

    def get_compliance(self, tax_year: int) -> Optional[TaxHomeCompliance]:
        return self._compliance.get(tax_year)

    def save_compliance(self, record: TaxHomeCompliance) -> None:
        self._compliance[record.tax_year] = record


__all__ = [
    "IncomeSource",
    "TaxHomeStateSource",
    "PaymentStore",
    "ComplianceStore",
    "ReminderDelivery",
    "InMemoryStore",
]
