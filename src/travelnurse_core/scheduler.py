"""Quarterly estimated tax payment scheduling.

Self-employed travel nurses pay estimated tax four times a year. This module
splits a year's obligation into the four IRS installments, tracks what has
been paid and derives each installment's status and reminders.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional, Sequence

import structlog

from .calculator import to_decimal
from .config import ScheduleSettings
from .exceptions import ScheduleConflictError, ServiceUnavailableError, ValidationError
from .interfaces import PaymentStore, ReminderDelivery
from .models import (
    PaymentReminder,
    PaymentStatus,
    PaymentSummary,
    QuarterlyPayment,
    TaxObligationResult,
)

logger = structlog.get_logger()

ZERO = Decimal("0")
MIN_UNIT = Decimal("0.01")

# (month, day) of each installment; Q4 falls in the following calendar year
QUARTERLY_DUE_DATES = ((4, 15), (6, 15), (9, 15), (1, 15))


def quarterly_due_dates(tax_year: int) -> list[date]:
    """IRS estimated payment due dates for a tax year.

    Returns:
        [Apr 15, Jun 15, Sep 15] of ``tax_year`` and Jan 15 of the next year
    """
    dates = []
    for quarter, (month, day) in enumerate(QUARTERLY_DUE_DATES, start=1):
        year = tax_year + 1 if quarter == 4 else tax_year
        dates.append(date(year, month, day))
    return dates


def split_evenly(amount: Decimal, parts: int = 4) -> list[Decimal]:
    """Split ``amount`` into ``parts`` shares that sum back to it exactly.

    Shares differ by at most one unit of the amount's precision (a cent for
    ordinary money values); leftover units go to the earliest shares.
    Negative amounts are treated as zero.

    Example:
        >>> split_evenly(Decimal("100.01"))
        [Decimal('25.01'), Decimal('25.00'), Decimal('25.00'), Decimal('25.00')]
    """
    if parts <= 0:
        raise ValidationError(
            "Cannot split into fewer than one part",
            field="parts",
            value=parts,
            constraint="parts >= 1",
        )
    amount = max(ZERO, to_decimal(amount))
    exponent = amount.as_tuple().exponent
    unit = min(MIN_UNIT, Decimal(1).scaleb(exponent))
    units = int(amount / unit)
    base, remainder = divmod(units, parts)
    return [
        ((base + 1) if index < remainder else base) * unit
        for index in range(parts)
    ]


def payment_status(
    payment: QuarterlyPayment,
    today: date,
    due_soon_days: int = 30,
) -> PaymentStatus:
    """Derive a payment's status on ``today``.

    Paid wins over everything; otherwise a payment is overdue once today is
    past the due date, due soon when the due date is at most
    ``due_soon_days`` away, and upcoming beyond that.
    """
    if payment.is_paid:
        return PaymentStatus.PAID
    if today > payment.due_date:
        return PaymentStatus.OVERDUE
    if payment.days_until_due(today) <= due_soon_days:
        return PaymentStatus.DUE_SOON
    return PaymentStatus.UPCOMING

def _split_portions(obligation: TaxObligationResult) -> tuple[list[Decimal], list[Decimal]]:
    """Quarterly federal (income plus self-employment) and state shares."""
    federal = split_evenly(obligation.federal_tax + obligation.self_employment_tax)
    state = split_evenly(obligation.state_tax)
    return federal, state


class QuarterlyPaymentScheduler:
    """
    Create and maintain the four quarterly payment records of a tax year.

    Records are generated once per year from a TaxObligationResult and
    persisted through the PaymentStore. After that they only change through
    ``record_payment`` and ``refresh_estimates``; a year with records can
    never be regenerated.
    """

    def __init__(
        self,
        store: PaymentStore,
        settings: Optional[ScheduleSettings] = None,
        reminders: Optional[ReminderDelivery] = None,
    ):
        """
        Initialize scheduler.

        Args:
            store: Persistence for payment records
            settings: Schedule settings (default: loaded from environment)
            reminders: Optional reminder delivery collaborator
        """
        self.store = store
        self.settings = settings or ScheduleSettings()
        self.reminders = reminders

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate(self, tax_year: int, obligation: TaxObligationResult) -> list[QuarterlyPayment]:
        """
        Create the year's four payment records.

        The federal and state amounts are each split evenly across the
        quarters, and a quarter's estimate is the sum of its two portions.
        The federal portion covers income tax and self-employment tax, both
        of which are paid to the IRS.

        Raises:
            ScheduleConflictError: If the year already has records
        """
        existing = self.store.list_payments(tax_year)
        if existing:
            paid_count = sum(1 for p in existing if p.has_recorded_payment)
            raise ScheduleConflictError(
                f"Quarterly payments for {tax_year} already exist",
                tax_year=tax_year,
                existing_count=len(existing),
                paid_count=paid_count,
            )

        federal, state = _split_portions(obligation)

        payments = []
        for index, due_date in enumerate(quarterly_due_dates(tax_year)):
            payment = QuarterlyPayment(
                tax_year=tax_year,
                quarter=index + 1,
                due_date=due_date,
                estimated_amount=federal[index] + state[index],
                federal_portion=federal[index],
                state_portion=state[index],
                state=obligation.state,
            )
            self.store.save_payment(payment)
            payments.append(payment)

        logger.info(
            "quarterly_payments_generated",
            tax_year=tax_year,
            total_tax=str(obligation.total_tax),
            method=obligation.method.value,
        )
        return payments

    def get_or_create(self, tax_year: int, obligation: TaxObligationResult) -> list[QuarterlyPayment]:
        """Return the year's records, generating them on first access."""
        existing = self.store.list_payments(tax_year)
        if existing:
            return existing
        return self.generate(tax_year, obligation)

    def refresh_estimates(
        self,
        tax_year: int,
        obligation: TaxObligationResult,
        today: Optional[date] = None,
    ) -> list[QuarterlyPayment]:
        """
        Re-apportion a new obligation onto quarters with nothing recorded.

        Quarters with any money recorded (or marked paid) keep their
        estimates. Reminders are rescheduled for the refreshed quarters.
        """
        payments = self.store.list_payments(tax_year)
        if not payments:
            return self.generate(tax_year, obligation)

        federal, state = _split_portions(obligation)

        refreshed = []
        for payment in payments:
            if payment.has_recorded_payment:
                continue
            index = payment.quarter - 1
            payment.update_estimate(federal[index] + state[index], federal[index], state[index])
            self.store.save_payment(payment)
            refreshed.append(payment)

        logger.info(
            "quarterly_estimates_refreshed",
            tax_year=tax_year,
            refreshed=[p.quarter_name for p in refreshed],
        )
        if refreshed and self.reminders is not None:
            self.schedule_reminders(refreshed, today or date.today())
        return payments

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def record_payment(
        self,
        payment: QuarterlyPayment,
        amount: Decimal,
        notes: Optional[str] = None,
        paid_at: Optional[datetime] = None,
        mark_paid: bool = False,
    ) -> QuarterlyPayment:
        """
        Record money paid against a quarter.

        Amounts accumulate. Negative amounts are recorded as zero. When the
        quarter becomes paid its outstanding reminders are cancelled.
        """
        amount = to_decimal(amount)
        if amount < 0:
            logger.warning(
                "negative_payment_clamped",
                payment_id=str(payment.id),
                amount=str(amount),
            )
            amount = ZERO

        was_paid = payment.is_paid
        payment.record_payment(
            amount,
            paid_at=paid_at or datetime.now(timezone.utc),
            notes=notes,
            mark_paid=mark_paid,
        )
        self.store.save_payment(payment)

        logger.info(
            "quarterly_payment_recorded",
            tax_year=payment.tax_year,
            quarter=payment.quarter,
            amount=str(amount),
            paid_amount=str(payment.paid_amount),
            is_paid=payment.is_paid,
        )

        if payment.is_paid and not was_paid:
            self.cancel_reminders(payment)
        return payment

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def status(self, payment: QuarterlyPayment, today: date) -> PaymentStatus:
        return payment_status(payment, today, self.settings.due_soon_days)

    def unpaid(self, tax_year: int) -> list[QuarterlyPayment]:
        return [p for p in self.store.list_payments(tax_year) if not p.is_paid]

    def overdue(self, tax_year: int, today: date) -> list[QuarterlyPayment]:
        return [
            p for p in self.store.list_payments(tax_year)
            if self.status(p, today) == PaymentStatus.OVERDUE
        ]

    def next_upcoming(self, tax_year: int, today: date) -> Optional[QuarterlyPayment]:
        """Earliest unpaid quarter that is not yet past due."""
        candidates = [p for p in self.unpaid(tax_year) if p.due_date >= today]
        if not candidates:
            return None
        return min(candidates, key=lambda p: p.due_date)

    def summary(self, tax_year: int, today: date) -> PaymentSummary:
        payments = self.store.list_payments(tax_year)
        return PaymentSummary(
            tax_year=tax_year,
            total_estimated=sum((p.estimated_amount for p in payments), ZERO),
            total_paid=sum((p.paid_amount for p in payments), ZERO),
            quarters_paid=sum(1 for p in payments if p.is_paid),
            quarters_overdue=sum(
                1 for p in payments if self.status(p, today) == PaymentStatus.OVERDUE
            ),
            payments=payments,
        )

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    def plan_reminders(
        self,
        payments: Iterable[QuarterlyPayment],
        today: date,
    ) -> list[PaymentReminder]:
        """Reminders for unpaid quarters that still fall after ``today``."""
        planned = []
        for payment in payments:
            if payment.is_paid:
                continue
            for offset in self.settings.reminder_offsets:
                remind_on = payment.due_date - timedelta(days=offset)
                if remind_on > today:
                    planned.append(
                        PaymentReminder(
                            payment_id=payment.id,
                            tax_year=payment.tax_year,
                            quarter=payment.quarter,
                            offset_days=offset,
                            remind_on=remind_on,
                        )
                    )
        return planned

    def schedule_reminders(
        self,
        payments: Sequence[QuarterlyPayment],
        today: date,
    ) -> list[PaymentReminder]:
        """
        Hand planned reminders to the delivery collaborator.

        Raises:
            ServiceUnavailableError: If no reminder delivery is configured
        """
        if self.reminders is None:
            raise ServiceUnavailableError(
                "No reminder delivery configured",
                service="reminder_delivery",
                operation="schedule_reminders",
            )
        by_id = {p.id: p for p in payments}
        planned = self.plan_reminders(payments, today)
        for reminder in planned:
            self.reminders.schedule(reminder, by_id[reminder.payment_id])
        logger.info("payment_reminders_scheduled", count=len(planned))
        return planned

    def reminder_ids(self, payment: QuarterlyPayment) -> list[str]:
        return [
            f"{payment.id}-reminder-{offset}"
            for offset in self.settings.reminder_offsets
        ]

    def cancel_reminders(self, payment: QuarterlyPayment) -> None:
        if self.reminders is None:
            return
        self.reminders.cancel(self.reminder_ids(payment))
        logger.debug("payment_reminders_cancelled", payment_id=str(payment.id))
