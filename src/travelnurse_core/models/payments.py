"""Quarterly estimated tax payment models."""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field, field_validator

from .tax import USState


ZERO = Decimal("0")


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


class PaymentStatus(str, Enum):
    """Derived status of a quarterly payment.

    Never stored: always computed from ``is_paid``, the due date and today.
    """
    PAID = "paid"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"


class QuarterlyPayment(BaseModel):
    """A quarterly estimated tax payment record.

    Created by the scheduler for a tax year and afterwards changed only by
    ``record_payment``.
    """
    id: UUID = Field(default_factory=uuid4)
    tax_year: int
    quarter: int = Field(ge=1, le=4)
    due_date: date

    estimated_amount: Decimal = Field(default=ZERO, ge=0)
    paid_amount: Decimal = Field(default=ZERO, ge=0)
    paid_date: Optional[datetime] = None
    marked_paid: bool = False

    federal_portion: Decimal = Field(default=ZERO, ge=0)
    state_portion: Decimal = Field(default=ZERO, ge=0)
    state: Optional[USState] = None
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @computed_field
    @property
    def is_paid(self) -> bool:
        """Paid once enough money is recorded, or when explicitly marked."""
        return self.marked_paid or self.paid_amount >= self.estimated_amount

    @computed_field
    @property
    def remaining_amount(self) -> Decimal:
        return max(ZERO, self.estimated_amount - self.paid_amount)

    @property
    def quarter_name(self) -> str:
        return f"Q{self.quarter}"

    @property
    def full_name(self) -> str:
        return f"Q{self.quarter} {self.tax_year}"

    @property
    def has_recorded_payment(self) -> bool:
        return self.paid_amount > 0 or self.marked_paid

    def days_until_due(self, today: date) -> int:
        """Days from ``today`` to the due date (negative once past due)."""
        return (self.due_date - today).days

    def record_payment(
        self,
        amount: Decimal,
        *,
        paid_at: datetime,
        notes: Optional[str] = None,
        mark_paid: bool = False,
    ) -> None:
        """Add ``amount`` to the running paid total.

        Recording is cumulative: a second call adds to, never replaces, the
        amount already paid.
        """
        self.paid_amount = self.paid_amount + max(ZERO, amount)
        self.paid_date = paid_at
        if notes is not None:
            self.notes = notes
        if mark_paid:
            self.marked_paid = True
        self.updated_at = paid_at

    def update_estimate(self, amount: Decimal, federal: Decimal, state: Decimal) -> None:
        """Replace the estimated amounts of a quarter with nothing paid yet."""
        self.estimated_amount = amount
        self.federal_portion = federal
        self.state_portion = state
        self.updated_at = _utc_now()


class PaymentSummary(BaseModel):
    """Aggregate over one tax year's quarterly payments."""
    tax_year: int
    total_estimated: Decimal = ZERO
    total_paid: Decimal = ZERO
    quarters_paid: int = 0
    quarters_overdue: int = 0
    payments: list[QuarterlyPayment] = Field(default_factory=list)

    @computed_field
    @property
    def remaining(self) -> Decimal:
        return max(ZERO, self.total_estimated - self.total_paid)

    @computed_field
    @property
    def progress(self) -> float:
        """Fraction of the estimate paid, clamped to [0, 1]."""
        if self.total_estimated <= 0:
            return 0.0
        fraction = float(self.total_paid / self.total_estimated)
        return min(1.0, max(0.0, fraction))

    @property
    def is_fully_paid(self) -> bool:
        return bool(self.payments) and self.quarters_paid == len(self.payments)

    @property
    def has_overdue(self) -> bool:
        return self.quarters_overdue > 0


class PaymentReminder(BaseModel):
    """A reminder the delivery collaborator should schedule."""
    payment_id: UUID
    tax_year: int
    quarter: int
    offset_days: int
    remind_on: date

    @field_validator("offset_days")
    @classmethod
    def validate_offset(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Reminder offset must be a positive number of days")
        return v

    @property
    def reminder_id(self) -> str:
        """Stable identifier, so a reminder can be cancelled later."""
        return f"{self.payment_id}-reminder-{self.offset_days}"
