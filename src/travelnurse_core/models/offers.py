"""Job offer and GSA per-diem models."""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field, field_validator

from .tax import USState


ZERO = Decimal("0")
DAYS_PER_WEEK = Decimal("7")


class JobOffer(BaseModel):
    """A travel nursing contract offer.

    Stipends are weekly amounts. The hourly portion is taxable; housing and
    meals stipends are tax-free when the nurse keeps a qualifying tax home.
    """
    id: UUID = Field(default_factory=uuid4)
    name: str
    facility_name: Optional[str] = None
    location: Optional[str] = None
    state: Optional[USState] = None

    hourly_rate: Decimal = ZERO
    hours_per_week: Decimal = Decimal("36")
    housing_stipend: Decimal = ZERO
    meals_stipend: Decimal = ZERO
    travel_reimbursement: Decimal = ZERO
    overtime_rate: Optional[Decimal] = None

    sign_on_bonus: Optional[Decimal] = None
    completion_bonus: Optional[Decimal] = None
    referral_bonus: Optional[Decimal] = None
    contract_weeks: int = 13

    @field_validator(
        "hourly_rate",
        "hours_per_week",
        "housing_stipend",
        "meals_stipend",
        "travel_reimbursement",
    )
    @classmethod
    def clamp_non_negative(cls, v: Decimal) -> Decimal:
        return max(ZERO, v)

    @field_validator("overtime_rate", "sign_on_bonus", "completion_bonus", "referral_bonus")
    @classmethod
    def clamp_optional_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is None:
            return None
        return max(ZERO, v)

    @field_validator("contract_weeks")
    @classmethod
    def clamp_contract_weeks(cls, v: int) -> int:
        return max(0, v)

    @computed_field
    @property
    def weekly_taxable(self) -> Decimal:
        return self.hourly_rate * self.hours_per_week

    @computed_field
    @property
    def weekly_stipends(self) -> Decimal:
        return self.housing_stipend + self.meals_stipend

    @computed_field
    @property
    def weekly_gross(self) -> Decimal:
        return self.weekly_taxable + self.weekly_stipends

    @property
    def daily_housing(self) -> Decimal:
        return self.housing_stipend / DAYS_PER_WEEK

    @property
    def daily_meals(self) -> Decimal:
        return self.meals_stipend / DAYS_PER_WEEK

    @computed_field
    @property
    def total_bonuses(self) -> Decimal:
        return (
            (self.sign_on_bonus or ZERO)
            + (self.completion_bonus or ZERO)
            + (self.referral_bonus or ZERO)
        )

    @computed_field
    @property
    def total_contract_value(self) -> Decimal:
        """Gross pay over the whole contract, plus travel and bonuses."""
        return (
            self.weekly_gross * self.contract_weeks
            + self.travel_reimbursement
            + self.total_bonuses
        )


class OfferComparisonResult(BaseModel):
    """Projected pay for one offer, ranked against the others compared with it.

    ``non_taxable_percentage`` and ``effective_tax_rate`` are 0-100 percentages.
    """
    offer: JobOffer
    weekly_gross: Decimal
    weekly_take_home: Decimal
    annual_gross: Decimal
    annual_take_home: Decimal
    blended_hourly_rate: Decimal
    non_taxable_percentage: Decimal
    effective_tax_rate: Decimal
    rank: int = Field(ge=1)


class GSAComplianceResult(BaseModel):
    """Daily stipend amounts checked against GSA per-diem ceilings."""
    is_compliant: bool
    housing_within_limit: bool
    meals_within_limit: bool
    daily_housing: Decimal
    daily_meals: Decimal
    gsa_daily_lodging: Decimal
    gsa_daily_meals: Decimal
    housing_excess: Decimal = Field(default=ZERO, ge=0)
    meals_excess: Decimal = Field(default=ZERO, ge=0)
