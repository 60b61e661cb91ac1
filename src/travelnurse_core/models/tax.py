"""Tax calculation data models.

This module implements the inputs and outputs of the progressive tax
calculators: bracket tables, obligation inputs, self-employment breakdowns
and the combined obligation result consumed by the quarterly scheduler.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from .audit import AuditEntry


ZERO = Decimal("0")


# =============================================================================
# ENUMERATIONS
# =============================================================================

class FilingStatus(str, Enum):
    """IRS filing status options."""
    SINGLE = "single"
    MARRIED_FILING_JOINTLY = "married_filing_jointly"
    MARRIED_FILING_SEPARATELY = "married_filing_separately"
    HEAD_OF_HOUSEHOLD = "head_of_household"


class CalculationMethod(str, Enum):
    """How a tax obligation was computed."""
    PROGRESSIVE = "progressive"
    FLAT_RATE_FALLBACK = "flat_rate_fallback"


class USState(str, Enum):
    """US states and DC by postal code."""
    AL = "AL"
    AK = "AK"
    AZ = "AZ"
    AR = "AR"
    CA = "CA"
    CO = "CO"
    CT = "CT"
    DE = "DE"
    DC = "DC"
    FL = "FL"
    GA = "GA"
    HI = "HI"
    ID = "ID"
    IL = "IL"
    IN = "IN"
    IA = "IA"
    KS = "KS"
    KY = "KY"
    LA = "LA"
    ME = "ME"
    MD = "MD"
    MA = "MA"
    MI = "MI"
    MN = "MN"
    MS = "MS"
    MO = "MO"
    MT = "MT"
    NE = "NE"
    NV = "NV"
    NH = "NH"
    NJ = "NJ"
    NM = "NM"
    NY = "NY"
    NC = "NC"
    ND = "ND"
    OH = "OH"
    OK = "OK"
    OR = "OR"
    PA = "PA"
    RI = "RI"
    SC = "SC"
    SD = "SD"
    TN = "TN"
    TX = "TX"
    UT = "UT"
    VT = "VT"
    VA = "VA"
    WA = "WA"
    WV = "WV"
    WI = "WI"
    WY = "WY"

    @property
    def has_no_income_tax(self) -> bool:
        """True for states that levy no tax on wage income."""
        return self in NO_INCOME_TAX_STATES


# NH and TN only tax interest/dividends (TN repealed even that), not wages.
NO_INCOME_TAX_STATES = frozenset({
    USState.AK,
    USState.FL,
    USState.NV,
    USState.NH,
    USState.SD,
    USState.TN,
    USState.TX,
    USState.WA,
    USState.WY,
})


# =============================================================================
# BRACKETS
# =============================================================================

class TaxBracket(BaseModel):
    """One slice of a progressive schedule.

    ``upper_threshold`` is the top of the slice; ``None`` marks the final,
    unbounded bracket.
    """
    upper_threshold: Optional[Decimal] = Field(default=None, gt=0)
    marginal_rate: Decimal = Field(ge=0, lt=1)

    @property
    def is_unbounded(self) -> bool:
        return self.upper_threshold is None


# =============================================================================
# INPUTS
# =============================================================================

class IncomeTotals(BaseModel):
    """Year-to-date income and deductible totals from the income source."""
    tax_year: int
    gross_income: Decimal = ZERO
    deductions: Decimal = ZERO

    @field_validator("gross_income", "deductions")
    @classmethod
    def clamp_non_negative(cls, v: Decimal) -> Decimal:
        """Negative totals are caller bugs; treat them as zero."""
        return max(ZERO, v)


class TaxObligationInput(BaseModel):
    """Raw figures for one tax-year obligation calculation."""
    gross_income: Decimal = ZERO
    deductions: Decimal = ZERO
    state: Optional[USState] = None
    is_self_employed: bool = True
    tax_year: int = Field(default=2025, ge=2000, le=2100)
    filing_status: FilingStatus = FilingStatus.SINGLE

    @field_validator("gross_income", "deductions")
    @classmethod
    def clamp_non_negative(cls, v: Decimal) -> Decimal:
        """Negative inputs are normalized to zero rather than rejected."""
        return max(ZERO, v)

    @computed_field
    @property
    def taxable_income(self) -> Decimal:
        """Gross income less deductions, never below zero."""
        return max(ZERO, self.gross_income - self.deductions)


# =============================================================================
# RESULTS
# =============================================================================

class SelfEmploymentTaxBreakdown(BaseModel):
    """Self-employment tax split into its statutory components.

    Social Security (12.4%) applies up to the wage base; Medicare (2.9%)
    applies to all net earnings; additional Medicare (0.9%) applies above
    the high-earner threshold.
    """
    net_earnings: Decimal = ZERO
    social_security_tax: Decimal = ZERO
    medicare_tax: Decimal = ZERO
    additional_medicare_tax: Decimal = ZERO

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.social_security_tax + self.medicare_tax + self.additional_medicare_tax


class TaxObligationResult(BaseModel):
    """Combined federal, state and self-employment tax for one year.

    ``total_tax`` always equals the sum of the three components. Check
    ``method`` (or ``is_fallback``) to tell a true progressive result from
    the flat-rate fallback estimate. The ``self_employment`` breakdown is
    only itemized for progressive results.
    """
    tax_year: int
    filing_status: FilingStatus = FilingStatus.SINGLE
    state: Optional[USState] = None

    gross_income: Decimal = ZERO
    deductions: Decimal = ZERO
    taxable_income: Decimal = ZERO

    federal_tax: Decimal = Field(default=ZERO, ge=0)
    state_tax: Decimal = Field(default=ZERO, ge=0)
    self_employment_tax: Decimal = Field(default=ZERO, ge=0)
    self_employment: SelfEmploymentTaxBreakdown = Field(
        default_factory=SelfEmploymentTaxBreakdown
    )
    federal_marginal_rate: Decimal = ZERO

    method: CalculationMethod = CalculationMethod.PROGRESSIVE
    audit_log: list[AuditEntry] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def total_tax(self) -> Decimal:
        return self.federal_tax + self.state_tax + self.self_employment_tax

    @computed_field
    @property
    def effective_tax_rate(self) -> Decimal:
        """Total tax as a fraction of gross income (0 when there is no income)."""
        if self.gross_income <= 0:
            return ZERO
        return self.total_tax / self.gross_income

    @property
    def take_home_pay(self) -> Decimal:
        return self.gross_income - self.total_tax

    @property
    def is_fallback(self) -> bool:
        return self.method == CalculationMethod.FLAT_RATE_FALLBACK


class StateIncomeAllocation(BaseModel):
    """Income earned in one state, for multi-state calculations."""
    state: USState
    income: Decimal = ZERO

    @field_validator("income")
    @classmethod
    def clamp_non_negative(cls, v: Decimal) -> Decimal:
        return max(ZERO, v)


class MultiStateTaxResult(BaseModel):
    """Federal tax on combined income plus per-state tax on each allocation."""
    tax_year: int
    total_income: Decimal
    total_deductions: Decimal
    federal_tax: Decimal
    state_breakdown: dict[USState, Decimal] = Field(default_factory=dict)

    @computed_field
    @property
    def total_state_tax(self) -> Decimal:
        return sum(self.state_breakdown.values(), ZERO)

    @computed_field
    @property
    def total_tax(self) -> Decimal:
        return self.federal_tax + self.total_state_tax
