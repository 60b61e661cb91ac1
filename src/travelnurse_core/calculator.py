"""Progressive tax calculations for travel nurse income.

This module provides three calculators:
1. TaxBracketCalculator - True marginal taxation over one bracket table
2. TaxObligationCalculator - Federal, state and self-employment tax for a year
3. FlatRateTaxEstimator - Labelled flat-rate estimate used only as a fallback
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

import structlog

from .config import TaxSettings
from .exceptions import ConfigurationError
from .models import (
    AuditEntry,
    CalculationMethod,
    FilingStatus,
    MultiStateTaxResult,
    SelfEmploymentTaxBreakdown,
    StateIncomeAllocation,
    TaxBracket,
    TaxObligationInput,
    TaxObligationResult,
    USState,
)
from .tax_tables import (
    ADDITIONAL_MEDICARE_RATE,
    ADDITIONAL_MEDICARE_THRESHOLD,
    MEDICARE_RATE,
    SE_MINIMUM_NET_EARNINGS,
    SE_NET_EARNINGS_FACTOR,
    SOCIAL_SECURITY_RATE,
    TAX_TABLES_VERSION,
    get_federal_brackets,
    get_social_security_wage_base,
    get_state_schedule,
    has_no_income_tax,
    resolve_table_year,
)

logger = structlog.get_logger()

ZERO = Decimal("0")
CENTS = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert a number to Decimal, taking floats by their printed value."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_cents(value: Decimal) -> Decimal:
    """Round a money amount to cents, half up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def validate_bracket_table(brackets: Sequence[TaxBracket]) -> None:
    """Check that a bracket table can be used for progressive taxation.

    Raises:
        ConfigurationError: If the table is empty, thresholds do not strictly
            increase, a rate falls outside [0, 1), or an unbounded bracket is
            not the last one
    """
    if not brackets:
        raise ConfigurationError("Bracket table is empty", config_key="brackets")

    previous: Optional[Decimal] = None
    for index, bracket in enumerate(brackets):
        if not (ZERO <= bracket.marginal_rate < 1):
            raise ConfigurationError(
                "Bracket rate out of range",
                config_key="brackets",
                expected="rate in [0, 1)",
                actual=str(bracket.marginal_rate),
            )
        if bracket.upper_threshold is None:
            if index != len(brackets) - 1:
                raise ConfigurationError(
                    "Unbounded bracket must be last",
                    config_key="brackets",
                    actual=index,
                )
            continue
        if previous is not None and bracket.upper_threshold <= previous:
            raise ConfigurationError(
                "Bracket thresholds must strictly increase",
                config_key="brackets",
                expected=f"threshold > {previous}",
                actual=str(bracket.upper_threshold),
            )
        previous = bracket.upper_threshold


def _usable_table(brackets: Sequence[TaxBracket]) -> bool:
    try:
        validate_bracket_table(brackets)
    except ConfigurationError as e:
        logger.warning("invalid_bracket_table", error=str(e), **e.details)
        return False
    return True


def calculate_progressive_tax(income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Apply true marginal taxation to ``income``.

    Each bracket's rate applies only to the slice of income between the
    previous threshold and its own. Income above the last finite threshold
    is taxed at the final bracket's rate.

    Args:
        income: Taxable income
        brackets: Bracket table, ascending by threshold

    Returns:
        Tax rounded to cents; zero for non-positive income or an unusable table
    """
    income = to_decimal(income)
    if income <= 0:
        return quantize_cents(ZERO)
    if not _usable_table(brackets):
        return quantize_cents(ZERO)

    tax = ZERO
    lower = ZERO
    for bracket in brackets:
        upper = bracket.upper_threshold
        if upper is None or income <= upper:
            tax += (income - lower) * bracket.marginal_rate
            break
        tax += (upper - lower) * bracket.marginal_rate
        lower = upper
    else:
        tax += (income - lower) * brackets[-1].marginal_rate

    return quantize_cents(tax)


def marginal_rate(income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Return the rate of the bracket containing the last taxed dollar."""
    income = to_decimal(income)
    if income <= 0 or not _usable_table(brackets):
        return ZERO
    for bracket in brackets:
        if bracket.upper_threshold is None or income <= bracket.upper_threshold:
            return bracket.marginal_rate
    return brackets[-1].marginal_rate


class TaxBracketCalculator:
    """Progressive calculator bound to one bracket table."""

    def __init__(self, brackets: Sequence[TaxBracket]):
        self.brackets = tuple(brackets)

    def calculate(self, income: Decimal) -> Decimal:
        return calculate_progressive_tax(income, self.brackets)

    def marginal_rate(self, income: Decimal) -> Decimal:
        return marginal_rate(income, self.brackets)


class TaxObligationCalculator:
    """
    Calculate the yearly tax obligation of a travel nurse.

    Federal tax uses the year's bracket table for the filing status, state
    tax uses the state's schedule, and self-employment tax follows Schedule
    SE. Every step is recorded in an audit log so a result can explain how
    each figure was reached.
    """

    def __init__(
        self,
        tax_year: int,
        filing_status: FilingStatus = FilingStatus.SINGLE,
        settings: Optional[TaxSettings] = None,
    ):
        """
        Initialize calculator for a tax year.

        Args:
            tax_year: Tax year to calculate
            filing_status: Federal filing status
            settings: Tax settings (default: loaded from environment)

        Raises:
            ConfigurationError: If no federal table covers ``tax_year``
        """
        self.tax_year = tax_year
        self.filing_status = FilingStatus(filing_status)
        self.settings = settings or TaxSettings()
        self.table_year = resolve_table_year(tax_year)
        self.federal = TaxBracketCalculator(get_federal_brackets(tax_year, self.filing_status))
        self.social_security_wage_base = get_social_security_wage_base(tax_year)
        self._audit_log: list[AuditEntry] = []

    def _log_step(
        self,
        step: str,
        input_value: str,
        output_value: str,
        source: str,
        notes: Optional[str] = None
    ) -> None:
        """Add an entry to the audit log."""
        entry = AuditEntry(
            step=step,
            input_value=input_value,
            output_value=output_value,
            source=source,
            notes=notes,
        )
        self._audit_log.append(entry)
        logger.info(
            "calculation_step",
            step=step,
            input=input_value,
            output=output_value,
            source=source,
        )

    @property
    def _federal_source(self) -> str:
        return f"Federal brackets {self.table_year} ({self.filing_status.value})"

    def calculate_federal_tax(self, taxable_income: Decimal) -> Decimal:
        """Federal income tax on taxable income."""
        return self.federal.calculate(taxable_income)

    def calculate_state_tax(self, taxable_income: Decimal, state: Optional[USState]) -> Decimal:
        """
        State income tax on taxable income.

        No-income-tax states short-circuit to zero. A missing state or one
        without a schedule yields zero with a warning.
        """
        if state is None:
            logger.warning("state_tax_no_state", tax_year=self.tax_year)
            return quantize_cents(ZERO)
        if has_no_income_tax(state):
            return quantize_cents(ZERO)

        schedule = get_state_schedule(state)
        if not schedule:
            logger.warning("state_tax_unknown_state", state=str(state))
            return quantize_cents(ZERO)
        return calculate_progressive_tax(taxable_income, schedule)

    def calculate_self_employment_tax(self, net_earnings: Decimal) -> SelfEmploymentTaxBreakdown:
        """
        Self-employment tax per Schedule SE.

        Nothing is owed below $400 of net earnings. Otherwise the tax applies
        to 92.35% of net earnings: Social Security up to the wage base,
        Medicare on everything, additional Medicare above the threshold.
        """
        net_earnings = max(ZERO, to_decimal(net_earnings))
        if net_earnings < SE_MINIMUM_NET_EARNINGS:
            return SelfEmploymentTaxBreakdown(net_earnings=quantize_cents(net_earnings))

        adjusted = net_earnings * SE_NET_EARNINGS_FACTOR
        social_security = min(adjusted, self.social_security_wage_base) * SOCIAL_SECURITY_RATE
        medicare = adjusted * MEDICARE_RATE
        additional = ZERO
        if adjusted > ADDITIONAL_MEDICARE_THRESHOLD:
            additional = (adjusted - ADDITIONAL_MEDICARE_THRESHOLD) * ADDITIONAL_MEDICARE_RATE

        return SelfEmploymentTaxBreakdown(
            net_earnings=quantize_cents(adjusted),
            social_security_tax=quantize_cents(social_security),
            medicare_tax=quantize_cents(medicare),
            additional_medicare_tax=quantize_cents(additional),
        )

    def calculate(self, obligation: TaxObligationInput) -> TaxObligationResult:
        """
        Calculate federal, state and self-employment tax for one year.

        Args:
            obligation: Income, deductions, state and filing details

        Returns:
            TaxObligationResult with full audit trail

        Raises:
            ConfigurationError: If the input's tax year has no federal table
        """
        if (
            obligation.tax_year != self.tax_year
            or obligation.filing_status != self.filing_status
        ):
            # Tables are bound at construction; use a calculator for the input's year.
            calculator = TaxObligationCalculator(
                obligation.tax_year, obligation.filing_status, self.settings
            )
            return calculator.calculate(obligation)

        self._audit_log = []
        warnings: list[str] = []

        # Step 1: Taxable income
        taxable = obligation.taxable_income
        self._log_step(
            step="taxable_income",
            input_value=f"gross={obligation.gross_income}, deductions={obligation.deductions}",
            output_value=str(taxable),
            source="Gross income less deductible expenses",
        )

        # Step 2: Federal income tax
        federal_tax = self.calculate_federal_tax(taxable)
        federal_rate = self.federal.marginal_rate(taxable)
        self._log_step(
            step="federal_tax",
            input_value=str(taxable),
            output_value=str(federal_tax),
            source=self._federal_source,
            notes=f"marginal_rate={federal_rate}",
        )
        if self.table_year != self.tax_year:
            warnings.append(
                f"No {self.tax_year} federal table; using {self.table_year} brackets"
            )

        # Step 3: State income tax
        state_tax = self.calculate_state_tax(taxable, obligation.state)
        state_label = obligation.state.value if obligation.state else "none"
        self._log_step(
            step="state_tax",
            input_value=f"taxable={taxable}, state={state_label}",
            output_value=str(state_tax),
            source=f"State tax tables {TAX_TABLES_VERSION}",
            notes="no income tax" if obligation.state and has_no_income_tax(obligation.state) else None,
        )
        if obligation.state is None:
            warnings.append("No tax home state provided; state tax not calculated")

        # Step 4: Self-employment tax
        if obligation.is_self_employed:
            self_employment = self.calculate_self_employment_tax(taxable)
        else:
            self_employment = SelfEmploymentTaxBreakdown()
        self._log_step(
            step="self_employment_tax",
            input_value=str(taxable) if obligation.is_self_employed else "not self-employed",
            output_value=str(self_employment.total),
            source=f"Schedule SE, wage base {self.social_security_wage_base}",
        )

        result = TaxObligationResult(
            tax_year=self.tax_year,
            filing_status=self.filing_status,
            state=obligation.state,
            gross_income=obligation.gross_income,
            deductions=obligation.deductions,
            taxable_income=taxable,
            federal_tax=federal_tax,
            state_tax=state_tax,
            self_employment_tax=self_employment.total,
            self_employment=self_employment,
            federal_marginal_rate=federal_rate,
            method=CalculationMethod.PROGRESSIVE,
            audit_log=self._audit_log.copy(),
            warnings=warnings,
        )

        logger.info(
            "tax_obligation_calculated",
            tax_year=self.tax_year,
            state=state_label,
            total_tax=str(result.total_tax),
        )
        return result

    def calculate_multi_state(
        self,
        allocations: Sequence[StateIncomeAllocation],
        deductions: Decimal = ZERO,
    ) -> MultiStateTaxResult:
        """
        Split a year's income across the states where it was earned.

        Federal tax is computed once on combined income. Deductions are
        apportioned to each state by its share of total income.
        """
        deductions = max(ZERO, to_decimal(deductions))
        total_income = sum((a.income for a in allocations), ZERO)
        federal_tax = self.calculate_federal_tax(max(ZERO, total_income - deductions))

        breakdown: dict[USState, Decimal] = {}
        for allocation in allocations:
            if total_income > 0:
                share = allocation.income / total_income
            else:
                share = ZERO
            state_taxable = max(ZERO, allocation.income - deductions * share)
            tax = self.calculate_state_tax(state_taxable, allocation.state)
            breakdown[allocation.state] = breakdown.get(allocation.state, ZERO) + tax

        logger.info(
            "multi_state_tax_calculated",
            tax_year=self.tax_year,
            states=[s.value for s in breakdown],
        )
        return MultiStateTaxResult(
            tax_year=self.tax_year,
            total_income=total_income,
            total_deductions=deductions,
            federal_tax=federal_tax,
            state_breakdown=breakdown,
        )


class FlatRateTaxEstimator:
    """
    Rough flat-rate tax estimate.

    Only used when the progressive calculator cannot be built. Results are
    labelled ``flat_rate_fallback`` so they are never mistaken for a real
    calculation.
    """

    def __init__(self, settings: Optional[TaxSettings] = None):
        self.settings = settings or TaxSettings()

    def estimate(self, obligation: TaxObligationInput) -> TaxObligationResult:
        taxable = obligation.taxable_income
        federal_tax = quantize_cents(taxable * self.settings.fallback_federal_rate)
        if obligation.is_self_employed:
            se_tax = quantize_cents(taxable * self.settings.fallback_self_employment_rate)
        else:
            se_tax = quantize_cents(ZERO)

        audit = [
            AuditEntry(
                step="flat_rate_estimate",
                input_value=str(taxable),
                output_value=f"federal={federal_tax}, self_employment={se_tax}",
                source=(
                    f"Flat {self.settings.fallback_federal_rate} federal + "
                    f"{self.settings.fallback_self_employment_rate} self-employment"
                ),
                notes="State tax not estimated",
            )
        ]

        return TaxObligationResult(
            tax_year=obligation.tax_year,
            filing_status=obligation.filing_status,
            state=obligation.state,
            gross_income=obligation.gross_income,
            deductions=obligation.deductions,
            taxable_income=taxable,
            federal_tax=federal_tax,
            state_tax=quantize_cents(ZERO),
            self_employment_tax=se_tax,
            federal_marginal_rate=self.settings.fallback_federal_rate,
            method=CalculationMethod.FLAT_RATE_FALLBACK,
            audit_log=audit,
            warnings=["Estimated with flat rates; progressive tables unavailable"],
        )
