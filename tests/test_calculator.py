"""Tests for the progressive tax calculators."""

from decimal import Decimal

import pytest

from travelnurse_core import (
    FlatRateTaxEstimator,
    TaxBracketCalculator,
    TaxObligationCalculator,
    calculate_progressive_tax,
    marginal_rate,
)
from travelnurse_core.calculator import quantize_cents, validate_bracket_table
from travelnurse_core.exceptions import ConfigurationError
from travelnurse_core.models import (
    CalculationMethod,
    FilingStatus,
    StateIncomeAllocation,
    TaxBracket,
    TaxObligationInput,
    USState,
)
from travelnurse_core.tax_tables import get_federal_brackets


@pytest.fixture
def two_brackets() -> list[TaxBracket]:
    """10% up to $10,000, 20% above."""
    return [
        TaxBracket(upper_threshold=Decimal("10000"), marginal_rate=Decimal("0.10")),
        TaxBracket(upper_threshold=None, marginal_rate=Decimal("0.20")),
    ]


@pytest.fixture
def calculator_2024() -> TaxObligationCalculator:
    return TaxObligationCalculator(2024, FilingStatus.SINGLE)


@pytest.fixture
def nurse_input() -> TaxObligationInput:
    """Self-employed Texas nurse with $50,000 taxable income."""
    return TaxObligationInput(
        gross_income=Decimal("60000"),
        deductions=Decimal("10000"),
        state=USState.TX,
        is_self_employed=True,
        tax_year=2024,
    )


class TestCalculateProgressiveTax:
    """Test suite for true marginal taxation."""

    def test_income_at_first_threshold(self, two_brackets):
        """Income exactly at the threshold is taxed entirely at the first rate."""
        assert calculate_progressive_tax(Decimal("10000"), two_brackets) == Decimal("1000.00")

    def test_income_spanning_two_brackets(self, two_brackets):
        """Only the slice above the threshold is taxed at the higher rate."""
        assert calculate_progressive_tax(Decimal("15000"), two_brackets) == Decimal("2000.00")

    def test_zero_and_negative_income(self, two_brackets):
        assert calculate_progressive_tax(Decimal("0"), two_brackets) == Decimal("0")
        assert calculate_progressive_tax(Decimal("-500"), two_brackets) == Decimal("0")

    def test_monotonic_in_income(self, two_brackets):
        """More income never produces less tax."""
        incomes = [Decimal(x) for x in ("0", "1", "9999.99", "10000", "10000.01", "15000", "1000000")]
        taxes = [calculate_progressive_tax(i, two_brackets) for i in incomes]
        assert taxes == sorted(taxes)

    def test_extra_dollar_never_taxed_above_top_rate(self):
        """One more dollar near any 2025 threshold costs at most the top rate."""
        brackets = get_federal_brackets(2025, FilingStatus.SINGLE)
        top_rate = brackets[-1].marginal_rate
        incomes = [Decimal("0"), Decimal("1")]
        for bracket in brackets:
            if bracket.upper_threshold is not None:
                incomes.extend(bracket.upper_threshold + offset for offset in (-2, -1, 0, 1))

        for income in incomes:
            before = calculate_progressive_tax(income, brackets)
            after = calculate_progressive_tax(income + 1, brackets)
            assert Decimal("0") <= after - before <= top_rate + Decimal("0.01")

    def test_not_flat_rate_of_containing_bracket(self, two_brackets):
        """15,000 at 20% flat would be 3,000; marginal taxation gives 2,000."""
        assert calculate_progressive_tax(Decimal("15000"), two_brackets) != Decimal("3000.00")

    def test_income_above_last_finite_threshold(self):
        """Income beyond a bounded final bracket uses the final rate."""
        brackets = [
            TaxBracket(upper_threshold=Decimal("100"), marginal_rate=Decimal("0.10")),
            TaxBracket(upper_threshold=Decimal("200"), marginal_rate=Decimal("0.20")),
        ]
        # 100*.1 + 100*.2 + 100*.2
        assert calculate_progressive_tax(Decimal("300"), brackets) == Decimal("50.00")

    def test_rounds_half_up_to_cents(self):
        brackets = [TaxBracket(upper_threshold=None, marginal_rate=Decimal("0.125"))]
        assert calculate_progressive_tax(Decimal("0.20"), brackets) == Decimal("0.03")

    def test_empty_table_yields_zero(self):
        assert calculate_progressive_tax(Decimal("50000"), []) == Decimal("0")

    def test_corrupt_table_yields_zero(self):
        """Thresholds that do not increase make the table unusable."""
        brackets = [
            TaxBracket(upper_threshold=Decimal("20000"), marginal_rate=Decimal("0.10")),
            TaxBracket(upper_threshold=Decimal("10000"), marginal_rate=Decimal("0.20")),
            TaxBracket(upper_threshold=None, marginal_rate=Decimal("0.30")),
        ]
        assert calculate_progressive_tax(Decimal("50000"), brackets) == Decimal("0")

    def test_unbounded_bracket_not_last_yields_zero(self):
        brackets = [
            TaxBracket(upper_threshold=None, marginal_rate=Decimal("0.10")),
            TaxBracket(upper_threshold=Decimal("10000"), marginal_rate=Decimal("0.20")),
        ]
        assert calculate_progressive_tax(Decimal("5000"), brackets) == Decimal("0")


class TestValidateBracketTable:
    """Tests for bracket table validation."""

    def test_valid_table_passes(self, two_brackets):
        validate_bracket_table(two_brackets)

    def test_empty_table_raises(self):
        with pytest.raises(ConfigurationError):
            validate_bracket_table([])

    def test_equal_thresholds_raise(self):
        brackets = [
            TaxBracket(upper_threshold=Decimal("10000"), marginal_rate=Decimal("0.10")),
            TaxBracket(upper_threshold=Decimal("10000"), marginal_rate=Decimal("0.20")),
        ]
        with pytest.raises(ConfigurationError) as exc_info:
            validate_bracket_table(brackets)
        assert exc_info.value.config_key == "brackets"

    def test_rate_out_of_range_raises(self):
        bad = TaxBracket.model_construct(upper_threshold=None, marginal_rate=Decimal("1.5"))
        with pytest.raises(ConfigurationError):
            validate_bracket_table([bad])


class TestMarginalRate:
    """Tests for the rate of the last taxed dollar."""

    def test_zero_income(self, two_brackets):
        assert marginal_rate(Decimal("0"), two_brackets) == Decimal("0")

    def test_at_threshold_stays_in_lower_bracket(self, two_brackets):
        assert marginal_rate(Decimal("10000"), two_brackets) == Decimal("0.10")

    def test_above_threshold(self, two_brackets):
        assert marginal_rate(Decimal("10000.01"), two_brackets) == Decimal("0.20")

    def test_bracket_calculator_wraps_table(self, two_brackets):
        calculator = TaxBracketCalculator(two_brackets)
        assert calculator.calculate(Decimal("15000")) == Decimal("2000.00")
        assert calculator.marginal_rate(Decimal("15000")) == Decimal("0.20")


class TestFederalTax:
    """Federal tax against published bracket tables."""

    def test_2024_single(self, calculator_2024):
        # 11600*.10 + 35550*.12 + 2850*.22
        assert calculator_2024.calculate_federal_tax(Decimal("50000")) == Decimal("6053.00")

    def test_2025_single(self):
        calculator = TaxObligationCalculator(2025)
        # 11925*.10 + 36550*.12 + 1525*.22
        assert calculator.calculate_federal_tax(Decimal("50000")) == Decimal("5914.00")

    def test_married_filing_jointly_pays_less(self, calculator_2024):
        joint = TaxObligationCalculator(2024, FilingStatus.MARRIED_FILING_JOINTLY)
        income = Decimal("120000")
        assert joint.calculate_federal_tax(income) < calculator_2024.calculate_federal_tax(income)

    def test_later_year_uses_latest_table(self):
        later = TaxObligationCalculator(2027)
        current = TaxObligationCalculator(2025)
        assert later.table_year == 2025
        assert later.calculate_federal_tax(Decimal("80000")) == current.calculate_federal_tax(Decimal("80000"))

    def test_year_before_tables_raises(self):
        with pytest.raises(ConfigurationError):
            TaxObligationCalculator(2020)


class TestStateTax:
    """State tax by schedule type."""

    def test_no_income_tax_state(self, calculator_2024):
        for state in (USState.TX, USState.FL, USState.WA, USState.NH):
            assert calculator_2024.calculate_state_tax(Decimal("90000"), state) == Decimal("0")

    def test_california_is_progressive(self, calculator_2024):
        # 10099*.01 + 13843*.02 + 13846*.04 + 12212*.06
        assert calculator_2024.calculate_state_tax(Decimal("50000"), USState.CA) == Decimal("1664.41")

    def test_new_york_is_progressive(self, calculator_2024):
        # 8500*.04 + 1500*.045
        assert calculator_2024.calculate_state_tax(Decimal("10000"), USState.NY) == Decimal("407.50")

    def test_flat_rate_state(self, calculator_2024):
        assert calculator_2024.calculate_state_tax(Decimal("50000"), USState.IL) == Decimal("2475.00")

    def test_missing_state_yields_zero(self, calculator_2024):
        assert calculator_2024.calculate_state_tax(Decimal("50000"), None) == Decimal("0")


class TestSelfEmploymentTax:
    """Schedule SE components."""

    def test_below_minimum_is_zero(self, calculator_2024):
        breakdown = calculator_2024.calculate_self_employment_tax(Decimal("399.99"))
        assert breakdown.total == Decimal("0")

    def test_ordinary_earnings(self, calculator_2024):
        breakdown = calculator_2024.calculate_self_employment_tax(Decimal("100000"))
        assert breakdown.net_earnings == Decimal("92350.00")
        assert breakdown.social_security_tax == Decimal("11451.40")
        assert breakdown.medicare_tax == Decimal("2678.15")
        assert breakdown.additional_medicare_tax == Decimal("0.00")
        assert breakdown.total == Decimal("14129.55")

    def test_social_security_capped_at_wage_base(self, calculator_2024):
        breakdown = calculator_2024.calculate_self_employment_tax(Decimal("250000"))
        assert breakdown.social_security_tax == Decimal("20906.40")  # 168600 * 12.4%
        assert breakdown.medicare_tax == Decimal("6695.38")
        assert breakdown.additional_medicare_tax == Decimal("277.88")

    def test_wage_base_follows_tax_year(self):
        assert TaxObligationCalculator(2025).social_security_wage_base == Decimal("176100")


class TestTaxObligationCalculator:
    """Full obligation calculations."""

    def test_total_is_sum_of_components(self, calculator_2024, nurse_input):
        result = calculator_2024.calculate(nurse_input)

        assert result.taxable_income == Decimal("50000")
        assert result.federal_tax == Decimal("6053.00")
        assert result.state_tax == Decimal("0")
        assert result.self_employment_tax == Decimal("7064.78")
        assert result.total_tax == result.federal_tax + result.state_tax + result.self_employment_tax
        assert result.total_tax == Decimal("13117.78")

    def test_progressive_result_is_labelled(self, calculator_2024, nurse_input):
        result = calculator_2024.calculate(nurse_input)
        assert result.method == CalculationMethod.PROGRESSIVE
        assert not result.is_fallback

    def test_audit_log_records_each_step(self, calculator_2024, nurse_input):
        result = calculator_2024.calculate(nurse_input)
        steps = [entry.step for entry in result.audit_log]
        assert steps == ["taxable_income", "federal_tax", "state_tax", "self_employment_tax"]

    def test_not_self_employed_skips_se_tax(self, calculator_2024, nurse_input):
        employee = nurse_input.model_copy(update={"is_self_employed": False})
        assert calculator_2024.calculate(employee).self_employment_tax == Decimal("0")

    def test_deductions_above_income(self, calculator_2024):
        result = calculator_2024.calculate(
            TaxObligationInput(gross_income=Decimal("1000"), deductions=Decimal("5000"), tax_year=2024)
        )
        assert result.taxable_income == Decimal("0")
        assert result.total_tax == Decimal("0")

    def test_input_year_selects_tables(self, calculator_2024, nurse_input):
        result = calculator_2024.calculate(nurse_input.model_copy(update={"tax_year": 2025}))
        assert result.tax_year == 2025
        assert result.federal_tax == Decimal("5914.00")

    def test_later_year_warns_about_table(self):
        result = TaxObligationCalculator(2026).calculate(
            TaxObligationInput(gross_income=Decimal("50000"), state=USState.TX, tax_year=2026)
        )
        assert any("2025" in warning for warning in result.warnings)

    def test_effective_rate_and_take_home(self, calculator_2024, nurse_input):
        result = calculator_2024.calculate(nurse_input)
        assert result.take_home_pay == Decimal("60000") - result.total_tax
        assert result.effective_tax_rate == result.total_tax / Decimal("60000")


class TestMultiState:
    """Income earned across several states."""

    def test_deductions_apportioned_by_income_share(self, calculator_2024):
        result = calculator_2024.calculate_multi_state(
            [
                StateIncomeAllocation(state=USState.CA, income=Decimal("30000")),
                StateIncomeAllocation(state=USState.TX, income=Decimal("20000")),
            ],
            deductions=Decimal("10000"),
        )

        assert result.total_income == Decimal("50000")
        assert result.federal_tax == Decimal("4568.00")
        # CA taxable: 30000 - 10000 * 60%
        assert result.state_breakdown[USState.CA] == Decimal("380.17")
        assert result.state_breakdown[USState.TX] == Decimal("0")
        assert result.total_tax == result.federal_tax + result.total_state_tax

    def test_no_income(self, calculator_2024):
        result = calculator_2024.calculate_multi_state([], deductions=Decimal("1000"))
        assert result.total_tax == Decimal("0")


class TestFlatRateTaxEstimator:
    """The fallback estimate must be distinguishable from real results."""

    def test_flat_rates_on_taxable_income(self, nurse_input):
        result = FlatRateTaxEstimator().estimate(nurse_input)
        assert result.federal_tax == Decimal("11000.00")
        assert result.self_employment_tax == Decimal("7650.00")
        assert result.state_tax == Decimal("0")

    def test_result_is_labelled_fallback(self, nurse_input):
        result = FlatRateTaxEstimator().estimate(nurse_input)
        assert result.method == CalculationMethod.FLAT_RATE_FALLBACK
        assert result.is_fallback
        assert result.warnings

    def test_differs_from_progressive(self, calculator_2024, nurse_input):
        flat = FlatRateTaxEstimator().estimate(nurse_input)
        progressive = calculator_2024.calculate(nurse_input)
        assert flat.total_tax != progressive.total_tax


def test_quantize_cents_half_up():
    assert quantize_cents(Decimal("1.005")) == Decimal("1.01")
    assert quantize_cents(Decimal("1.004")) == Decimal("1.00")
