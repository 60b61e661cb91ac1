"""Tests for federal, self-employment and state tax tables."""

from decimal import Decimal

import pytest

from travelnurse_core.calculator import validate_bracket_table
from travelnurse_core.exceptions import ConfigurationError
from travelnurse_core.models import FilingStatus, USState, NO_INCOME_TAX_STATES
from travelnurse_core.tax_tables import (
    FEDERAL_BRACKETS,
    SUPPORTED_TAX_YEARS,
    get_federal_brackets,
    get_social_security_wage_base,
    get_state_schedule,
    get_tax_tables_version,
    has_no_income_tax,
    resolve_table_year,
)


class TestFederalBrackets:
    """Tests for the federal bracket tables."""

    @pytest.mark.parametrize("year", SUPPORTED_TAX_YEARS)
    @pytest.mark.parametrize("status", list(FilingStatus))
    def test_every_table_is_valid(self, year, status):
        """Each table has seven brackets ending with the unbounded 37% bracket."""
        table = get_federal_brackets(year, status)
        validate_bracket_table(table)
        assert len(table) == 7
        assert table[-1].is_unbounded
        assert table[-1].marginal_rate == Decimal("0.37")

    def test_2025_single_thresholds(self):
        table = get_federal_brackets(2025, FilingStatus.SINGLE)
        assert table[0].upper_threshold == Decimal("11925")
        assert table[5].upper_threshold == Decimal("626350")

    def test_separate_filers_top_bracket_starts_lower(self):
        single = get_federal_brackets(2024, FilingStatus.SINGLE)
        separate = get_federal_brackets(2024, FilingStatus.MARRIED_FILING_SEPARATELY)
        assert separate[5].upper_threshold < single[5].upper_threshold

    def test_later_year_reuses_latest_table(self):
        assert resolve_table_year(2030) == max(FEDERAL_BRACKETS)
        assert get_federal_brackets(2030) == get_federal_brackets(2025)

    def test_earlier_year_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            get_federal_brackets(2023)
        assert exc_info.value.config_key == "federal_brackets"

    def test_accepts_status_value(self):
        assert get_federal_brackets(2024, "head_of_household")[0].upper_threshold == Decimal("16550")


class TestSocialSecurityWageBase:

    def test_known_years(self):
        assert get_social_security_wage_base(2024) == Decimal("168600")
        assert get_social_security_wage_base(2025) == Decimal("176100")

    def test_later_year(self):
        assert get_social_security_wage_base(2028) == Decimal("176100")

    def test_earlier_year_raises(self):
        with pytest.raises(ConfigurationError):
            get_social_security_wage_base(2019)


class TestStateSchedules:
    """Tests for state tables."""

    @pytest.mark.parametrize("state", list(USState))
    def test_every_state_has_a_schedule(self, state):
        schedule = get_state_schedule(state)
        assert schedule is not None
        if schedule:
            validate_bracket_table(schedule)

    def test_no_income_tax_states_have_empty_schedule(self):
        assert len(NO_INCOME_TAX_STATES) == 9
        for state in NO_INCOME_TAX_STATES:
            assert get_state_schedule(state) == ()
            assert has_no_income_tax(state)
            assert state.has_no_income_tax

    def test_california_has_nine_brackets(self):
        schedule = get_state_schedule(USState.CA)
        assert len(schedule) == 9
        assert schedule[-1].marginal_rate == Decimal("0.123")

    def test_new_york_has_seven_brackets(self):
        assert len(get_state_schedule(USState.NY)) == 7

    def test_flat_state_has_one_unbounded_bracket(self):
        schedule = get_state_schedule(USState.PA)
        assert len(schedule) == 1
        assert schedule[0].is_unbounded
        assert schedule[0].marginal_rate == Decimal("0.0307")

    def test_string_code_accepted(self):
        assert has_no_income_tax("TX")
        assert not has_no_income_tax("OR")


def test_version_string():
    assert get_tax_tables_version()
