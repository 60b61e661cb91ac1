"""Federal, self-employment and state tax tables.

This module contains the bracket schedules and statutory constants used by
the progressive calculators. Federal tables are keyed by tax year and
filing status; state tables are keyed by postal code.

Sources:
- Federal brackets: IRS Rev. Proc. 2023-34 (tax year 2024) and Rev. Proc. 2024-40 (tax year 2025)
- Self-employment tax: https://www.irs.gov/businesses/small-businesses-self-employed/self-employment-tax-social-security-and-medicare-taxes
- Social Security wage base: https://www.ssa.gov/oact/cola/cbb.html
- State rates: top marginal rates published by each state's revenue department

Updated: 2025 (tax years 2024 and 2025)
"""

from decimal import Decimal
from typing import Optional

from .exceptions import ConfigurationError
from .models import FilingStatus, TaxBracket, USState, NO_INCOME_TAX_STATES


# =============================================================================
# VERSION TRACKING
# =============================================================================

TAX_TABLES_VERSION = "2025.1"
SUPPORTED_TAX_YEARS = (2024, 2025)


def get_tax_tables_version() -> str:
    """Return current tax tables version."""
    return TAX_TABLES_VERSION


def _table(*rows: tuple[Optional[str], str]) -> tuple[TaxBracket, ...]:
    """Build an immutable bracket table from (upper_threshold, rate) rows."""
    return tuple(
        TaxBracket(
            upper_threshold=Decimal(upper) if upper is not None else None,
            marginal_rate=Decimal(rate),
        )
        for upper, rate in rows
    )


# =============================================================================
# FEDERAL INCOME TAX BRACKETS
# =============================================================================
# Seven brackets: 10, 12, 22, 24, 32, 35 and 37 percent. Thresholds are the
# top of each taxable-income slice.

FEDERAL_BRACKETS = {
    2024: {
        FilingStatus.SINGLE: _table(
            ("11600", "0.10"),
            ("47150", "0.12"),
            ("100525", "0.22"),
            ("191950", "0.24"),
            ("243725", "0.32"),
            ("609350", "0.35"),
            (None, "0.37"),
        ),
        FilingStatus.MARRIED_FILING_JOINTLY: _table(
            ("23200", "0.10"),
            ("94300", "0.12"),
            ("201050", "0.22"),
            ("383900", "0.24"),
            ("487450", "0.32"),
            ("731200", "0.35"),
            (None, "0.37"),
        ),
        FilingStatus.MARRIED_FILING_SEPARATELY: _table(
            ("11600", "0.10"),
            ("47150", "0.12"),
            ("100525", "0.22"),
            ("191950", "0.24"),
            ("243725", "0.32"),
            ("365600", "0.35"),
            (None, "0.37"),
        ),
        FilingStatus.HEAD_OF_HOUSEHOLD: _table(
            ("16550", "0.10"),
            ("63100", "0.12"),
            ("100500", "0.22"),
            ("191950", "0.24"),
            ("243700", "0.32"),
            ("609350", "0.35"),
            (None, "0.37"),
        ),
    },
    2025: {
        FilingStatus.SINGLE: _table(
            ("11925", "0.10"),
            ("48475", "0.12"),
            ("103350", "0.22"),
            ("197300", "0.24"),
            ("250525", "0.32"),
            ("626350", "0.35"),
            (None, "0.37"),
        ),
        FilingStatus.MARRIED_FILING_JOINTLY: _table(
            ("23850", "0.10"),
            ("96950", "0.12"),
            ("206700", "0.22"),
            ("394600", "0.24"),
            ("501050", "0.32"),
            ("751600", "0.35"),
            (None, "0.37"),
        ),
        FilingStatus.MARRIED_FILING_SEPARATELY: _table(
            ("11925", "0.10"),
            ("48475", "0.12"),
            ("103350", "0.22"),
            ("197300", "0.24"),
            ("250525", "0.32"),
            ("375800", "0.35"),
            (None, "0.37"),
        ),
        FilingStatus.HEAD_OF_HOUSEHOLD: _table(
            ("17000", "0.10"),
            ("64850", "0.12"),
            ("103350", "0.22"),
            ("197300", "0.24"),
            ("250500", "0.32"),
            ("626350", "0.35"),
            (None, "0.37"),
        ),
    },
}


def resolve_table_year(tax_year: int) -> int:
    """Return the table year used for ``tax_year``.

    Years after the newest table reuse the latest prior table.

    Raises:
        ConfigurationError: If ``tax_year`` predates every table
    """
    candidates = [year for year in FEDERAL_BRACKETS if year <= tax_year]
    if not candidates:
        raise ConfigurationError(
            f"No federal bracket table covers tax year {tax_year}",
            config_key="federal_brackets",
            expected=f"tax year >= {min(FEDERAL_BRACKETS)}",
            actual=str(tax_year),
        )
    return max(candidates)


def get_federal_brackets(
    tax_year: int,
    filing_status: FilingStatus = FilingStatus.SINGLE,
) -> tuple[TaxBracket, ...]:
    """Get the federal bracket table for a tax year and filing status.

    Args:
        tax_year: Tax year being calculated
        filing_status: IRS filing status

    Returns:
        Ordered bracket table ending with the unbounded bracket

    Raises:
        ConfigurationError: If no table covers the year or status
    """
    by_status = FEDERAL_BRACKETS[resolve_table_year(tax_year)]
    table = by_status.get(FilingStatus(filing_status))
    if table is None:
        raise ConfigurationError(
            f"No federal bracket table for filing status {filing_status}",
            config_key="federal_brackets",
            expected=f"one of {[s.value for s in by_status]}",
            actual=str(filing_status),
        )
    return table


# =============================================================================
# SELF-EMPLOYMENT TAX
# =============================================================================
# Schedule SE: tax applies to 92.35% of net profit. Social Security is capped
# at the annual wage base; Medicare is not.

SE_MINIMUM_NET_EARNINGS = Decimal("400")
SE_NET_EARNINGS_FACTOR = Decimal("0.9235")
SOCIAL_SECURITY_RATE = Decimal("0.124")
MEDICARE_RATE = Decimal("0.029")
ADDITIONAL_MEDICARE_RATE = Decimal("0.009")
ADDITIONAL_MEDICARE_THRESHOLD = Decimal("200000")

SOCIAL_SECURITY_WAGE_BASE = {
    2024: Decimal("168600"),
    2025: Decimal("176100"),
}


def get_social_security_wage_base(tax_year: int) -> Decimal:
    """Get the Social Security wage base for a tax year.

    Years after the newest entry reuse the latest prior wage base.
    """
    candidates = [year for year in SOCIAL_SECURITY_WAGE_BASE if year <= tax_year]
    if not candidates:
        raise ConfigurationError(
            f"No Social Security wage base covers tax year {tax_year}",
            config_key="social_security_wage_base",
            expected=f"tax year >= {min(SOCIAL_SECURITY_WAGE_BASE)}",
            actual=str(tax_year),
        )
    return SOCIAL_SECURITY_WAGE_BASE[max(candidates)]


# =============================================================================
# STATE INCOME TAX
# =============================================================================
# CA and NY are modelled with their full progressive schedules (single
# filer). Every other state with an income tax uses a single flat bracket at
# its top marginal rate.

CALIFORNIA_BRACKETS = _table(
    ("10099", "0.01"),
    ("23942", "0.02"),
    ("37788", "0.04"),
    ("52455", "0.06"),
    ("66295", "0.08"),
    ("338639", "0.093"),
    ("406364", "0.103"),
    ("677275", "0.113"),
    (None, "0.123"),
)

NEW_YORK_BRACKETS = _table(
    ("8500", "0.04"),
    ("11700", "0.045"),
    ("13900", "0.0525"),
    ("80650", "0.0585"),
    ("215400", "0.0625"),
    ("1077550", "0.0685"),
    (None, "0.103"),
)

PROGRESSIVE_STATE_BRACKETS = {
    USState.CA: CALIFORNIA_BRACKETS,
    USState.NY: NEW_YORK_BRACKETS,
}

FLAT_STATE_RATES = {
    USState.AL: Decimal("0.05"),
    USState.AZ: Decimal("0.0259"),
    USState.AR: Decimal("0.047"),
    USState.CO: Decimal("0.044"),
    USState.CT: Decimal("0.0699"),
    USState.DE: Decimal("0.066"),
    USState.DC: Decimal("0.1075"),
    USState.GA: Decimal("0.0549"),
    USState.HI: Decimal("0.11"),
    USState.ID: Decimal("0.058"),
    USState.IL: Decimal("0.0495"),
    USState.IN: Decimal("0.0315"),
    USState.IA: Decimal("0.06"),
    USState.KS: Decimal("0.057"),
    USState.KY: Decimal("0.04"),
    USState.LA: Decimal("0.0425"),
    USState.ME: Decimal("0.0715"),
    USState.MD: Decimal("0.0575"),
    USState.MA: Decimal("0.05"),
    USState.MI: Decimal("0.0425"),
    USState.MN: Decimal("0.0985"),
    USState.MS: Decimal("0.05"),
    USState.MO: Decimal("0.048"),
    USState.MT: Decimal("0.059"),
    USState.NE: Decimal("0.0664"),
    USState.NJ: Decimal("0.1075"),
    USState.NM: Decimal("0.059"),
    USState.NC: Decimal("0.0475"),
    USState.ND: Decimal("0.029"),
    USState.OH: Decimal("0.0399"),
    USState.OK: Decimal("0.0475"),
    USState.OR: Decimal("0.099"),
    USState.PA: Decimal("0.0307"),
    USState.RI: Decimal("0.0599"),
    USState.SC: Decimal("0.064"),
    USState.UT: Decimal("0.0465"),
    USState.VT: Decimal("0.0875"),
    USState.VA: Decimal("0.0575"),
    USState.WV: Decimal("0.0512"),
    USState.WI: Decimal("0.0765"),
}


def has_no_income_tax(state: USState) -> bool:
    """Check whether a state levies no tax on wage income."""
    return USState(state) in NO_INCOME_TAX_STATES


def get_state_schedule(state: USState) -> Optional[tuple[TaxBracket, ...]]:
    """Get the bracket table for a state.

    Args:
        state: Two-letter state code

    Returns:
        Progressive table for CA/NY, a one-bracket table for flat-rate
        states, an empty table for no-income-tax states, or None when the
        state has no table at all
    """
    state = USState(state)
    if state in NO_INCOME_TAX_STATES:
        return ()
    if state in PROGRESSIVE_STATE_BRACKETS:
        return PROGRESSIVE_STATE_BRACKETS[state]
    rate = FLAT_STATE_RATES.get(state)
    if rate is None:
        return None
    return (TaxBracket(upper_threshold=None, marginal_rate=rate),)


# =============================================================================
# QUICK ESTIMATES
# =============================================================================
# Used by offer comparison, where a single blended state rate is enough.

ESTIMATED_STATE_RATES = {
    USState.CA: Decimal("0.093"),
    USState.NY: Decimal("0.0685"),
    USState.NJ: Decimal("0.0637"),
    USState.OR: Decimal("0.09"),
    USState.MN: Decimal("0.0785"),
    USState.MA: Decimal("0.05"),
    USState.HI: Decimal("0.0825"),
    USState.CT: Decimal("0.0699"),
}

DEFAULT_ESTIMATED_STATE_RATE = Decimal("0.05")

# Tax year used when estimating a federal bracket without a full calculation
ESTIMATE_TAX_YEAR = 2024
