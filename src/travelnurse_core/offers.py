"""Job offer comparison and GSA per-diem checks.

Travel nurse offers mix a taxable hourly wage with tax-free housing and
meals stipends, so the offer with the biggest headline rate is not always
the one that pays the most. OfferComparisonEngine ranks offers by projected
take-home pay; GSAComplianceChecker flags stipends above the federal
per-diem ceilings, which the IRS may treat as taxable wages.
"""

from decimal import Decimal
from typing import Optional, Sequence

import structlog

from .calculator import marginal_rate, to_decimal
from .config import OfferSettings
from .models import (
    GSAComplianceResult,
    JobOffer,
    OfferComparisonResult,
    USState,
)
from .tax_tables import (
    DEFAULT_ESTIMATED_STATE_RATE,
    ESTIMATED_STATE_RATES,
    ESTIMATE_TAX_YEAR,
    get_federal_brackets,
    has_no_income_tax,
)

logger = structlog.get_logger()

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PERCENT = Decimal("0.01")


def estimate_state_rate(state: Optional[USState]) -> Decimal:
    """Single blended state rate for quick comparisons."""
    if state is None:
        return DEFAULT_ESTIMATED_STATE_RATE
    if has_no_income_tax(state):
        return ZERO
    return ESTIMATED_STATE_RATES.get(USState(state), DEFAULT_ESTIMATED_STATE_RATE)


def estimate_federal_bracket(annual_income: Decimal) -> Decimal:
    """Federal marginal rate for an annual taxable income (single filer)."""
    return marginal_rate(to_decimal(annual_income), get_federal_brackets(ESTIMATE_TAX_YEAR))


class GSAComplianceChecker:
    """Compare daily stipends with GSA lodging and M&IE ceilings."""

    def __init__(self, settings: Optional[OfferSettings] = None):
        self.settings = settings or OfferSettings()

    def check(
        self,
        offer: JobOffer,
        gsa_daily_lodging: Optional[Decimal] = None,
        gsa_daily_meals: Optional[Decimal] = None,
    ) -> GSAComplianceResult:
        """
        Check an offer's stipends against per-diem ceilings.

        Args:
            offer: Offer with weekly housing and meals stipends
            gsa_daily_lodging: Locality lodging ceiling (default from settings)
            gsa_daily_meals: Locality M&IE ceiling (default from settings)
        """
        if gsa_daily_lodging is None:
            gsa_daily_lodging = self.settings.gsa_daily_lodging
        if gsa_daily_meals is None:
            gsa_daily_meals = self.settings.gsa_daily_meals
        lodging = to_decimal(gsa_daily_lodging)
        meals = to_decimal(gsa_daily_meals)

        daily_housing = offer.daily_housing
        daily_meals = offer.daily_meals
        housing_ok = daily_housing <= lodging
        meals_ok = daily_meals <= meals

        result = GSAComplianceResult(
            is_compliant=housing_ok and meals_ok,
            housing_within_limit=housing_ok,
            meals_within_limit=meals_ok,
            daily_housing=daily_housing,
            daily_meals=daily_meals,
            gsa_daily_lodging=lodging,
            gsa_daily_meals=meals,
            housing_excess=max(ZERO, daily_housing - lodging),
            meals_excess=max(ZERO, daily_meals - meals),
        )
        if not result.is_compliant:
            logger.warning(
                "stipend_exceeds_gsa",
                offer=offer.name,
                housing_excess=str(result.housing_excess),
                meals_excess=str(result.meals_excess),
            )
        return result


class OfferComparisonEngine:
    """
    Rank job offers by projected take-home pay.

    Taxable pay is reduced by flat federal and state rates; stipends pass
    through untaxed. Annual figures assume ``weeks_worked`` weeks a year.
    """

    def __init__(self, settings: Optional[OfferSettings] = None):
        self.settings = settings or OfferSettings()

    @property
    def weeks_worked(self) -> int:
        return self.settings.weeks_worked

    def _project(
        self,
        offer: JobOffer,
        federal_rate: Decimal,
        state_rate: Decimal,
    ) -> dict:
        weekly_gross = offer.weekly_gross
        weekly_take_home = (
            offer.weekly_taxable * (1 - federal_rate - state_rate) + offer.weekly_stipends
        )
        annual_gross = weekly_gross * self.weeks_worked
        annual_take_home = weekly_take_home * self.weeks_worked

        if offer.hours_per_week > 0:
            blended = weekly_gross / offer.hours_per_week
        else:
            blended = ZERO

        if weekly_gross > 0:
            non_taxable = (offer.weekly_stipends / weekly_gross * HUNDRED).quantize(PERCENT)
        else:
            non_taxable = ZERO

        if annual_gross > 0:
            effective = ((annual_gross - annual_take_home) / annual_gross * HUNDRED).quantize(PERCENT)
        else:
            effective = ZERO

        return {
            "offer": offer,
            "weekly_gross": weekly_gross,
            "weekly_take_home": weekly_take_home,
            "annual_gross": annual_gross,
            "annual_take_home": annual_take_home,
            "blended_hourly_rate": blended,
            "non_taxable_percentage": non_taxable,
            "effective_tax_rate": effective,
        }

    def compare(
        self,
        offers: Sequence[JobOffer],
        federal_rate: Decimal,
        state_rate: Decimal,
    ) -> list[OfferComparisonResult]:
        """
        Project and rank offers, best weekly take-home first.

        Offers with identical take-home keep their input order. Ranks run
        from 1 to len(offers).
        """
        federal_rate = to_decimal(federal_rate)
        state_rate = to_decimal(state_rate)
        projections = [self._project(o, federal_rate, state_rate) for o in offers]
        # sorted() is stable, so exact ties keep input order
        ranked = sorted(projections, key=lambda p: p["weekly_take_home"], reverse=True)
        results = [
            OfferComparisonResult(rank=position, **projection)
            for position, projection in enumerate(ranked, start=1)
        ]
        logger.info(
            "offers_compared",
            count=len(results),
            best=results[0].offer.name if results else None,
        )
        return results

    def best_offer(
        self,
        offers: Sequence[JobOffer],
        federal_rate: Decimal,
        state_rate: Decimal,
    ) -> Optional[OfferComparisonResult]:
        results = self.compare(offers, federal_rate, state_rate)
        return results[0] if results else None

    def stipend_tax_savings(
        self,
        offer: JobOffer,
        federal_rate: Decimal,
        state_rate: Decimal,
    ) -> Decimal:
        """
        Extra annual take-home compared with receiving all pay as taxable wages.
        """
        federal_rate = to_decimal(federal_rate)
        state_rate = to_decimal(state_rate)
        projection = self._project(offer, federal_rate, state_rate)
        fully_taxed = projection["annual_gross"] * (1 - federal_rate - state_rate)
        return projection["annual_take_home"] - fully_taxed

    def weekly_with_overtime(self, offer: JobOffer, overtime_hours: Decimal) -> Decimal:
        """Weekly gross including ``overtime_hours`` at the overtime rate."""
        overtime_hours = max(ZERO, to_decimal(overtime_hours))
        return offer.weekly_gross + (offer.overtime_rate or ZERO) * overtime_hours
