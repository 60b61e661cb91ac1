"""High-level tax planning facade.

TaxPlanner wires the calculators together over an explicit EngineContext:
it reads year-to-date totals from the income source, computes the year's
obligation, keeps the quarterly schedule and compliance record current and
compares job offers.

Usage:
    from travelnurse_core import EngineContext, TaxPlanner

    context = EngineContext.in_memory(income_source=my_ledger)
    planner = TaxPlanner(context)
    payments = planner.quarterly_payments(2025)
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from .calculator import FlatRateTaxEstimator, TaxObligationCalculator
from .compliance import ComplianceScorer, ComplianceTracker, one_year_rule_warning
from .config import TravelNurseConfig
from .exceptions import ConfigurationError
from .interfaces import (
    ComplianceStore,
    IncomeSource,
    InMemoryStore,
    PaymentStore,
    ReminderDelivery,
    TaxHomeStateSource,
)
from .models import (
    ComplianceReport,
    GSAComplianceResult,
    JobOffer,
    OfferComparisonResult,
    PaymentSummary,
    QuarterlyPayment,
    TaxObligationInput,
    TaxObligationResult,
    USState,
)
from .offers import (
    GSAComplianceChecker,
    OfferComparisonEngine,
    estimate_federal_bracket,
    estimate_state_rate,
)
from .scheduler import QuarterlyPaymentScheduler

logger = structlog.get_logger()


@dataclass
class EngineContext:
    """Collaborators and configuration handed to the planner.

    Attributes:
        income_source: Year-to-date income and deduction totals
        payment_store: Persistence for quarterly payments
        compliance_store: Persistence for tax home compliance records
        tax_home_state_source: Declared tax home (config default when absent)
        reminders: Optional reminder delivery
        config: Engine configuration
    """
    income_source: IncomeSource
    payment_store: PaymentStore
    compliance_store: ComplianceStore
    tax_home_state_source: Optional[TaxHomeStateSource] = None
    reminders: Optional[ReminderDelivery] = None
    config: TravelNurseConfig = field(default_factory=TravelNurseConfig)

    @classmethod
    def in_memory(
        cls,
        income_source: IncomeSource,
        tax_home_state_source: Optional[TaxHomeStateSource] = None,
        reminders: Optional[ReminderDelivery] = None,
        config: Optional[TravelNurseConfig] = None,
    ) -> "EngineContext":
        """Context backed by one InMemoryStore for both record types."""
        store = InMemoryStore()
        return cls(
            income_source=income_source,
            payment_store=store,
            compliance_store=store,
            tax_home_state_source=tax_home_state_source,
            reminders=reminders,
            config=config or TravelNurseConfig(),
        )


class TaxPlanner:
    """
    Year-level planning over an EngineContext.

    The progressive calculator is always preferred. When it cannot be
    built for a year (no bracket table), the planner falls back to the flat
    estimate and the result is labelled ``flat_rate_fallback``.
    """

    def __init__(self, context: EngineContext):
        self.context = context
        self.config = context.config
        self.scheduler = QuarterlyPaymentScheduler(
            context.payment_store,
            settings=self.config.schedule,
            reminders=context.reminders,
        )
        self.tracker = ComplianceTracker(
            context.compliance_store,
            scorer=ComplianceScorer(self.config.compliance),
        )
        self.offer_engine = OfferComparisonEngine(self.config.offers)
        self.gsa_checker = GSAComplianceChecker(self.config.offers)

    def _year(self, tax_year: Optional[int], today: Optional[date] = None) -> int:
        if tax_year is not None:
            return tax_year
        return self.config.resolved_tax_year(today)

    def tax_home_state(self) -> USState:
        """The declared tax home, or the configured default when unset."""
        source = self.context.tax_home_state_source
        state = source.tax_home_state() if source is not None else None
        return state if state is not None else self.config.default_state

    # -------------------------------------------------------------------------
    # Tax obligation
    # -------------------------------------------------------------------------

    def build_input(self, tax_year: Optional[int] = None) -> TaxObligationInput:
        year = self._year(tax_year)
        totals = self.context.income_source.totals_for_year(year)
        return TaxObligationInput(
            gross_income=totals.gross_income,
            deductions=totals.deductions,
            state=self.tax_home_state(),
            is_self_employed=self.config.tax.self_employed_by_default,
            tax_year=year,
            filing_status=self.config.filing_status,
        )

    def calculate(self, obligation: TaxObligationInput) -> TaxObligationResult:
        """Progressive calculation with the flat-rate fallback."""
        try:
            calculator = TaxObligationCalculator(
                obligation.tax_year,
                obligation.filing_status,
                settings=self.config.tax,
            )
        except ConfigurationError as e:
            logger.warning(
                "progressive_calculator_unavailable",
                tax_year=obligation.tax_year,
                error=str(e),
            )
            return FlatRateTaxEstimator(self.config.tax).estimate(obligation)
        return calculator.calculate(obligation)

    def calculate_obligation(self, tax_year: Optional[int] = None) -> TaxObligationResult:
        return self.calculate(self.build_input(tax_year))

    # -------------------------------------------------------------------------
    # Quarterly payments
    # -------------------------------------------------------------------------

    def quarterly_payments(
        self,
        tax_year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[QuarterlyPayment]:
        """The year's payments, generated (with reminders) on first access."""
        today = today or date.today()
        year = self._year(tax_year, today)
        existing = self.context.payment_store.list_payments(year)
        if existing:
            return existing

        payments = self.scheduler.generate(year, self.calculate_obligation(year))
        if self.context.reminders is not None:
            self.scheduler.schedule_reminders(payments, today)
        return payments

    def refresh_quarterly_estimates(
        self,
        tax_year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[QuarterlyPayment]:
        today = today or date.today()
        year = self._year(tax_year, today)
        return self.scheduler.refresh_estimates(year, self.calculate_obligation(year), today)

    def record_payment(
        self,
        payment: QuarterlyPayment,
        amount: Decimal,
        notes: Optional[str] = None,
    ) -> QuarterlyPayment:
        return self.scheduler.record_payment(payment, amount, notes=notes)

    def payment_summary(
        self,
        tax_year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> PaymentSummary:
        today = today or date.today()
        return self.scheduler.summary(self._year(tax_year, today), today)

    # -------------------------------------------------------------------------
    # Compliance
    # -------------------------------------------------------------------------

    def compliance_report(
        self,
        tax_year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> ComplianceReport:
        today = today or date.today()
        return self.tracker.report(self._year(tax_year, today), today)

    def one_year_rule_warning(self, days_at_assignment: int) -> Optional[int]:
        return one_year_rule_warning(
            days_at_assignment, self.config.compliance.one_year_warning_days
        )

    # -------------------------------------------------------------------------
    # Offers
    # -------------------------------------------------------------------------

    def compare_offers(
        self,
        offers: Sequence[JobOffer],
        federal_rate: Optional[Decimal] = None,
        state_rate: Optional[Decimal] = None,
    ) -> list[OfferComparisonResult]:
        """
        Rank offers by take-home pay.

        Without explicit rates, the federal rate is the marginal bracket of
        the year's taxable income and the state rate is the tax home's
        estimated rate.
        """
        if federal_rate is None:
            federal_rate = estimate_federal_bracket(self.build_input().taxable_income)
        if state_rate is None:
            state_rate = estimate_state_rate(self.tax_home_state())
        return self.offer_engine.compare(offers, federal_rate, state_rate)

    def check_gsa(self, offer: JobOffer) -> GSAComplianceResult:
        return self.gsa_checker.check(offer)
