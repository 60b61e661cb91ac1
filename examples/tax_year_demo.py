#!/usr/bin/env python3
"""
Travel Nurse Tax Year Demonstration

This script walks through one tax year for a travel nurse:
1. Calculate the year's tax obligation
2. Generate quarterly estimated payments and record one
3. Score tax home compliance
4. Compare two job offers and check stipends against GSA rates

Run: python examples/tax_year_demo.py
"""

from datetime import date
from decimal import Decimal

from travelnurse_core import EngineContext, TaxPlanner, TravelNurseConfig
from travelnurse_core.logging_config import configure_logging
from travelnurse_core.models import ComplianceItemStatus, IncomeTotals, JobOffer, USState


class SampleIncome:
    """Year-to-date totals for the demo nurse."""

    def totals_for_year(self, tax_year: int) -> IncomeTotals:
        return IncomeTotals(
            tax_year=tax_year,
            gross_income=Decimal("95000"),
            deductions=Decimal("18500"),
        )


class SampleTaxHome:

    def tax_home_state(self):
        return USState.OR


def main():
    """Run the tax year demonstration."""
    config = TravelNurseConfig(tax_year=2025, log_level="WARNING")
    configure_logging(config)
    today = date(2025, 5, 1)

    planner = TaxPlanner(
        EngineContext.in_memory(SampleIncome(), SampleTaxHome(), config=config)
    )

    print("=" * 70)
    print("TRAVELNURSE CORE - Tax Year Demo")
    print("=" * 70)
    print()

    # Step 1: Tax obligation
    print("Step 1: Calculating 2025 tax obligation...")
    result = planner.calculate_obligation()
    print(f"  - Tax Home: {result.state.value}")
    print(f"  - Taxable Income: ${result.taxable_income:,.2f}")
    print(f"  - Federal Tax: ${result.federal_tax:,.2f}")
    print(f"  - State Tax: ${result.state_tax:,.2f}")
    print(f"  - Self-Employment Tax: ${result.self_employment_tax:,.2f}")
    print(f"  - Total Tax: ${result.total_tax:,.2f} ({result.effective_tax_rate:.1%})")
    print(f"  - Method: {result.method.value}")
    print()

    # Step 2: Quarterly payments
    print("Step 2: Quarterly estimated payments...")
    payments = planner.quarterly_payments(today=today)
    planner.record_payment(payments[0], payments[0].estimated_amount, notes="IRS Direct Pay")
    for payment in payments:
        status = planner.scheduler.status(payment, today)
        print(
            f"  - {payment.full_name}: ${payment.estimated_amount:,.2f} "
            f"due {payment.due_date.isoformat()} [{status.value}]"
        )
    summary = planner.payment_summary(today=today)
    print(f"  - Paid: ${summary.total_paid:,.2f} of ${summary.total_estimated:,.2f} ({summary.progress:.0%})")
    print()

    # Step 3: Compliance
    print("Step 3: Tax home compliance...")
    for item_id in ("maintain_residence", "pay_expenses", "drivers_license", "voter_registration"):
        planner.tracker.update_checklist_item(2025, item_id, ComplianceItemStatus.COMPLETE)
    planner.tracker.record_visit(2025, 4, date(2025, 4, 6))
    report = planner.compliance_report(today=today)
    print(f"  - Score: {report.compliance_score} ({report.compliance_level.value})")
    print(f"  - Days until 30-day return: {report.days_until_30_day_return}")
    print(f"  - 30-day rule at risk: {report.thirty_day_rule_at_risk}")
    print()

    # Step 4: Offers
    print("Step 4: Comparing job offers...")
    offers = [
        JobOffer(
            name="Portland ICU",
            hourly_rate=Decimal("28"),
            hours_per_week=Decimal("36"),
            housing_stipend=Decimal("1450"),
            meals_stipend=Decimal("550"),
        ),
        JobOffer(
            name="Phoenix ER",
            hourly_rate=Decimal("45"),
            hours_per_week=Decimal("36"),
            housing_stipend=Decimal("700"),
            meals_stipend=Decimal("350"),
        ),
    ]
    for comparison in planner.compare_offers(offers):
        gsa = planner.check_gsa(comparison.offer)
        print(
            f"  {comparison.rank}. {comparison.offer.name}: "
            f"${comparison.weekly_take_home:,.2f}/week take-home, "
            f"{comparison.non_taxable_percentage}% non-taxable, "
            f"GSA {'ok' if gsa.is_compliant else 'exceeded'}"
        )

    print()
    print("=" * 70)
    print("Demo complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
