"""Tax home compliance scoring and tracking.

The IRS treats stipends as tax-free only while a travel nurse keeps a real
tax home. ComplianceScorer turns a year's checklist and visit history into
a score, a level and the status of the 30-day return rule;
ComplianceTracker owns the per-year records and their edits.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

import structlog

from .config import ComplianceSettings
from .exceptions import ValidationError
from .interfaces import ComplianceStore
from .models import (
    ComplianceChecklistItem,
    ComplianceItemStatus,
    ComplianceLevel,
    ComplianceReport,
    TaxHomeCompliance,
)

logger = structlog.get_logger()


class ComplianceScorer:
    """
    Derive compliance figures from a TaxHomeCompliance record.

    Nothing computed here is stored; call ``evaluate`` whenever a fresh
    report is needed.
    """

    def __init__(self, settings: Optional[ComplianceSettings] = None):
        self.settings = settings or ComplianceSettings()

    def score(self, items: Sequence[ComplianceChecklistItem]) -> int:
        """
        Weighted completion score from 0 to 100.

        Complete items earn their full weight, partial items earn
        ``partial_credit`` of it (nothing by default). Items marked not
        applicable still count toward the total weight.
        """
        total_weight = sum(item.weight for item in items)
        if total_weight <= 0:
            return 0

        earned = Decimal("0")
        for item in items:
            if item.status == ComplianceItemStatus.COMPLETE:
                earned += item.weight
            elif item.status == ComplianceItemStatus.PARTIAL:
                earned += item.weight * self.settings.partial_credit

        score = (Decimal(100) * earned / total_weight).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return max(0, min(100, int(score)))

    def completion_fraction(self, items: Sequence[ComplianceChecklistItem]) -> float:
        """The score normalized to [0, 1]."""
        return self.score(items) / 100

    def level(self, items: Sequence[ComplianceChecklistItem]) -> ComplianceLevel:
        return ComplianceLevel.from_score(self.score(items))

    def days_until_30_day_return(
        self,
        last_visit: Optional[date],
        today: date,
    ) -> Optional[int]:
        """
        Days left before the nurse must return to the tax home.

        Returns None when there is no recorded visit or the visit date lies
        in the future.
        """
        if last_visit is None or last_visit > today:
            return None
        days_since = (today - last_visit).days
        return max(0, self.settings.return_limit_days - days_since)

    def thirty_day_rule_violated(self, last_visit: Optional[date], today: date) -> bool:
        countdown = self.days_until_30_day_return(last_visit, today)
        if countdown is None:
            return False
        return countdown == 0 and (today - last_visit).days > self.settings.return_limit_days

    def thirty_day_rule_at_risk(self, last_visit: Optional[date], today: date) -> bool:
        countdown = self.days_until_30_day_return(last_visit, today)
        if countdown is None:
            return False
        return (
            countdown <= self.settings.at_risk_days
            and not self.thirty_day_rule_violated(last_visit, today)
        )

    def evaluate(self, record: TaxHomeCompliance, today: date) -> ComplianceReport:
        """Build a full report for one tax year's record."""
        items = record.checklist_items
        score = self.score(items)
        report = ComplianceReport(
            tax_year=record.tax_year,
            compliance_score=score,
            checklist_completion_percentage=score / 100,
            compliance_level=ComplianceLevel.from_score(score),
            completed_items=sum(
                1 for item in items if item.status == ComplianceItemStatus.COMPLETE
            ),
            total_items=len(items),
            days_at_tax_home=record.days_at_tax_home,
            days_until_30_day_return=self.days_until_30_day_return(
                record.last_tax_home_visit, today
            ),
            thirty_day_rule_violated=self.thirty_day_rule_violated(
                record.last_tax_home_visit, today
            ),
            thirty_day_rule_at_risk=self.thirty_day_rule_at_risk(
                record.last_tax_home_visit, today
            ),
        )
        logger.debug(
            "compliance_evaluated",
            tax_year=record.tax_year,
            score=score,
            level=report.compliance_level.value,
        )
        return report


def one_year_rule_warning(
    days_at_assignment: int,
    thresholds: Sequence[int] = (300, 330, 350),
) -> Optional[int]:
    """
    Highest one-year-rule warning threshold crossed at one location.

    An assignment expected to last more than a year at one location becomes
    indefinite and its stipends taxable.
    """
    crossed = [t for t in thresholds if days_at_assignment >= t]
    return max(crossed) if crossed else None


class ComplianceTracker:
    """Owns the per-year TaxHomeCompliance records."""

    def __init__(
        self,
        store: ComplianceStore,
        scorer: Optional[ComplianceScorer] = None,
    ):
        self.store = store
        self.scorer = scorer or ComplianceScorer()

    def get_or_create(self, tax_year: int) -> TaxHomeCompliance:
        """Return the year's record, creating it with the default checklist."""
        record = self.store.get_compliance(tax_year)
        if record is None:
            record = TaxHomeCompliance(tax_year=tax_year)
            self.store.save_compliance(record)
            logger.info("compliance_record_created", tax_year=tax_year)
        return record

    def record_visit(self, tax_year: int, days: int, visit_date: date) -> TaxHomeCompliance:
        """Add days spent at the tax home and move the last-visit date."""
        if days < 0:
            logger.warning("negative_visit_days_ignored", tax_year=tax_year, days=days)
        record = self.get_or_create(tax_year)
        record.record_visit(days, visit_date)
        self.store.save_compliance(record)
        logger.info(
            "tax_home_visit_recorded",
            tax_year=tax_year,
            days=max(0, days),
            visit_date=visit_date.isoformat(),
        )
        return record

    def update_checklist_item(
        self,
        tax_year: int,
        item_id: str,
        status: ComplianceItemStatus,
        notes: Optional[str] = None,
    ) -> ComplianceChecklistItem:
        """
        Set the status of one checklist item.

        Raises:
            ValidationError: If ``item_id`` is not on the year's checklist
        """
        record = self.get_or_create(tax_year)
        item = record.set_item_status(item_id, ComplianceItemStatus(status), notes)
        if item is None:
            raise ValidationError(
                f"Unknown checklist item: {item_id}",
                field="item_id",
                value=item_id,
                constraint="Must be one of the tax home checklist ids",
            )
        self.store.save_compliance(record)
        logger.info(
            "checklist_item_updated",
            tax_year=tax_year,
            item_id=item_id,
            status=item.status.value,
        )
        return item

    def incomplete_items(self, tax_year: int) -> list[ComplianceChecklistItem]:
        record = self.get_or_create(tax_year)
        return [
            item for item in record.checklist_items
            if item.status in (ComplianceItemStatus.INCOMPLETE, ComplianceItemStatus.PARTIAL)
        ]

    def report(self, tax_year: int, today: date) -> ComplianceReport:
        return self.scorer.evaluate(self.get_or_create(tax_year), today)
