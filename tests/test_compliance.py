"""Tests for tax home compliance scoring and tracking."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from travelnurse_core import (
    ComplianceScorer,
    ComplianceTracker,
    InMemoryStore,
    one_year_rule_warning,
)
from travelnurse_core.config import ComplianceSettings
from travelnurse_core.exceptions import ValidationError
from travelnurse_core.models import (
    ChecklistCategory,
    ComplianceChecklistItem,
    ComplianceItemStatus,
    ComplianceLevel,
    TaxHomeCompliance,
    default_checklist_items,
)


TODAY = date(2025, 6, 1)


@pytest.fixture
def scorer() -> ComplianceScorer:
    return ComplianceScorer(ComplianceSettings())


@pytest.fixture
def items() -> list[ComplianceChecklistItem]:
    return default_checklist_items()


@pytest.fixture
def tracker() -> ComplianceTracker:
    return ComplianceTracker(InMemoryStore(), ComplianceScorer(ComplianceSettings()))


def _set(items, item_id, status):
    for item in items:
        if item.id == item_id:
            item.status = status
    return items


class TestDefaultChecklist:

    def test_ten_items_in_order(self, items):
        assert [item.id for item in items] == [
            "maintain_residence",
            "pay_expenses",
            "regular_visits",
            "family_ties",
            "voter_registration",
            "drivers_license",
            "vehicle_registration",
            "bank_accounts",
            "professional_affiliations",
            "religious_civic",
        ]

    def test_weights(self, items):
        assert [item.weight for item in items] == [15, 15, 15, 10, 5, 5, 5, 5, 5, 5]

    def test_all_start_incomplete(self, items):
        assert all(item.status == ComplianceItemStatus.INCOMPLETE for item in items)

    def test_fresh_list_each_call(self):
        first = default_checklist_items()
        first[0].status = ComplianceItemStatus.COMPLETE
        assert default_checklist_items()[0].status == ComplianceItemStatus.INCOMPLETE


class TestScore:
    """Weighted score and its normalized fraction."""

    def test_nothing_complete(self, scorer, items):
        assert scorer.score(items) == 0
        assert scorer.completion_fraction(items) == 0.0

    def test_everything_complete(self, scorer, items):
        for item in items:
            item.status = ComplianceItemStatus.COMPLETE
        assert scorer.score(items) == 100
        assert scorer.completion_fraction(items) == 1.0

    def test_weighted_rounding(self, scorer, items):
        """15 of 85 weight is 17.6%, rounded to 18."""
        _set(items, "maintain_residence", ComplianceItemStatus.COMPLETE)
        assert scorer.score(items) == 18
        assert scorer.completion_fraction(items) == 0.18

    def test_fraction_is_score_over_100(self, scorer, items):
        _set(items, "maintain_residence", ComplianceItemStatus.COMPLETE)
        _set(items, "family_ties", ComplianceItemStatus.COMPLETE)
        assert scorer.completion_fraction(items) == scorer.score(items) / 100

    def test_partial_earns_nothing_by_default(self, scorer, items):
        _set(items, "family_ties", ComplianceItemStatus.PARTIAL)
        assert scorer.score(items) == 0

    def test_partial_credit_setting(self, items):
        scorer = ComplianceScorer(ComplianceSettings(partial_credit=Decimal("0.5")))
        _set(items, "family_ties", ComplianceItemStatus.PARTIAL)
        # 5 of 85
        assert scorer.score(items) == 6

    def test_not_applicable_stays_in_total(self, scorer, items):
        for item in items:
            item.status = ComplianceItemStatus.COMPLETE
        _set(items, "family_ties", ComplianceItemStatus.NOT_APPLICABLE)
        # 75 of 85
        assert scorer.score(items) == 88

    def test_empty_checklist(self, scorer):
        assert scorer.score([]) == 0
        assert scorer.level([]) == ComplianceLevel.NON_COMPLIANT


class TestComplianceLevel:

    @pytest.mark.parametrize(
        "score,level",
        [
            (100, ComplianceLevel.EXCELLENT),
            (90, ComplianceLevel.EXCELLENT),
            (89, ComplianceLevel.GOOD),
            (70, ComplianceLevel.GOOD),
            (69, ComplianceLevel.AT_RISK),
            (50, ComplianceLevel.AT_RISK),
            (49, ComplianceLevel.NON_COMPLIANT),
            (0, ComplianceLevel.NON_COMPLIANT),
            (101, ComplianceLevel.UNKNOWN),
            (-1, ComplianceLevel.UNKNOWN),
        ],
    )
    def test_from_score(self, score, level):
        assert ComplianceLevel.from_score(score) == level

    def test_minimum_score(self):
        assert ComplianceLevel.GOOD.minimum_score == 70


class TestThirtyDayRule:
    """Countdown to the next required tax home visit."""

    def test_no_visit(self, scorer):
        assert scorer.days_until_30_day_return(None, TODAY) is None
        assert not scorer.thirty_day_rule_violated(None, TODAY)
        assert not scorer.thirty_day_rule_at_risk(None, TODAY)

    def test_future_visit(self, scorer):
        assert scorer.days_until_30_day_return(TODAY + timedelta(days=3), TODAY) is None

    def test_visit_today(self, scorer):
        assert scorer.days_until_30_day_return(TODAY, TODAY) == 30
        assert not scorer.thirty_day_rule_at_risk(TODAY, TODAY)

    def test_ten_days_ago(self, scorer):
        visit = TODAY - timedelta(days=10)
        assert scorer.days_until_30_day_return(visit, TODAY) == 20
        assert not scorer.thirty_day_rule_at_risk(visit, TODAY)

    def test_at_risk_inside_a_week(self, scorer):
        visit = TODAY - timedelta(days=25)
        assert scorer.days_until_30_day_return(visit, TODAY) == 5
        assert scorer.thirty_day_rule_at_risk(visit, TODAY)
        assert not scorer.thirty_day_rule_violated(visit, TODAY)

    def test_exactly_thirty_days_is_not_violated(self, scorer):
        visit = TODAY - timedelta(days=30)
        assert scorer.days_until_30_day_return(visit, TODAY) == 0
        assert not scorer.thirty_day_rule_violated(visit, TODAY)
        assert scorer.thirty_day_rule_at_risk(visit, TODAY)

    def test_violated(self, scorer):
        visit = TODAY - timedelta(days=35)
        assert scorer.days_until_30_day_return(visit, TODAY) == 0
        assert scorer.thirty_day_rule_violated(visit, TODAY)
        assert not scorer.thirty_day_rule_at_risk(visit, TODAY)


class TestEvaluate:

    def test_report(self, scorer):
        record = TaxHomeCompliance(
            tax_year=2025,
            days_at_tax_home=42,
            last_tax_home_visit=TODAY - timedelta(days=35),
        )
        for item in record.checklist_items:
            item.status = ComplianceItemStatus.COMPLETE

        report = scorer.evaluate(record, TODAY)

        assert report.compliance_score == 100
        assert report.checklist_completion_percentage == 1.0
        assert report.compliance_level == ComplianceLevel.EXCELLENT
        assert report.completed_items == 10
        assert report.total_items == 10
        assert report.days_at_tax_home == 42
        assert report.days_until_30_day_return == 0
        assert report.thirty_day_rule_violated


class TestTaxHomeCompliance:

    def test_item_lookup(self):
        record = TaxHomeCompliance(tax_year=2025)
        assert record.item("bank_accounts").category == ChecklistCategory.FINANCIAL
        assert record.item("passport") is None

    def test_items_by_category_keeps_order(self):
        grouped = TaxHomeCompliance(tax_year=2025).items_by_category()
        assert list(grouped) == [
            ChecklistCategory.RESIDENCE,
            ChecklistCategory.PRESENCE,
            ChecklistCategory.TIES,
            ChecklistCategory.FINANCIAL,
        ]
        assert [i.id for i in grouped[ChecklistCategory.RESIDENCE]] == [
            "maintain_residence",
            "pay_expenses",
        ]

    def test_duplicate_ids_rejected(self):
        item = default_checklist_items()[0]
        with pytest.raises(ValueError):
            TaxHomeCompliance(tax_year=2025, checklist_items=[item, item])

    def test_weight_must_be_positive(self):
        with pytest.raises(ValueError):
            ComplianceChecklistItem(
                id="x", title="X", category=ChecklistCategory.TIES, weight=0
            )


class TestComplianceTracker:
    """Tests for per-year record maintenance."""

    def test_get_or_create_once(self, tracker):
        first = tracker.get_or_create(2025)
        assert tracker.get_or_create(2025).id == first.id
        assert len(first.checklist_items) == 10

    def test_record_visit_accumulates(self, tracker):
        tracker.record_visit(2025, 4, date(2025, 3, 1))
        record = tracker.record_visit(2025, 3, date(2025, 4, 2))

        assert record.days_at_tax_home == 7
        assert record.last_tax_home_visit == date(2025, 4, 2)

    def test_negative_visit_days_ignored(self, tracker):
        tracker.record_visit(2025, 5, date(2025, 3, 1))
        record = tracker.record_visit(2025, -3, date(2025, 3, 10))
        assert record.days_at_tax_home == 5
        assert record.last_tax_home_visit == date(2025, 3, 10)

    def test_update_checklist_item(self, tracker):
        item = tracker.update_checklist_item(
            2025, "voter_registration", ComplianceItemStatus.COMPLETE, notes="Registered in TX"
        )
        assert item.status == ComplianceItemStatus.COMPLETE
        assert item.notes == "Registered in TX"
        assert item.last_updated is not None
        assert tracker.report(2025, TODAY).compliance_score == 6

    def test_update_accepts_status_value(self, tracker):
        item = tracker.update_checklist_item(2025, "bank_accounts", "partial")
        assert item.status == ComplianceItemStatus.PARTIAL

    def test_unknown_item_raises(self, tracker):
        with pytest.raises(ValidationError) as exc_info:
            tracker.update_checklist_item(2025, "passport", ComplianceItemStatus.COMPLETE)
        assert exc_info.value.field == "item_id"

    def test_incomplete_items(self, tracker):
        tracker.update_checklist_item(2025, "maintain_residence", ComplianceItemStatus.COMPLETE)
        tracker.update_checklist_item(2025, "family_ties", ComplianceItemStatus.NOT_APPLICABLE)
        remaining = [item.id for item in tracker.incomplete_items(2025)]
        assert "maintain_residence" not in remaining
        assert "family_ties" not in remaining
        assert len(remaining) == 8


class TestOneYearRule:

    @pytest.mark.parametrize(
        "days,warning",
        [(0, None), (299, None), (300, 300), (329, 300), (340, 330), (350, 350), (400, 350)],
    )
    def test_thresholds(self, days, warning):
        assert one_year_rule_warning(days) == warning
