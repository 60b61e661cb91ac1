"""Tax home compliance models.

Travel nurses must maintain a legitimate tax home to receive stipends
tax-free and deduct travel expenses. These models hold the per-year
checklist and visit history; scores are derived by
``travelnurse_core.compliance.ComplianceScorer`` and never stored.
"""

from collections import OrderedDict
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMERATIONS
# =============================================================================

class ChecklistCategory(str, Enum):
    """Categories for checklist items."""
    RESIDENCE = "residence"
    PRESENCE = "presence"
    TIES = "ties"
    FINANCIAL = "financial"
    DOCUMENTATION = "documentation"


class ComplianceItemStatus(str, Enum):
    """Status of an individual checklist item."""
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    PARTIAL = "partial"
    NOT_APPLICABLE = "not_applicable"


class ComplianceLevel(str, Enum):
    """IRS tax home compliance levels, banded by the 0-100 score."""
    EXCELLENT = "excellent"          # 90-100
    GOOD = "good"                    # 70-89
    AT_RISK = "at_risk"              # 50-69
    NON_COMPLIANT = "non_compliant"  # 0-49
    UNKNOWN = "unknown"              # score out of range

    @classmethod
    def from_score(cls, score: int) -> "ComplianceLevel":
        """Map a 0-100 compliance score to its level."""
        if 90 <= score <= 100:
            return cls.EXCELLENT
        if 70 <= score < 90:
            return cls.GOOD
        if 50 <= score < 70:
            return cls.AT_RISK
        if 0 <= score < 50:
            return cls.NON_COMPLIANT
        return cls.UNKNOWN

    @property
    def minimum_score(self) -> int:
        return {
            ComplianceLevel.EXCELLENT: 90,
            ComplianceLevel.GOOD: 70,
            ComplianceLevel.AT_RISK: 50,
        }.get(self, 0)


# =============================================================================
# CHECKLIST
# =============================================================================

class ComplianceChecklistItem(BaseModel):
    """One weighted item of the tax home checklist."""
    id: str
    title: str
    description: str = ""
    category: ChecklistCategory
    weight: int = Field(gt=0)
    status: ComplianceItemStatus = ComplianceItemStatus.INCOMPLETE
    notes: Optional[str] = None
    last_updated: Optional[datetime] = None


def default_checklist_items() -> list[ComplianceChecklistItem]:
    """The standard IRS tax home checklist, all items incomplete."""
    return [
        ComplianceChecklistItem(
            id="maintain_residence",
            title="Maintain a residence at tax home",
            description="You own or rent a home at your tax home location",
            category=ChecklistCategory.RESIDENCE,
            weight=15,
        ),
        ComplianceChecklistItem(
            id="pay_expenses",
            title="Pay tax home expenses",
            description="You pay mortgage/rent and utilities at your tax home",
            category=ChecklistCategory.RESIDENCE,
            weight=15,
        ),
        ComplianceChecklistItem(
            id="regular_visits",
            title="Return regularly to tax home",
            description="You return to your tax home at least once every 30 days",
            category=ChecklistCategory.PRESENCE,
            weight=15,
        ),
        ComplianceChecklistItem(
            id="family_ties",
            title="Family at tax home",
            description="Family members live at your tax home (spouse, children, etc.)",
            category=ChecklistCategory.TIES,
            weight=10,
        ),
        ComplianceChecklistItem(
            id="voter_registration",
            title="Voter registration",
            description="You're registered to vote at your tax home address",
            category=ChecklistCategory.TIES,
            weight=5,
        ),
        ComplianceChecklistItem(
            id="drivers_license",
            title="Driver's license",
            description="Your driver's license shows your tax home address",
            category=ChecklistCategory.TIES,
            weight=5,
        ),
        ComplianceChecklistItem(
            id="vehicle_registration",
            title="Vehicle registration",
            description="Your vehicle is registered at your tax home address",
            category=ChecklistCategory.TIES,
            weight=5,
        ),
        ComplianceChecklistItem(
            id="bank_accounts",
            title="Bank accounts",
            description="You have bank accounts at your tax home location",
            category=ChecklistCategory.FINANCIAL,
            weight=5,
        ),
        ComplianceChecklistItem(
            id="professional_affiliations",
            title="Professional affiliations",
            description="You maintain professional memberships at your tax home",
            category=ChecklistCategory.TIES,
            weight=5,
        ),
        ComplianceChecklistItem(
            id="religious_civic",
            title="Community involvement",
            description="You're involved in religious/civic organizations at tax home",
            category=ChecklistCategory.TIES,
            weight=5,
        ),
    ]


# =============================================================================
# AGGREGATE
# =============================================================================

class TaxHomeCompliance(BaseModel):
    """Per-year tax home record: visit history plus the owned checklist."""
    id: UUID = Field(default_factory=uuid4)
    tax_year: int
    days_at_tax_home: int = Field(default=0, ge=0)
    last_tax_home_visit: Optional[date] = None
    checklist_items: list[ComplianceChecklistItem] = Field(
        default_factory=default_checklist_items
    )
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @field_validator("checklist_items")
    @classmethod
    def validate_unique_ids(
        cls, v: list[ComplianceChecklistItem]
    ) -> list[ComplianceChecklistItem]:
        """Checklist items are addressed by id, so ids must be unique."""
        ids = [item.id for item in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Checklist item ids must be unique")
        return v

    def item(self, item_id: str) -> Optional[ComplianceChecklistItem]:
        """Look up a checklist item by id."""
        for entry in self.checklist_items:
            if entry.id == item_id:
                return entry
        return None

    def items_by_category(self) -> "OrderedDict[ChecklistCategory, list[ComplianceChecklistItem]]":
        """Group items by category, keeping checklist order within each group."""
        grouped: OrderedDict[ChecklistCategory, list[ComplianceChecklistItem]] = OrderedDict()
        for entry in self.checklist_items:
            grouped.setdefault(entry.category, []).append(entry)
        return grouped

    def record_visit(self, days: int, visit_date: date) -> None:
        """Add visit days and move the last-visit marker.

        Negative day counts are ignored so the running total never shrinks.
        """
        self.days_at_tax_home += max(0, days)
        self.last_tax_home_visit = visit_date
        self.updated_at = _utc_now()

    def set_item_status(
        self,
        item_id: str,
        status: ComplianceItemStatus,
        notes: Optional[str] = None,
    ) -> Optional[ComplianceChecklistItem]:
        """Update one item's status in place; returns None for unknown ids."""
        entry = self.item(item_id)
        if entry is None:
            return None
        entry.status = status
        if notes is not None:
            entry.notes = notes
        entry.last_updated = _utc_now()
        self.updated_at = entry.last_updated
        return entry


class ComplianceReport(BaseModel):
    """Derived compliance snapshot for one tax year.

    ``compliance_score`` is the 0-100 integer for score badges;
    ``checklist_completion_percentage`` is the same figure normalized to
    [0, 1] for progress bars.
    """
    tax_year: int
    compliance_score: int = Field(ge=0, le=100)
    checklist_completion_percentage: float = Field(ge=0.0, le=1.0)
    compliance_level: ComplianceLevel
    completed_items: int = 0
    total_items: int = 0
    days_at_tax_home: int = 0
    days_until_30_day_return: Optional[int] = None
    thirty_day_rule_violated: bool = False
    thirty_day_rule_at_risk: bool = False
