"""TravelNurse Core - Tax and compliance calculations for travel nurses."""

__version__ = "0.1.0"

from .calculator import (
    FlatRateTaxEstimator,
    TaxBracketCalculator,
    TaxObligationCalculator,
    calculate_progressive_tax,
    marginal_rate,
)
from .compliance import ComplianceScorer, ComplianceTracker, one_year_rule_warning
from .config import TravelNurseConfig
from .interfaces import InMemoryStore
from .offers import GSAComplianceChecker, OfferComparisonEngine
from .planner import EngineContext, TaxPlanner
from .scheduler import QuarterlyPaymentScheduler, payment_status, quarterly_due_dates, split_evenly

__all__ = [
    "TaxBracketCalculator",
    "TaxObligationCalculator",
    "FlatRateTaxEstimator",
    "calculate_progressive_tax",
    "marginal_rate",
    "QuarterlyPaymentScheduler",
    "quarterly_due_dates",
    "split_evenly",
    "payment_status",
    "ComplianceScorer",
    "ComplianceTracker",
    "one_year_rule_warning",
    "GSAComplianceChecker",
    "OfferComparisonEngine",
    "EngineContext",
    "TaxPlanner",
    "InMemoryStore",
    "TravelNurseConfig",
]
