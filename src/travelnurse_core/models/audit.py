"""Audit trail model for calculation transparency."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


class AuditEntry(BaseModel):
    """One recorded step of a tax calculation.

    Every calculator step (taxable income, federal tax, state tax, ...)
    appends an entry so a result can explain how each figure was reached.
    """
    timestamp: datetime = Field(default_factory=_utc_now)
    step: str
    input_value: str
    output_value: str
    source: str
    notes: Optional[str] = None
