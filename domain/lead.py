"""
Domain: Lead entity.

Contract excerpts implemented here:
- A Lead is a customer request for service, located by its resolved coordinate.
- The coordinate is resolved before the lead is persisted; a lead never exists without one.
- Status only moves forward: open -> partially_claimed -> closed. closed is terminal.
- The intent score is computed once at submission and does not change thereafter.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from .capability import LeadAudience
from .errors import InvalidStateTransition
from .geo import Coordinate
from .time import require_utc_timestamp


class LeadStatus(str, Enum):
    OPEN = "open"
    PARTIALLY_CLAIMED = "partially_claimed"
    CLOSED = "closed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def can_transition_to(self, target: "LeadStatus") -> bool:
        """Forward moves only. Re-asserting the current status is allowed (no-op)."""

        return target.rank >= self.rank


_STATUS_ORDER = (LeadStatus.OPEN, LeadStatus.PARTIALLY_CLAIMED, LeadStatus.CLOSED)


@dataclass(frozen=True, slots=True)
class LeadInput:
    """Submission payload from the lead intake form."""

    customer_name: str
    customer_email: str
    zip_code: str
    service_type: str
    description: str = ""
    customer_phone: Optional[str] = None
    audience: LeadAudience = LeadAudience.BOTH
    budget: Optional[Decimal] = None
    timeline: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Lead:
    """
    Pure domain entity for a Lead.

    Immutability:
    - Frozen; status changes produce a new instance via `with_status`, which
      refuses backward moves.
    """

    lead_id: UUID
    customer_name: str
    customer_email: str
    zip_code: str
    coordinate: Coordinate
    service_type: str
    description: str
    status: LeadStatus
    intent_score: int
    created_at: datetime
    audience: LeadAudience = LeadAudience.BOTH
    customer_phone: Optional[str] = None
    budget: Optional[Decimal] = None
    timeline: Optional[str] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def is_closed(self) -> bool:
        return self.status is LeadStatus.CLOSED

    def with_status(self, status: LeadStatus, at: datetime) -> "Lead":
        if not self.status.can_transition_to(status):
            raise InvalidStateTransition(self.lead_id, self.status.value, status.value)
        if status is self.status:
            return self
        return replace(self, status=status, updated_at=at)


def calculate_intent_score(
    description: str,
    *,
    budget: Optional[Decimal] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    timeline: Optional[str] = None,
) -> int:
    """
    Score how ready a customer is to buy, from 1 to 10.

    Base 5; urgency words +3; budget over 1000 +2; both phone and email +1;
    a detailed description (over 50 chars) +1; a timeline in months +1.
    """

    score = 5
    text = (description or "").lower()

    if "urgent" in text or "asap" in text:
        score += 3
    if budget is not None and budget > 1000:
        score += 2
    if phone and email:
        score += 1
    if len(description or "") > 50:
        score += 1
    if timeline and "month" in timeline.lower():
        score += 1

    return min(score, 10)
