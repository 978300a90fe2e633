"""
Domain: Member (professional or vendor) entity.

Contract excerpts implemented here:
- A Member holds one or more service capabilities and a resolved home coordinate.
- Members are never hard-deleted; deactivation is a flag so claim history stays intact.
- credit_balance is only meaningful on the pay_per_claim tier and never goes negative.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Optional
from uuid import UUID

from .capability import ServiceCapability
from .errors import ValidationError
from .geo import Coordinate
from .subscription import SubscriptionTier
from .time import require_utc_timestamp

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(email: str) -> str:
    value = email.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"Invalid email address: {email!r}")
    return value


class MemberRole(str, Enum):
    PROFESSIONAL = "professional"
    VENDOR = "vendor"


@dataclass(frozen=True, slots=True)
class MemberInput:
    """Registration payload, before a coordinate or id has been assigned."""

    name: str
    email: str
    role: MemberRole
    services: Iterable[ServiceCapability]
    zip_code: str
    subscription_tier: SubscriptionTier = SubscriptionTier.BASIC
    credit_balance: Optional[int] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Member:
    """
    Immutable snapshot of a member.

    State changes return a new instance; repositories persist the result.
    """

    member_id: UUID
    name: str
    email: str
    role: MemberRole
    services: FrozenSet[ServiceCapability]
    zip_code: str
    coordinate: Coordinate
    subscription_tier: SubscriptionTier
    created_at: datetime
    credit_balance: int = 0
    claimed_lead_ids: FrozenSet[UUID] = field(default_factory=frozenset)
    is_active: bool = True
    company_name: Optional[str] = None
    phone: Optional[str] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)
        if not self.services:
            raise ValidationError("A member must offer at least one service")
        if self.credit_balance < 0:
            raise ValidationError("credit_balance cannot be negative")

    def offers_any(self, capabilities: Iterable[ServiceCapability]) -> bool:
        return not self.services.isdisjoint(capabilities)

    def has_claimed(self, lead_id: UUID) -> bool:
        return lead_id in self.claimed_lead_ids

    def deactivated(self, at: datetime) -> "Member":
        return replace(self, is_active=False, updated_at=at)

    def with_subscription(self, tier: SubscriptionTier, at: datetime) -> "Member":
        return replace(self, subscription_tier=tier, updated_at=at)

    def with_services(self, services: Iterable[ServiceCapability], at: datetime) -> "Member":
        return replace(self, services=frozenset(services), updated_at=at)

    def with_credits(self, amount: int, at: datetime) -> "Member":
        return replace(self, credit_balance=self.credit_balance + amount, updated_at=at)

    def with_claim(self, lead_id: UUID, credits_debited: int, at: datetime) -> "Member":
        """Record a claim on this member, debiting credits where the tier charges them."""

        if credits_debited > self.credit_balance:
            raise ValidationError("Cannot debit more credits than the member holds")
        return replace(
            self,
            claimed_lead_ids=self.claimed_lead_ids | {lead_id},
            credit_balance=self.credit_balance - credits_debited,
            updated_at=at,
        )
