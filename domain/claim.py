"""
Domain: Claim records.

Contract excerpts relevant here:
- A member may claim a given lead at most once.
- Claim creation, quota/credit accounting and the lead's first-claim status
  change happen together or not at all.

This module captures claim events. Eligibility and quota enforcement live in
the claim allocation service.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Claim:
    """
    Immutable record of a member claiming a lead.

    credits_debited is 1 for pay-per-claim members and 0 otherwise.
    """

    claim_id: UUID
    member_id: UUID
    lead_id: UUID
    claimed_at: datetime
    credits_debited: int = 0

    def __post_init__(self) -> None:
        require_utc_timestamp("claimed_at", self.claimed_at)
        if self.credits_debited < 0:
            raise ValueError("credits_debited cannot be negative")
