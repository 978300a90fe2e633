"""
Repository interfaces.

Services depend on these protocols only. Two backends implement them:
- repositories.memory: in-process store used by tests and local demos.
- repositories.*_repository: Supabase (Postgres) tables plus the
  `claim_lead_atomic` database function.

Repositories persist and fetch. The one exception is `ClaimRepository.commit`,
which must re-check the claim invariants inside its transaction so that the
claim row, the member's claimed set / credit balance and the lead's status
never diverge.
"""

from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Iterable, List, Optional, Protocol
from uuid import UUID

from domain.capability import ServiceCapability
from domain.claim import Claim
from domain.lead import Lead, LeadStatus
from domain.member import Member
from domain.subscription import SubscriptionTier


class MemberRepository(Protocol):
    def add(self, member: Member) -> Member: ...

    def get(self, member_id: UUID) -> Optional[Member]: ...

    def get_by_email(self, email: str) -> Optional[Member]: ...

    # Field-level updates so a profile change never overwrites a concurrent
    # claim's effect on claimed_lead_ids / credit_balance.
    def set_active(self, member_id: UUID, active: bool, at: datetime) -> Member: ...

    def set_subscription(self, member_id: UUID, tier: SubscriptionTier, at: datetime) -> Member: ...

    def set_services(self, member_id: UUID, services: Iterable[ServiceCapability], at: datetime) -> Member: ...

    def add_credits(self, member_id: UUID, amount: int, at: datetime) -> Member: ...

    def list_active_with_capabilities(self, capabilities: Iterable[ServiceCapability]) -> List[Member]: ...


class LeadRepository(Protocol):
    def add(self, lead: Lead) -> Lead: ...

    def get(self, lead_id: UUID) -> Optional[Lead]: ...

    def save(self, lead: Lead) -> Lead: ...

    def list_by_status(self, statuses: Iterable[LeadStatus]) -> List[Lead]: ...


class ClaimRepository(Protocol):
    def exists(self, member_id: UUID, lead_id: UUID) -> bool: ...

    def count_for_member_between(self, member_id: UUID, start: datetime, end: datetime) -> int: ...

    def list_by_member(self, member_id: UUID) -> List[Claim]: ...

    def list_by_lead(self, lead_id: UUID) -> List[Claim]: ...

    def member_lock(self, member_id: UUID) -> ContextManager[None]:
        """Serialise claim attempts for one member (covers both the pair and the month)."""
        ...

    def commit(
        self,
        *,
        member_id: UUID,
        lead_id: UUID,
        claimed_at: datetime,
        subscription_tier: SubscriptionTier,
        credits_debited: int,
        monthly_claim_cap: Optional[int],
    ) -> Claim:
        """
        Atomically insert the claim, add the lead to the member's claimed set,
        debit credits and advance an open lead to partially_claimed.

        subscription_tier is the tier the cap and credit cost were derived
        from; a member whose stored tier differs raises SubscriptionChanged.

        Raises the matching domain error (LeadUnavailable, AlreadyClaimed,
        SubscriptionChanged, QuotaExceeded, InsufficientCredits) if an
        invariant no longer holds; nothing is written in that case.
        """
        ...
