"""
Claim allocation service.

Handles:
- Ordered precondition checks (first failure wins)
- Tier quota and credit gating
- Atomic claim effects via ClaimRepository.commit

Precondition order:
1. Lead exists and is not closed          -> LeadNotFound / LeadUnavailable
2. Member exists and is active            -> MemberNotFound
3. Member has not already claimed the lead -> AlreadyClaimed
4. Member is in the lead's match set      -> NotEligible
5. basic: under monthly cap               -> QuotaExceeded
   pay_per_claim: at least 1 credit       -> InsufficientCredits

Checks 3-5 and the commit run under the member's lock, and the commit
re-validates inside its own transaction, so concurrent attempts by the same
member can neither double-claim nor overspend. The commit also rejects a
member whose tier changed since the policy was read; the checks then run
once more against the new tier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional
from uuid import UUID

from domain.claim import Claim
from domain.errors import (
    AlreadyClaimed,
    InsufficientCredits,
    LeadMatchingError,
    LeadUnavailable,
    MemberNotFound,
    NotEligible,
    QuotaExceeded,
    SubscriptionChanged,
)
from domain.lead import Lead
from domain.member import Member
from domain.subscription import CREDITS_PER_CLAIM, TIER_POLICIES, SubscriptionTier, TierPolicy
from domain.time import month_window, utc_now
from repositories.base import ClaimRepository
from services.lead_store import LeadStore
from services.match_engine import MatchEngine
from services.member_registry import MemberRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClaimResult:
    """
    Result of a successful claim.

    member and lead are the post-commit snapshots. remaining_claims is the
    member's remaining monthly quota (basic), credit balance (pay_per_claim)
    or None (unlimited).
    """
    claim: Claim
    member: Member
    lead: Lead
    distance_miles: float
    remaining_claims: Optional[int]


class ClaimAllocator:
    def __init__(
        self,
        registry: MemberRegistry,
        lead_store: LeadStore,
        match_engine: MatchEngine,
        claims: ClaimRepository,
        tier_policies: Optional[Mapping[SubscriptionTier, TierPolicy]] = None,
        clock: Callable = utc_now,
    ):
        self._registry = registry
        self._leads = lead_store
        self._matches = match_engine
        self._claims = claims
        self._policies = tier_policies if tier_policies is not None else TIER_POLICIES
        self._clock = clock

    def claim(self, member_id: UUID, lead_id: UUID) -> ClaimResult:
        """
        Claim a lead for a member.

        Raises one of LeadNotFound, LeadUnavailable, MemberNotFound,
        AlreadyClaimed, NotEligible, QuotaExceeded, InsufficientCredits, or
        SubscriptionChanged if the tier changes twice during one attempt.
        """

        try:
            result = self._claim_with_current_tier(member_id, lead_id)
        except LeadMatchingError as e:
            logger.warning(
                "Claim rejected",
                extra={
                    "member_id": str(member_id),
                    "lead_id": str(lead_id),
                    "error_code": e.code,
                },
            )
            raise

        logger.info(
            "Lead claimed",
            extra={
                "claim_id": str(result.claim.claim_id),
                "member_id": str(member_id),
                "lead_id": str(lead_id),
                "credits_debited": result.claim.credits_debited,
                "distance_miles": round(result.distance_miles, 1),
            },
        )
        return result

    def _claim_with_current_tier(self, member_id: UUID, lead_id: UUID) -> ClaimResult:
        try:
            return self._claim(member_id, lead_id)
        except SubscriptionChanged as e:
            logger.info(
                "Subscription changed during claim, re-checking",
                extra={"member_id": str(member_id), "lead_id": str(lead_id), "tier": e.current},
            )
            return self._claim(member_id, lead_id)

    def _claim(self, member_id: UUID, lead_id: UUID) -> ClaimResult:
        # 1. Lead exists and accepts claims
        lead = self._leads.get(lead_id)
        if lead.is_closed:
            raise LeadUnavailable(lead_id)

        # 2. Member exists and is active
        member = self._registry.get(member_id)
        if not member.is_active:
            raise MemberNotFound(member_id, f"Member {member_id} is deactivated")

        with self._claims.member_lock(member_id):
            # Re-read under the lock: a concurrent claim may have spent credits.
            member = self._registry.get(member_id)
            policy = self._policies[member.subscription_tier]
            now = self._clock()

            # 3. One claim per (member, lead)
            if member.has_claimed(lead_id) or self._claims.exists(member_id, lead_id):
                raise AlreadyClaimed(member_id, lead_id)

            # 4. Capability and radius eligibility
            match = next(
                (r for r in self._matches.match(lead) if r.member.member_id == member_id),
                None,
            )
            if match is None:
                raise NotEligible(member_id, lead_id)

            # 5. Tier quota / credits
            if policy.monthly_claim_cap is not None:
                used = self._claims_this_month(member_id, now)
                if used >= policy.monthly_claim_cap:
                    raise QuotaExceeded(member_id, policy.monthly_claim_cap)
            credits = CREDITS_PER_CLAIM if policy.debits_credits else 0
            if member.credit_balance < credits:
                raise InsufficientCredits(member_id, member.credit_balance)

            claim = self._claims.commit(
                member_id=member_id,
                lead_id=lead_id,
                claimed_at=now,
                subscription_tier=member.subscription_tier,
                credits_debited=credits,
                monthly_claim_cap=policy.monthly_claim_cap,
            )

        updated_member = self._registry.get(member_id)
        return ClaimResult(
            claim=claim,
            member=updated_member,
            lead=self._leads.get(lead_id),
            distance_miles=match.distance_miles,
            remaining_claims=self._remaining_for(updated_member),
        )

    def _claims_this_month(self, member_id: UUID, as_of) -> int:
        start, end = month_window(as_of)
        return self._claims.count_for_member_between(member_id, start, end)

    def _remaining_for(self, member: Member) -> Optional[int]:
        policy = self._policies[member.subscription_tier]
        if policy.monthly_claim_cap is not None:
            used = self._claims_this_month(member.member_id, self._clock())
            return max(policy.monthly_claim_cap - used, 0)
        if policy.debits_credits:
            return member.credit_balance // CREDITS_PER_CLAIM
        return None

    def remaining_claims(self, member_id: UUID) -> Optional[int]:
        """How many more leads the member can claim right now; None means unlimited."""

        return self._remaining_for(self._registry.get(member_id))

    def claims_for_member(self, member_id: UUID) -> list[Claim]:
        self._registry.get(member_id)
        return self._claims.list_by_member(member_id)

    def claims_for_lead(self, lead_id: UUID) -> list[Claim]:
        self._leads.get(lead_id)
        return self._claims.list_by_lead(lead_id)


__all__ = ["ClaimAllocator", "ClaimResult"]
