"""
Match engine: which members may serve a lead, and which leads a member may see.

Matching rules (both directions use the same predicate):
1. The lead's service type maps to a capability set (fixed category mapping).
2. The member is active and offers at least one of those capabilities.
3. Great-circle distance between lead and member is within the member's
   tier radius (inclusive).

Results are ordered nearest first, ties broken by id so output is
deterministic. An empty result is a normal outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from domain.capability import capabilities_for_service_type
from domain.lead import Lead
from domain.member import Member
from domain.subscription import TIER_POLICIES, SubscriptionTier, TierPolicy
from services.geo_index import GeoIndex
from services.lead_store import LeadStore
from services.member_registry import MemberRegistry


@dataclass(frozen=True, slots=True)
class MatchResult:
    member: Member
    distance_miles: float


@dataclass(frozen=True, slots=True)
class LeadMatch:
    lead: Lead
    distance_miles: float


class MatchEngine:
    def __init__(
        self,
        registry: MemberRegistry,
        lead_store: LeadStore,
        geo_index: GeoIndex,
        tier_policies: Optional[Mapping[SubscriptionTier, TierPolicy]] = None,
    ):
        self._registry = registry
        self._leads = lead_store
        self._geo = geo_index
        self._policies = tier_policies if tier_policies is not None else TIER_POLICIES

    def radius_for(self, member: Member) -> float:
        return self._policies[member.subscription_tier].radius_miles

    def match(self, lead: Lead) -> List[MatchResult]:
        """Eligible members for a lead, nearest first."""

        required = capabilities_for_service_type(lead.service_type, lead.audience)
        candidates = self._registry.find_by_capabilities(required)

        results: List[MatchResult] = []
        for member in candidates:
            # Registry already filters; re-check so a stale read never widens the set.
            if not member.is_active or not member.offers_any(required):
                continue
            distance = self._geo.distance(lead.coordinate, member.coordinate)
            if distance <= self.radius_for(member):
                results.append(MatchResult(member=member, distance_miles=distance))

        results.sort(key=lambda r: (r.distance_miles, r.member.member_id))
        return results

    def is_eligible(self, member: Member, lead: Lead) -> bool:
        return any(r.member.member_id == member.member_id for r in self.match(lead))

    def leads_for_member(
        self,
        member: Member,
        *,
        limit: Optional[int] = None,
        leads: Optional[Iterable[Lead]] = None,
    ) -> List[LeadMatch]:
        """
        Unclaimed, not-closed leads this member is eligible for, nearest first.

        `limit` truncates the list (used to cap basic members at their
        remaining monthly quota).
        """

        if not member.is_active or (limit is not None and limit <= 0):
            return []

        radius = self.radius_for(member)
        pool = leads if leads is not None else self._leads.list_open()

        matches: List[LeadMatch] = []
        for lead in pool:
            if lead.is_closed or member.has_claimed(lead.lead_id):
                continue
            required = capabilities_for_service_type(lead.service_type, lead.audience)
            if not member.offers_any(required):
                continue
            distance = self._geo.distance(lead.coordinate, member.coordinate)
            if distance <= radius:
                matches.append(LeadMatch(lead=lead, distance_miles=distance))

        matches.sort(key=lambda m: (m.distance_miles, m.lead.lead_id))
        return matches[:limit] if limit is not None else matches


__all__ = ["MatchEngine", "MatchResult", "LeadMatch"]
