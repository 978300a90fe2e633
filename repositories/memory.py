"""
In-memory repositories.

All three repositories share one `InMemoryStore`. A re-entrant store lock
guards every read-modify-write, so `InMemoryClaimRepository.commit` is atomic
with respect to any other repository call. Per-member locks serialise whole
claim attempts (precondition checks plus commit).
"""

from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional
from uuid import UUID, uuid4

from domain.capability import ServiceCapability
from domain.claim import Claim
from domain.errors import (
    AlreadyClaimed,
    DuplicateMember,
    InsufficientCredits,
    InvalidStateTransition,
    LeadNotFound,
    LeadUnavailable,
    MemberNotFound,
    QuotaExceeded,
    SubscriptionChanged,
)
from domain.lead import Lead, LeadStatus
from domain.member import Member
from domain.subscription import SubscriptionTier
from domain.time import month_window


class InMemoryStore:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.members: Dict[UUID, Member] = {}
        self.leads: Dict[UUID, Lead] = {}
        self.claims: Dict[tuple[UUID, UUID], Claim] = {}
        self._member_locks: Dict[UUID, threading.Lock] = defaultdict(threading.Lock)

    def member_lock(self, member_id: UUID) -> threading.Lock:
        with self.lock:
            return self._member_locks[member_id]


class InMemoryMemberRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def add(self, member: Member) -> Member:
        with self._store.lock:
            if member.member_id in self._store.members:
                raise ValueError(f"Member already exists: {member.member_id}")
            # Email uniqueness is decided under the store lock.
            if any(m.email == member.email for m in self._store.members.values()):
                raise DuplicateMember(member.email)
            self._store.members[member.member_id] = member
        return member

    def get(self, member_id: UUID) -> Optional[Member]:
        return self._store.members.get(member_id)

    def get_by_email(self, email: str) -> Optional[Member]:
        needle = email.strip().lower()
        with self._store.lock:
            for member in self._store.members.values():
                if member.email == needle:
                    return member
        return None

    def _update(self, member_id: UUID, change: Callable[[Member], Member]) -> Member:
        with self._store.lock:
            current = self._store.members.get(member_id)
            if current is None:
                raise MemberNotFound(member_id)
            updated = change(current)
            self._store.members[member_id] = updated
        return updated

    def set_active(self, member_id: UUID, active: bool, at: datetime) -> Member:
        return self._update(member_id, lambda m: replace(m, is_active=active, updated_at=at))

    def set_subscription(self, member_id: UUID, tier: SubscriptionTier, at: datetime) -> Member:
        return self._update(member_id, lambda m: m.with_subscription(tier, at))

    def set_services(self, member_id: UUID, services: Iterable[ServiceCapability], at: datetime) -> Member:
        services = frozenset(services)
        return self._update(member_id, lambda m: m.with_services(services, at))

    def add_credits(self, member_id: UUID, amount: int, at: datetime) -> Member:
        return self._update(member_id, lambda m: m.with_credits(amount, at))

    def list_active_with_capabilities(self, capabilities: Iterable[ServiceCapability]) -> List[Member]:
        wanted = frozenset(capabilities)
        with self._store.lock:
            members = list(self._store.members.values())
        return [m for m in members if m.is_active and m.offers_any(wanted)]


class InMemoryLeadRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def add(self, lead: Lead) -> Lead:
        with self._store.lock:
            if lead.lead_id in self._store.leads:
                raise ValueError(f"Lead already exists: {lead.lead_id}")
            self._store.leads[lead.lead_id] = lead
        return lead

    def get(self, lead_id: UUID) -> Optional[Lead]:
        return self._store.leads.get(lead_id)

    def save(self, lead: Lead) -> Lead:
        with self._store.lock:
            current = self._store.leads.get(lead.lead_id)
            if current is None:
                raise LeadNotFound(lead.lead_id)
            # A concurrent claim may have advanced the status; never write it backwards.
            if not current.status.can_transition_to(lead.status):
                raise InvalidStateTransition(lead.lead_id, current.status.value, lead.status.value)
            self._store.leads[lead.lead_id] = lead
        return lead

    def list_by_status(self, statuses: Iterable[LeadStatus]) -> List[Lead]:
        wanted = set(statuses)
        with self._store.lock:
            leads = list(self._store.leads.values())
        return [lead for lead in leads if lead.status in wanted]


class InMemoryClaimRepository:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def exists(self, member_id: UUID, lead_id: UUID) -> bool:
        return (member_id, lead_id) in self._store.claims

    def count_for_member_between(self, member_id: UUID, start: datetime, end: datetime) -> int:
        with self._store.lock:
            claims = list(self._store.claims.values())
        return sum(1 for c in claims if c.member_id == member_id and start <= c.claimed_at < end)

    def list_by_member(self, member_id: UUID) -> List[Claim]:
        with self._store.lock:
            claims = [c for c in self._store.claims.values() if c.member_id == member_id]
        return sorted(claims, key=lambda c: c.claimed_at)

    def list_by_lead(self, lead_id: UUID) -> List[Claim]:
        with self._store.lock:
            claims = [c for c in self._store.claims.values() if c.lead_id == lead_id]
        return sorted(claims, key=lambda c: c.claimed_at)

    @contextmanager
    def member_lock(self, member_id: UUID) -> Iterator[None]:
        with self._store.member_lock(member_id):
            yield

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
        store = self._store
        with store.lock:
            lead = store.leads.get(lead_id)
            if lead is None:
                raise LeadNotFound(lead_id)
            if lead.is_closed:
                raise LeadUnavailable(lead_id)

            member = store.members.get(member_id)
            if member is None or not member.is_active:
                raise MemberNotFound(member_id)
            if (member_id, lead_id) in store.claims:
                raise AlreadyClaimed(member_id, lead_id)
            if member.subscription_tier is not subscription_tier:
                raise SubscriptionChanged(
                    member_id, subscription_tier.value, member.subscription_tier.value
                )

            if monthly_claim_cap is not None:
                start, end = month_window(claimed_at)
                used = self.count_for_member_between(member_id, start, end)
                if used >= monthly_claim_cap:
                    raise QuotaExceeded(member_id, monthly_claim_cap)
            if credits_debited > member.credit_balance:
                raise InsufficientCredits(member_id, member.credit_balance)

            # Everything is validated; the writes below cannot fail part-way.
            claim = Claim(
                claim_id=uuid4(),
                member_id=member_id,
                lead_id=lead_id,
                claimed_at=claimed_at,
                credits_debited=credits_debited,
            )
            updated_member = member.with_claim(lead_id, credits_debited, claimed_at)
            updated_lead = (
                lead.with_status(LeadStatus.PARTIALLY_CLAIMED, claimed_at)
                if lead.status is LeadStatus.OPEN
                else lead
            )

            store.claims[(member_id, lead_id)] = claim
            store.members[member_id] = updated_member
            store.leads[lead_id] = updated_lead
            return claim


def build_memory_repositories() -> tuple[InMemoryMemberRepository, InMemoryLeadRepository, InMemoryClaimRepository]:
    store = InMemoryStore()
    return (
        InMemoryMemberRepository(store),
        InMemoryLeadRepository(store),
        InMemoryClaimRepository(store),
    )
