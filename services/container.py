"""
Service wiring.

Builds the service graph for a storage backend:
- "memory": in-process repositories (default; tests and demos)
- "supabase": Supabase tables + claim_lead_atomic (needs SUPABASE_URL / SUPABASE_KEY)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional

from dotenv import load_dotenv

from domain.subscription import SubscriptionTier, TierPolicy
from domain.time import utc_now
from services.claim_allocator import ClaimAllocator
from services.geo_index import CachedGeoIndex, GeoIndex, StaticGeoIndex
from services.lead_store import LeadStore
from services.match_engine import MatchEngine
from services.member_registry import MemberRegistry

# Load environment variables from the .env file at the project root.
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")

STORAGE_BACKENDS = ("memory", "supabase")


@dataclass(frozen=True, slots=True)
class Services:
    geo_index: GeoIndex
    registry: MemberRegistry
    lead_store: LeadStore
    match_engine: MatchEngine
    allocator: ClaimAllocator


def _build_repositories(storage: str):
    if storage == "memory":
        from repositories.memory import build_memory_repositories

        return build_memory_repositories()

    if storage == "supabase":
        from repositories.claim_repository import SupabaseClaimRepository
        from repositories.client import get_supabase
        from repositories.lead_repository import SupabaseLeadRepository
        from repositories.member_repository import SupabaseMemberRepository

        client = get_supabase()
        return (
            SupabaseMemberRepository(client),
            SupabaseLeadRepository(client),
            SupabaseClaimRepository(client),
        )

    raise ValueError(f"Unknown storage backend {storage!r}; expected one of {STORAGE_BACKENDS}")


def build_services(
    storage: Optional[str] = None,
    *,
    geo_index: Optional[GeoIndex] = None,
    tier_policies: Optional[Mapping[SubscriptionTier, TierPolicy]] = None,
    clock: Callable = utc_now,
) -> Services:
    """
    Build the services for a storage backend.

    storage defaults to the LEAD_MATCHING_STORAGE environment variable, then "memory".
    """

    storage = (storage or os.getenv("LEAD_MATCHING_STORAGE") or "memory").strip().lower()
    members, leads, claims = _build_repositories(storage)

    if geo_index is None:
        cache_size = int(os.getenv("GEOCODER_CACHE_SIZE", "1024"))
        geo_index = CachedGeoIndex(StaticGeoIndex(), max_size=cache_size)

    registry = MemberRegistry(members, geo_index, clock=clock)
    lead_store = LeadStore(leads, geo_index, clock=clock)
    match_engine = MatchEngine(registry, lead_store, geo_index, tier_policies=tier_policies)
    allocator = ClaimAllocator(
        registry,
        lead_store,
        match_engine,
        claims,
        tier_policies=tier_policies,
        clock=clock,
    )
    return Services(
        geo_index=geo_index,
        registry=registry,
        lead_store=lead_store,
        match_engine=match_engine,
        allocator=allocator,
    )


__all__ = ["Services", "build_services", "STORAGE_BACKENDS"]
