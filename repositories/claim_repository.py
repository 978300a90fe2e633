"""
Claim repository (persistence, Supabase).

Reads go straight to the `claims` table. Commits go through the
`claim_lead_atomic` Postgres function, which in a single transaction:
- locks the member and lead rows (FOR UPDATE)
- re-checks lead closure, pair uniqueness, the member's tier, monthly quota
  and credit balance
- inserts the claim, appends to members.claimed_lead_ids, debits credits
- advances an open lead to partially_claimed

The function answers with JSON `{success, claim_id, error, message, ...}`.
"""

from __future__ import annotations

from contextlib import nullcontext
from datetime import datetime
from typing import Any, ContextManager, List, Mapping, Optional
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from domain.claim import Claim
from domain.errors import (
    AlreadyClaimed,
    InsufficientCredits,
    LeadNotFound,
    LeadUnavailable,
    MemberNotFound,
    QuotaExceeded,
    RepositoryError,
    SubscriptionChanged,
)
from domain.subscription import SubscriptionTier
from repositories.client import get_supabase
from repositories.serialization import (
    execute_query,
    fetch_rows,
    parse_utc_datetime,
    rows_or_raise,
    to_iso_utc,
)

# Supabase table name for claim records.
# Keep this aligned with sql/lead_matching_schema.sql.
_CLAIMS_TABLE: str = "claims"


def row_to_claim(row: Mapping[str, Any]) -> Claim:
    """Convert a Supabase row into a Claim."""

    return Claim(
        claim_id=UUID(str(row["claim_id"])),
        member_id=UUID(str(row["member_id"])),
        lead_id=UUID(str(row["lead_id"])),
        claimed_at=parse_utc_datetime(row["claimed_at_utc"]),
        credits_debited=int(row.get("credits_debited") or 0),
    )


def raise_for_claim_error(
    payload: Mapping[str, Any],
    *,
    member_id: UUID,
    lead_id: UUID,
    subscription_tier: SubscriptionTier,
    monthly_claim_cap: Optional[int],
) -> None:
    """Translate a failed claim_lead_atomic answer into the matching domain error."""

    code = payload.get("error")
    if code == "LEAD_NOT_FOUND":
        raise LeadNotFound(lead_id)
    if code == "LEAD_UNAVAILABLE":
        raise LeadUnavailable(lead_id)
    if code == "MEMBER_NOT_FOUND":
        raise MemberNotFound(member_id)
    if code == "ALREADY_CLAIMED":
        raise AlreadyClaimed(member_id, lead_id)
    if code == "SUBSCRIPTION_CHANGED":
        raise SubscriptionChanged(member_id, subscription_tier.value, str(payload.get("tier") or "unknown"))
    if code == "QUOTA_EXCEEDED":
        raise QuotaExceeded(member_id, int(payload.get("cap") or monthly_claim_cap or 0))
    if code == "INSUFFICIENT_CREDITS":
        raise InsufficientCredits(member_id, int(payload.get("balance") or 0))
    raise RepositoryError(f"Claim failed ({code or 'UNKNOWN'}): {payload.get('message')}")


class SupabaseClaimRepository:
    def __init__(self, client: Optional[Client] = None):
        self._client = client if client is not None else get_supabase()

    def _table(self):
        return self._client.table(_CLAIMS_TABLE)

    def exists(self, member_id: UUID, lead_id: UUID) -> bool:
        query = (
            self._table()
            .select("claim_id")
            .eq("member_id", str(member_id))
            .eq("lead_id", str(lead_id))
            .limit(1)
        )
        return bool(fetch_rows(query, "check claim"))

    def count_for_member_between(self, member_id: UUID, start: datetime, end: datetime) -> int:
        query = (
            self._table()
            .select("claim_id", count="exact")
            .eq("member_id", str(member_id))
            .gte("claimed_at_utc", to_iso_utc(start, name="start"))
            .lt("claimed_at_utc", to_iso_utc(end, name="end"))
        )
        response = execute_query(query, "count claims")
        rows = rows_or_raise(response, "count claims")
        count = getattr(response, "count", None)
        return int(count) if count is not None else len(rows)

    def list_by_member(self, member_id: UUID) -> List[Claim]:
        query = self._table().select("*").eq("member_id", str(member_id)).order("claimed_at_utc")
        return [row_to_claim(row) for row in fetch_rows(query, "list claims")]

    def list_by_lead(self, lead_id: UUID) -> List[Claim]:
        query = self._table().select("*").eq("lead_id", str(lead_id)).order("claimed_at_utc")
        return [row_to_claim(row) for row in fetch_rows(query, "list claims")]

    def member_lock(self, member_id: UUID) -> ContextManager[None]:
        # claim_lead_atomic holds the member row lock for the whole transaction.
        return nullcontext()

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
        params = {
            "p_member_id": str(member_id),
            "p_lead_id": str(lead_id),
            "p_claimed_at": to_iso_utc(claimed_at, name="claimed_at"),
            "p_tier": subscription_tier.value,
            "p_credits": credits_debited,
            "p_monthly_cap": monthly_claim_cap,
        }

        try:
            response = self._client.rpc("claim_lead_atomic", params).execute()
            error = getattr(response, "error", None)
            if error:
                raise RepositoryError(f"claim_lead_atomic failed: {error}")
            payload: Mapping[str, Any] = response.data or {}
        except APIError as e:
            # postgrest raises APIError for some JSON answers from RPC functions,
            # including successful ones, so inspect the body before giving up.
            payload = e.json() if callable(getattr(e, "json", None)) else {}
            if not isinstance(payload, Mapping) or "success" not in payload:
                raise RepositoryError(f"claim_lead_atomic failed: {e}") from e

        if not payload.get("success"):
            raise_for_claim_error(
                payload,
                member_id=member_id,
                lead_id=lead_id,
                subscription_tier=subscription_tier,
                monthly_claim_cap=monthly_claim_cap,
            )

        return Claim(
            claim_id=UUID(str(payload["claim_id"])),
            member_id=member_id,
            lead_id=lead_id,
            claimed_at=claimed_at,
            credits_debited=credits_debited,
        )


__all__ = ["SupabaseClaimRepository", "row_to_claim", "raise_for_claim_error"]
