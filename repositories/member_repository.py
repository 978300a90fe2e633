"""
Member repository (persistence, Supabase).

Persists Member entities in the `members` table. Capabilities are stored as a
text[] column so capability lookups use the array-overlap operator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional
from uuid import UUID

from supabase import Client

from domain.capability import ServiceCapability
from domain.errors import DuplicateMember, MemberNotFound
from domain.geo import Coordinate
from domain.member import Member, MemberRole
from domain.subscription import SubscriptionTier
from repositories.client import get_supabase
from repositories.serialization import (
    execute_query,
    fetch_rows,
    parse_optional_datetime,
    parse_utc_datetime,
    to_iso_utc,
)

# Supabase table name for member records.
# Keep this aligned with sql/lead_matching_schema.sql.
_MEMBERS_TABLE: str = "members"


def member_to_row(member: Member) -> dict[str, Any]:
    """Convert a domain Member to a Supabase row payload."""

    return {
        "member_id": str(member.member_id),
        "name": member.name,
        "email": member.email,
        "role": member.role.value,
        "services": sorted(cap.value for cap in member.services),
        "zip_code": member.zip_code,
        "lat": member.coordinate.lat,
        "lon": member.coordinate.lon,
        "subscription_tier": member.subscription_tier.value,
        "credit_balance": member.credit_balance,
        "claimed_lead_ids": sorted(str(lead_id) for lead_id in member.claimed_lead_ids),
        "is_active": member.is_active,
        "company_name": member.company_name,
        "phone": member.phone,
        "created_at_utc": to_iso_utc(member.created_at, name="created_at"),
        "updated_at_utc": to_iso_utc(member.updated_at, name="updated_at") if member.updated_at else None,
    }


def row_to_member(row: Mapping[str, Any]) -> Member:
    """Convert a Supabase row into a Member."""

    return Member(
        member_id=UUID(str(row["member_id"])),
        name=str(row["name"]),
        email=str(row["email"]),
        role=MemberRole(str(row["role"])),
        services=frozenset(ServiceCapability(str(s)) for s in row.get("services") or []),
        zip_code=str(row["zip_code"]),
        coordinate=Coordinate(lat=float(row["lat"]), lon=float(row["lon"])),
        subscription_tier=SubscriptionTier(str(row["subscription_tier"])),
        credit_balance=int(row.get("credit_balance") or 0),
        claimed_lead_ids=frozenset(UUID(str(x)) for x in row.get("claimed_lead_ids") or []),
        is_active=bool(row.get("is_active", True)),
        company_name=row.get("company_name"),
        phone=row.get("phone"),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        updated_at=parse_optional_datetime(row.get("updated_at_utc")),
    )


class SupabaseMemberRepository:
    def __init__(self, client: Optional[Client] = None):
        self._client = client if client is not None else get_supabase()

    def _table(self):
        return self._client.table(_MEMBERS_TABLE)

    def add(self, member: Member) -> Member:
        # The unique email constraint settles concurrent registrations.
        execute_query(
            self._table().insert(member_to_row(member)),
            "register member",
            on_unique_violation=lambda: DuplicateMember(member.email),
        )
        return member

    def get(self, member_id: UUID) -> Optional[Member]:
        rows = fetch_rows(
            self._table().select("*").eq("member_id", str(member_id)).limit(1),
            "get member",
        )
        return row_to_member(rows[0]) if rows else None

    def get_by_email(self, email: str) -> Optional[Member]:
        rows = fetch_rows(
            self._table().select("*").eq("email", email.strip().lower()).limit(1),
            "get member by email",
        )
        return row_to_member(rows[0]) if rows else None

    def _update(self, member_id: UUID, payload: dict[str, Any], action: str) -> Member:
        rows = fetch_rows(self._table().update(payload).eq("member_id", str(member_id)), action)
        if not rows:
            raise MemberNotFound(member_id)
        return row_to_member(rows[0])

    def set_active(self, member_id: UUID, active: bool, at: datetime) -> Member:
        return self._update(
            member_id,
            {"is_active": active, "updated_at_utc": to_iso_utc(at, name="updated_at")},
            "update member status",
        )

    def set_subscription(self, member_id: UUID, tier: SubscriptionTier, at: datetime) -> Member:
        return self._update(
            member_id,
            {"subscription_tier": tier.value, "updated_at_utc": to_iso_utc(at, name="updated_at")},
            "update subscription",
        )

    def set_services(self, member_id: UUID, services: Iterable[ServiceCapability], at: datetime) -> Member:
        return self._update(
            member_id,
            {
                "services": sorted(cap.value for cap in services),
                "updated_at_utc": to_iso_utc(at, name="updated_at"),
            },
            "update services",
        )

    def add_credits(self, member_id: UUID, amount: int, at: datetime) -> Member:
        # Increment in the database so concurrent claim debits are not lost.
        execute_query(
            self._client.rpc(
                "add_member_credits",
                {
                    "p_member_id": str(member_id),
                    "p_amount": amount,
                    "p_updated_at": to_iso_utc(at, name="updated_at"),
                },
            ),
            "add credits",
        )
        member = self.get(member_id)
        if member is None:
            raise MemberNotFound(member_id)
        return member

    def list_active_with_capabilities(self, capabilities: Iterable[ServiceCapability]) -> List[Member]:
        wanted = sorted(cap.value for cap in capabilities)
        if not wanted:
            return []
        query = self._table().select("*").eq("is_active", True).ov("services", wanted)
        return [row_to_member(row) for row in fetch_rows(query, "list members")]


__all__ = ["SupabaseMemberRepository", "member_to_row", "row_to_member"]
