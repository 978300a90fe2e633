"""
Lead repository (persistence, Supabase).

This module provides *only* persistence operations for the Lead domain entity.
Status updates are conditional on the stored status so that a stale writer can
never move a lead backwards.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional
from uuid import UUID

from supabase import Client

from domain.capability import LeadAudience
from domain.errors import InvalidStateTransition, LeadNotFound
from domain.geo import Coordinate
from domain.lead import Lead, LeadStatus
from repositories.client import get_supabase
from repositories.serialization import (
    execute_query,
    fetch_rows,
    parse_optional_datetime,
    parse_utc_datetime,
    to_iso_utc,
)

# Supabase table name for Lead records.
# Keep this aligned with sql/lead_matching_schema.sql.
_LEADS_TABLE: str = "leads"


def lead_to_row(lead: Lead) -> dict[str, Any]:
    """Convert a domain Lead to a Supabase row payload."""

    return {
        "lead_id": str(lead.lead_id),
        "customer_name": lead.customer_name,
        "customer_email": lead.customer_email,
        "customer_phone": lead.customer_phone,
        "zip_code": lead.zip_code,
        "lat": lead.coordinate.lat,
        "lon": lead.coordinate.lon,
        "service_type": lead.service_type,
        "audience": lead.audience.value,
        "description": lead.description,
        "budget": str(lead.budget) if lead.budget is not None else None,
        "timeline": lead.timeline,
        "intent_score": lead.intent_score,
        "status": lead.status.value,
        "created_at_utc": to_iso_utc(lead.created_at, name="created_at"),
        "updated_at_utc": to_iso_utc(lead.updated_at, name="updated_at") if lead.updated_at else None,
    }


def row_to_lead(row: Mapping[str, Any]) -> Lead:
    """Convert a Supabase row into a Lead."""

    budget = row.get("budget")
    return Lead(
        lead_id=UUID(str(row["lead_id"])),
        customer_name=str(row["customer_name"]),
        customer_email=str(row["customer_email"]),
        customer_phone=row.get("customer_phone"),
        zip_code=str(row["zip_code"]),
        coordinate=Coordinate(lat=float(row["lat"]), lon=float(row["lon"])),
        service_type=str(row["service_type"]),
        audience=LeadAudience(str(row.get("audience") or LeadAudience.BOTH.value)),
        description=str(row.get("description") or ""),
        budget=Decimal(str(budget)) if budget is not None else None,
        timeline=row.get("timeline"),
        intent_score=int(row["intent_score"]),
        status=LeadStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        updated_at=parse_optional_datetime(row.get("updated_at_utc")),
    )


class SupabaseLeadRepository:
    def __init__(self, client: Optional[Client] = None):
        self._client = client if client is not None else get_supabase()

    def _table(self):
        return self._client.table(_LEADS_TABLE)

    def add(self, lead: Lead) -> Lead:
        execute_query(self._table().insert(lead_to_row(lead)), "insert lead")
        return lead

    def get(self, lead_id: UUID) -> Optional[Lead]:
        rows = fetch_rows(self._table().select("*").eq("lead_id", str(lead_id)).limit(1), "get lead")
        return row_to_lead(rows[0]) if rows else None

    def save(self, lead: Lead) -> Lead:
        # Only rows whose current status is at or before the target are updated.
        allowed_from = [s.value for s in LeadStatus if s.can_transition_to(lead.status)]
        payload = {
            "status": lead.status.value,
            "updated_at_utc": to_iso_utc(lead.updated_at, name="updated_at") if lead.updated_at else None,
        }
        query = (
            self._table()
            .update(payload)
            .eq("lead_id", str(lead.lead_id))
            .in_("status", allowed_from)
        )
        rows = fetch_rows(query, "update lead status")
        if rows:
            return row_to_lead(rows[0])

        current = self.get(lead.lead_id)
        if current is None:
            raise LeadNotFound(lead.lead_id)
        raise InvalidStateTransition(lead.lead_id, current.status.value, lead.status.value)

    def list_by_status(self, statuses: Iterable[LeadStatus]) -> List[Lead]:
        wanted = [s.value for s in statuses]
        if not wanted:
            return []
        rows = fetch_rows(self._table().select("*").in_("status", wanted), "list leads")
        return [row_to_lead(row) for row in rows]


__all__ = ["SupabaseLeadRepository", "lead_to_row", "row_to_lead"]
