"""
Lead store service.

Handles lead submission (validation, zip resolution, intent scoring) and the
forward-only lead status lifecycle:

    open --(first claim)--> partially_claimed --(close)--> closed

An open lead may also be closed directly. closed is terminal.
"""

from __future__ import annotations

import logging
from typing import Callable, List
from uuid import UUID, uuid4

from domain.capability import LeadAudience, capabilities_for_service_type
from domain.errors import LeadNotFound, ValidationError, parse_enum
from domain.lead import Lead, LeadInput, LeadStatus, calculate_intent_score
from domain.member import validate_email
from domain.time import utc_now
from repositories.base import LeadRepository
from services.geo_index import GeoIndex, normalize_zip

logger = logging.getLogger(__name__)


class LeadStore:
    def __init__(
        self,
        repository: LeadRepository,
        geo_index: GeoIndex,
        clock: Callable = utc_now,
    ):
        self._repository = repository
        self._geo = geo_index
        self._clock = clock

    def submit(self, data: LeadInput) -> Lead:
        """
        Validate and persist a new lead with status `open`.

        Raises:
            ValidationError: missing name, malformed email, negative budget
            UnknownServiceType: service type maps to no capability
            InvalidZipCode: zip code cannot be resolved (nothing is stored)
        """

        name = data.customer_name.strip()
        if not name:
            raise ValidationError("Customer name is required")
        email = validate_email(data.customer_email)
        if data.budget is not None and data.budget < 0:
            raise ValidationError("Budget cannot be negative")

        service_type = data.service_type.strip().lower()
        audience = parse_enum(LeadAudience, data.audience, field="audience")
        capabilities_for_service_type(service_type, audience)

        zip_code = normalize_zip(data.zip_code)
        coordinate = self._geo.resolve(zip_code)

        now = self._clock()
        lead = Lead(
            lead_id=uuid4(),
            customer_name=name,
            customer_email=email,
            customer_phone=data.customer_phone,
            zip_code=zip_code,
            coordinate=coordinate,
            service_type=service_type,
            audience=audience,
            description=data.description or "",
            budget=data.budget,
            timeline=data.timeline,
            intent_score=calculate_intent_score(
                data.description,
                budget=data.budget,
                phone=data.customer_phone,
                email=email,
                timeline=data.timeline,
            ),
            status=LeadStatus.OPEN,
            created_at=now,
            updated_at=now,
        )
        self._repository.add(lead)

        logger.info(
            "Lead submitted",
            extra={
                "lead_id": str(lead.lead_id),
                "service_type": service_type,
                "zip_code": zip_code,
                "intent_score": lead.intent_score,
            },
        )
        return lead

    def get(self, lead_id: UUID) -> Lead:
        lead = self._repository.get(lead_id)
        if lead is None:
            raise LeadNotFound(lead_id)
        return lead

    def mark_status(self, lead_id: UUID, status: LeadStatus) -> Lead:
        """
        Move a lead forward. Re-asserting the current status is a no-op;
        moving backwards raises InvalidStateTransition.
        """

        target = parse_enum(LeadStatus, status, field="lead status")
        lead = self.get(lead_id)
        updated = lead.with_status(target, self._clock())
        if updated is lead:
            return lead

        saved = self._repository.save(updated)
        logger.info(
            "Lead status changed",
            extra={"lead_id": str(lead_id), "from": lead.status.value, "to": target.value},
        )
        return saved

    def close(self, lead_id: UUID) -> Lead:
        return self.mark_status(lead_id, LeadStatus.CLOSED)

    def list_open(self) -> List[Lead]:
        """Leads still accepting claims, newest first."""

        leads = self._repository.list_by_status([LeadStatus.OPEN, LeadStatus.PARTIALLY_CLAIMED])
        return sorted(leads, key=lambda lead: lead.created_at, reverse=True)


__all__ = ["LeadStore"]
