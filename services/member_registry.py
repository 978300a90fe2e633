"""
Member registry service.

Handles:
- Registration (validation, zip resolution, duplicate email check)
- Capability lookups used by the match engine
- Soft deactivation, subscription, service and credit changes

Members are never deleted so that claim history stays intact.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List
from uuid import UUID, uuid4

from domain.capability import ServiceCapability
from domain.errors import DuplicateMember, MemberNotFound, ValidationError, parse_enum
from domain.member import Member, MemberInput, MemberRole, validate_email
from domain.subscription import STARTER_CREDITS, SubscriptionTier
from domain.time import utc_now
from repositories.base import MemberRepository
from services.geo_index import GeoIndex, normalize_zip

logger = logging.getLogger(__name__)


class MemberRegistry:
    def __init__(
        self,
        repository: MemberRepository,
        geo_index: GeoIndex,
        clock: Callable = utc_now,
    ):
        self._repository = repository
        self._geo = geo_index
        self._clock = clock

    def register(self, data: MemberInput) -> Member:
        """
        Register a new member.

        The coordinate is resolved before anything is stored; an unresolvable
        zip code raises InvalidZipCode and nothing is persisted.

        Pay-per-claim members without an explicit balance receive the starter
        credit grant.
        """

        name = data.name.strip()
        if not name:
            raise ValidationError("Member name is required")
        email = validate_email(data.email)
        role = parse_enum(MemberRole, data.role, field="role")
        tier = parse_enum(SubscriptionTier, data.subscription_tier, field="subscription tier")
        services = _parse_services(data.services)

        zip_code = normalize_zip(data.zip_code)
        coordinate = self._geo.resolve(zip_code)

        if self._repository.get_by_email(email) is not None:
            raise DuplicateMember(email)

        credits = data.credit_balance
        if credits is None:
            credits = STARTER_CREDITS if tier is SubscriptionTier.PAY_PER_CLAIM else 0
        if credits < 0:
            raise ValidationError("credit_balance cannot be negative")

        now = self._clock()
        member = Member(
            member_id=uuid4(),
            name=name,
            email=email,
            role=role,
            services=services,
            zip_code=zip_code,
            coordinate=coordinate,
            subscription_tier=tier,
            credit_balance=credits,
            claimed_lead_ids=frozenset(),
            is_active=True,
            company_name=data.company_name,
            phone=data.phone,
            created_at=now,
            updated_at=now,
        )
        self._repository.add(member)

        logger.info(
            "Member registered",
            extra={
                "member_id": str(member.member_id),
                "role": member.role.value,
                "tier": member.subscription_tier.value,
                "zip_code": zip_code,
            },
        )
        return member

    def get(self, member_id: UUID) -> Member:
        member = self._repository.get(member_id)
        if member is None:
            raise MemberNotFound(member_id)
        return member

    def find_by_capability(self, capability: ServiceCapability) -> List[Member]:
        """All active members offering the capability. Order is unspecified."""

        return self._repository.list_active_with_capabilities([capability])

    def find_by_capabilities(self, capabilities: Iterable[ServiceCapability]) -> List[Member]:
        """All active members offering any of the capabilities. Order is unspecified."""

        return self._repository.list_active_with_capabilities(frozenset(capabilities))

    def deactivate(self, member_id: UUID) -> Member:
        member = self._repository.set_active(member_id, False, self._clock())
        logger.info("Member deactivated", extra={"member_id": str(member_id)})
        return member

    def update_subscription(self, member_id: UUID, tier: SubscriptionTier) -> Member:
        member = self._repository.set_subscription(
            member_id, parse_enum(SubscriptionTier, tier, field="subscription tier"), self._clock()
        )
        logger.info(
            "Subscription updated",
            extra={"member_id": str(member_id), "tier": member.subscription_tier.value},
        )
        return member

    def update_services(self, member_id: UUID, services: Iterable[ServiceCapability]) -> Member:
        return self._repository.set_services(member_id, _parse_services(services), self._clock())

    def add_credits(self, member_id: UUID, amount: int) -> Member:
        """Credit write-back from the billing provider (purchases, refunds of unused credit)."""

        if amount <= 0:
            raise ValidationError("Credit amount must be positive")
        member = self._repository.add_credits(member_id, amount, self._clock())
        logger.info(
            "Credits added",
            extra={"member_id": str(member_id), "amount": amount, "balance": member.credit_balance},
        )
        return member


def _parse_services(services: Iterable[ServiceCapability]) -> frozenset[ServiceCapability]:
    parsed = frozenset(parse_enum(ServiceCapability, s, field="service") for s in services)
    if not parsed:
        raise ValidationError("A member must offer at least one service")
    return parsed


__all__ = ["MemberRegistry"]
