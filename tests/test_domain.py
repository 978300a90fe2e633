"""
Tests for the pure domain modules.

Covers:
- Lead status moves forward only.
- Intent scoring rules and cap.
- Service type -> capability mapping per audience.
- Member and Claim invariants (UTC timestamps, no negative credits).
- Calendar month window boundaries.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from domain.capability import LeadAudience, ServiceCapability, capabilities_for_service_type
from domain.claim import Claim
from domain.errors import UnknownServiceType, ValidationError
from domain.geo import Coordinate
from domain.lead import LeadStatus, calculate_intent_score
from domain.member import Member, MemberRole
from domain.subscription import TIER_POLICIES, CostModel, SubscriptionTier
from domain.time import month_window

UTC_NOON = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _member(**overrides) -> Member:
    data = dict(
        member_id=UUID("00000000-0000-0000-0000-000000000001"),
        name="Casey",
        email="casey@example.com",
        role=MemberRole.PROFESSIONAL,
        services=frozenset({ServiceCapability.TILE_INSTALL}),
        zip_code="90211",
        coordinate=Coordinate(34.0823, -118.4009),
        subscription_tier=SubscriptionTier.PAY_PER_CLAIM,
        created_at=UTC_NOON,
        credit_balance=1,
    )
    data.update(overrides)
    return Member(**data)


# Lead status ----------------------------------------------------------------

@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (LeadStatus.OPEN, LeadStatus.PARTIALLY_CLAIMED, True),
        (LeadStatus.OPEN, LeadStatus.CLOSED, True),
        (LeadStatus.PARTIALLY_CLAIMED, LeadStatus.CLOSED, True),
        (LeadStatus.OPEN, LeadStatus.OPEN, True),
        (LeadStatus.PARTIALLY_CLAIMED, LeadStatus.OPEN, False),
        (LeadStatus.CLOSED, LeadStatus.OPEN, False),
        (LeadStatus.CLOSED, LeadStatus.PARTIALLY_CLAIMED, False),
    ],
)
def test_lead_status_only_moves_forward(current: LeadStatus, target: LeadStatus, allowed: bool) -> None:
    assert current.can_transition_to(target) is allowed


# Intent score ---------------------------------------------------------------

def test_intent_score_base() -> None:
    assert calculate_intent_score("Need tile") == 5


def test_intent_score_all_signals_capped_at_ten() -> None:
    score = calculate_intent_score(
        "URGENT: full kitchen and two bathrooms need new porcelain tile before we move in",
        budget=Decimal("5000"),
        phone="555-0100",
        email="a@example.com",
        timeline="next month",
    )

    assert score == 10


def test_intent_score_budget_threshold_is_exclusive() -> None:
    assert calculate_intent_score("x", budget=Decimal("1000")) == 5
    assert calculate_intent_score("x", budget=Decimal("1000.01")) == 7


def test_intent_score_requires_both_phone_and_email() -> None:
    assert calculate_intent_score("x", email="a@example.com") == 5
    assert calculate_intent_score("x", phone="555", email="a@example.com") == 6


# Capabilities ---------------------------------------------------------------

def test_capability_tag_maps_to_itself() -> None:
    assert capabilities_for_service_type("tile_install") == {ServiceCapability.TILE_INSTALL}


def test_category_maps_by_audience() -> None:
    assert capabilities_for_service_type("tiles", LeadAudience.BOTH) == {
        ServiceCapability.TILE_INSTALL,
        ServiceCapability.TILE_SUPPLY,
    }
    assert capabilities_for_service_type("tiles", LeadAudience.PROFESSIONAL) == {ServiceCapability.TILE_INSTALL}
    assert capabilities_for_service_type("Carpet", LeadAudience.VENDOR) == {ServiceCapability.CARPET_SUPPLY}


def test_slabs_have_no_vendor_capability() -> None:
    with pytest.raises(UnknownServiceType):
        capabilities_for_service_type("slabs", LeadAudience.VENDOR)


def test_unknown_service_type() -> None:
    with pytest.raises(UnknownServiceType):
        capabilities_for_service_type("roofing")


# Subscription tiers ---------------------------------------------------------

def test_tier_policy_table() -> None:
    basic = TIER_POLICIES[SubscriptionTier.BASIC]
    pro = TIER_POLICIES[SubscriptionTier.PRO]
    per_claim = TIER_POLICIES[SubscriptionTier.PAY_PER_CLAIM]

    assert (basic.radius_miles, basic.monthly_claim_cap) == (10, 4)
    assert (pro.radius_miles, pro.monthly_claim_cap) == (50, None)
    assert (per_claim.radius_miles, per_claim.monthly_claim_cap) == (50, None)
    assert per_claim.cost_model is CostModel.PER_CLAIM and per_claim.debits_credits
    assert not pro.debits_credits


# Member ---------------------------------------------------------------------

def test_member_with_claim_debits_and_records() -> None:
    lead_id = UUID("00000000-0000-0000-0000-0000000000aa")
    member = _member()

    updated = member.with_claim(lead_id, 1, UTC_NOON)

    assert updated.credit_balance == 0
    assert updated.has_claimed(lead_id)
    assert member.credit_balance == 1
    assert not member.has_claimed(lead_id)


def test_member_cannot_overdraw_credits() -> None:
    member = _member(credit_balance=0)

    with pytest.raises(ValidationError):
        member.with_claim(UUID("00000000-0000-0000-0000-0000000000aa"), 1, UTC_NOON)


def test_member_requires_services_and_utc() -> None:
    with pytest.raises(ValidationError):
        _member(services=frozenset())
    with pytest.raises(ValueError):
        _member(created_at=datetime(2025, 1, 1, 12, 0, 0))


def test_member_is_immutable() -> None:
    member = _member()

    with pytest.raises(FrozenInstanceError):
        member.credit_balance = 10  # type: ignore[misc]


# Claim ----------------------------------------------------------------------

def test_claim_requires_utc_timestamp() -> None:
    with pytest.raises(ValueError):
        Claim(
            claim_id=UUID("00000000-0000-0000-0000-000000000100"),
            member_id=UUID("00000000-0000-0000-0000-000000000001"),
            lead_id=UUID("00000000-0000-0000-0000-0000000000aa"),
            claimed_at=datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=-7))),
        )


# Month window ---------------------------------------------------------------

def test_month_window_mid_month() -> None:
    start, end = month_window(datetime(2025, 3, 14, 15, 0, tzinfo=timezone.utc))

    assert start == datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert end == datetime(2025, 4, 1, tzinfo=timezone.utc)


def test_month_window_december_rolls_year() -> None:
    start, end = month_window(datetime(2025, 12, 31, 23, 59, tzinfo=timezone.utc))

    assert start == datetime(2025, 12, 1, tzinfo=timezone.utc)
    assert end == datetime(2026, 1, 1, tzinfo=timezone.utc)
