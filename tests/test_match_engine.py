"""
Tests for `services/match_engine.py`.

Covers:
- Radius invariant: every match is within its member's tier radius.
- Capability invariant: every match offers a required capability.
- Ordering: nearest first, ties broken by member id.
- Beverly Hills lead vs a Flagstaff pro (~390 mi): no match at 50 mi,
  matched when the pro radius is raised to 400 mi.
- leads_for_member: unclaimed, in-range, not-closed leads only.
"""

from __future__ import annotations

from dataclasses import replace

from domain.capability import LeadAudience, ServiceCapability
from domain.lead import LeadInput
from domain.member import MemberInput, MemberRole
from domain.subscription import TIER_POLICIES, SubscriptionTier
from services.container import build_services


def test_match_radius_and_capability_invariants(services, register, submit) -> None:
    register(zip_code="90211", subscription_tier=SubscriptionTier.BASIC)           # ~0.6 mi
    register(zip_code="90024", subscription_tier=SubscriptionTier.BASIC)           # ~2.8 mi
    register(zip_code="91101", subscription_tier=SubscriptionTier.BASIC)           # ~15 mi, outside 10
    register(zip_code="91101", subscription_tier=SubscriptionTier.PRO)             # ~15 mi, inside 50
    register(zip_code="92101", subscription_tier=SubscriptionTier.PRO)             # ~110 mi
    register(zip_code="90211", services=[ServiceCapability.CARPET_INSTALL])        # wrong service
    lead = submit(zip_code="90210", service_type="tile_install")

    results = services.match_engine.match(lead)

    assert len(results) == 3
    for r in results:
        assert r.distance_miles <= TIER_POLICIES[r.member.subscription_tier].radius_miles
        assert ServiceCapability.TILE_INSTALL in r.member.services
    distances = [r.distance_miles for r in results]
    assert distances == sorted(distances)


def test_match_category_lead_reaches_installers_and_suppliers(services, register, submit) -> None:
    installer = register(services=[ServiceCapability.TILE_INSTALL])
    supplier = register(role=MemberRole.VENDOR, services=[ServiceCapability.TILE_SUPPLY])

    both = submit(service_type="tiles", audience=LeadAudience.BOTH)
    vendors_only = submit(service_type="tiles", audience=LeadAudience.VENDOR)

    assert {r.member.member_id for r in services.match_engine.match(both)} == {
        installer.member_id,
        supplier.member_id,
    }
    assert [r.member.member_id for r in services.match_engine.match(vendors_only)] == [supplier.member_id]


def test_match_ties_broken_by_member_id(services, register, submit) -> None:
    a = register(zip_code="90211")
    b = register(zip_code="90211")
    lead = submit()

    results = services.match_engine.match(lead)

    assert [r.member.member_id for r in results] == sorted([a.member_id, b.member_id])


def test_match_excludes_inactive_members(services, register, submit) -> None:
    member = register()
    services.registry.deactivate(member.member_id)

    assert services.match_engine.match(submit()) == []


def test_match_empty_is_normal(services, submit) -> None:
    assert services.match_engine.match(submit()) == []


def test_flagstaff_pro_outside_default_radius_inside_extended(clock) -> None:
    default = build_services("memory", clock=clock)
    extended_policies = dict(TIER_POLICIES)
    extended_policies[SubscriptionTier.PRO] = replace(TIER_POLICIES[SubscriptionTier.PRO], radius_miles=400)
    extended = build_services("memory", clock=clock, tier_policies=extended_policies)

    outcomes = []
    for svc in (default, extended):
        svc.registry.register(
            MemberInput(
                name="Jamie Ortiz",
                email="jamie@example.com",
                role=MemberRole.PROFESSIONAL,
                services=[ServiceCapability.TILE_INSTALL],
                zip_code="86001",
                subscription_tier=SubscriptionTier.PRO,
            )
        )
        lead = svc.lead_store.submit(
            LeadInput(
                customer_name="Jordan",
                customer_email="jordan@example.com",
                zip_code="90210",
                service_type="tile_install",
            )
        )
        outcomes.append(svc.match_engine.match(lead))

    assert outcomes[0] == []
    assert len(outcomes[1]) == 1
    assert 380 < outcomes[1][0].distance_miles <= 400


def test_leads_for_member(services, register, submit) -> None:
    member = register(zip_code="90211", subscription_tier=SubscriptionTier.PRO)
    near = submit(zip_code="90211")
    farther = submit(zip_code="90024")
    claimed = submit(zip_code="90210")
    closed = submit(zip_code="90210")
    submit(zip_code="10001")
    submit(zip_code="90210", service_type="carpet_install")
    services.allocator.claim(member.member_id, claimed.lead_id)
    services.lead_store.close(closed.lead_id)

    member = services.registry.get(member.member_id)
    matches = services.match_engine.leads_for_member(member)

    assert [m.lead.lead_id for m in matches] == [near.lead_id, farther.lead_id]
    assert services.match_engine.leads_for_member(member, limit=1)[0].lead.lead_id == near.lead_id
    assert services.match_engine.leads_for_member(member, limit=0) == []
