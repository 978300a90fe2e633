"""
Seed a demo professional network and print lead matches.

Registers a handful of professionals and vendors around Los Angeles,
Phoenix and Flagstaff, submits demo leads and prints each lead's matches.

Usage:
    python scripts/seed_demo_network.py                      # in-memory, nothing persisted
    python scripts/seed_demo_network.py --storage supabase   # writes to Supabase
    python scripts/seed_demo_network.py --claim              # also claim each lead for its nearest match
"""

import argparse
import logging
import sys
from decimal import Decimal
from pathlib import Path

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.capability import LeadAudience, ServiceCapability
from domain.errors import LeadMatchingError
from domain.lead import LeadInput
from domain.member import MemberInput, MemberRole
from domain.subscription import SubscriptionTier
from services.container import STORAGE_BACKENDS, build_services

DEMO_MEMBERS = [
    MemberInput(
        name="Casey Rivera",
        email="casey@riveratile.example",
        role=MemberRole.PROFESSIONAL,
        services=[ServiceCapability.TILE_INSTALL, ServiceCapability.SLAB_INSTALL],
        zip_code="90211",
        subscription_tier=SubscriptionTier.PRO,
        company_name="Rivera Tile Co.",
    ),
    MemberInput(
        name="Morgan Lee",
        email="morgan@westsideflooring.example",
        role=MemberRole.PROFESSIONAL,
        services=[ServiceCapability.HARDWOOD_INSTALL, ServiceCapability.VINYL_INSTALL],
        zip_code="90024",
        subscription_tier=SubscriptionTier.BASIC,
        company_name="Westside Flooring",
    ),
    MemberInput(
        name="Avery Chen",
        email="avery@pasadenastone.example",
        role=MemberRole.VENDOR,
        services=[ServiceCapability.TILE_SUPPLY],
        zip_code="91101",
        subscription_tier=SubscriptionTier.PAY_PER_CLAIM,
        company_name="Pasadena Stone & Tile Supply",
    ),
    MemberInput(
        name="Riley Brooks",
        email="riley@canyonheating.example",
        role=MemberRole.PROFESSIONAL,
        services=[ServiceCapability.HEATING_INSTALL],
        zip_code="85251",
        subscription_tier=SubscriptionTier.PRO,
        company_name="Canyon Heating",
    ),
    MemberInput(
        name="Jamie Ortiz",
        email="jamie@highcountrytile.example",
        role=MemberRole.PROFESSIONAL,
        services=[ServiceCapability.TILE_INSTALL],
        zip_code="86001",
        subscription_tier=SubscriptionTier.PRO,
        company_name="High Country Tile",
    ),
]

DEMO_LEADS = [
    LeadInput(
        customer_name="Jordan Smith",
        customer_email="jordan@example.com",
        customer_phone="555-0100",
        zip_code="90210",
        service_type="tiles",
        description="Bathroom floor and shower surround in porcelain tile. Need it ASAP.",
        budget=Decimal("4500"),
        timeline="within a month",
    ),
    LeadInput(
        customer_name="Sam Patel",
        customer_email="sam@example.com",
        zip_code="90024",
        service_type="hardwood_install",
        audience=LeadAudience.PROFESSIONAL,
        description="Refinish and extend oak flooring into the hallway.",
    ),
    LeadInput(
        customer_name="Taylor Kim",
        customer_email="taylor@example.com",
        zip_code="85004",
        service_type="heating",
        audience=LeadAudience.PROFESSIONAL,
        description="Radiant floor heating under new kitchen tile.",
        budget=Decimal("1800"),
    ),
]


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Seed demo members and leads, then print matches.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--storage", choices=STORAGE_BACKENDS, default="memory")
    parser.add_argument("--claim", action="store_true", help="Claim each lead for its nearest match")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show service logs")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    services = build_services(args.storage)

    for data in DEMO_MEMBERS:
        try:
            member = services.registry.register(data)
            print(f"[OK] Registered {member.name} ({member.subscription_tier.value}, {member.zip_code})")
        except LeadMatchingError as e:
            print(f"[SKIP] {data.email}: {e.message}")

    for data in DEMO_LEADS:
        lead = services.lead_store.submit(data)
        matches = services.match_engine.match(lead)
        print(f"\nLead {lead.lead_id} {lead.service_type} @ {lead.zip_code} (intent {lead.intent_score}/10)")
        if not matches:
            print("  no members in range")
        for result in matches:
            print(
                f"  {result.distance_miles:6.1f} mi  {result.member.name:<14} "
                f"{result.member.subscription_tier.value}"
            )

        if args.claim and matches:
            nearest = matches[0].member
            try:
                claimed = services.allocator.claim(nearest.member_id, lead.lead_id)
                print(f"  [CLAIMED] by {nearest.name}; lead is now {claimed.lead.status.value}")
            except LeadMatchingError as e:
                print(f"  [REJECTED] {e.code}: {e.message}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
