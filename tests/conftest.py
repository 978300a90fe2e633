"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and builds an in-memory service graph with a
controllable clock.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.capability import LeadAudience, ServiceCapability  # noqa: E402
from domain.lead import LeadInput  # noqa: E402
from domain.member import MemberInput, MemberRole  # noqa: E402
from domain.subscription import SubscriptionTier  # noqa: E402
from services.container import build_services  # noqa: E402


class FixedClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 3, 14, 15, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def services(clock):
    return build_services("memory", clock=clock)


@pytest.fixture
def register(services):
    """Register a member with sensible defaults; override any field by keyword."""

    counter = {"n": 0}

    def _register(**overrides):
        counter["n"] += 1
        data = {
            "name": f"Member {counter['n']}",
            "email": f"member{counter['n']}@example.com",
            "role": MemberRole.PROFESSIONAL,
            "services": [ServiceCapability.TILE_INSTALL],
            "zip_code": "90211",
            "subscription_tier": SubscriptionTier.PRO,
        }
        data.update(overrides)
        return services.registry.register(MemberInput(**data))

    return _register


@pytest.fixture
def submit(services):
    """Submit a lead with sensible defaults; override any field by keyword."""

    counter = {"n": 0}

    def _submit(**overrides):
        counter["n"] += 1
        data = {
            "customer_name": f"Customer {counter['n']}",
            "customer_email": f"customer{counter['n']}@example.com",
            "zip_code": "90210",
            "service_type": "tile_install",
            "audience": LeadAudience.BOTH,
            "description": "Kitchen backsplash",
        }
        data.update(overrides)
        return services.lead_store.submit(LeadInput(**data))

    return _submit
