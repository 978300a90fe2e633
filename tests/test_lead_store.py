"""
Tests for `services/lead_store.py`.

Covers:
- Submission resolves the coordinate and starts the lead `open`.
- Invalid zip codes / service types are rejected and nothing is stored.
- markStatus is forward-only (closed -> open fails; open -> partially_claimed succeeds).
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from domain.errors import (
    InvalidStateTransition,
    InvalidZipCode,
    LeadNotFound,
    UnknownServiceType,
    ValidationError,
)
from domain.geo import Coordinate
from domain.lead import LeadStatus


def test_submit_resolves_coordinate_and_opens(services, submit, clock) -> None:
    lead = submit(zip_code="90210-4321", service_type=" Tile_Install ")

    assert lead.coordinate == Coordinate(34.0901, -118.4065)
    assert lead.zip_code == "90210"
    assert lead.service_type == "tile_install"
    assert lead.status is LeadStatus.OPEN
    assert lead.created_at == clock.now
    assert services.lead_store.get(lead.lead_id) == lead


def test_submit_scores_intent(submit) -> None:
    urgent = submit(description="Need this done asap", customer_phone="555-0100")
    relaxed = submit(description="Whenever", budget=Decimal("2500"))

    assert urgent.intent_score == 5 + 3 + 1
    assert relaxed.intent_score == 5 + 2


def test_submit_rejects_unresolvable_zip(services, submit) -> None:
    with pytest.raises(InvalidZipCode):
        submit(zip_code="99999")

    assert services.lead_store.list_open() == []


def test_submit_rejects_unknown_service_type(services, submit) -> None:
    with pytest.raises(UnknownServiceType):
        submit(service_type="roofing")

    assert services.lead_store.list_open() == []


def test_submit_rejects_bad_contact_details(submit) -> None:
    with pytest.raises(ValidationError):
        submit(customer_name="   ")
    with pytest.raises(ValidationError):
        submit(customer_email="nope")
    with pytest.raises(ValidationError):
        submit(budget=Decimal("-1"))


def test_get_unknown_lead(services) -> None:
    with pytest.raises(LeadNotFound):
        services.lead_store.get(uuid4())


def test_mark_status_forward(services, submit, clock) -> None:
    lead = submit()
    clock.advance(minutes=5)

    partially = services.lead_store.mark_status(lead.lead_id, LeadStatus.PARTIALLY_CLAIMED)
    closed = services.lead_store.mark_status(lead.lead_id, LeadStatus.CLOSED)

    assert partially.status is LeadStatus.PARTIALLY_CLAIMED
    assert partially.updated_at == clock.now
    assert closed.status is LeadStatus.CLOSED


def test_mark_status_backward_fails(services, submit) -> None:
    lead = submit()
    services.lead_store.close(lead.lead_id)

    with pytest.raises(InvalidStateTransition):
        services.lead_store.mark_status(lead.lead_id, LeadStatus.OPEN)

    assert services.lead_store.get(lead.lead_id).status is LeadStatus.CLOSED


def test_mark_same_status_is_noop(services, submit) -> None:
    lead = submit()

    again = services.lead_store.mark_status(lead.lead_id, LeadStatus.OPEN)

    assert again == lead


def test_list_open_excludes_closed(services, submit, clock) -> None:
    first = submit()
    clock.advance(minutes=1)
    second = submit()
    closed = submit()
    services.lead_store.close(closed.lead_id)

    open_ids = [lead.lead_id for lead in services.lead_store.list_open()]

    assert open_ids == [second.lead_id, first.lead_id]


def test_unknown_status_or_audience_is_validation_error(services, submit) -> None:
    lead = submit()

    with pytest.raises(ValidationError):
        services.lead_store.mark_status(lead.lead_id, "reopened")
    with pytest.raises(ValidationError):
        submit(audience="everyone")

    assert services.lead_store.get(lead.lead_id).status is LeadStatus.OPEN
