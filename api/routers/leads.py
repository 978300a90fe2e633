"""
Leads API Endpoints.

Endpoints for submitting leads, listing their matched members, claiming them
and moving them through their status lifecycle.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from api.dependencies import get_services
from api.models import (
    ClaimRecordResponse,
    ClaimRequest,
    ClaimResponse,
    ErrorResponse,
    LeadResponse,
    LeadStatusRequest,
    LeadSubmitRequest,
    MatchListResponse,
    MemberMatchResponse,
)
from domain.lead import LeadInput
from services.container import Services

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@router.post(
    "/leads",
    response_model=LeadResponse,
    status_code=201,
    responses=_ERRORS,
    summary="Submit Lead",
    description="Submit a customer lead. The zip code must resolve to a known location."
)
def submit_lead(request: LeadSubmitRequest, services: Services = Depends(get_services)):
    """
    Submit a new lead.

    **Validation:**
    - Unresolvable zip codes are rejected with `INVALID_ZIP_CODE` (400); the lead is not stored.
    - Unknown service types are rejected with `UNKNOWN_SERVICE_TYPE` (400).

    The lead starts in status `open` with an intent score from 1 to 10.
    """
    lead = services.lead_store.submit(
        LeadInput(
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            zip_code=request.zip_code,
            service_type=request.service_type,
            audience=request.audience,
            description=request.description,
            budget=request.budget,
            timeline=request.timeline,
        )
    )
    return LeadResponse.from_domain(lead)


@router.get(
    "/leads/{lead_id}",
    response_model=LeadResponse,
    responses=_ERRORS,
    summary="Get Lead",
)
def get_lead(lead_id: UUID, services: Services = Depends(get_services)):
    return LeadResponse.from_domain(services.lead_store.get(lead_id))


@router.get(
    "/leads/{lead_id}/matches",
    response_model=MatchListResponse,
    responses=_ERRORS,
    summary="List Matched Members",
    description="Members eligible for the lead by capability and tier radius, nearest first."
)
def get_lead_matches(lead_id: UUID, services: Services = Depends(get_services)):
    """
    List members eligible to claim a lead.

    An empty list is a normal answer (no member in range offers the service).
    """
    lead = services.lead_store.get(lead_id)
    results = services.match_engine.match(lead)
    return MatchListResponse(
        lead_id=lead.lead_id,
        matches=[
            MemberMatchResponse(
                member_id=r.member.member_id,
                name=r.member.name,
                company_name=r.member.company_name,
                role=r.member.role,
                subscription_tier=r.member.subscription_tier,
                distance_miles=round(r.distance_miles, 2),
            )
            for r in results
        ],
        total_count=len(results),
    )


@router.post(
    "/leads/{lead_id}/claims",
    response_model=ClaimResponse,
    responses=_ERRORS,
    summary="Claim Lead",
    description="Claim a lead for a member, subject to eligibility, quota and credits."
)
def claim_lead(lead_id: UUID, request: ClaimRequest, services: Services = Depends(get_services)):
    """
    Claim a lead.

    **Conflict outcomes (409), each with its own `error` code:**
    - `LEAD_UNAVAILABLE`: the lead is closed
    - `ALREADY_CLAIMED`: this member already holds the lead
    - `NOT_ELIGIBLE`: outside the member's radius or services
    - `QUOTA_EXCEEDED`: basic tier monthly cap reached
    - `INSUFFICIENT_CREDITS`: pay-per-claim member has no credits

    Missing lead or member answers 404.
    """
    result = services.allocator.claim(request.member_id, lead_id)
    return ClaimResponse(
        claim_id=result.claim.claim_id,
        member_id=result.claim.member_id,
        lead_id=result.claim.lead_id,
        claimed_at=result.claim.claimed_at,
        credits_debited=result.claim.credits_debited,
        lead_status=result.lead.status,
        distance_miles=round(result.distance_miles, 2),
        remaining_claims=result.remaining_claims,
    )


@router.get(
    "/leads/{lead_id}/claims",
    response_model=list[ClaimRecordResponse],
    responses=_ERRORS,
    summary="List Lead Claims",
)
def list_lead_claims(lead_id: UUID, services: Services = Depends(get_services)):
    return [ClaimRecordResponse.from_domain(c) for c in services.allocator.claims_for_lead(lead_id)]


@router.post(
    "/leads/{lead_id}/status",
    response_model=LeadResponse,
    responses=_ERRORS,
    summary="Update Lead Status",
    description="Move a lead forward (open -> partially_claimed -> closed). Backward moves answer 409."
)
def update_lead_status(lead_id: UUID, request: LeadStatusRequest, services: Services = Depends(get_services)):
    return LeadResponse.from_domain(services.lead_store.mark_status(lead_id, request.status))
