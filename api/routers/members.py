"""
Members API Endpoints.

Endpoints for member registration, subscription and credit changes, and the
member's list of claimable leads.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from api.dependencies import get_services
from api.models import (
    ClaimRecordResponse,
    CreditPurchaseRequest,
    ErrorResponse,
    LeadMatchResponse,
    LeadResponse,
    MemberLeadsResponse,
    MemberRegisterRequest,
    MemberResponse,
    SubscriptionUpdateRequest,
)
from domain.member import MemberInput
from domain.subscription import SubscriptionTier
from services.container import Services

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@router.post(
    "/members",
    response_model=MemberResponse,
    status_code=201,
    responses=_ERRORS,
    summary="Register Member",
)
def register_member(request: MemberRegisterRequest, services: Services = Depends(get_services)):
    """
    Register a professional or vendor.

    Pay-per-claim members without an explicit `credit_balance` start with 5 credits.
    """
    member = services.registry.register(
        MemberInput(
            name=request.name,
            email=request.email,
            role=request.role,
            services=request.services,
            zip_code=request.zip_code,
            subscription_tier=request.subscription_tier,
            credit_balance=request.credit_balance,
            company_name=request.company_name,
            phone=request.phone,
        )
    )
    return MemberResponse.from_domain(member)


@router.get(
    "/members/{member_id}",
    response_model=MemberResponse,
    responses=_ERRORS,
    summary="Get Member",
)
def get_member(member_id: UUID, services: Services = Depends(get_services)):
    return MemberResponse.from_domain(services.registry.get(member_id))


@router.put(
    "/members/{member_id}/subscription",
    response_model=MemberResponse,
    responses=_ERRORS,
    summary="Change Subscription Tier",
)
def update_subscription(
    member_id: UUID,
    request: SubscriptionUpdateRequest,
    services: Services = Depends(get_services),
):
    return MemberResponse.from_domain(
        services.registry.update_subscription(member_id, request.subscription_tier)
    )


@router.post(
    "/members/{member_id}/credits",
    response_model=MemberResponse,
    responses=_ERRORS,
    summary="Add Credits",
    description="Credit write-back after a purchase confirmed by the billing provider."
)
def add_credits(member_id: UUID, request: CreditPurchaseRequest, services: Services = Depends(get_services)):
    return MemberResponse.from_domain(services.registry.add_credits(member_id, request.amount))


@router.post(
    "/members/{member_id}/deactivate",
    response_model=MemberResponse,
    responses=_ERRORS,
    summary="Deactivate Member",
)
def deactivate_member(member_id: UUID, services: Services = Depends(get_services)):
    return MemberResponse.from_domain(services.registry.deactivate(member_id))


@router.get(
    "/members/{member_id}/leads",
    response_model=MemberLeadsResponse,
    responses=_ERRORS,
    summary="List Claimable Leads",
    description="Open leads the member is eligible for and has not claimed, nearest first."
)
def get_member_leads(member_id: UUID, services: Services = Depends(get_services)):
    """
    List leads the member can claim.

    Basic members only see as many leads as they have claims left this month.
    """
    member = services.registry.get(member_id)
    remaining = services.allocator.remaining_claims(member_id)
    limit = remaining if member.subscription_tier is SubscriptionTier.BASIC else None
    matches = services.match_engine.leads_for_member(member, limit=limit)
    return MemberLeadsResponse(
        member_id=member.member_id,
        leads=[
            LeadMatchResponse(lead=LeadResponse.from_domain(m.lead), distance_miles=round(m.distance_miles, 2))
            for m in matches
        ],
        total_count=len(matches),
        remaining_claims=remaining,
    )


@router.get(
    "/members/{member_id}/claims",
    response_model=list[ClaimRecordResponse],
    responses=_ERRORS,
    summary="List Member Claims",
)
def list_member_claims(member_id: UUID, services: Services = Depends(get_services)):
    return [ClaimRecordResponse.from_domain(c) for c in services.allocator.claims_for_member(member_id)]
