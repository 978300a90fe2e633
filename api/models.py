"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.capability import LeadAudience, ServiceCapability
from domain.claim import Claim
from domain.lead import Lead, LeadStatus
from domain.member import Member, MemberRole
from domain.subscription import SubscriptionTier


# ============================================================================
# Shared
# ============================================================================

class CoordinateResponse(BaseModel):
    lat: float
    lon: float


# ============================================================================
# Lead Models
# ============================================================================

class LeadSubmitRequest(BaseModel):
    """Lead intake form submission."""
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: str = Field(..., min_length=3, max_length=320)
    customer_phone: Optional[str] = Field(None, max_length=40)
    zip_code: str = Field(..., description="5-digit US zip code (ZIP+4 accepted)")
    service_type: str = Field(
        ...,
        description="Capability tag (e.g. 'tile_install') or material category (e.g. 'tiles')"
    )
    audience: LeadAudience = LeadAudience.BOTH
    description: str = Field("", max_length=5000)
    budget: Optional[Decimal] = Field(None, ge=0)
    timeline: Optional[str] = Field(None, max_length=200)

    class Config:
        json_schema_extra = {
            "example": {
                "customer_name": "Jordan Smith",
                "customer_email": "jordan@example.com",
                "customer_phone": "555-0100",
                "zip_code": "90210",
                "service_type": "tile_install",
                "audience": "professional",
                "description": "Bathroom floor, about 80 sq ft of porcelain tile. ASAP please.",
                "budget": "2500",
                "timeline": "within a month"
            }
        }


class LeadResponse(BaseModel):
    lead_id: UUID
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    zip_code: str
    coordinate: CoordinateResponse
    service_type: str
    audience: LeadAudience
    description: str
    budget: Optional[Decimal] = None
    timeline: Optional[str] = None
    intent_score: int
    status: LeadStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, lead: Lead) -> "LeadResponse":
        return cls(
            lead_id=lead.lead_id,
            customer_name=lead.customer_name,
            customer_email=lead.customer_email,
            customer_phone=lead.customer_phone,
            zip_code=lead.zip_code,
            coordinate=CoordinateResponse(lat=lead.coordinate.lat, lon=lead.coordinate.lon),
            service_type=lead.service_type,
            audience=lead.audience,
            description=lead.description,
            budget=lead.budget,
            timeline=lead.timeline,
            intent_score=lead.intent_score,
            status=lead.status,
            created_at=lead.created_at,
            updated_at=lead.updated_at,
        )


class LeadStatusRequest(BaseModel):
    status: LeadStatus


# ============================================================================
# Member Models
# ============================================================================

class MemberRegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    role: MemberRole
    services: List[ServiceCapability] = Field(..., min_length=1)
    zip_code: str
    subscription_tier: SubscriptionTier = SubscriptionTier.BASIC
    credit_balance: Optional[int] = Field(None, ge=0)
    company_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=40)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Casey Rivera",
                "email": "casey@riveratile.example",
                "role": "professional",
                "services": ["tile_install"],
                "zip_code": "90211",
                "subscription_tier": "pro",
                "company_name": "Rivera Tile Co."
            }
        }


class MemberResponse(BaseModel):
    """Public member profile. Contact email is included for the member's own dashboard."""
    member_id: UUID
    name: str
    email: str
    role: MemberRole
    services: List[ServiceCapability]
    zip_code: str
    coordinate: CoordinateResponse
    subscription_tier: SubscriptionTier
    credit_balance: int
    claimed_lead_ids: List[UUID]
    is_active: bool
    company_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, member: Member) -> "MemberResponse":
        return cls(
            member_id=member.member_id,
            name=member.name,
            email=member.email,
            role=member.role,
            services=sorted(member.services, key=lambda s: s.value),
            zip_code=member.zip_code,
            coordinate=CoordinateResponse(lat=member.coordinate.lat, lon=member.coordinate.lon),
            subscription_tier=member.subscription_tier,
            credit_balance=member.credit_balance,
            claimed_lead_ids=sorted(member.claimed_lead_ids),
            is_active=member.is_active,
            company_name=member.company_name,
            phone=member.phone,
            created_at=member.created_at,
            updated_at=member.updated_at,
        )


class SubscriptionUpdateRequest(BaseModel):
    subscription_tier: SubscriptionTier


class CreditPurchaseRequest(BaseModel):
    amount: int = Field(..., gt=0, le=10000)


# ============================================================================
# Match Models
# ============================================================================

class MemberMatchResponse(BaseModel):
    """One eligible member for a lead."""
    member_id: UUID
    name: str
    company_name: Optional[str] = None
    role: MemberRole
    subscription_tier: SubscriptionTier
    distance_miles: float


class MatchListResponse(BaseModel):
    lead_id: UUID
    matches: List[MemberMatchResponse]
    total_count: int


class LeadMatchResponse(BaseModel):
    """One lead a member may claim."""
    lead: LeadResponse
    distance_miles: float


class MemberLeadsResponse(BaseModel):
    member_id: UUID
    leads: List[LeadMatchResponse]
    total_count: int
    remaining_claims: Optional[int] = None


# ============================================================================
# Claim Models
# ============================================================================

class ClaimRequest(BaseModel):
    member_id: UUID = Field(..., description="Authenticated member making the claim")


class ClaimResponse(BaseModel):
    claim_id: UUID
    member_id: UUID
    lead_id: UUID
    claimed_at: datetime
    credits_debited: int
    lead_status: LeadStatus
    distance_miles: float
    remaining_claims: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "claim_id": "123e4567-e89b-12d3-a456-426614174003",
                "member_id": "123e4567-e89b-12d3-a456-426614174002",
                "lead_id": "123e4567-e89b-12d3-a456-426614174001",
                "claimed_at": "2025-01-01T12:00:00Z",
                "credits_debited": 1,
                "lead_status": "partially_claimed",
                "distance_miles": 0.6,
                "remaining_claims": 4
            }
        }


class ClaimRecordResponse(BaseModel):
    claim_id: UUID
    member_id: UUID
    lead_id: UUID
    claimed_at: datetime
    credits_debited: int

    @classmethod
    def from_domain(cls, claim: Claim) -> "ClaimRecordResponse":
        return cls(
            claim_id=claim.claim_id,
            member_id=claim.member_id,
            lead_id=claim.lead_id,
            claimed_at=claim.claimed_at,
            credits_debited=claim.credits_debited,
        )


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response. `error` is a stable code the UI can switch on."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "QUOTA_EXCEEDED",
                "detail": "Monthly claim limit of 4 reached. Upgrade to Pro for unlimited claims",
                "status_code": 409
            }
        }
