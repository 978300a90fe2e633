"""
Domain: error taxonomy for lead matching and claim allocation.

Every error carries a stable `code` (used in API payloads so the UI can show a
specific message per kind) and the HTTP status it maps to.

Kinds:
- Validation (400): rejected before anything is persisted.
- Not found (404): surfaced directly, no retry.
- Conflict (409): expected business outcomes of a claim or status change.
- Repository (503): backend unavailable; callers retry with backoff.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Type, TypeVar
from uuid import UUID

E = TypeVar("E", bound=Enum)


class LeadMatchingError(Exception):
    """Base class for all errors raised by the matching services."""

    code: str = "LEAD_MATCHING_ERROR"
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# Validation -----------------------------------------------------------------

class ValidationError(LeadMatchingError):
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidZipCode(ValidationError):
    """Raised when a zip code cannot be resolved to a coordinate."""

    code = "INVALID_ZIP_CODE"

    def __init__(self, zip_code: str):
        self.zip_code = zip_code
        super().__init__(f"Zip code '{zip_code}' could not be resolved to a location")


class UnknownServiceType(ValidationError):
    code = "UNKNOWN_SERVICE_TYPE"

    def __init__(self, service_type: str):
        self.service_type = service_type
        super().__init__(f"Unknown service type '{service_type}'")


def parse_enum(enum_type: Type[E], value: Any, *, field: str) -> E:
    """Coerce a raw value to enum_type, raising ValidationError for unknown values."""

    try:
        return enum_type(value)
    except ValueError as e:
        allowed = ", ".join(str(member.value) for member in enum_type)
        raise ValidationError(f"Unknown {field} {value!r}; expected one of: {allowed}") from e


# Not found ------------------------------------------------------------------

class MemberNotFound(LeadMatchingError):
    code = "MEMBER_NOT_FOUND"
    status_code = 404

    def __init__(self, member_id: UUID, reason: Optional[str] = None):
        self.member_id = member_id
        super().__init__(reason or f"Member not found: {member_id}")


# Conflicts ------------------------------------------------------------------

class ConflictError(LeadMatchingError):
    status_code = 409


class LeadUnavailable(ConflictError):
    """Raised when a claim targets a lead that is closed (or, as LeadNotFound, missing)."""

    code = "LEAD_UNAVAILABLE"

    def __init__(self, lead_id: UUID, message: Optional[str] = None):
        self.lead_id = lead_id
        super().__init__(message or f"Lead {lead_id} is closed and no longer accepts claims")


class LeadNotFound(LeadUnavailable):
    code = "LEAD_NOT_FOUND"
    status_code = 404

    def __init__(self, lead_id: UUID):
        super().__init__(lead_id, f"Lead not found: {lead_id}")


class DuplicateMember(ConflictError):
    code = "DUPLICATE_MEMBER"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"A member with email {email} is already registered")


class AlreadyClaimed(ConflictError):
    code = "ALREADY_CLAIMED"

    def __init__(self, member_id: UUID, lead_id: UUID):
        self.member_id = member_id
        self.lead_id = lead_id
        super().__init__(f"You have already claimed lead {lead_id}")


class NotEligible(ConflictError):
    code = "NOT_ELIGIBLE"

    def __init__(self, member_id: UUID, lead_id: UUID):
        self.member_id = member_id
        self.lead_id = lead_id
        super().__init__(
            f"Lead {lead_id} is outside your service area or does not match your services"
        )


class QuotaExceeded(ConflictError):
    code = "QUOTA_EXCEEDED"

    def __init__(self, member_id: UUID, cap: int):
        self.member_id = member_id
        self.cap = cap
        super().__init__(
            f"Monthly claim limit of {cap} reached. Upgrade to Pro for unlimited claims"
        )


class InsufficientCredits(ConflictError):
    code = "INSUFFICIENT_CREDITS"

    def __init__(self, member_id: UUID, balance: int):
        self.member_id = member_id
        self.balance = balance
        super().__init__(
            f"Claiming a lead costs 1 credit and your balance is {balance}. Buy credits to continue"
        )


class SubscriptionChanged(ConflictError):
    """The member's tier changed between the eligibility checks and the commit."""

    code = "SUBSCRIPTION_CHANGED"

    def __init__(self, member_id: UUID, expected: str, current: str):
        self.member_id = member_id
        self.expected = expected
        self.current = current
        super().__init__(
            f"Your subscription changed from {expected} to {current} while claiming. Please try again"
        )


class InvalidStateTransition(ConflictError):
    code = "INVALID_STATE_TRANSITION"

    def __init__(self, lead_id: UUID, current: str, requested: str):
        self.lead_id = lead_id
        self.current = current
        self.requested = requested
        super().__init__(f"Lead {lead_id} cannot move from {current} to {requested}")


# Infrastructure -------------------------------------------------------------

class RepositoryError(LeadMatchingError):
    """Raised when the storage backend fails. Nothing is partially written."""

    code = "STORAGE_UNAVAILABLE"
    status_code = 503


__all__ = [
    "LeadMatchingError",
    "ValidationError",
    "InvalidZipCode",
    "UnknownServiceType",
    "parse_enum",
    "MemberNotFound",
    "LeadNotFound",
    "ConflictError",
    "DuplicateMember",
    "LeadUnavailable",
    "AlreadyClaimed",
    "NotEligible",
    "QuotaExceeded",
    "InsufficientCredits",
    "SubscriptionChanged",
    "InvalidStateTransition",
    "RepositoryError",
]
