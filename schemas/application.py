from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import Field

from schemas.base import CamelModel


class LoanStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    REVIEW = "review"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    SIGNED = "signed"


TERMINAL_STATUSES = frozenset({LoanStatus.REJECTED, LoanStatus.CANCELLED, LoanStatus.SIGNED})


class PersonalInfo(CamelModel):
    full_name: str = ""
    date_of_birth: str = ""
    national_id: str = ""
    phone_number: str = ""
    email: str = ""
    marital_status: Literal["single", "married", "other"] = "single"
    has_guarantor: bool = False
    guarantor_name: Optional[str] = None
    guarantor_phone: Optional[str] = None
    guarantor_relationship: Optional[str] = None

    model_config = {"extra": "forbid"}


class FinancialInfo(CamelModel):
    employment_status: Literal["employed", "self_employed", "unemployed"] = "employed"
    employer_name: Optional[str] = None
    monthly_income: float = Field(0, ge=0)
    years_of_work: float = Field(0, ge=0)

    model_config = {"extra": "forbid"}


class LoanDetails(CamelModel):
    down_payment: float = Field(0, ge=0)
    loan_period_months: Literal[48, 60, 72] = 48
    requested_amount: Optional[float] = Field(None, ge=0)

    model_config = {"extra": "forbid"}


class ApprovedTerms(CamelModel):
    approved_amount: float = Field(..., gt=0)
    interest_rate: float = Field(..., ge=0)
    monthly_payment: float = Field(..., gt=0)


class LoanApplication(CamelModel):
    id: str
    user_id: str
    status: LoanStatus = LoanStatus.DRAFT

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    financial_info: FinancialInfo = Field(default_factory=FinancialInfo)
    loan_details: LoanDetails = Field(default_factory=LoanDetails)

    created_at: datetime
    updated_at: datetime
    submitted_at: Optional[datetime] = None

    signature_required: bool = False
    signed_at: Optional[datetime] = None
    approved_terms: Optional[ApprovedTerms] = None
    rejection_reason: Optional[str] = None


# Sections a user may edit while the application is a draft
DRAFT_SECTIONS: dict[str, type[CamelModel]] = {
    "personal_info": PersonalInfo,
    "financial_info": FinancialInfo,
    "loan_details": LoanDetails,
}


class DraftUpdate(CamelModel):
    """Partial wizard payload; each section is merged key-by-key into the draft."""

    personal_info: Optional[dict[str, Any]] = None
    financial_info: Optional[dict[str, Any]] = None
    loan_details: Optional[dict[str, Any]] = None

    model_config = {"extra": "forbid"}


class TransitionPayload(CamelModel):
    """Status-specific data accompanying a transition."""

    approved_terms: Optional[ApprovedTerms] = None
    rejection_reason: Optional[str] = None


class StatusChangeRequest(TransitionPayload):
    status: LoanStatus
