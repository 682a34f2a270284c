from datetime import datetime
from enum import Enum
from typing import Optional

from schemas.base import CamelModel


class KycStatus(str, Enum):
    NOT_STARTED = "not_started"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class KycProfile(CamelModel):
    user_id: str
    status: KycStatus = KycStatus.NOT_STARTED
    full_name: Optional[str] = None
    national_id_number: Optional[str] = None
    selfie_filename: Optional[str] = None
    selfie_data: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


class KycSubmitRequest(CamelModel):
    full_name: str
    national_id_number: str
    selfie_data: str
    selfie_filename: str = "selfie.jpg"


class KycStatusRequest(CamelModel):
    status: KycStatus
    rejection_reason: Optional[str] = None
