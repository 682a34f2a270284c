from schemas.application import (
    ApprovedTerms,
    DraftUpdate,
    FinancialInfo,
    LoanApplication,
    LoanDetails,
    LoanStatus,
    PersonalInfo,
    StatusChangeRequest,
    TERMINAL_STATUSES,
    TransitionPayload,
)
from schemas.document import DocumentCategory, DocumentItem
from schemas.kyc import KycProfile, KycStatus, KycStatusRequest, KycSubmitRequest
from schemas.notification import NotificationItem, NotificationType
from schemas.timeline import EventSource, TimelineEvent
from schemas.user import (
    ConsentRecord,
    LocationData,
    LoginRequest,
    OtpRequest,
    OtpResult,
    OtpVerifyRequest,
    PublicUser,
    RegistrationRequest,
    SessionData,
    User,
)

__all__ = [
    "ApprovedTerms",
    "DraftUpdate",
    "FinancialInfo",
    "LoanApplication",
    "LoanDetails",
    "LoanStatus",
    "PersonalInfo",
    "StatusChangeRequest",
    "TERMINAL_STATUSES",
    "TransitionPayload",
    "DocumentCategory",
    "DocumentItem",
    "KycProfile",
    "KycStatus",
    "KycStatusRequest",
    "KycSubmitRequest",
    "NotificationItem",
    "NotificationType",
    "EventSource",
    "TimelineEvent",
    "ConsentRecord",
    "LocationData",
    "LoginRequest",
    "OtpRequest",
    "OtpResult",
    "OtpVerifyRequest",
    "PublicUser",
    "RegistrationRequest",
    "SessionData",
    "User",
]
