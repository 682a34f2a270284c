from datetime import datetime
from typing import Optional

from schemas.base import CamelModel


class User(CamelModel):
    id: str
    phone_or_email: str
    pin_hash: str
    name: Optional[str] = None
    created_at: datetime
    last_login: Optional[datetime] = None


class PublicUser(CamelModel):
    """User as exposed outside the identity manager (no credential material)."""

    id: str
    phone_or_email: str
    name: Optional[str] = None
    created_at: datetime
    last_login: Optional[datetime] = None


class ConsentRecord(CamelModel):
    consent_accepted: bool
    consent_version: str
    accepted_at: datetime


class LocationData(CamelModel):
    location_enabled: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    captured_at: Optional[datetime] = None


class SessionData(CamelModel):
    user: PublicUser
    consent: ConsentRecord
    location: LocationData
    login_at: datetime
    access_token: Optional[str] = None


class OtpRequest(CamelModel):
    phone_or_email: str


class OtpVerifyRequest(CamelModel):
    phone_or_email: str
    otp: str


class OtpResult(CamelModel):
    success: bool
    message: str


class RegistrationRequest(CamelModel):
    phone_or_email: str
    pin: str
    consent: ConsentRecord
    location: LocationData = LocationData()


class LoginRequest(CamelModel):
    phone_or_email: str
    pin: str
