"""
Field validators for identity and KYC input.
Each returns an error message, or None when the value is acceptable.
"""
import re
from typing import Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[0-9]{8,15}$")
PIN_RE = re.compile(r"^[0-9]{4,6}$")
OTP_RE = re.compile(r"^[0-9]{6}$")


def _strip_phone(value: str) -> str:
    return re.sub(r"[\s-]", "", value)


def email(value: str) -> Optional[str]:
    if not value:
        return "Email is required"
    if not EMAIL_RE.match(value):
        return "Invalid email format"
    return None


def phone(value: str) -> Optional[str]:
    if not value:
        return "Phone number is required"
    if not PHONE_RE.match(_strip_phone(value)):
        return "Invalid phone number (8-15 digits)"
    return None


def email_or_phone(value: str) -> Optional[str]:
    if not value:
        return "Email or phone is required"
    if EMAIL_RE.match(value) or PHONE_RE.match(_strip_phone(value)):
        return None
    return "Enter a valid email or phone number"


def pin(value: str) -> Optional[str]:
    if not value:
        return "PIN is required"
    if not PIN_RE.match(value):
        return "PIN must be 4-6 digits"
    return None


def otp(value: str) -> Optional[str]:
    if not value:
        return "OTP is required"
    if not OTP_RE.match(value):
        return "OTP must be 6 digits"
    return None


def national_id(value: str) -> Optional[str]:
    if not value:
        return "National ID is required"
    if len(value) < 5:
        return "National ID is too short"
    return None
