"""
Registration, login and the current session.

OTP is a mock challenge: the configured shared code is the only valid value.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from passlib.hash import pbkdf2_sha256

from schemas.user import ConsentRecord, LocationData, OtpResult, PublicUser, SessionData, User
from services.errors import AuthenticationError, NotFoundError, ValidationError
from services.kyc import KycManager
from services.store import KeyValueStore, StorageKeys
from services.tokens import TokenIssuer
from utils import validators
from utils.stamps import new_id, utc_now

logger = logging.getLogger(__name__)

USERS = StorageKeys.USERS


def _require(error: Optional[str]) -> None:
    if error:
        raise ValidationError(error)


def _public(user: User) -> PublicUser:
    return PublicUser.model_validate(user.model_dump(exclude={"pin_hash"}))


class IdentityManager:
    def __init__(
        self,
        store: KeyValueStore,
        kyc: KycManager,
        tokens: TokenIssuer,
        otp_code: str = "123456",
        consent_version: str = "v1",
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._kyc = kyc
        self._tokens = tokens
        self._otp_code = otp_code
        self._consent_version = consent_version
        self._clock = clock

    async def request_otp(self, phone_or_email: str) -> OtpResult:
        _require(validators.email_or_phone(phone_or_email))
        logger.info("OTP requested for %s", phone_or_email)
        return OtpResult(success=True, message="OTP sent successfully")

    async def verify_otp(self, phone_or_email: str, otp: str) -> OtpResult:
        _require(validators.email_or_phone(phone_or_email))
        if validators.otp(otp) is None and otp == self._otp_code:
            return OtpResult(success=True, message="OTP verified")
        return OtpResult(success=False, message="Invalid OTP")

    async def complete_registration(
        self,
        phone_or_email: str,
        pin: str,
        consent: ConsentRecord,
        location: Optional[LocationData] = None,
    ) -> SessionData:
        """Create the user (or reset the PIN of an existing one) and open a session."""
        _require(validators.email_or_phone(phone_or_email))
        _require(validators.pin(pin))
        if not consent.consent_accepted:
            raise ValidationError("Consent must be accepted to register")

        pin_hash = pbkdf2_sha256.hash(pin)
        async with self._store.collections(USERS) as data:
            rows = data[USERS]
            index = next((i for i, r in enumerate(rows) if r.get("phoneOrEmail") == phone_or_email), None)
            if index is None:
                user = User(
                    id=new_id("usr"),
                    phone_or_email=phone_or_email,
                    pin_hash=pin_hash,
                    created_at=self._clock(),
                )
                rows.append(user.to_storage())
                logger.info("Registered user %s", user.id)
            else:
                user = User.model_validate(rows[index]).model_copy(update={"pin_hash": pin_hash})
                rows[index] = user.to_storage()
                logger.info("Re-registered user %s", user.id)

        await self._store.set(StorageKeys.consent(user.id), consent.to_storage())
        await self._kyc.ensure_profile(user.id)
        return await self._open_session(user, consent, location or LocationData())

    async def login(self, phone_or_email: str, pin: str) -> SessionData:
        user: Optional[User] = None
        async with self._store.collections(USERS) as data:
            for i, row in enumerate(data[USERS]):
                if row.get("phoneOrEmail") != phone_or_email:
                    continue
                candidate = User.model_validate(row)
                if pbkdf2_sha256.verify(pin, candidate.pin_hash):
                    user = candidate.model_copy(update={"last_login": self._clock()})
                    data[USERS][i] = user.to_storage()
                break
            if user is None:
                raise AuthenticationError("Invalid credentials")

        stored_consent = await self._store.get(StorageKeys.consent(user.id))
        if stored_consent:
            consent = ConsentRecord.model_validate(stored_consent)
        else:
            consent = ConsentRecord(
                consent_accepted=True,
                consent_version=self._consent_version,
                accepted_at=self._clock(),
            )
        logger.info("User %s logged in", user.id)
        return await self._open_session(user, consent, LocationData())

    async def get_session(self) -> Optional[SessionData]:
        raw = await self._store.get(StorageKeys.SESSION)
        return SessionData.model_validate(raw) if raw else None

    async def logout(self) -> None:
        await self._store.remove(StorageKeys.SESSION)

    async def get_user(self, user_id: str) -> PublicUser:
        for row in await self._store.get_list(USERS):
            if row.get("id") == user_id:
                return _public(User.model_validate(row))
        raise NotFoundError("User not found")

    async def authenticate_token(self, token: str) -> PublicUser:
        user_id = self._tokens.decode_user_id(token)
        try:
            return await self.get_user(user_id)
        except NotFoundError:
            raise AuthenticationError("User no longer exists") from None

    async def _open_session(self, user: User, consent: ConsentRecord, location: LocationData) -> SessionData:
        session = SessionData(
            user=_public(user),
            consent=consent,
            location=location,
            login_at=self._clock(),
        )
        # Persisted without the bearer token
        await self._store.set(StorageKeys.SESSION, session.to_storage())
        return session.model_copy(update={"access_token": self._tokens.create_access_token(user.id)})
