"""
eKYC profile per user: not_started -> under_review -> approved | rejected,
with rejected profiles free to resubmit.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Union

from schemas.kyc import KycProfile, KycStatus
from services.errors import NotFoundError, ValidationError
from services.notifications import NotificationOutbox
from services.store import KeyValueStore, StorageKeys
from utils import validators
from utils.stamps import utc_now

logger = logging.getLogger(__name__)

PROFILES = StorageKeys.KYC_PROFILES
NOTIFICATIONS = StorageKeys.NOTIFICATIONS


class KycManager:
    def __init__(
        self,
        store: KeyValueStore,
        notifications: NotificationOutbox,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._notifications = notifications
        self._clock = clock

    async def get_profile(self, user_id: str) -> Optional[KycProfile]:
        for row in await self._store.get_list(PROFILES):
            if row.get("userId") == user_id:
                return KycProfile.model_validate(row)
        return None

    async def ensure_profile(self, user_id: str) -> KycProfile:
        """Create a `not_started` profile for the user if none exists."""
        async with self._store.collections(PROFILES) as data:
            for row in data[PROFILES]:
                if row.get("userId") == user_id:
                    return KycProfile.model_validate(row)
            profile = KycProfile(user_id=user_id)
            data[PROFILES].append(profile.to_storage())
        return profile

    async def submit_kyc(
        self,
        user_id: str,
        full_name: str,
        national_id_number: str,
        selfie_data: str,
        selfie_filename: str = "selfie.jpg",
    ) -> KycProfile:
        full_name = (full_name or "").strip()
        if not full_name:
            raise ValidationError("Full name is required")
        error = validators.national_id(national_id_number)
        if error:
            raise ValidationError(error)
        if not selfie_data:
            raise ValidationError("Selfie image is required")

        profile = KycProfile(
            user_id=user_id,
            status=KycStatus.UNDER_REVIEW,
            full_name=full_name,
            national_id_number=national_id_number,
            selfie_filename=selfie_filename,
            selfie_data=selfie_data,
            submitted_at=self._clock(),
        )
        async with self._store.collections(PROFILES, NOTIFICATIONS) as data:
            rows = data[PROFILES]
            index = next((i for i, r in enumerate(rows) if r.get("userId") == user_id), None)
            if index is None:
                rows.append(profile.to_storage())
            else:
                rows[index] = profile.to_storage()
            data[NOTIFICATIONS].append(
                self._notifications.new_notification(
                    user_id,
                    "eKYC Submitted",
                    "Your eKYC information has been submitted for review.",
                    "info",
                ).to_storage()
            )
        logger.info("KYC submitted for user %s", user_id)
        return profile

    async def update_kyc_status(
        self,
        user_id: str,
        status: Union[KycStatus, str],
        rejection_reason: Optional[str] = None,
    ) -> KycProfile:
        try:
            status = KycStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown KYC status: {status!r}") from None

        async with self._store.collections(PROFILES, NOTIFICATIONS) as data:
            rows = data[PROFILES]
            index = next((i for i, r in enumerate(rows) if r.get("userId") == user_id), None)
            if index is None:
                raise NotFoundError("KYC profile not found")
            changes: dict = {"status": status, "reviewed_at": self._clock()}
            if rejection_reason:
                changes["rejection_reason"] = rejection_reason
            profile = KycProfile.model_validate(rows[index]).model_copy(update=changes)
            rows[index] = profile.to_storage()
            if status == KycStatus.APPROVED:
                note = self._notifications.new_notification(
                    user_id,
                    "eKYC Approved",
                    "Your eKYC has been approved. You can now proceed with loan application.",
                    "success",
                )
            else:
                note = self._notifications.new_notification(
                    user_id,
                    "eKYC Rejected",
                    f"Your eKYC was rejected. Reason: {rejection_reason or 'Please resubmit with correct information.'}",
                    "error",
                )
            data[NOTIFICATIONS].append(note.to_storage())
        logger.info("KYC status for user %s set to %s", user_id, status.value)
        return profile
