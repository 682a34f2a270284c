"""
Loan application lifecycle: the only writer of application status.

Every status change is applied under a per-application lock and committed in a
single store batch together with its timeline event and owner notification, so
a failed transition leaves no trace.

    draft -> submitted -> review -> approved | rejected
    approved -> signed
    any non-terminal status -> cancelled
"""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from schemas.application import (
    DRAFT_SECTIONS,
    TERMINAL_STATUSES,
    DraftUpdate,
    LoanApplication,
    LoanStatus,
    TransitionPayload,
)
from schemas.notification import NotificationType
from schemas.timeline import TimelineEvent
from services.errors import IneligibleStateError, NotFoundError, ValidationError, validation_error_from
from services.notifications import NotificationOutbox
from services.scheduler import DeferredTransitions
from services.store import KeyValueStore, StorageKeys
from services.timeline import TimelineLog
from utils.case import dict_keys_to_snake
from utils.stamps import new_id, utc_now

logger = logging.getLogger(__name__)

APPLICATIONS = StorageKeys.LOAN_APPLICATIONS
TIMELINE = StorageKeys.TIMELINE
NOTIFICATIONS = StorageKeys.NOTIFICATIONS

MSG_APPLICATION_NOT_FOUND = "Application not found"


@dataclass(frozen=True)
class NotificationTemplate:
    title: str
    message: str
    type: NotificationType

    def render(self, rejection_reason: Optional[str] = None) -> str:
        return self.message.format(reason=rejection_reason or "").strip()


EVENT_NAMES: dict[LoanStatus, str] = {
    LoanStatus.DRAFT: "Draft Saved",
    LoanStatus.SUBMITTED: "Application Submitted",
    LoanStatus.REVIEW: "Under Review",
    LoanStatus.APPROVED: "Application Approved",
    LoanStatus.REJECTED: "Application Rejected",
    LoanStatus.CANCELLED: "Application Cancelled",
    LoanStatus.SIGNED: "Agreement Signed",
}

NOTIFICATION_TEMPLATES: dict[LoanStatus, NotificationTemplate] = {
    LoanStatus.DRAFT: NotificationTemplate("Draft Saved", "Your application draft has been saved.", "info"),
    LoanStatus.SUBMITTED: NotificationTemplate("Submitted", "Application submitted successfully.", "success"),
    LoanStatus.REVIEW: NotificationTemplate("Under Review", "Your application is now under review.", "info"),
    LoanStatus.APPROVED: NotificationTemplate(
        "Approved!",
        "Congratulations! Your loan has been approved. Please proceed to e-signature.",
        "success",
    ),
    LoanStatus.REJECTED: NotificationTemplate("Rejected", "Your application was rejected. {reason}", "error"),
    LoanStatus.CANCELLED: NotificationTemplate("Cancelled", "Your application has been cancelled.", "warning"),
    LoanStatus.SIGNED: NotificationTemplate(
        "Agreement Signed", "Your loan agreement has been signed successfully.", "success"
    ),
}


def _check_status_tables() -> None:
    for name, table in (("EVENT_NAMES", EVENT_NAMES), ("NOTIFICATION_TEMPLATES", NOTIFICATION_TEMPLATES)):
        missing = set(LoanStatus) - set(table)
        if missing:
            raise RuntimeError(f"{name} has no entry for: {', '.join(sorted(s.value for s in missing))}")


_check_status_tables()


def event_source_for(status: LoanStatus) -> str:
    return "loanEngineMock" if status == LoanStatus.REVIEW else "system"


class LoanLifecycleEngine:
    def __init__(
        self,
        store: KeyValueStore,
        timeline: TimelineLog,
        notifications: NotificationOutbox,
        review_delay_seconds: Optional[float] = 2.0,
        clock: Callable[[], datetime] = utc_now,
        scheduler: Optional[DeferredTransitions] = None,
    ):
        self._store = store
        self._timeline = timeline
        self._notifications = notifications
        self._review_delay = review_delay_seconds
        self._clock = clock
        self.scheduler = scheduler or DeferredTransitions()
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # --- reads ---

    async def find_application(self, application_id: str) -> Optional[LoanApplication]:
        for row in await self._store.get_list(APPLICATIONS):
            if row.get("id") == application_id:
                return LoanApplication.model_validate(row)
        return None

    async def get_application(self, application_id: str) -> LoanApplication:
        app = await self.find_application(application_id)
        if app is None:
            raise NotFoundError(MSG_APPLICATION_NOT_FOUND)
        return app

    async def get_draft(self, user_id: str) -> Optional[LoanApplication]:
        for row in await self._store.get_list(APPLICATIONS):
            if row.get("userId") == user_id and row.get("status") == LoanStatus.DRAFT.value:
                return LoanApplication.model_validate(row)
        return None

    async def list_applications(self, user_id: str) -> list[LoanApplication]:
        rows = await self._store.get_list(APPLICATIONS)
        apps = [LoanApplication.model_validate(r) for r in rows if r.get("userId") == user_id]
        return sorted(apps, key=lambda a: a.updated_at, reverse=True)

    async def get_timeline(self, application_id: str) -> list[TimelineEvent]:
        await self.get_application(application_id)
        return await self._timeline.get_timeline(application_id)

    # --- draft editing (silent: no timeline, no notification) ---

    async def create_or_load_draft(
        self,
        user_id: str,
        data: Union[DraftUpdate, Mapping[str, Any], None] = None,
    ) -> LoanApplication:
        """
        Return the user's single draft, creating it if needed, with `data` merged in.
        Sections (personalInfo, financialInfo, loanDetails) are merged key-by-key.
        """
        update = self._parse_draft_update(data)
        async with self._store.collections(APPLICATIONS) as col:
            rows = col[APPLICATIONS]
            index = next(
                (
                    i
                    for i, r in enumerate(rows)
                    if r.get("userId") == user_id and r.get("status") == LoanStatus.DRAFT.value
                ),
                None,
            )
            now = self._clock()
            if index is None:
                draft = LoanApplication(id=new_id("app"), user_id=user_id, created_at=now, updated_at=now)
                rows.append({})
                index = len(rows) - 1
                logger.info("Created draft %s for user %s", draft.id, user_id)
            else:
                draft = LoanApplication.model_validate(rows[index])
            draft = self._merge_draft(draft, update).model_copy(update={"updated_at": now})
            rows[index] = draft.to_storage()
        return draft

    # --- transitions ---

    async def submit(self, application_id: str) -> LoanApplication:
        async with self._locks[application_id]:
            async with self._store.collections(APPLICATIONS, TIMELINE, NOTIFICATIONS) as col:
                index, app = self._locate(col[APPLICATIONS], application_id)
                if app.status not in (LoanStatus.DRAFT, LoanStatus.SUBMITTED):
                    raise IneligibleStateError(
                        f"Application in status '{app.status.value}' cannot be submitted"
                    )
                now = self._clock()
                app = app.model_copy(
                    update={"status": LoanStatus.SUBMITTED, "submitted_at": now, "updated_at": now}
                )
                col[APPLICATIONS][index] = app.to_storage()
                col[TIMELINE].append(
                    self._timeline.new_event(application_id, "Application Submitted", "user").to_storage()
                )
                col[NOTIFICATIONS].append(
                    self._notifications.new_notification(
                        app.user_id,
                        "Application Submitted",
                        "Your loan application has been submitted successfully.",
                        "success",
                        related_application_id=application_id,
                    ).to_storage()
                )
        logger.info("Application %s submitted", application_id)
        if self._review_delay is not None:
            self.scheduler.schedule(
                application_id,
                self._review_delay,
                partial(self._advance_to_review, application_id),
            )
        return app

    async def transition_to(
        self,
        application_id: str,
        status: Union[LoanStatus, str],
        payload: Union[TransitionPayload, Mapping[str, Any], None] = None,
    ) -> LoanApplication:
        status = self._coerce_status(status)
        parsed = self._parse_payload(payload)
        async with self._locks[application_id]:
            return await self._transition_locked(application_id, status, parsed)

    async def sign(self, application_id: str) -> LoanApplication:
        async with self._locks[application_id]:
            app = await self.get_application(application_id)
            if not (
                app.status == LoanStatus.APPROVED
                and app.signature_required
                and app.approved_terms is not None
            ):
                raise IneligibleStateError("Application is not eligible for signing")
            return await self._transition_locked(application_id, LoanStatus.SIGNED, TransitionPayload())

    async def cancel(self, application_id: str) -> LoanApplication:
        async with self._locks[application_id]:
            app = await self.get_application(application_id)
            if app.status in TERMINAL_STATUSES:
                raise IneligibleStateError(f"Application is already {app.status.value}")
            return await self._transition_locked(application_id, LoanStatus.CANCELLED, TransitionPayload())

    async def shutdown(self) -> None:
        await self.scheduler.shutdown()

    # --- internals ---

    async def _advance_to_review(self, application_id: str) -> None:
        async with self._locks[application_id]:
            app = await self.find_application(application_id)
            if app is None or app.status != LoanStatus.SUBMITTED:
                logger.info(
                    "Skipping automatic review for %s (status: %s)",
                    application_id,
                    app.status.value if app else "missing",
                )
                return
            await self._transition_locked(application_id, LoanStatus.REVIEW, TransitionPayload())

    async def _transition_locked(
        self,
        application_id: str,
        status: LoanStatus,
        payload: TransitionPayload,
    ) -> LoanApplication:
        async with self._store.collections(APPLICATIONS, TIMELINE, NOTIFICATIONS) as col:
            index, app = self._locate(col[APPLICATIONS], application_id)
            previous = app.status
            updated = self._apply_status(app, status, payload, col[APPLICATIONS])
            col[APPLICATIONS][index] = updated.to_storage()
            col[TIMELINE].append(
                self._timeline.new_event(application_id, EVENT_NAMES[status], event_source_for(status)).to_storage()
            )
            template = NOTIFICATION_TEMPLATES[status]
            col[NOTIFICATIONS].append(
                self._notifications.new_notification(
                    updated.user_id,
                    template.title,
                    template.render(updated.rejection_reason),
                    template.type,
                    related_application_id=application_id,
                ).to_storage()
            )
        if status != LoanStatus.SUBMITTED:
            self.scheduler.cancel(application_id)
        logger.info("Application %s: %s -> %s", application_id, previous.value, status.value)
        return updated

    def _apply_status(
        self,
        app: LoanApplication,
        status: LoanStatus,
        payload: TransitionPayload,
        rows: list[dict[str, Any]],
    ) -> LoanApplication:
        now = self._clock()
        changes: dict[str, Any] = {"status": status, "updated_at": now}
        if status == LoanStatus.APPROVED:
            if payload.approved_terms is None:
                raise ValidationError("approvedTerms is required to approve an application")
            changes["approved_terms"] = payload.approved_terms
            changes["signature_required"] = True
        elif status == LoanStatus.REJECTED:
            reason = (payload.rejection_reason or "").strip()
            if not reason:
                raise ValidationError("rejectionReason is required to reject an application")
            changes["rejection_reason"] = reason
        elif status == LoanStatus.SIGNED:
            if app.status != LoanStatus.APPROVED or not app.signature_required:
                raise IneligibleStateError("Only an approved application awaiting signature can be signed")
            changes["signed_at"] = now
        elif status == LoanStatus.SUBMITTED:
            if app.submitted_at is None:
                changes["submitted_at"] = now
        elif status == LoanStatus.DRAFT:
            has_other_draft = any(
                r.get("userId") == app.user_id
                and r.get("status") == LoanStatus.DRAFT.value
                and r.get("id") != app.id
                for r in rows
            )
            if has_other_draft:
                raise IneligibleStateError("User already has a draft application")
        if status != LoanStatus.REJECTED:
            changes["rejection_reason"] = None
        if status != LoanStatus.SIGNED:
            changes["signed_at"] = None
        return app.model_copy(update=changes)

    @staticmethod
    def _locate(rows: list[dict[str, Any]], application_id: str) -> tuple[int, LoanApplication]:
        for i, row in enumerate(rows):
            if row.get("id") == application_id:
                return i, LoanApplication.model_validate(row)
        raise NotFoundError(MSG_APPLICATION_NOT_FOUND)

    @staticmethod
    def _coerce_status(status: Union[LoanStatus, str]) -> LoanStatus:
        try:
            return LoanStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown loan status: {status!r}") from None

    @staticmethod
    def _parse_payload(payload: Union[TransitionPayload, Mapping[str, Any], None]) -> TransitionPayload:
        if isinstance(payload, TransitionPayload):
            return payload
        try:
            return TransitionPayload.model_validate(dict(payload or {}))
        except PydanticValidationError as e:
            raise validation_error_from(e) from None

    @staticmethod
    def _parse_draft_update(data: Union[DraftUpdate, Mapping[str, Any], None]) -> DraftUpdate:
        if isinstance(data, DraftUpdate):
            return data
        try:
            return DraftUpdate.model_validate(dict(data or {}))
        except PydanticValidationError as e:
            raise validation_error_from(e) from None

    @staticmethod
    def _merge_draft(draft: LoanApplication, update: DraftUpdate) -> LoanApplication:
        changes: dict[str, Any] = {}
        for field, section_model in DRAFT_SECTIONS.items():
            incoming = getattr(update, field)
            if incoming is None:
                continue
            current = getattr(draft, field).model_dump()
            try:
                changes[field] = section_model.model_validate({**current, **dict_keys_to_snake(incoming)})
            except PydanticValidationError as e:
                raise validation_error_from(e, prefix=to_camel(field)) from None
        return draft.model_copy(update=changes) if changes else draft
