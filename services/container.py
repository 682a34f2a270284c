from __future__ import annotations

from dataclasses import dataclass

from config import Settings
from services.demo import DemoControls
from services.documents import DocumentManager
from services.identity import IdentityManager
from services.kyc import KycManager
from services.lifecycle import LoanLifecycleEngine
from services.notifications import NotificationOutbox
from services.store import KeyValueStore
from services.timeline import TimelineLog
from services.tokens import TokenIssuer


@dataclass
class LoanServices:
    store: KeyValueStore
    timeline: TimelineLog
    notifications: NotificationOutbox
    engine: LoanLifecycleEngine
    kyc: KycManager
    documents: DocumentManager
    identity: IdentityManager
    demo: DemoControls

    async def shutdown(self) -> None:
        await self.engine.shutdown()


def build_services(store: KeyValueStore, settings: Settings) -> LoanServices:
    """Wire every manager around one injected store."""
    timeline = TimelineLog(store)
    notifications = NotificationOutbox(store)
    engine = LoanLifecycleEngine(
        store,
        timeline,
        notifications,
        review_delay_seconds=settings.review_delay_seconds,
    )
    kyc = KycManager(store, notifications)
    documents = DocumentManager(store, engine, max_bytes=settings.max_document_bytes)
    identity = IdentityManager(
        store,
        kyc,
        TokenIssuer(settings.secret_key, settings.access_token_expire_minutes),
        otp_code=settings.otp_code,
        consent_version=settings.consent_version,
    )
    demo = DemoControls(store, engine, kyc)
    return LoanServices(
        store=store,
        timeline=timeline,
        notifications=notifications,
        engine=engine,
        kyc=kyc,
        documents=documents,
        identity=identity,
        demo=demo,
    )
