"""
Demo tooling: wipe state and push KYC / loan statuses by hand.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from schemas.application import ApprovedTerms, LoanApplication, LoanStatus, TransitionPayload
from schemas.kyc import KycProfile, KycStatus
from services.errors import ValidationError
from services.kyc import KycManager
from services.lifecycle import LoanLifecycleEngine
from services.store import KEY_PREFIX, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Application did not meet criteria"
DEMO_INTEREST_RATE = 7.5


def suggest_approved_terms(app: LoanApplication) -> ApprovedTerms:
    """Terms a lender might offer: 30% of annual income at 7.5% flat over the loan period."""
    amount = round(app.financial_info.monthly_income * 12 * 0.3, 2)
    if amount <= 0:
        amount = app.loan_details.requested_amount or 0
    if amount <= 0:
        raise ValidationError("Cannot derive approved terms without monthly income or a requested amount")
    monthly = round(amount * (1 + DEMO_INTEREST_RATE / 100) / app.loan_details.loan_period_months, 2)
    return ApprovedTerms(approved_amount=amount, interest_rate=DEMO_INTEREST_RATE, monthly_payment=monthly)


class DemoControls:
    def __init__(self, store: KeyValueStore, engine: LoanLifecycleEngine, kyc: KycManager):
        self._store = store
        self._engine = engine
        self._kyc = kyc

    async def reset_all_data(self) -> int:
        removed = 0
        for key in await self._store.keys():
            if key.startswith(KEY_PREFIX):
                await self._store.remove(key)
                removed += 1
        logger.warning("Demo reset removed %d keys", removed)
        return removed

    async def set_kyc_status(
        self,
        user_id: str,
        status: Union[KycStatus, str],
        rejection_reason: Optional[str] = None,
    ) -> KycProfile:
        return await self._kyc.update_kyc_status(user_id, status, rejection_reason)

    async def set_loan_status(
        self,
        application_id: str,
        status: Union[LoanStatus, str],
        rejection_reason: Optional[str] = None,
        approved_terms: Optional[ApprovedTerms] = None,
    ) -> LoanApplication:
        payload = TransitionPayload(approved_terms=approved_terms, rejection_reason=rejection_reason)
        if status == LoanStatus.REJECTED and not (rejection_reason or "").strip():
            payload.rejection_reason = DEFAULT_REJECTION_REASON
        if status == LoanStatus.APPROVED and approved_terms is None:
            app = await self._engine.get_application(application_id)
            payload.approved_terms = suggest_approved_terms(app)
        return await self._engine.transition_to(application_id, status, payload)
