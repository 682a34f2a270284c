"""
Tests for the demo controls.
"""
import unittest

from schemas.application import LoanStatus
from schemas.kyc import KycStatus
from services.demo import DEFAULT_REJECTION_REASON, suggest_approved_terms
from services.errors import ValidationError
from services.store import StorageKeys
from support import FILLED_DRAFT, make_services


class TestDemoControls(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.services = make_services()
        draft = await self.services.engine.create_or_load_draft("u1", FILLED_DRAFT)
        self.app = await self.services.engine.submit(draft.id)

    async def asyncTearDown(self):
        await self.services.shutdown()

    def test_suggested_terms(self):
        """5000/month over 60 months -> 18,000 at 7.5% flat -> 322.50 a month."""
        terms = suggest_approved_terms(self.app)
        self.assertAlmostEqual(terms.approved_amount, 18000)
        self.assertEqual(terms.interest_rate, 7.5)
        self.assertAlmostEqual(terms.monthly_payment, 322.5)

    async def test_approve_without_terms_derives_them(self):
        app = await self.services.demo.set_loan_status(self.app.id, "approved")
        self.assertEqual(app.status, LoanStatus.APPROVED)
        self.assertAlmostEqual(app.approved_terms.approved_amount, 18000)
        self.assertTrue(app.signature_required)

    async def test_reject_without_reason_uses_default(self):
        app = await self.services.demo.set_loan_status(self.app.id, LoanStatus.REJECTED)
        self.assertEqual(app.rejection_reason, DEFAULT_REJECTION_REASON)

    async def test_approve_empty_application_needs_explicit_terms(self):
        empty = await self.services.engine.create_or_load_draft("u2")
        with self.assertRaises(ValidationError):
            await self.services.demo.set_loan_status(empty.id, LoanStatus.APPROVED)

    async def test_set_kyc_status(self):
        await self.services.kyc.ensure_profile("u1")
        profile = await self.services.demo.set_kyc_status("u1", KycStatus.APPROVED)
        self.assertEqual(profile.status, KycStatus.APPROVED)

    async def test_reset_removes_everything(self):
        removed = await self.services.demo.reset_all_data()
        self.assertGreaterEqual(removed, 3)
        self.assertEqual(await self.services.store.get_list(StorageKeys.LOAN_APPLICATIONS), [])
        self.assertEqual(await self.services.store.keys(), [])


if __name__ == "__main__":
    unittest.main()
