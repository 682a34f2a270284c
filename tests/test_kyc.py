"""
Tests for the eKYC profile manager.
"""
import unittest

from schemas.kyc import KycStatus
from services.errors import NotFoundError, ValidationError
from services.kyc import KycManager
from services.notifications import NotificationOutbox
from services.store import InMemoryKeyValueStore, StorageKeys
from support import TickingClock


class NotificationWriteFailingStore(InMemoryKeyValueStore):
    fail = False

    async def set_many(self, items):
        if self.fail and StorageKeys.NOTIFICATIONS in items:
            raise RuntimeError("notification write failed")
        await super().set_many(items)


class TestKycManager(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        store = InMemoryKeyValueStore()
        clock = TickingClock()
        self.outbox = NotificationOutbox(store, clock=clock)
        self.kyc = KycManager(store, self.outbox, clock=clock)

    async def test_ensure_profile_is_idempotent(self):
        first = await self.kyc.ensure_profile("u1")
        second = await self.kyc.ensure_profile("u1")
        self.assertEqual(first.status, KycStatus.NOT_STARTED)
        self.assertEqual(second, first)

    async def test_submit_puts_profile_under_review(self):
        profile = await self.kyc.submit_kyc("u1", "Ann Lee", "AB12345", "data:image/jpeg;base64,AAAA")
        self.assertEqual(profile.status, KycStatus.UNDER_REVIEW)
        self.assertIsNotNone(profile.submitted_at)
        self.assertEqual((await self.kyc.get_profile("u1")).national_id_number, "AB12345")
        notes = await self.outbox.get_notifications("u1")
        self.assertEqual([(n.title, n.type) for n in notes], [("eKYC Submitted", "info")])

    async def test_submit_validates_input(self):
        with self.assertRaises(ValidationError):
            await self.kyc.submit_kyc("u1", "Ann Lee", "123", "selfie")
        with self.assertRaises(ValidationError):
            await self.kyc.submit_kyc("u1", "  ", "AB12345", "selfie")
        self.assertIsNone(await self.kyc.get_profile("u1"))

    async def test_update_unknown_profile(self):
        with self.assertRaises(NotFoundError):
            await self.kyc.update_kyc_status("nobody", KycStatus.APPROVED)
        self.assertEqual(await self.outbox.get_notifications("nobody"), [])

    async def test_approve(self):
        await self.kyc.submit_kyc("u1", "Ann Lee", "AB12345", "selfie")
        profile = await self.kyc.update_kyc_status("u1", "approved")
        self.assertEqual(profile.status, KycStatus.APPROVED)
        self.assertIsNotNone(profile.reviewed_at)
        latest = (await self.outbox.get_notifications("u1"))[0]
        self.assertEqual((latest.title, latest.type), ("eKYC Approved", "success"))

    async def test_reject_then_resubmit(self):
        await self.kyc.submit_kyc("u1", "Ann Lee", "AB12345", "selfie")
        rejected = await self.kyc.update_kyc_status("u1", KycStatus.REJECTED, "Blurry selfie")
        self.assertEqual(rejected.rejection_reason, "Blurry selfie")
        latest = (await self.outbox.get_notifications("u1"))[0]
        self.assertEqual(latest.type, "error")
        self.assertIn("Blurry selfie", latest.message)

        again = await self.kyc.submit_kyc("u1", "Ann Lee", "AB12345", "sharper selfie")
        self.assertEqual(again.status, KycStatus.UNDER_REVIEW)
        self.assertIsNone(again.rejection_reason)

    async def test_unknown_status(self):
        await self.kyc.ensure_profile("u1")
        with self.assertRaises(ValidationError):
            await self.kyc.update_kyc_status("u1", "pending")

    async def test_review_leaves_no_trace_when_notification_write_fails(self):
        store = NotificationWriteFailingStore()
        outbox = NotificationOutbox(store)
        kyc = KycManager(store, outbox)
        await kyc.ensure_profile("u1")
        store.fail = True
        with self.assertRaises(RuntimeError):
            await kyc.update_kyc_status("u1", KycStatus.APPROVED)
        store.fail = False
        self.assertEqual((await kyc.get_profile("u1")).status, KycStatus.NOT_STARTED)
        self.assertEqual(await outbox.get_notifications("u1"), [])


if __name__ == "__main__":
    unittest.main()
