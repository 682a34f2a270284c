"""
Tests for registration, login and sessions.
"""
import unittest

from schemas.kyc import KycStatus
from schemas.user import ConsentRecord, LocationData
from services.errors import AuthenticationError, ValidationError
from services.store import StorageKeys
from support import make_services
from utils.stamps import utc_now


def _consent(accepted=True):
    return ConsentRecord(consent_accepted=accepted, consent_version="v1", accepted_at=utc_now())


class TestIdentityManager(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.services = make_services()
        self.identity = self.services.identity

    async def test_otp_flow(self):
        sent = await self.identity.request_otp("0812345678")
        self.assertTrue(sent.success)
        self.assertTrue((await self.identity.verify_otp("0812345678", "123456")).success)
        self.assertFalse((await self.identity.verify_otp("0812345678", "654321")).success)
        self.assertFalse((await self.identity.verify_otp("0812345678", "12345")).success)

    async def test_otp_rejects_bad_identifier(self):
        with self.assertRaises(ValidationError):
            await self.identity.request_otp("not an email")

    async def test_registration_opens_session_and_kyc_profile(self):
        session = await self.identity.complete_registration(
            "ann@example.com",
            "1234",
            _consent(),
            LocationData(location_enabled=True, latitude=13.75, longitude=100.5),
        )
        self.assertEqual(session.user.phone_or_email, "ann@example.com")
        self.assertTrue(session.location.location_enabled)
        self.assertIsNotNone(session.access_token)

        stored = await self.identity.get_session()
        self.assertEqual(stored.user.id, session.user.id)
        self.assertIsNone(stored.access_token)

        profile = await self.services.kyc.get_profile(session.user.id)
        self.assertEqual(profile.status, KycStatus.NOT_STARTED)

        user = await self.identity.authenticate_token(session.access_token)
        self.assertEqual(user.id, session.user.id)

    async def test_pin_is_stored_hashed(self):
        await self.identity.complete_registration("ann@example.com", "1234", _consent())
        rows = await self.services.store.get_list(StorageKeys.USERS)
        self.assertEqual(len(rows), 1)
        self.assertNotIn("pin", rows[0])
        self.assertNotEqual(rows[0]["pinHash"], "1234")

    async def test_reregistration_keeps_user_and_replaces_pin(self):
        first = await self.identity.complete_registration("ann@example.com", "1234", _consent())
        second = await self.identity.complete_registration("ann@example.com", "987654", _consent())
        self.assertEqual(first.user.id, second.user.id)
        with self.assertRaises(AuthenticationError):
            await self.identity.login("ann@example.com", "1234")
        session = await self.identity.login("ann@example.com", "987654")
        self.assertIsNotNone(session.user.last_login)

    async def test_registration_validation(self):
        with self.assertRaises(ValidationError):
            await self.identity.complete_registration("ann@example.com", "12", _consent())
        with self.assertRaises(ValidationError):
            await self.identity.complete_registration("ann@example.com", "1234", _consent(accepted=False))
        self.assertEqual(await self.services.store.get_list(StorageKeys.USERS), [])

    async def test_login_failures(self):
        await self.identity.complete_registration("ann@example.com", "1234", _consent())
        with self.assertRaises(AuthenticationError):
            await self.identity.login("ann@example.com", "0000")
        with self.assertRaises(AuthenticationError):
            await self.identity.login("bob@example.com", "1234")

    async def test_login_restores_consent(self):
        registered = await self.identity.complete_registration("ann@example.com", "1234", _consent())
        await self.identity.logout()
        self.assertIsNone(await self.identity.get_session())
        session = await self.identity.login("ann@example.com", "1234")
        self.assertEqual(session.consent.accepted_at, registered.consent.accepted_at)
        self.assertFalse(session.location.location_enabled)

    async def test_bad_token(self):
        with self.assertRaises(AuthenticationError):
            await self.identity.authenticate_token("not-a-token")


if __name__ == "__main__":
    unittest.main()
