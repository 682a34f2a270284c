"""
Seed a demo borrower: registered user, approved eKYC and a filled-in draft.
Run: python -m scripts.seed_demo (from the project root).
"""
import asyncio
import os
import sys

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from database import AsyncSessionLocal, dispose_db, init_db
from schemas.kyc import KycStatus
from schemas.user import ConsentRecord, LocationData
from services.container import build_services
from services.store import SqlKeyValueStore
from utils.stamps import utc_now

DEMO_USER = {
    "phone_or_email": "demo@example.com",
    "pin": "1234",
}

DEMO_DRAFT = {
    "personalInfo": {
        "fullName": "Dana Demo",
        "dateOfBirth": "1990-04-12",
        "nationalId": "1234567890123",
        "phoneNumber": "0812345678",
        "email": "demo@example.com",
        "maritalStatus": "single",
        "hasGuarantor": False,
    },
    "financialInfo": {
        "employmentStatus": "employed",
        "employerName": "Acme Co.",
        "monthlyIncome": 5500,
        "yearsOfWork": 6,
    },
    "loanDetails": {
        "downPayment": 3000,
        "loanPeriodMonths": 60,
        "requestedAmount": 20000,
    },
}


async def seed():
    await init_db()
    services = build_services(SqlKeyValueStore(AsyncSessionLocal), settings)
    consent = ConsentRecord(consent_accepted=True, consent_version=settings.consent_version, accepted_at=utc_now())
    session = await services.identity.complete_registration(
        DEMO_USER["phone_or_email"],
        DEMO_USER["pin"],
        consent,
        LocationData(),
    )
    user_id = session.user.id
    print(f"Seeded user: {DEMO_USER['phone_or_email']} ({user_id})")

    profile = await services.kyc.get_profile(user_id)
    if profile is None or profile.status != KycStatus.APPROVED:
        await services.kyc.submit_kyc(user_id, "Dana Demo", "1234567890123", "data:image/jpeg;base64,")
        await services.kyc.update_kyc_status(user_id, KycStatus.APPROVED)
        print("Approved eKYC")
    else:
        print("eKYC already approved, skipping")

    draft = await services.engine.create_or_load_draft(user_id, DEMO_DRAFT)
    print(f"Draft application: {draft.id}")

    await services.shutdown()
    await dispose_db()
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
