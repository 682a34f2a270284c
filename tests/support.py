"""Shared fixtures for the test modules."""
from datetime import datetime, timedelta, timezone

from config import Settings
from services.container import LoanServices, build_services
from services.store import InMemoryKeyValueStore


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)):
        self._now = start

    def __call__(self) -> datetime:
        self._now = self._now + timedelta(seconds=1)
        return self._now


def make_settings(**overrides) -> Settings:
    values = {
        "review_delay_seconds": 60.0,
        "secret_key": "test-secret",
        "otp_code": "123456",
    }
    values.update(overrides)
    return Settings(**values)


def make_services(**overrides) -> LoanServices:
    return build_services(InMemoryKeyValueStore(), make_settings(**overrides))


FILLED_DRAFT = {
    "personalInfo": {
        "fullName": "Somchai Jaidee",
        "dateOfBirth": "1991-02-03",
        "nationalId": "1103700012345",
        "phoneNumber": "0812345678",
        "email": "somchai@example.com",
    },
    "financialInfo": {"monthlyIncome": 5000, "yearsOfWork": 4},
    "loanDetails": {"downPayment": 2000, "loanPeriodMonths": 60},
}

APPROVED_TERMS = {"approvedAmount": 20000, "interestRate": 7.5, "monthlyPayment": 450}
