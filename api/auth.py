from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_services
from schemas.user import LoginRequest, OtpRequest, OtpVerifyRequest, RegistrationRequest, SessionData
from services.container import LoanServices

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_to_response(session: SessionData) -> dict[str, Any]:
    return session.model_dump(by_alias=True, mode="json")


@router.post("/otp/request")
async def request_otp(body: OtpRequest, services: LoanServices = Depends(get_services)):
    result = await services.identity.request_otp(body.phone_or_email)
    return result.model_dump(by_alias=True)


@router.post("/otp/verify")
async def verify_otp(body: OtpVerifyRequest, services: LoanServices = Depends(get_services)):
    result = await services.identity.verify_otp(body.phone_or_email, body.otp)
    return result.model_dump(by_alias=True)


@router.post("/register", status_code=201)
async def register(body: RegistrationRequest, services: LoanServices = Depends(get_services)):
    session = await services.identity.complete_registration(
        body.phone_or_email,
        body.pin,
        body.consent,
        body.location,
    )
    return _session_to_response(session)


@router.post("/login")
async def login(body: LoginRequest, services: LoanServices = Depends(get_services)):
    session = await services.identity.login(body.phone_or_email, body.pin)
    return _session_to_response(session)


@router.get("/session")
async def get_session(services: LoanServices = Depends(get_services)):
    session = await services.identity.get_session()
    if session is None:
        raise HTTPException(status_code=404, detail="No active session")
    return _session_to_response(session)


@router.post("/logout", status_code=204)
async def logout(services: LoanServices = Depends(get_services)):
    await services.identity.logout()
