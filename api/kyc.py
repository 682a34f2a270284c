from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user, get_services
from schemas.kyc import KycSubmitRequest
from schemas.user import PublicUser
from services.container import LoanServices

router = APIRouter(prefix="/api/kyc", tags=["kyc"])


@router.get("")
async def get_kyc_profile(
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    profile = await services.kyc.get_profile(user.id)
    if profile is None:
        raise HTTPException(status_code=404, detail="KYC profile not found")
    return profile.model_dump(by_alias=True, mode="json")


@router.post("")
async def submit_kyc(
    body: KycSubmitRequest,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    profile = await services.kyc.submit_kyc(
        user.id,
        body.full_name,
        body.national_id_number,
        body.selfie_data,
        body.selfie_filename,
    )
    return profile.model_dump(by_alias=True, mode="json")
