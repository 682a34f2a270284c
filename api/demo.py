from fastapi import APIRouter, Depends

from api.deps import get_current_user, get_services, load_owned_application
from schemas.application import StatusChangeRequest
from schemas.kyc import KycStatusRequest
from schemas.user import PublicUser
from services.container import LoanServices

router = APIRouter(prefix="/api/demo", tags=["demo"])


@router.post("/reset")
async def reset_all_data(services: LoanServices = Depends(get_services)):
    removed = await services.demo.reset_all_data()
    return {"removedKeys": removed}


@router.post("/kyc-status")
async def set_kyc_status(
    body: KycStatusRequest,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    profile = await services.demo.set_kyc_status(user.id, body.status, body.rejection_reason)
    return profile.model_dump(by_alias=True, mode="json")


@router.post("/applications/{application_id}/status")
async def set_loan_status(
    application_id: str,
    body: StatusChangeRequest,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    await load_owned_application(services, user, application_id)
    app = await services.demo.set_loan_status(
        application_id,
        body.status,
        rejection_reason=body.rejection_reason,
        approved_terms=body.approved_terms,
    )
    return app.model_dump(by_alias=True, mode="json")
