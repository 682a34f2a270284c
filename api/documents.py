from fastapi import APIRouter, Depends

from api.deps import get_current_user, get_services, load_owned_application
from schemas.user import PublicUser
from services.container import LoanServices

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.get("/{document_id}")
async def get_document(
    document_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    doc = await services.documents.get_document(document_id)
    await load_owned_application(services, user, doc.application_id)
    return doc.model_dump(by_alias=True, mode="json")


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    doc = await services.documents.get_document(document_id)
    await load_owned_application(services, user, doc.application_id)
    await services.documents.delete_document(document_id)
