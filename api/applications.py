from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from api.deps import get_current_user, get_services, load_owned_application
from schemas.application import DraftUpdate, LoanApplication
from schemas.document import DocumentItem
from schemas.user import PublicUser
from services.container import LoanServices

router = APIRouter(prefix="/api/applications", tags=["applications"])


def _app_to_response(app: LoanApplication) -> dict[str, Any]:
    """Serialize application to dict with camelCase for frontend."""
    return app.model_dump(by_alias=True, mode="json")


def _document_to_response(doc: DocumentItem, include_data: bool = False) -> dict[str, Any]:
    exclude = None if include_data else {"file_data"}
    return doc.model_dump(by_alias=True, mode="json", exclude=exclude)


@router.get("")
async def list_applications(
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    apps = await services.engine.list_applications(user.id)
    return [_app_to_response(a) for a in apps]


@router.get("/draft")
async def get_draft(
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    draft = await services.engine.get_draft(user.id)
    if draft is None:
        raise HTTPException(status_code=404, detail="No draft application")
    return _app_to_response(draft)


@router.put("/draft")
async def save_draft(
    body: DraftUpdate,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    draft = await services.engine.create_or_load_draft(user.id, body)
    return _app_to_response(draft)


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    app = await load_owned_application(services, user, application_id)
    return _app_to_response(app)


@router.post("/{application_id}/submit")
async def submit_application(
    application_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    await load_owned_application(services, user, application_id)
    app = await services.engine.submit(application_id)
    return _app_to_response(app)


@router.post("/{application_id}/sign")
async def sign_application(
    application_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    await load_owned_application(services, user, application_id)
    app = await services.engine.sign(application_id)
    return _app_to_response(app)


@router.post("/{application_id}/cancel")
async def cancel_application(
    application_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    await load_owned_application(services, user, application_id)
    app = await services.engine.cancel(application_id)
    return _app_to_response(app)


@router.get("/{application_id}/timeline")
async def get_timeline(
    application_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    await load_owned_application(services, user, application_id)
    events = await services.engine.get_timeline(application_id)
    return [e.model_dump(by_alias=True, mode="json") for e in events]


@router.get("/{application_id}/documents")
async def list_documents(
    application_id: str,
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    await load_owned_application(services, user, application_id)
    docs = await services.documents.list_documents(application_id)
    return [_document_to_response(d) for d in docs]


@router.post("/{application_id}/documents", status_code=201)
async def upload_document(
    application_id: str,
    category: str = Form(...),
    file: UploadFile = File(..., description="PDF, JPG or PNG up to 10MB"),
    user: PublicUser = Depends(get_current_user),
    services: LoanServices = Depends(get_services),
):
    await load_owned_application(services, user, application_id)
    content = await file.read()
    doc = await services.documents.upload_document(
        application_id,
        category,
        file.filename or "upload",
        file.content_type or "",
        content,
    )
    return _document_to_response(doc)
