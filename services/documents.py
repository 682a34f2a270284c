"""
Uploaded documents, one live record per (application, category). Re-uploading a
category replaces the record and bumps its version.
"""
from __future__ import annotations

import base64
import logging
from datetime import datetime
from typing import Callable, get_args

from schemas.document import DocumentCategory, DocumentItem
from services.errors import NotFoundError, ValidationError
from services.lifecycle import LoanLifecycleEngine
from services.store import KeyValueStore, StorageKeys
from utils.stamps import new_id, utc_now

logger = logging.getLogger(__name__)

DOCUMENTS = StorageKeys.DOCUMENTS

DOCUMENT_CATEGORIES: tuple[str, ...] = get_args(DocumentCategory)
ALLOWED_CONTENT_TYPES = {
    "application/pdf": "application/pdf",
    "image/jpeg": "image/jpeg",
    "image/jpg": "image/jpeg",
    "image/png": "image/png",
}
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class DocumentManager:
    def __init__(
        self,
        store: KeyValueStore,
        applications: LoanLifecycleEngine,
        max_bytes: int = DEFAULT_MAX_BYTES,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._applications = applications
        self._max_bytes = max_bytes
        self._clock = clock

    async def list_documents(self, application_id: str) -> list[DocumentItem]:
        rows = await self._store.get_list(DOCUMENTS)
        return [DocumentItem.model_validate(r) for r in rows if r.get("applicationId") == application_id]

    async def get_document(self, document_id: str) -> DocumentItem:
        for row in await self._store.get_list(DOCUMENTS):
            if row.get("id") == document_id:
                return DocumentItem.model_validate(row)
        raise NotFoundError("Document not found")

    async def upload_document(
        self,
        application_id: str,
        category: str,
        filename: str,
        content_type: str,
        content: bytes,
    ) -> DocumentItem:
        if category not in DOCUMENT_CATEGORIES:
            raise ValidationError(f"Invalid document category: {category!r}")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError("Invalid file type. Only PDF, JPG, and PNG are allowed.")
        if not content:
            raise ValidationError("File is empty.")
        if len(content) > self._max_bytes:
            raise ValidationError(f"File size exceeds {self._max_bytes // (1024 * 1024)}MB limit.")
        await self._applications.get_application(application_id)

        encoded = base64.b64encode(content).decode("ascii")
        async with self._store.collections(DOCUMENTS) as data:
            rows = data[DOCUMENTS]
            index = next(
                (
                    i
                    for i, r in enumerate(rows)
                    if r.get("applicationId") == application_id and r.get("category") == category
                ),
                None,
            )
            version = rows[index]["version"] + 1 if index is not None else 1
            doc = DocumentItem(
                id=new_id("doc"),
                application_id=application_id,
                category=category,
                filename=filename or "upload",
                file_type=content_type,
                file_size=len(content),
                uploaded_at=self._clock(),
                version=version,
                file_data=f"data:{ALLOWED_CONTENT_TYPES[content_type]};base64,{encoded}",
            )
            if index is None:
                rows.append(doc.to_storage())
            else:
                rows[index] = doc.to_storage()
        logger.info("Stored %s v%d for application %s", category, version, application_id)
        return doc

    async def delete_document(self, document_id: str) -> None:
        async with self._store.collections(DOCUMENTS) as data:
            rows = data[DOCUMENTS]
            remaining = [r for r in rows if r.get("id") != document_id]
            if len(remaining) == len(rows):
                raise NotFoundError("Document not found")
            data[DOCUMENTS] = remaining
