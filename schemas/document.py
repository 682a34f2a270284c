from datetime import datetime
from typing import Literal, Optional

from schemas.base import CamelModel

DocumentCategory = Literal[
    "id_document",
    "income_proof",
    "address_proof",
    "home_registration",
    "marriage_certificate",
    "guarantor_document",
]


class DocumentItem(CamelModel):
    id: str
    application_id: str
    category: DocumentCategory
    filename: str
    file_type: str
    file_size: int
    uploaded_at: datetime
    version: int
    file_data: Optional[str] = None
