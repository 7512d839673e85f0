# This project was developed with assistance from AI tools.
"""Document service: uploads to blob storage and the Document rows that record them.

A Document row is only added after its upload succeeded, and rows are never
updated afterwards. Callers own the transaction and commit.
"""

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from db import Document
from db.enums import DocumentKind
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from .storage import StorageService, StorageUploadError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
}

# multipart form field -> document kind
SUPPLEMENTARY_FIELDS: dict[str, DocumentKind] = {
    "passportScan": DocumentKind.PASSPORT_SCAN,
    "wardenLetter": DocumentKind.WARDEN_LETTER,
}


@dataclass(frozen=True)
class SupplementaryFile:
    """An optional scan attached to a submission."""

    kind: DocumentKind
    filename: str
    content_type: str
    data: bytes


def check_supplementary(upload: SupplementaryFile) -> str | None:
    """Return an error message when the file may not be stored, else None."""
    if upload.content_type not in ALLOWED_CONTENT_TYPES:
        return (
            f"Unsupported file type: {upload.content_type}. "
            f"Allowed: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )
    if not upload.data:
        return "File is empty"
    max_bytes = settings.SUPPLEMENTARY_MAX_SIZE_MB * 1024 * 1024
    if len(upload.data) > max_bytes:
        return f"File exceeds maximum of {settings.SUPPLEMENTARY_MAX_SIZE_MB}MB"
    return None


async def store_document(
    session: AsyncSession,
    storage: StorageService,
    application_id: uuid.UUID,
    kind: DocumentKind,
    filename: str,
    content_type: str,
    file_data: bytes,
    uploaded_by: str | None,
) -> Document:
    """Upload bytes and add the Document row to the session.

    Raises StorageUploadError when the upload fails; nothing is added then.
    """
    document_id = uuid.uuid4()
    safe_name = os.path.basename(filename) or f"{kind.value}-{document_id}"
    object_key = storage.build_object_key(application_id, document_id, safe_name)
    storage_key = await storage.upload_file(file_data, object_key, content_type)

    doc = Document(
        id=document_id,
        application_id=application_id,
        kind=kind,
        filename=safe_name,
        mime_type=content_type,
        size_bytes=len(file_data),
        storage_key=storage_key,
        uploaded_by=uploaded_by,
        uploaded_at=datetime.now(UTC),
    )
    session.add(doc)
    logger.info(
        "Document uploaded: application=%s kind=%s key=%s size=%d",
        application_id,
        kind.value,
        storage_key,
        len(file_data),
    )
    return doc


async def upload_supplementary(
    session: AsyncSession,
    storage: StorageService,
    application_id: uuid.UUID,
    upload: SupplementaryFile,
    uploaded_by: str | None,
) -> Document | None:
    """Best-effort upload of an optional scan. Failures are logged, not raised."""
    try:
        return await store_document(
            session,
            storage,
            application_id,
            upload.kind,
            upload.filename,
            upload.content_type,
            upload.data,
            uploaded_by,
        )
    except StorageUploadError:
        logger.warning(
            "Supplementary upload failed: application=%s kind=%s",
            application_id,
            upload.kind.value,
            exc_info=True,
        )
        return None

