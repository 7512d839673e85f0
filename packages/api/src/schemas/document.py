# This project was developed with assistance from AI tools.
"""Document response schemas."""

import uuid
from datetime import datetime

from db.enums import DocumentKind
from pydantic import ConfigDict

from . import CamelModel


class DocumentResponse(CamelModel):
    """Stored file reference for an application."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    application_id: uuid.UUID
    kind: DocumentKind
    filename: str
    mime_type: str
    size_bytes: int
    storage_key: str
    uploaded_by: str | None = None
    uploaded_at: datetime | None = None
