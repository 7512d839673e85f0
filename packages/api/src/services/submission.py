# This project was developed with assistance from AI tools.
"""Final submission: draft -> submitted, then the clearance form and uploads.

Order matters. Everything that can reject the submission (ownership,
status, full validation, leftover placeholders) runs before the guarded
UPDATE that flips the status. After that commit the application is
submitted for good; a failed render or upload is reported to the caller
but never rolls the status back, and the form can be regenerated later
through ``generate_clearance_document``.
"""

import asyncio
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from functools import partial

from db import Application, Document
from db.enums import ApplicationStatus, DocumentKind
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConflictError, FieldError, UpstreamError, ValidationError
from ..schemas.auth import UserContext
from . import document as document_service
from .application import draft_form, load_owned_application
from .clearance_pdf import ClearanceRecord, SkippedField, clearance_filename, fill_clearance_form
from .document import SupplementaryFile
from .placeholders import remaining_placeholders
from .storage import StorageService, StorageUploadError
from .template import TemplateSource
from .validation import answered_background, form_to_columns, validate_application

logger = logging.getLogger(__name__)

# column -> camelCase form field, for placeholder errors
_PLACEHOLDER_FIELDS = {
    "email": "email",
    "phone_number": "phoneNumber",
    "company_or_organization": "companyOrOrganization",
    "government_id_number": "governmentIdNumber",
}


@dataclass
class SubmissionResult:
    application: Application
    documents: list[Document] = field(default_factory=list)
    skipped: list[SkippedField] = field(default_factory=list)


async def submit_application(
    session: AsyncSession,
    user: UserContext,
    application_id: uuid.UUID,
    payload: Mapping,
    files: Mapping[str, SupplementaryFile] | None = None,
    *,
    storage: StorageService,
    template: TemplateSource,
    today: date | None = None,
) -> SubmissionResult:
    """Validate, commit and render a visitor's application.

    Raises NotFoundError / AuthorizationError / ConflictError /
    ValidationError with no writes. Raises UpstreamError after the commit
    when the clearance form could not be rendered or stored.
    """
    files = {name: upload for name, upload in (files or {}).items() if upload is not None}

    application = await load_owned_application(session, user, application_id)
    if application.status != ApplicationStatus.DRAFT:
        raise ConflictError(
            f"Application {application_id} was already submitted (status={application.status.value})"
        )

    form = {**draft_form(application), **payload}
    errors = validate_application(form, files, today)
    if errors:
        raise ValidationError(errors)

    columns = form_to_columns(form, today)
    columns["background_answered"] = answered_background(None, form)
    leftover = remaining_placeholders(columns)
    if leftover:
        raise ValidationError(
            [FieldError(_PLACEHOLDER_FIELDS[column], "This field has not been provided") for column in leftover]
        )

    now = datetime.now(UTC)
    stmt = (
        update(Application)
        .where(
            Application.id == application_id,
            Application.owner_id == user.user_id,
            Application.status == ApplicationStatus.DRAFT,
        )
        .values(**columns, status=ApplicationStatus.SUBMITTED, submitted_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        await session.rollback()
        raise ConflictError(f"Application {application_id} was already submitted")
    await session.commit()
    await session.refresh(application)
    logger.info("Application submitted: application=%s owner=%s", application_id, user.user_id)

    # Past the durability boundary: failures below never undo the submit
    outcome = SubmissionResult(application=application)
    primary_error: UpstreamError | None = None
    try:
        doc, skipped = await generate_clearance_document(
            session,
            application,
            storage=storage,
            template=template,
            ssn_full=payload.get("ssnFull"),
            uploaded_by=user.user_id,
        )
        outcome.documents.append(doc)
        outcome.skipped = skipped
    except UpstreamError as exc:
        primary_error = exc

    for upload in files.values():
        doc = await document_service.upload_supplementary(
            session, storage, application.id, upload, user.user_id
        )
        if doc is not None:
            outcome.documents.append(doc)

    if outcome.documents:
        await session.commit()
    if primary_error is not None:
        raise primary_error
    return outcome


async def render_clearance(
    application: Application,
    template: TemplateSource,
    ssn_full: str | None = None,
):
    """Fill the template in a worker thread. Raises UpstreamError on any failure."""
    loop = asyncio.get_running_loop()
    try:
        record = ClearanceRecord.from_application(application, ssn_full=ssn_full)
        template_bytes = template.load()
        result = await loop.run_in_executor(None, partial(fill_clearance_form, record, template_bytes))
    except Exception as exc:
        logger.exception("Clearance form rendering failed: application=%s", application.id)
        raise UpstreamError(
            "The clearance form could not be generated",
            application_id=application.id,
            status=application.status,
        ) from exc
    return record, result


async def generate_clearance_document(
    session: AsyncSession,
    application: Application,
    *,
    storage: StorageService,
    template: TemplateSource,
    ssn_full: str | None = None,
    uploaded_by: str | None = None,
) -> tuple[Document, list[SkippedField]]:
    """Render and upload the clearance form, adding its Document row.

    The caller commits. Raises UpstreamError when rendering or the upload fails.
    """
    record, result = await render_clearance(application, template, ssn_full)
    try:
        doc = await document_service.store_document(
            session,
            storage,
            application.id,
            DocumentKind.CLEARANCE_FORM,
            clearance_filename(record),
            "application/pdf",
            result.pdf_bytes,
            uploaded_by,
        )
    except StorageUploadError as exc:
        logger.error("Clearance form upload failed: application=%s: %s", application.id, exc)
        raise UpstreamError(
            "The clearance form could not be stored",
            application_id=application.id,
            status=application.status,
        ) from exc
    return doc, result.skipped
