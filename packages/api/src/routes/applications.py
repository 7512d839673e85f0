# This project was developed with assistance from AI tools.
"""Visitor-facing wizard routes: create, save steps, resume, submit."""

import json
import logging
import uuid
from typing import Literal

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Body, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import FieldError, ValidationError
from ..middleware.auth import CurrentUser, require_roles
from ..schemas.application import (
    CreateDraftRequest,
    CreateDraftResponse,
    DraftResponse,
    SkippedFieldItem,
    StepSavedResponse,
    SubmitResponse,
)
from ..schemas.document import DocumentResponse
from ..services import application as app_service
from ..services.document import SUPPLEMENTARY_FIELDS, SupplementaryFile
from ..services.storage import StorageService, get_storage_service
from ..services.submission import submit_application
from ..services.template import TemplateSource, get_template_source

logger = logging.getLogger(__name__)

router = APIRouter()

_WIZARD_ROLES = (UserRole.APPLICANT, UserRole.ADMIN)

StepName = Literal["personal", "contact", "experience", "rules", "security"]


@router.post(
    "",
    response_model=CreateDraftResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_WIZARD_ROLES))],
)
async def create_draft(
    body: CreateDraftRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CreateDraftResponse:
    """Start an application from the personal step. 409 if the id already exists."""
    fields = body.model_dump(by_alias=True, exclude_unset=True, exclude={"application_id"})
    application = await app_service.create_draft(
        session, user, fields, application_id=body.application_id
    )
    return CreateDraftResponse(application_id=application.id)


@router.patch(
    "/{application_id}/{step}",
    response_model=StepSavedResponse,
    dependencies=[Depends(require_roles(*_WIZARD_ROLES))],
)
async def patch_step(
    application_id: uuid.UUID,
    step: StepName,
    user: CurrentUser,
    payload: dict = Body(...),
    session: AsyncSession = Depends(get_db),
) -> StepSavedResponse:
    """Save one step. Only that step's fields are written."""
    await app_service.patch_step(session, user, application_id, step, payload)
    return StepSavedResponse()


@router.get(
    "/{application_id}",
    response_model=DraftResponse,
    dependencies=[Depends(require_roles(*_WIZARD_ROLES))],
)
async def get_draft(
    application_id: uuid.UUID,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DraftResponse:
    """Resume a draft. Placeholder values come back as empty strings."""
    draft = await app_service.get_draft(session, user, application_id)
    return DraftResponse(draft=draft)


async def _read_upload(form_field: str, upload: UploadFile | None) -> SupplementaryFile | None:
    # Browsers send an empty part when no file was chosen
    if upload is None or not upload.filename:
        return None
    return SupplementaryFile(
        kind=SUPPLEMENTARY_FIELDS[form_field],
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        data=await upload.read(),
    )


@router.post(
    "/{application_id}/submit",
    response_model=SubmitResponse,
    dependencies=[Depends(require_roles(*_WIZARD_ROLES))],
)
async def submit(
    application_id: uuid.UUID,
    user: CurrentUser,
    payload: str = Form(..., description="Full application as a JSON object."),
    passport_scan: UploadFile | None = File(default=None, alias="passportScan"),
    warden_letter: UploadFile | None = File(default=None, alias="wardenLetter"),
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    template: TemplateSource = Depends(get_template_source),
) -> SubmitResponse:
    """Validate and submit the application, then generate and store the clearance form."""
    try:
        form = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ValidationError([FieldError("payload", "Payload must be valid JSON")]) from exc
    if not isinstance(form, dict):
        raise ValidationError([FieldError("payload", "Payload must be a JSON object")])

    files = {
        "passportScan": await _read_upload("passportScan", passport_scan),
        "wardenLetter": await _read_upload("wardenLetter", warden_letter),
    }
    result = await submit_application(
        session,
        user,
        application_id,
        form,
        files,
        storage=storage,
        template=template,
    )
    application = result.application
    return SubmitResponse(
        application_id=application.id,
        status=application.status,
        submitted_at=application.submitted_at,
        documents=[DocumentResponse.model_validate(doc) for doc in result.documents],
        skipped_fields=[SkippedFieldItem(field=s.field, reason=s.reason) for s in result.skipped],
    )
