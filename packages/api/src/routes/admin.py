# This project was developed with assistance from AI tools.
"""Admin endpoints for reviewing clearance applications."""

import uuid

from db import Application, get_db
from db.enums import ApplicationStatus, UserRole
from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.admin import (
    ApplicationDetail,
    ApplicationListResponse,
    ApplicationSummary,
    RenderRequest,
    StatusUpdateRequest,
)
from ..schemas.document import DocumentResponse
from ..services import admin as admin_service
from ..services.storage import StorageService, get_storage_service
from ..services.template import TemplateSource, get_template_source

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


def _build_detail(application: Application) -> ApplicationDetail:
    detail = ApplicationDetail.model_validate(application)
    return detail.model_copy(update={"has_signature": bool(application.digital_signature)})


@router.get("/applications", response_model=ApplicationListResponse)
async def list_applications(
    session: AsyncSession = Depends(get_db),
    status_filter: ApplicationStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
) -> ApplicationListResponse:
    """List applications, newest first, optionally filtered by status."""
    applications, total = await admin_service.list_applications(
        session, status=status_filter, offset=offset, limit=limit
    )
    return ApplicationListResponse(
        data=[ApplicationSummary.model_validate(app) for app in applications],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.get("/applications/{application_id}", response_model=ApplicationDetail)
async def get_application(
    application_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
) -> ApplicationDetail:
    application = await admin_service.get_application(session, application_id)
    return _build_detail(application)


@router.patch("/applications/{application_id}/status", response_model=ApplicationDetail)
async def update_status(
    application_id: uuid.UUID,
    body: StatusUpdateRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationDetail:
    """Advance the review status. Backward moves return 409."""
    application = await admin_service.update_status(session, user, application_id, body.status)
    return _build_detail(application)


@router.post("/applications/{application_id}/pdf")
async def download_clearance_pdf(
    application_id: uuid.UUID,
    body: RenderRequest | None = Body(default=None),
    session: AsyncSession = Depends(get_db),
    template: TemplateSource = Depends(get_template_source),
) -> Response:
    """Render the clearance form for download. An SSN may be supplied for this copy only."""
    filename, result = await admin_service.render_clearance_pdf(
        session, application_id, template, ssn_full=body.ssn_full if body else None
    )
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-store",
    }
    if result.skipped:
        headers["X-Skipped-Fields"] = ",".join(item.field for item in result.skipped)
    return Response(content=result.pdf_bytes, media_type="application/pdf", headers=headers)


@router.post(
    "/applications/{application_id}/clearance-form",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def regenerate_clearance_form(
    application_id: uuid.UUID,
    user: CurrentUser,
    body: RenderRequest | None = Body(default=None),
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    template: TemplateSource = Depends(get_template_source),
) -> DocumentResponse:
    """Regenerate and store the clearance form after a failed post-submit upload."""
    doc = await admin_service.regenerate_clearance_document(
        session,
        user,
        application_id,
        storage=storage,
        template=template,
        ssn_full=body.ssn_full if body else None,
    )
    return DocumentResponse.model_validate(doc)
