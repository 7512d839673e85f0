# This project was developed with assistance from AI tools.
"""Admin review: listing, status transitions and clearance form re-rendering."""

import logging
import uuid

from db import Application, Document
from db.enums import ApplicationStatus
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.errors import ConflictError, InvalidTransitionError, NotFoundError
from ..schemas.auth import UserContext
from .clearance_pdf import FillResult, clearance_filename
from .storage import StorageService
from .submission import generate_clearance_document, render_clearance
from .template import TemplateSource

logger = logging.getLogger(__name__)


async def list_applications(
    session: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """Return one page of applications, newest first, and the total count."""
    count_stmt = select(func.count(Application.id))
    stmt = (
        select(Application)
        .order_by(Application.created_at.desc(), Application.id)
        .offset(offset)
        .limit(limit)
    )
    if status is not None:
        count_stmt = count_stmt.where(Application.status == status)
        stmt = stmt.where(Application.status == status)

    total = (await session.execute(count_stmt)).scalar() or 0
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def get_application(session: AsyncSession, application_id: uuid.UUID) -> Application:
    """Return an application with its documents, or raise NotFoundError."""
    stmt = (
        select(Application)
        .options(selectinload(Application.documents))
        .where(Application.id == application_id)
    )
    application = (await session.execute(stmt)).scalar_one_or_none()
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")
    return application


async def update_status(
    session: AsyncSession,
    user: UserContext,
    application_id: uuid.UUID,
    new_status: ApplicationStatus,
) -> Application:
    """Move an application forward in the review workflow.

    draft -> submitted belongs to the submission flow and is never allowed here.
    """
    application = await get_application(session, application_id)
    current = application.status
    allowed = ApplicationStatus.valid_transitions().get(current, frozenset())
    if current == ApplicationStatus.DRAFT or new_status not in allowed:
        raise InvalidTransitionError(
            f"Cannot transition from '{current.value}' to '{new_status.value}'. "
            f"Allowed: {_allowed_label(current, allowed)}."
        )

    application.status = new_status
    await session.commit()
    await session.refresh(application, attribute_names=["status", "updated_at"])
    logger.info(
        "Status changed: application=%s %s -> %s by=%s",
        application_id,
        current.value,
        new_status.value,
        user.user_id,
    )
    return application


def _allowed_label(current: ApplicationStatus, allowed) -> str:
    if current == ApplicationStatus.DRAFT:
        return "none (awaiting visitor submission)"
    if not allowed:
        return "none (terminal status)"
    return ", ".join(sorted(s.value for s in allowed))


async def render_clearance_pdf(
    session: AsyncSession,
    application_id: uuid.UUID,
    template: TemplateSource,
    ssn_full: str | None = None,
) -> tuple[str, FillResult]:
    """Render the clearance form for download without storing it."""
    application = await get_application(session, application_id)
    record, result = await render_clearance(application, template, ssn_full)
    return clearance_filename(record), result


async def regenerate_clearance_document(
    session: AsyncSession,
    user: UserContext,
    application_id: uuid.UUID,
    *,
    storage: StorageService,
    template: TemplateSource,
    ssn_full: str | None = None,
) -> Document:
    """Out-of-band retry of the post-submit render and upload."""
    application = await get_application(session, application_id)
    if application.status == ApplicationStatus.DRAFT:
        raise ConflictError(f"Application {application_id} has not been submitted")
    doc, _skipped = await generate_clearance_document(
        session,
        application,
        storage=storage,
        template=template,
        ssn_full=ssn_full,
        uploaded_by=user.user_id,
    )
    await session.commit()
    logger.info("Clearance form regenerated: application=%s by=%s", application_id, user.user_id)
    return doc
