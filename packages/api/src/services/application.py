# This project was developed with assistance from AI tools.
"""Draft store: create, patch and read clearance applications by owner.

Every read and write is scoped to the authenticated caller. Step saves are
single column-scoped UPDATE statements, so saves of different steps never
overwrite each other no matter how they interleave.
"""

import logging
import uuid
from collections.abc import Mapping
from datetime import UTC, date, datetime

from db import Application
from db.enums import ApplicationStatus
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import AuthorizationError, ConflictError, FieldError, NotFoundError, ValidationError
from ..schemas.auth import UserContext
from .placeholders import draft_defaults, strip_placeholders
from .validation import BACKGROUND_FIELDS, answered_background, to_display_date, validate_step

logger = logging.getLogger(__name__)

STEP_COLUMNS: dict[str, frozenset[str]] = {
    "personal": frozenset({"first_name", "last_name", "other_names", "date_of_birth", "gender"}),
    "contact": frozenset(
        {"email", "phone_number", "company_or_organization", "purpose_of_visit", "visit_date"}
    ),
    "experience": frozenset({"impact_responses"}),
    "rules": frozenset({"rules_quiz_answers"}),
    "security": frozenset(
        {
            "government_id_type",
            "government_id_number",
            "id_state",
            "id_expiration",
            "digital_signature",
            "ssn_method",
            "is_us_citizen",
            *BACKGROUND_FIELDS.values(),
            "background_answered",
        }
    ),
}

_CREATE_REQUIRED = {
    "firstName": "First name is required",
    "lastName": "Last name is required",
    "dateOfBirth": "Date of birth is required",
    "gender": "Please select a gender",
}


async def load_owned_application(
    session: AsyncSession,
    user: UserContext,
    application_id: uuid.UUID,
) -> Application:
    """Load an application the caller owns.

    Raises NotFoundError when it does not exist and AuthorizationError when
    it belongs to someone else (the API surfaces both as 404).
    """
    application = await session.get(Application, application_id, populate_existing=True)
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")
    if application.owner_id != user.user_id:
        logger.warning(
            "Ownership check failed: user=%s application=%s", user.user_id, application_id
        )
        raise AuthorizationError(f"Application {application_id} not found")
    return application


async def create_draft(
    session: AsyncSession,
    user: UserContext,
    fields: Mapping,
    application_id: uuid.UUID | None = None,
    today: date | None = None,
) -> Application:
    """Create a draft from the personal step.

    Columns the visitor has not reached yet hold their placeholder sentinel.
    A second create with an existing id raises ConflictError and writes nothing.
    """
    errors = [
        FieldError(name, message)
        for name, message in _CREATE_REQUIRED.items()
        if fields.get(name) in (None, "")
    ]
    columns = {}
    try:
        columns = validate_step("personal", fields, today)
    except ValidationError as exc:
        reported = {err.field for err in errors}
        errors.extend(err for err in exc.errors if err.field not in reported)
    if errors:
        raise ValidationError(errors)

    if application_id is not None and await session.get(Application, application_id) is not None:
        raise ConflictError(f"Application {application_id} already exists")

    new_id = application_id or uuid.uuid4()
    application = Application(
        id=new_id,
        owner_id=user.user_id,
        status=ApplicationStatus.DRAFT,
        **draft_defaults(),
        **columns,
    )
    session.add(application)
    try:
        await session.commit()
    except IntegrityError as exc:
        # A concurrent create with the same id won the insert
        await session.rollback()
        raise ConflictError(f"Application {new_id} already exists") from exc
    logger.info("Draft created: application=%s owner=%s", application.id, user.user_id)
    return application


async def patch_step(
    session: AsyncSession,
    user: UserContext,
    application_id: uuid.UUID,
    step: str,
    fields: Mapping,
    today: date | None = None,
) -> None:
    """Save one step of a draft. Only that step's columns are written.

    Ownership and status are checked before the payload, so a missing or
    foreign id is reported as such whatever the payload holds.
    """
    application = await load_owned_application(session, user, application_id)
    if application.status != ApplicationStatus.DRAFT:
        raise ConflictError(f"Application {application_id} is {application.status.value}, not a draft")

    columns = {
        column: value
        for column, value in validate_step(step, fields, today).items()
        if column in STEP_COLUMNS[step]
    }
    if step == "security" and any(name in fields for name in BACKGROUND_FIELDS):
        columns["background_answered"] = answered_background(application.background_answered, fields)

    stmt = (
        update(Application)
        .where(
            Application.id == application_id,
            Application.owner_id == user.user_id,
            Application.status == ApplicationStatus.DRAFT,
        )
        .values(**columns, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        await session.rollback()
        raise ConflictError(f"Application {application_id} is no longer a draft")
    await session.commit()
    logger.info(
        "Step saved: application=%s step=%s fields=%s",
        application_id,
        step,
        sorted(columns),
    )


def draft_form(application: Application) -> dict:
    """The camelCase form record a visitor sees when resuming a draft."""
    row = strip_placeholders(
        {column.key: getattr(application, column.key) for column in Application.__table__.columns}
    )
    id_number = row["government_id_number"] or ""
    answered = set(row["background_answered"] or ())

    def display(value) -> str:
        return to_display_date(value) if value else ""

    def answer(name: str, flag: bool) -> str:
        if name not in answered:
            return ""
        return "yes" if flag else "no"

    form = {
        # personal
        "firstName": row["first_name"] or "",
        "lastName": row["last_name"] or "",
        "otherNames": row["other_names"] or "",
        "dateOfBirth": display(row["date_of_birth"]),
        "gender": _plain(row["gender"]) or "",
        # contact
        "email": row["email"] or "",
        "phoneNumber": row["phone_number"] or "",
        "companyOrOrganization": row["company_or_organization"] or "",
        "purposeOfVisit": row["purpose_of_visit"] or "",
        "visitDate": display(row["visit_date"]),
        # experience and rules
        **(row["impact_responses"] or {}),
        **(row["rules_quiz_answers"] or {}),
        # security
        "governmentIdType": _plain(row["government_id_type"]) or "",
        "governmentIdNumber": id_number,
        "governmentIdNumberConfirm": id_number,
        "idState": row["id_state"] or "",
        "idExpiration": display(row["id_expiration"]),
        "digitalSignature": row["digital_signature"] or "",
        "ssnMethod": _plain(row["ssn_method"]) or "",
        "isUsCitizen": row["is_us_citizen"],
    }
    for name, column in BACKGROUND_FIELDS.items():
        form[name] = answer(name, row[column])
    return form


def _plain(value):
    return getattr(value, "value", value)


async def get_draft(
    session: AsyncSession,
    user: UserContext,
    application_id: uuid.UUID,
) -> dict:
    """Return the caller's draft as a form record. Other owners' ids look missing."""
    stmt = select(Application).where(
        Application.id == application_id,
        Application.owner_id == user.user_id,
    ).execution_options(populate_existing=True)
    application = (await session.execute(stmt)).scalar_one_or_none()
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")
    return draft_form(application)
