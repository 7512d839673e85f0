# This project was developed with assistance from AI tools.
"""Tests for the draft store: create, step saves, ownership and resume."""

import asyncio
import uuid
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from db import Application
from db.enums import ApplicationStatus

from src.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.services import application as app_service
from src.services.placeholders import PENDING_EMAIL, PENDING_ID_NUMBER


async def _reload(session_factory, application_id) -> Application:
    async with session_factory() as fresh:
        return await fresh.get(Application, application_id)


# ---------------------------------------------------------------------------
# create_draft
# ---------------------------------------------------------------------------


async def test_create_draft_fills_placeholders(session, session_factory, applicant, personal_step, today):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)

    stored = await _reload(session_factory, application.id)
    assert stored.owner_id == "visitor-1"
    assert stored.status == ApplicationStatus.DRAFT
    assert stored.first_name == "Jane"
    assert stored.date_of_birth == date(1990, 1, 15)
    assert stored.email == PENDING_EMAIL
    assert stored.government_id_number == PENDING_ID_NUMBER
    assert stored.former_inmate is False


async def test_create_draft_with_client_id(session, applicant, personal_step, today):
    app_id = uuid.uuid4()

    application = await app_service.create_draft(
        session, applicant, personal_step, application_id=app_id, today=today
    )

    assert application.id == app_id


async def test_create_draft_twice_conflicts(session, session_factory, applicant, personal_step, today):
    app_id = uuid.uuid4()
    await app_service.create_draft(session, applicant, personal_step, application_id=app_id, today=today)

    with pytest.raises(ConflictError):
        await app_service.create_draft(
            session, applicant, {**personal_step, "firstName": "Changed"}, application_id=app_id, today=today
        )

    stored = await _reload(session_factory, app_id)
    assert stored.first_name == "Jane"


async def test_create_draft_requires_personal_fields(session, applicant, today):
    with pytest.raises(ValidationError) as exc_info:
        await app_service.create_draft(session, applicant, {"firstName": "Jane", "gender": "x"}, today=today)

    fields = [err.field for err in exc_info.value.errors]
    assert sorted(fields) == ["dateOfBirth", "gender", "lastName"]


async def test_create_draft_losing_insert_race_conflicts(
    session, session_factory, applicant, personal_step, today
):
    app_id = uuid.uuid4()
    async with session_factory() as winner:
        await app_service.create_draft(winner, applicant, personal_step, application_id=app_id, today=today)

    # Both creates passed the existence check before either inserted
    with patch.object(session, "get", AsyncMock(return_value=None)):
        with pytest.raises(ConflictError):
            await app_service.create_draft(
                session, applicant, {**personal_step, "firstName": "Late"}, application_id=app_id, today=today
            )

    assert (await _reload(session_factory, app_id)).first_name == "Jane"


# ---------------------------------------------------------------------------
# patch_step
# ---------------------------------------------------------------------------


async def test_patch_step_writes_only_that_step(
    session, session_factory, applicant, personal_step, complete_form, step_payload, today
):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)

    await app_service.patch_step(
        session, applicant, application.id, "contact", step_payload(complete_form, "contact"), today
    )

    stored = await _reload(session_factory, application.id)
    assert stored.email == "jane@example.org"
    assert stored.phone_number == "4155550134"
    assert stored.first_name == "Jane"
    assert stored.government_id_number == PENDING_ID_NUMBER


async def test_concurrent_step_saves_do_not_clobber(
    session, session_factory, applicant, personal_step, complete_form, step_payload, today
):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)

    async def save(step: str):
        async with session_factory() as own_session:
            await app_service.patch_step(
                own_session, applicant, application.id, step, step_payload(complete_form, step), today
            )

    await asyncio.gather(save("contact"), save("experience"), save("rules"), save("security"))

    stored = await _reload(session_factory, application.id)
    assert stored.email == "jane@example.org"
    assert stored.impact_responses["engagedDirectly"] == "volunteer"
    assert stored.rules_quiz_answers["rulesColor"] == "Black"
    assert stored.government_id_number == "D1234567"
    assert stored.id_state == "CA"


async def test_patch_step_other_owner_is_rejected(
    session, applicant, other_applicant, personal_step, today
):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)

    with pytest.raises(AuthorizationError):
        await app_service.patch_step(
            session, other_applicant, application.id, "contact", {"email": "sam@example.org"}, today
        )


async def test_patch_step_missing_application(session, applicant, today):
    with pytest.raises(NotFoundError):
        await app_service.patch_step(session, applicant, uuid.uuid4(), "contact", {"email": "a@b.co"}, today)


async def test_patch_step_checks_ownership_before_payload(
    session, applicant, other_applicant, personal_step, today
):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)
    bad_payload = {"phoneNumber": "123"}

    with pytest.raises(AuthorizationError):
        await app_service.patch_step(session, other_applicant, application.id, "contact", bad_payload, today)
    with pytest.raises(NotFoundError):
        await app_service.patch_step(session, applicant, uuid.uuid4(), "contact", bad_payload, today)


async def test_patch_step_after_submit_conflicts(session, session_factory, applicant, personal_step, today):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)
    async with session_factory() as other:
        stored = await other.get(Application, application.id)
        stored.status = ApplicationStatus.SUBMITTED
        await other.commit()

    with pytest.raises(ConflictError):
        await app_service.patch_step(
            session, applicant, application.id, "personal", {"firstName": "Late"}, today
        )

    stored = await _reload(session_factory, application.id)
    assert stored.first_name == "Jane"


async def test_patch_step_invalid_payload_writes_nothing(
    session, session_factory, applicant, personal_step, today
):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)

    with pytest.raises(ValidationError):
        await app_service.patch_step(
            session, applicant, application.id, "contact", {"email": "jane@new.org", "phoneNumber": "123"}, today
        )

    stored = await _reload(session_factory, application.id)
    assert stored.email == PENDING_EMAIL


# ---------------------------------------------------------------------------
# get_draft
# ---------------------------------------------------------------------------


async def test_get_draft_hides_placeholders(session, applicant, personal_step, today):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)

    draft = await app_service.get_draft(session, applicant, application.id)

    assert draft["firstName"] == "Jane"
    assert draft["dateOfBirth"] == "01-15-1990"
    assert draft["email"] == ""
    assert draft["phoneNumber"] == ""
    assert draft["governmentIdType"] == ""
    assert draft["governmentIdNumber"] == ""
    assert draft["formerInmate"] == ""
    assert draft["onParole"] == ""


async def test_get_draft_round_trips_saved_steps(
    session, applicant, personal_step, complete_form, step_payload, today
):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)
    for step in ("contact", "experience", "rules", "security"):
        await app_service.patch_step(
            session, applicant, application.id, step, step_payload(complete_form, step), today
        )

    draft = await app_service.get_draft(session, applicant, application.id)

    assert draft["visitDate"] == "07-15-2025"
    assert draft["idExpiration"] == "12-31-2030"
    assert draft["governmentIdType"] == "driver_license"
    assert draft["governmentIdNumberConfirm"] == "D1234567"
    assert draft["rulesPhonePolicy"] == "Leave in car / check at East Gate"
    assert draft["formerInmate"] == "no"
    assert "ssnFull" not in draft


async def test_get_draft_shows_only_answered_background_questions(session, applicant, personal_step, today):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)
    await app_service.patch_step(
        session,
        applicant,
        application.id,
        "security",
        {"governmentIdType": "driver_license", "idState": "CA", "idExpiration": "01-01-2030"},
        today,
    )
    await app_service.patch_step(session, applicant, application.id, "security", {"onParole": "no"}, today)

    draft = await app_service.get_draft(session, applicant, application.id)

    assert draft["idState"] == "CA"
    assert draft["onParole"] == "no"
    assert draft["formerInmate"] == ""
    assert draft["pendingCharges"] == ""


async def test_clearing_a_background_answer_unsets_it(session, applicant, personal_step, today):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)
    await app_service.patch_step(session, applicant, application.id, "security", {"formerInmate": "yes"}, today)
    await app_service.patch_step(session, applicant, application.id, "security", {"formerInmate": ""}, today)

    draft = await app_service.get_draft(session, applicant, application.id)

    assert draft["formerInmate"] == ""


async def test_get_draft_of_other_owner_is_not_found(session, applicant, other_applicant, personal_step, today):
    application = await app_service.create_draft(session, applicant, personal_step, today=today)

    with pytest.raises(NotFoundError):
        await app_service.get_draft(session, other_applicant, application.id)
