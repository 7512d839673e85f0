# This project was developed with assistance from AI tools.
"""Tests for admin review endpoints and the admin service."""

import uuid

import fitz  # pymupdf
import pytest
import pytest_asyncio
from db import Application
from db.enums import ApplicationStatus

from src.core.errors import InvalidTransitionError
from src.schemas.admin import ApplicationSummary
from src.services import admin as admin_service
from src.services import application as app_service
from src.services.placeholders import PENDING_COMPANY, PENDING_EMAIL, PENDING_ID_NUMBER, PENDING_PHONE
from src.services.submission import submit_application


@pytest_asyncio.fixture
async def submitted_id(session, applicant, complete_form, template, mock_storage, today) -> uuid.UUID:
    personal = {k: complete_form[k] for k in ("firstName", "lastName", "dateOfBirth", "gender")}
    application = await app_service.create_draft(session, applicant, personal, today=today)
    await submit_application(
        session, applicant, application.id, complete_form, storage=mock_storage, template=template, today=today
    )
    mock_storage.upload_file.reset_mock()
    return application.id


@pytest_asyncio.fixture
async def draft_id(session, other_applicant, personal_step, today) -> uuid.UUID:
    application = await app_service.create_draft(
        session, other_applicant, {**personal_step, "firstName": "Sam"}, today=today
    )
    return application.id


# ---------------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------------


async def test_applicant_cannot_use_admin_routes(client_factory, applicant):
    async with client_factory(applicant) as client:
        resp = await client.get("/api/admin/applications")

    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Listing and detail
# ---------------------------------------------------------------------------


async def test_list_applications_with_status_filter(client_factory, admin_user, submitted_id, draft_id):
    async with client_factory(admin_user) as client:
        everything = (await client.get("/api/admin/applications")).json()
        submitted = (await client.get("/api/admin/applications", params={"status": "submitted"})).json()
        paged = (await client.get("/api/admin/applications", params={"limit": 1})).json()

    assert everything["pagination"]["total"] == 2
    assert [item["id"] for item in submitted["data"]] == [str(submitted_id)]
    assert submitted["data"][0]["firstName"] == "Jane"
    assert paged["pagination"] == {"total": 2, "offset": 0, "limit": 1, "hasMore": True}
    assert len(paged["data"]) == 1


async def test_invalid_status_filter_is_422(client_factory, admin_user):
    async with client_factory(admin_user) as client:
        resp = await client.get("/api/admin/applications", params={"status": "archived"})

    assert resp.status_code == 422
    assert resp.json()["errors"][0]["field"] == "status"


async def test_application_detail(client_factory, admin_user, submitted_id):
    async with client_factory(admin_user) as client:
        resp = await client.get(f"/api/admin/applications/{submitted_id}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "submitted"
    assert body["hasSignature"] is True
    assert body["phoneNumber"] == "4155550134"
    assert [doc["kind"] for doc in body["documents"]] == ["clearance_form"]
    assert "digitalSignature" not in body
    assert "ssnFull" not in body


async def test_draft_placeholders_are_blank_for_admins(client_factory, admin_user, draft_id):
    async with client_factory(admin_user) as client:
        listing = (await client.get("/api/admin/applications", params={"status": "draft"})).json()
        detail = (await client.get(f"/api/admin/applications/{draft_id}")).json()

    row = listing["data"][0]
    assert row["email"] == ""
    assert row["companyOrOrganization"] == ""
    assert detail["phoneNumber"] == ""
    assert detail["governmentIdNumber"] == ""
    assert detail["governmentIdType"] is None
    for sentinel in (PENDING_EMAIL, PENDING_PHONE, PENDING_COMPANY, PENDING_ID_NUMBER):
        assert sentinel not in row.values()
        assert sentinel not in detail.values()


async def test_list_service_rows_blank_placeholders(session, draft_id):
    applications, _ = await admin_service.list_applications(session, status=ApplicationStatus.DRAFT)

    summary = ApplicationSummary.model_validate(applications[0])

    assert summary.id == draft_id
    assert summary.first_name == "Sam"
    assert (summary.email, summary.company_or_organization) == ("", "")


async def test_unknown_application_is_404(client_factory, admin_user):
    async with client_factory(admin_user) as client:
        resp = await client.get(f"/api/admin/applications/{uuid.uuid4()}")

    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


async def test_status_moves_forward(client_factory, admin_user, submitted_id):
    async with client_factory(admin_user) as client:
        review = await client.patch(
            f"/api/admin/applications/{submitted_id}/status", json={"status": "under_review"}
        )
        approve = await client.patch(
            f"/api/admin/applications/{submitted_id}/status", json={"status": "approved"}
        )

    assert review.status_code == 200
    assert review.json()["status"] == "under_review"
    assert approve.json()["status"] == "approved"


async def test_backward_transition_is_409(client_factory, admin_user, submitted_id):
    async with client_factory(admin_user) as client:
        await client.patch(f"/api/admin/applications/{submitted_id}/status", json={"status": "under_review"})
        resp = await client.patch(
            f"/api/admin/applications/{submitted_id}/status", json={"status": "submitted"}
        )

    assert resp.status_code == 409
    assert "Allowed: approved, rejected" in resp.json()["detail"]


async def test_admin_cannot_submit_a_draft(session, admin_user, draft_id):
    with pytest.raises(InvalidTransitionError):
        await admin_service.update_status(session, admin_user, draft_id, ApplicationStatus.SUBMITTED)

    application = await session.get(Application, draft_id)
    assert application.status == ApplicationStatus.DRAFT


# ---------------------------------------------------------------------------
# Clearance form download and regeneration
# ---------------------------------------------------------------------------


async def test_download_clearance_pdf(client_factory, admin_user, submitted_id, mock_storage):
    async with client_factory(admin_user) as client:
        resp = await client.post(
            f"/api/admin/applications/{submitted_id}/pdf", json={"ssnFull": "987-65-4321"}
        )

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert f"CDCR_2311_Jane_Doe_{submitted_id}.pdf" in resp.headers["content-disposition"]
    assert "x-skipped-fields" not in resp.headers
    doc = fitz.open(stream=resp.content, filetype="pdf")
    try:
        values = {w.field_name: w.field_value for w in doc[0].widgets()}
    finally:
        doc.close()
    assert values["SSN1"] == "987"
    mock_storage.upload_file.assert_not_called()


async def test_download_draft_reports_skipped_phone(client_factory, admin_user, draft_id):
    async with client_factory(admin_user) as client:
        resp = await client.post(f"/api/admin/applications/{draft_id}/pdf")

    assert resp.status_code == 200
    assert "phone_area" in resp.headers["x-skipped-fields"]


async def test_regenerate_clearance_form(client_factory, admin_user, submitted_id, mock_storage):
    async with client_factory(admin_user) as client:
        resp = await client.post(f"/api/admin/applications/{submitted_id}/clearance-form")
        detail = (await client.get(f"/api/admin/applications/{submitted_id}")).json()

    assert resp.status_code == 201
    body = resp.json()
    assert body["kind"] == "clearance_form"
    assert body["uploadedBy"] == "admin-1"
    mock_storage.upload_file.assert_awaited_once()
    assert len(detail["documents"]) == 2


async def test_regenerate_for_draft_is_409(client_factory, admin_user, draft_id):
    async with client_factory(admin_user) as client:
        resp = await client.post(f"/api/admin/applications/{draft_id}/clearance-form")

    assert resp.status_code == 409
