# This project was developed with assistance from AI tools.
"""HTTP tests for the visitor wizard routes."""

import json
import uuid

import pytest


@pytest.fixture
def visitor_client(client_factory, applicant):
    return client_factory(applicant)


async def _create(client, personal_step) -> str:
    resp = await client.post("/api/applications", json=personal_step)
    assert resp.status_code == 201, resp.text
    return resp.json()["applicationId"]


async def _submit(client, app_id, form, files=None):
    return await client.post(
        f"/api/applications/{app_id}/submit",
        data={"payload": json.dumps(form)},
        files=files,
    )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def test_create_draft_returns_id(visitor_client, personal_step):
    async with visitor_client as client:
        app_id = await _create(client, personal_step)

    assert uuid.UUID(app_id)


async def test_create_draft_with_client_id_twice_is_409(visitor_client, personal_step):
    app_id = str(uuid.uuid4())
    async with visitor_client as client:
        first = await client.post("/api/applications", json={**personal_step, "applicationId": app_id})
        second = await client.post("/api/applications", json={**personal_step, "applicationId": app_id})

    assert first.status_code == 201
    assert first.json()["applicationId"] == app_id
    assert second.status_code == 409


async def test_create_draft_reports_all_field_errors(visitor_client):
    async with visitor_client as client:
        resp = await client.post(
            "/api/applications",
            json={"firstName": "Jane", "dateOfBirth": "02-30-1990", "gender": "female"},
        )

    assert resp.status_code == 422
    body = resp.json()
    assert body["status"] == 422
    assert {err["field"] for err in body["errors"]} == {"lastName", "dateOfBirth"}


# ---------------------------------------------------------------------------
# Step saves and resume
# ---------------------------------------------------------------------------


async def test_patch_then_get_draft(visitor_client, personal_step, complete_form, step_payload):
    async with visitor_client as client:
        app_id = await _create(client, personal_step)
        resp = await client.patch(
            f"/api/applications/{app_id}/contact", json=step_payload(complete_form, "contact")
        )
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}

        draft = (await client.get(f"/api/applications/{app_id}")).json()["draft"]

    assert draft["email"] == "jane@example.org"
    assert draft["phoneNumber"] == "4155550134"
    assert draft["governmentIdNumber"] == ""
    assert draft["formerInmate"] == ""


async def test_patch_unknown_step_is_422(visitor_client, personal_step):
    async with visitor_client as client:
        app_id = await _create(client, personal_step)
        resp = await client.patch(f"/api/applications/{app_id}/payment", json={})

    assert resp.status_code == 422
    assert resp.json()["errors"][0]["field"] == "step"


async def test_patch_invalid_field_is_422(visitor_client, personal_step):
    async with visitor_client as client:
        app_id = await _create(client, personal_step)
        resp = await client.patch(f"/api/applications/{app_id}/contact", json={"phoneNumber": "123"})

    assert resp.status_code == 422
    assert resp.json()["errors"] == [
        {"field": "phoneNumber", "message": "Phone number must have 10 digits, or 11 digits starting with 1"}
    ]


async def test_other_visitor_sees_404(client_factory, applicant, other_applicant, personal_step):
    async with client_factory(applicant) as client:
        app_id = await _create(client, personal_step)

    async with client_factory(other_applicant) as client:
        get_resp = await client.get(f"/api/applications/{app_id}")
        patch_resp = await client.patch(f"/api/applications/{app_id}/contact", json={"email": "x@y.org"})

    assert get_resp.status_code == 404
    assert get_resp.json()["detail"] == f"Application {app_id} not found"
    assert patch_resp.status_code == 404


async def test_unknown_application_is_404(visitor_client):
    async with visitor_client as client:
        resp = await client.get(f"/api/applications/{uuid.uuid4()}")

    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def test_submit_end_to_end(visitor_client, personal_step, complete_form, mock_storage):
    async with visitor_client as client:
        app_id = await _create(client, personal_step)
        resp = await _submit(client, app_id, complete_form)

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["ok"] is True
    assert body["applicationId"] == app_id
    assert body["status"] == "submitted"
    assert body["submittedAt"]
    assert body["skippedFields"] == []
    assert len(body["documents"]) == 1
    doc = body["documents"][0]
    assert doc["kind"] == "clearance_form"
    assert doc["mimeType"] == "application/pdf"
    assert doc["filename"] == f"CDCR_2311_Jane_Doe_{app_id}.pdf"
    mock_storage.upload_file.assert_awaited_once()


async def test_submit_with_passport_scan(visitor_client, personal_step, complete_form):
    form = {**complete_form, "governmentIdType": "passport", "idState": ""}
    async with visitor_client as client:
        app_id = await _create(client, personal_step)
        resp = await _submit(
            client, app_id, form, files={"passportScan": ("passport.jpg", b"\xff\xd8\xff\xe0scan", "image/jpeg")}
        )

    assert resp.status_code == 200, resp.text
    kinds = sorted(doc["kind"] for doc in resp.json()["documents"])
    assert kinds == ["clearance_form", "passport_scan"]


async def test_submit_twice_is_409(visitor_client, personal_step, complete_form, mock_storage):
    async with visitor_client as client:
        app_id = await _create(client, personal_step)
        first = await _submit(client, app_id, complete_form)
        second = await _submit(client, app_id, complete_form)

    assert first.status_code == 200
    assert second.status_code == 409
    assert mock_storage.upload_file.await_count == 1


async def test_submit_invalid_form_is_422(visitor_client, personal_step, complete_form):
    form = {**complete_form, "rulesColor": "Blue", "acknowledgmentAgreement": False}
    async with visitor_client as client:
        app_id = await _create(client, personal_step)
        resp = await _submit(client, app_id, form)
        draft = (await client.get(f"/api/applications/{app_id}")).json()["draft"]

    assert resp.status_code == 422
    assert {err["field"] for err in resp.json()["errors"]} == {"rulesColor", "acknowledgmentAgreement"}
    assert draft["email"] == ""


async def test_submit_malformed_payload_is_422(visitor_client, personal_step):
    async with visitor_client as client:
        app_id = await _create(client, personal_step)
        resp = await client.post(f"/api/applications/{app_id}/submit", data={"payload": "{not json"})

    assert resp.status_code == 422
    assert resp.json()["errors"][0]["field"] == "payload"


async def test_submit_storage_failure_is_502_but_submitted(
    client_factory, applicant, personal_step, complete_form, failing_storage
):
    async with client_factory(applicant, storage=failing_storage) as client:
        app_id = await _create(client, personal_step)
        resp = await _submit(client, app_id, complete_form)
        retry = await _submit(client, app_id, complete_form)

    assert resp.status_code == 502
    body = resp.json()
    assert body["applicationId"] == app_id
    assert body["applicationStatus"] == "submitted"
    assert retry.status_code == 409
