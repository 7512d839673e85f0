# This project was developed with assistance from AI tools.
"""Pydantic models for admin review endpoints."""

import uuid
from datetime import date, datetime

from db.enums import ApplicationStatus, Gender, GovernmentIdType
from pydantic import ConfigDict, model_validator

from ..services.placeholders import strip_placeholders
from . import CamelModel, Pagination
from .document import DocumentResponse


class ApplicationSummary(CamelModel):
    """One row of the admin application list."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: str
    status: ApplicationStatus
    first_name: str
    last_name: str
    email: str
    company_or_organization: str
    submitted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _blank_placeholders(cls, data):
        """Drafts hold sentinels in columns not reached yet; show them as unset."""
        if not isinstance(data, dict):
            data = {name: getattr(data, name) for name in cls.model_fields if hasattr(data, name)}
        data = strip_placeholders(data)
        if data.get("government_id_type") == "":
            data["government_id_type"] = None
        return data


class ApplicationDetail(ApplicationSummary):
    """Full application record for review. SSNs are never stored, so never shown."""

    other_names: str | None = None
    date_of_birth: date
    gender: Gender
    phone_number: str
    purpose_of_visit: str | None = None
    visit_date: date | None = None
    impact_responses: dict | None = None
    rules_quiz_answers: dict | None = None
    authorization_type: str
    government_id_type: GovernmentIdType | None = None
    government_id_number: str
    id_state: str | None = None
    id_expiration: date | None = None
    is_us_citizen: bool | None = None
    former_inmate: bool
    on_probation_parole: bool
    visited_inmate: bool
    restricted_access: bool
    felony_conviction: bool
    pending_charges: bool
    has_signature: bool = False
    documents: list[DocumentResponse] = []


class ApplicationListResponse(CamelModel):
    data: list[ApplicationSummary]
    pagination: Pagination


class StatusUpdateRequest(CamelModel):
    status: ApplicationStatus


class RenderRequest(CamelModel):
    """Optional SSN printed on a one-off download; it is never stored."""

    ssn_full: str | None = None
