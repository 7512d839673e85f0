# This project was developed with assistance from AI tools.
"""Application request/response schemas.

Each wizard step has its own request model. Every field is optional so the
same model serves incremental saves; format and required-ness rules live
in ``services.validation``, which reports all problems together.
"""

import uuid
from datetime import datetime

from db.enums import ApplicationStatus
from pydantic import ConfigDict

from . import CamelModel
from .document import DocumentResponse


class StepModel(CamelModel):
    """Base for step payloads: unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class PersonalStep(StepModel):
    first_name: str | None = None
    last_name: str | None = None
    other_names: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None


class ContactStep(StepModel):
    email: str | None = None
    phone_number: str | None = None
    company_or_organization: str | None = None
    purpose_of_visit: str | None = None
    visit_date: str | None = None


class ExperienceStep(StepModel):
    engaged_directly: str | None = None
    perceptions: str | None = None
    expectations: str | None = None
    justice_reform_before: str | None = None
    interests_most: str | None = None
    reform_future: str | None = None
    additional_notes: str | None = None


class RulesStep(StepModel):
    rules_color: str | None = None
    rules_phone_policy: str | None = None
    rules_share_contact: str | None = None
    rules_written_materials: str | None = None
    acknowledgment_agreement: bool | None = None


class SecurityStep(StepModel):
    government_id_type: str | None = None
    government_id_number: str | None = None
    government_id_number_confirm: str | None = None
    id_state: str | None = None
    id_expiration: str | None = None
    ssn_method: str | None = None
    ssn_full: str | None = None
    ssn_full_confirm: str | None = None
    ssn_first_five: str | None = None
    ssn_first_five_confirm: str | None = None
    is_us_citizen: bool | None = None
    former_inmate: str | None = None
    on_parole: str | None = None
    visited_inmate: str | None = None
    restricted_access: str | None = None
    felony_conviction: str | None = None
    pending_charges: str | None = None
    confirm_accuracy: bool | None = None
    digital_signature: str | None = None
    consent_to_data_use: bool | None = None


class FullApplication(PersonalStep, ContactStep, ExperienceStep, RulesStep, SecurityStep):
    """Every step's fields; the shape of a final submit payload."""


STEP_SCHEMAS: dict[str, type[StepModel]] = {
    "personal": PersonalStep,
    "contact": ContactStep,
    "experience": ExperienceStep,
    "rules": RulesStep,
    "security": SecurityStep,
}


class CreateDraftRequest(PersonalStep):
    """Step 1 payload. The client may supply the application id up front."""

    application_id: uuid.UUID | None = None


class CreateDraftResponse(CamelModel):
    application_id: uuid.UUID


class StepSavedResponse(CamelModel):
    ok: bool = True


class DraftResponse(CamelModel):
    """Form record with placeholders removed and dates in MM-DD-YYYY form."""

    draft: dict


class SkippedFieldItem(CamelModel):
    field: str
    reason: str


class SubmitResponse(CamelModel):
    ok: bool = True
    application_id: uuid.UUID
    status: ApplicationStatus
    submitted_at: datetime | None = None
    documents: list[DocumentResponse]
    skipped_fields: list[SkippedFieldItem] = []
