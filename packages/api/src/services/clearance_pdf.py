# This project was developed with assistance from AI tools.
"""Fill the CDCR 2311 gate-clearance template from an application record.

The template's AcroForm field names are an external contract that can
drift between template revisions, so the fill never aborts on a single
field: every semantic field is listed once in ``FIELD_MAP`` and anything
that cannot be written is collected in ``FillResult.skipped``.

Output is deterministic: the same record and template always produce the
same bytes (metadata cleared, document ID left untouched).
"""

import logging
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import NamedTuple

import fitz  # pymupdf
from db import Application

from .placeholders import strip_placeholders
from .validation import decode_signature, to_display_date

logger = logging.getLogger(__name__)

# Signature box on page 1, in PDF points from the top-left corner
SIGNATURE_RECT = fitz.Rect(72, 252, 372, 312)


class SkippedField(NamedTuple):
    field: str
    reason: str


@dataclass(frozen=True)
class FillResult:
    pdf_bytes: bytes
    skipped: list[SkippedField] = field(default_factory=list)


@dataclass(frozen=True)
class ClearanceRecord:
    """The values printed on the form. Placeholders are already blanked."""

    application_id: uuid.UUID | None = None
    first_name: str = ""
    last_name: str = ""
    other_names: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    email: str = ""
    phone_number: str = ""
    company_or_organization: str = ""
    purpose_of_visit: str | None = None
    visit_date: date | None = None
    authorization_type: str | None = "Gate Clearance"
    government_id_type: str | None = None
    government_id_number: str = ""
    id_state: str | None = None
    id_expiration: date | None = None
    digital_signature: str | None = None
    is_us_citizen: bool | None = None
    visited_inmate: bool = False
    former_inmate: bool = False
    restricted_access: bool = False
    felony_conviction: bool = False
    on_probation_parole: bool = False
    pending_charges: bool = False
    signed_on: date | None = None
    ssn_full: str | None = None

    @classmethod
    def from_application(cls, app: Application, ssn_full: str | None = None) -> "ClearanceRecord":
        columns = {
            name: _plain(getattr(app, name))
            for name in cls.__dataclass_fields__
            if name not in ("application_id", "signed_on", "ssn_full")
        }
        columns = strip_placeholders(columns)
        return cls(
            application_id=app.id,
            signed_on=app.submitted_at.date() if app.submitted_at else None,
            ssn_full=ssn_full,
            **columns,
        )


def _plain(value):
    return getattr(value, "value", value)


class _Skip(Exception):
    """A transform could not produce a value for its target."""


# ---------------------------------------------------------------------------
# Transforms: record -> value, None to leave the target blank
# ---------------------------------------------------------------------------


def split_phone(phone: str | None) -> tuple[str, str, str]:
    """Split into (area, prefix, line). Raises ValueError for bad digit counts."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) != 10:
        raise ValueError(f"phone number has {len(digits)} digits, expected 10")
    return digits[:3], digits[3:6], digits[6:]


def split_ssn(ssn: str | None) -> tuple[str, str, str] | None:
    """Split a 9-digit SSN 3/2/4. Anything else yields None."""
    digits = re.sub(r"\D", "", ssn or "")
    if len(digits) != 9:
        return None
    return digits[:3], digits[3:5], digits[5:]


def _phone_part(index: int) -> Callable[[ClearanceRecord], str]:
    def transform(record: ClearanceRecord) -> str:
        try:
            return split_phone(record.phone_number)[index]
        except ValueError as exc:
            raise _Skip(str(exc)) from exc

    return transform


def _ssn_part(index: int) -> Callable[[ClearanceRecord], str | None]:
    def transform(record: ClearanceRecord) -> str | None:
        parts = split_ssn(record.ssn_full)
        return parts[index] if parts else None

    return transform


def _display(attr: str) -> Callable[[ClearanceRecord], str | None]:
    def transform(record: ClearanceRecord) -> str | None:
        value = getattr(record, attr)
        return to_display_date(value) if value else None

    return transform


def _attr(attr: str) -> Callable[[ClearanceRecord], object]:
    return lambda record: getattr(record, attr)


_ID_TYPE_LABELS = {"driver_license": "Driver's License", "passport": "Passport"}


def _id_type_label(record: ClearanceRecord) -> str | None:
    if not record.government_id_type:
        return None
    return _ID_TYPE_LABELS.get(record.government_id_type, record.government_id_type)


class FieldMapping(NamedTuple):
    field: str
    target: str
    transform: Callable[[ClearanceRecord], object]


FIELD_MAP: tuple[FieldMapping, ...] = (
    FieldMapping("last_name", "LastName", _attr("last_name")),
    FieldMapping("first_name", "FirstName", _attr("first_name")),
    FieldMapping("other_names", "OtherNames", _attr("other_names")),
    FieldMapping("date_of_birth", "DateOfBirth", _display("date_of_birth")),
    FieldMapping("gender", "Gender", _attr("gender")),
    FieldMapping("email", "Email", _attr("email")),
    FieldMapping("phone_area", "PhoneArea", _phone_part(0)),
    FieldMapping("phone_prefix", "PhonePrefix", _phone_part(1)),
    FieldMapping("phone_line", "PhoneLine", _phone_part(2)),
    FieldMapping("company_or_organization", "Company", _attr("company_or_organization")),
    FieldMapping("purpose_of_visit", "PurposeOfVisit", _attr("purpose_of_visit")),
    FieldMapping("visit_date", "VisitDate", _display("visit_date")),
    FieldMapping("authorization_type", "AuthorizationType", _attr("authorization_type")),
    FieldMapping("government_id_type", "IdType", _id_type_label),
    FieldMapping("government_id_number", "IdNumber", _attr("government_id_number")),
    FieldMapping("id_state", "IdState", _attr("id_state")),
    FieldMapping("id_expiration", "IdExpiration", _display("id_expiration")),
    FieldMapping("ssn_part1", "SSN1", _ssn_part(0)),
    FieldMapping("ssn_part2", "SSN2", _ssn_part(1)),
    FieldMapping("ssn_part3", "SSN3", _ssn_part(2)),
    FieldMapping("is_us_citizen", "UsCitizen", _attr("is_us_citizen")),
    FieldMapping("visited_inmate", "VisitedInmate", _attr("visited_inmate")),
    FieldMapping("former_inmate", "FormerInmate", _attr("former_inmate")),
    FieldMapping("restricted_access", "RestrictedAccess", _attr("restricted_access")),
    FieldMapping("felony_conviction", "FelonyConviction", _attr("felony_conviction")),
    FieldMapping("on_probation_parole", "OnProbationParole", _attr("on_probation_parole")),
    FieldMapping("pending_charges", "PendingCharges", _attr("pending_charges")),
    FieldMapping("date_signed", "DateSigned", _display("signed_on")),
)


# ---------------------------------------------------------------------------
# Fill
# ---------------------------------------------------------------------------


def _set_widget(widget, value) -> None:
    if widget.field_type == fitz.PDF_WIDGET_TYPE_CHECKBOX:
        widget.field_value = (widget.on_state() or True) if value else "Off"
    elif isinstance(value, bool):
        widget.field_value = "Yes" if value else "No"
    else:
        widget.field_value = str(value)
    widget.update()


def _embed_signature(doc, data_uri: str, skipped: list[SkippedField]) -> None:
    if len(doc) == 0:
        skipped.append(SkippedField("digital_signature", "template has no pages"))
        return
    try:
        image = decode_signature(data_uri)
        doc[0].insert_image(SIGNATURE_RECT, stream=image, keep_proportion=False)
    except (ValueError, RuntimeError) as exc:
        skipped.append(SkippedField("digital_signature", f"signature could not be embedded: {exc}"))


def fill_clearance_form(record: ClearanceRecord, template_bytes: bytes) -> FillResult:
    """Render the filled template. Raises only when the template itself is unusable."""
    skipped: list[SkippedField] = []
    values: dict[str, tuple[str, object]] = {}
    for mapping in FIELD_MAP:
        try:
            value = mapping.transform(record)
        except _Skip as exc:
            skipped.append(SkippedField(mapping.field, str(exc)))
            continue
        if value is None or value == "":
            continue
        values[mapping.target] = (mapping.field, value)

    doc = fitz.open(stream=template_bytes, filetype="pdf")
    try:
        written = set()
        for page in doc:
            for widget in page.widgets():
                entry = values.get(widget.field_name)
                if entry is None:
                    continue
                _set_widget(widget, entry[1])
                written.add(widget.field_name)

        for target, (semantic, _value) in values.items():
            if target not in written:
                skipped.append(SkippedField(semantic, f"template field '{target}' not found"))

        if record.digital_signature:
            _embed_signature(doc, record.digital_signature, skipped)

        doc.set_metadata({})
        pdf_bytes = doc.tobytes(garbage=3, deflate=True, no_new_id=True)
    finally:
        doc.close()

    for item in skipped:
        logger.warning(
            "Clearance form field skipped: application=%s field=%s reason=%s",
            record.application_id,
            item.field,
            item.reason,
        )
    return FillResult(pdf_bytes=pdf_bytes, skipped=skipped)


def clearance_filename(record: ClearanceRecord) -> str:
    """CDCR_2311_<First>_<Last>_<id>.pdf, restricted to filesystem-safe characters."""
    parts = ["CDCR_2311", record.first_name, record.last_name, str(record.application_id or "")]
    name = "_".join(part for part in parts if part)
    return re.sub(r"[^A-Za-z0-9_.-]", "", name.replace(" ", "-")) + ".pdf"
