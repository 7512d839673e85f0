# This project was developed with assistance from AI tools.
"""Field-level and whole-application validation for the clearance wizard.

Two modes share the same field rules:

* ``validate_step`` (incremental) checks only the keys a step payload
  carries and returns normalized column values for the draft store.
* ``validate_application`` (full) checks the assembled record before
  submission, including required-ness and cross-field rules.

Both report every problem at once as ``FieldError`` pairs keyed by the
camelCase form field name.
"""

import base64
import binascii
import re
from collections.abc import Callable, Mapping
from datetime import date, timedelta

from db.enums import Gender, GovernmentIdType, SsnMethod
from pydantic import ValidationError as PydanticValidationError

from ..core.config import settings
from ..core.errors import FieldError, ValidationError
from ..schemas.application import STEP_SCHEMAS, FullApplication
from .document import check_supplementary

Result = tuple[bool, str, object]
Check = Callable[[object], Result]

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_DISPLAY_DATE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_STORAGE_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_date(value) -> date:
    """Parse MM-DD-YYYY (or canonical YYYY-MM-DD) into a date.

    Impossible calendar dates such as 02-30-2024 raise ValueError; nothing
    is clamped.
    """
    if isinstance(value, date):
        return value
    text = str(value).strip()
    match = _DISPLAY_DATE.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
    else:
        match = _STORAGE_DATE.match(text)
        if not match:
            raise ValueError(f"Expected MM-DD-YYYY, got {text!r}")
        year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)


def to_storage_date(value) -> str:
    """MM-DD-YYYY -> YYYY-MM-DD."""
    return parse_date(value).isoformat()


def to_display_date(value) -> str:
    """YYYY-MM-DD (or a date) -> MM-DD-YYYY."""
    parsed = parse_date(value)
    return f"{parsed.month:02d}-{parsed.day:02d}-{parsed.year:04d}"


def _age_on(born: date, today: date) -> int:
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


# ---------------------------------------------------------------------------
# Normalizers
# ---------------------------------------------------------------------------


def _digits(value) -> str:
    return re.sub(r"\D", "", str(value))


def normalize_phone(value) -> str:
    """Strip formatting; accept 10 digits or 11 with a leading "1"."""
    digits = _digits(value)
    if len(digits) == 10 or (len(digits) == 11 and digits.startswith("1")):
        return digits
    raise ValueError("Phone number must have 10 digits, or 11 digits starting with 1")


def normalize_id_number(value) -> str:
    """Upper-case alphanumerics only."""
    return re.sub(r"[^A-Z0-9]", "", str(value).upper())


_DATA_URI = re.compile(r"^data:[^,]*;base64,(.*)$", re.DOTALL)
_SIGNATURE_URI = re.compile(r"^data:image/(png|jpeg|jpg);base64,", re.IGNORECASE)


def decode_signature(value: str) -> bytes:
    """Strip a ``data:...;base64,`` prefix and decode the image bytes.

    Raw base64 without a prefix is accepted as well. Raises ValueError when
    the payload is not decodable.
    """
    match = _DATA_URI.match(value.strip())
    payload = match.group(1) if match else value.strip()
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Signature is not valid base64") from exc
    if not raw:
        raise ValueError("Signature is empty")
    return raw


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---------------------------------------------------------------------------
# Field validators: value -> (is_valid, error_message, normalized_value)
# ---------------------------------------------------------------------------


def _optional(check: Check) -> Check:
    """Blank values pass and normalize to None."""

    def wrapper(value) -> Result:
        if _is_blank(value):
            return True, "", None
        return check(value)

    return wrapper


def _text(label: str, min_len: int, max_len: int) -> Check:
    def check(value) -> Result:
        if _is_blank(value):
            return False, f"{label} is required", None
        text = str(value).strip()
        if len(text) < min_len:
            return False, f"{label} must be at least {min_len} characters", None
        if len(text) > max_len:
            return False, f"{label} must be at most {max_len} characters", None
        return True, "", text

    return check


def _choice(options, message: str, convert=None) -> Check:
    def check(value) -> Result:
        if value not in options:
            return False, message, None
        return True, "", convert(value) if convert else value

    return check


def validate_date_of_birth(value, today: date | None = None) -> Result:
    if _is_blank(value):
        return False, "Date of birth is required", None
    try:
        born = parse_date(value)
    except ValueError:
        return False, "Must be a valid date in MM-DD-YYYY format", None
    age = _age_on(born, today or date.today())
    if age < settings.MIN_APPLICANT_AGE or age > settings.MAX_APPLICANT_AGE:
        return (
            False,
            f"Must be {settings.MIN_APPLICANT_AGE}-{settings.MAX_APPLICANT_AGE} years old",
            None,
        )
    return True, "", born


def validate_email(value) -> Result:
    if _is_blank(value):
        return False, "Email is required", None
    text = str(value).strip().lower()
    if not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", text):
        return False, "Invalid email address", None
    return True, "", text


def validate_phone(value) -> Result:
    if _is_blank(value):
        return False, "Phone number is required", None
    try:
        return True, "", normalize_phone(value)
    except ValueError as exc:
        return False, str(exc), None


def validate_calendar_date(value) -> Result:
    try:
        return True, "", parse_date(value)
    except ValueError:
        return False, "Invalid date format (MM-DD-YYYY)", None


def validate_id_number(value) -> Result:
    if _is_blank(value):
        return False, "Government ID number is required", None
    if len(str(value).strip()) > 50:
        return False, "Government ID number must be at most 50 characters", None
    normalized = normalize_id_number(value)
    if not normalized:
        return False, "Government ID number must contain letters or digits", None
    return True, "", normalized


def validate_id_state(value) -> Result:
    text = str(value).strip().upper()
    if not re.fullmatch(r"[A-Z]{2}", text):
        return False, "State must be a 2-letter code", None
    return True, "", text


def validate_id_expiration(value) -> Result:
    if _is_blank(value):
        return False, "ID expiration is required", None
    return validate_calendar_date(value)


def validate_yes_no(label: str) -> Check:
    def check(value) -> Result:
        if value not in ("yes", "no"):
            return False, f"Please answer: {label}", None
        return True, "", value == "yes"

    return check


def validate_signature(value) -> Result:
    if _is_blank(value):
        return False, "Digital signature is required", None
    text = str(value).strip()
    if not _SIGNATURE_URI.match(text):
        return False, "Signature must be a PNG or JPEG data URI", None
    try:
        raw = decode_signature(text)
    except ValueError as exc:
        return False, str(exc), None
    if not (raw.startswith(b"\x89PNG\r\n\x1a\n") or raw.startswith(b"\xff\xd8")):
        return False, "Signature must be a PNG or JPEG image", None
    return True, "", text


def _unanswered_is_no(check: Check) -> Check:
    """Background flags are NOT NULL; an unanswered question stores False."""

    def wrapper(value) -> Result:
        if _is_blank(value):
            return True, "", False
        return check(value)

    return wrapper


def _gender_check() -> Check:
    return _choice({g.value for g in Gender}, "Please select a gender", Gender)


def _id_type_check() -> Check:
    return _choice({t.value for t in GovernmentIdType}, "Please select ID type", GovernmentIdType)


def _ssn_method_check() -> Check:
    return _choice({m.value for m in SsnMethod}, "Please select how to provide SSN", SsnMethod)


# ---------------------------------------------------------------------------
# Rules quiz: one pure correctness predicate per question
# ---------------------------------------------------------------------------

RULES_OPTIONS: dict[str, tuple[str, ...]] = {
    "rulesColor": ("Blue", "Green", "Yellow", "Orange", "Gray", "Black"),
    "rulesPhonePolicy": ("Bring inside", "Leave in car / check at East Gate", "Clear bag inside"),
    "rulesShareContact": (
        "Direct to public handles",
        "Politely decline + ask Kai/Escort",
        "Accept + keep confidential",
    ),
    "rulesWrittenMaterials": (
        "Personal business cards",
        "Contact information cards",
        "Materials related to SkunkWorks with approval",
        "Personal notes",
    ),
}


def is_correct_color(answer) -> bool:
    return answer == "Black"


def is_correct_phone_policy(answer) -> bool:
    return answer == "Leave in car / check at East Gate"


def is_correct_share_contact(answer) -> bool:
    return answer == "Politely decline + ask Kai/Escort"


def is_correct_written_materials(answer) -> bool:
    return answer == "Materials related to SkunkWorks with approval"


QUIZ_PREDICATES: dict[str, tuple[Callable[[object], bool], str]] = {
    "rulesColor": (is_correct_color, "Only black clothing is allowed"),
    "rulesPhonePolicy": (
        is_correct_phone_policy,
        "You must leave devices in your car or check at East Gate",
    ),
    "rulesShareContact": (
        is_correct_share_contact,
        "Contact exchange requires approval from Kai and your escort",
    ),
    "rulesWrittenMaterials": (
        is_correct_written_materials,
        "Only SkunkWorks-related materials with approval are permitted",
    ),
}

EXPERIENCE_CHOICES: dict[str, tuple[str, ...]] = {
    "engagedDirectly": ("no_first_time", "personal_connection", "volunteer", "professional", "other"),
    "justiceReformBefore": ("active", "limited", "never", "thought_about", "other"),
    "reformFuture": ("already_involved_continue", "considering", "maybe", "one_time", "other"),
}
EXPERIENCE_TEXT = ("perceptions", "expectations", "interestsMost")

# ---------------------------------------------------------------------------
# Step tables: camelCase field -> (validator, column or None when not persisted)
# ---------------------------------------------------------------------------

BACKGROUND_FIELDS: dict[str, str] = {
    "formerInmate": "former_inmate",
    "onParole": "on_probation_parole",
    "visitedInmate": "visited_inmate",
    "restrictedAccess": "restricted_access",
    "felonyConviction": "felony_conviction",
    "pendingCharges": "pending_charges",
}


def answered_background(existing, fields: Mapping) -> list[str]:
    """Update the set of answered background questions with a security payload.

    The flag columns store False for both "no" and "not asked yet", so this
    set is what tells the two apart.
    """
    answered = set(existing or ())
    for name in BACKGROUND_FIELDS:
        if name not in fields:
            continue
        if _is_blank(fields[name]):
            answered.discard(name)
        else:
            answered.add(name)
    return sorted(answered)


def _column_fields(today: date | None = None) -> dict[str, dict[str, tuple[Check, str | None]]]:
    return {
        "personal": {
            "firstName": (_text("First name", 1, 100), "first_name"),
            "lastName": (_text("Last name", 1, 100), "last_name"),
            "otherNames": (_optional(_text("Other names", 1, 200)), "other_names"),
            "dateOfBirth": (lambda v: validate_date_of_birth(v, today), "date_of_birth"),
            "gender": (_gender_check(), "gender"),
        },
        "contact": {
            "email": (validate_email, "email"),
            "phoneNumber": (validate_phone, "phone_number"),
            "companyOrOrganization": (_text("Company/Organization", 1, 200), "company_or_organization"),
            "purposeOfVisit": (_optional(_text("Purpose of visit", 1, 1000)), "purpose_of_visit"),
            "visitDate": (_optional(validate_calendar_date), "visit_date"),
        },
        "security": {
            "governmentIdType": (_id_type_check(), "government_id_type"),
            "governmentIdNumber": (validate_id_number, "government_id_number"),
            "idState": (_optional(validate_id_state), "id_state"),
            "idExpiration": (validate_id_expiration, "id_expiration"),
            "digitalSignature": (_optional(validate_signature), "digital_signature"),
            "ssnMethod": (_optional(_ssn_method_check()), "ssn_method"),
            "isUsCitizen": (lambda v: (True, "", v), "is_us_citizen"),
            **{
                name: (_unanswered_is_no(validate_yes_no(name)), column)
                for name, column in BACKGROUND_FIELDS.items()
            },
        },
    }


def _json_fields() -> dict[str, tuple[str, dict[str, Check]]]:
    """Steps stored as one JSON column: loose checks for incremental saves."""
    experience = {
        name: _optional(_choice(options, "Please select an option"))
        for name, options in EXPERIENCE_CHOICES.items()
    }
    for name in (*EXPERIENCE_TEXT, "additionalNotes"):
        experience[name] = _optional(_text("Answer", 1, 2000))
    rules: dict[str, Check] = {
        name: _optional(_choice(options, "Please select an option"))
        for name, options in RULES_OPTIONS.items()
    }
    rules["acknowledgmentAgreement"] = lambda v: (True, "", v)
    return {
        "experience": ("impact_responses", experience),
        "rules": ("rules_quiz_answers", rules),
    }


def _pydantic_errors(exc: PydanticValidationError) -> list[FieldError]:
    return [
        FieldError(".".join(str(part) for part in err["loc"]) or "payload", err["msg"])
        for err in exc.errors()
    ]


# ---------------------------------------------------------------------------
# Incremental mode
# ---------------------------------------------------------------------------


def validate_step(step: str, payload: Mapping, today: date | None = None) -> dict[str, object]:
    """Validate the keys present in a step payload.

    Returns ``{column: normalized_value}`` for the step's persisted columns;
    fields that are never stored (confirmations, SSN) are checked and dropped.
    Raises ValidationError listing every failing field.
    """
    schema = STEP_SCHEMAS.get(step)
    if schema is None:
        raise ValidationError([FieldError("step", f"Unknown step '{step}'")])
    try:
        parsed = schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_pydantic_errors(exc)) from exc
    present = parsed.model_dump(by_alias=True, exclude_unset=True)

    errors: list[FieldError] = []
    values: dict[str, object] = {}
    json_steps = _json_fields()
    if step in json_steps:
        column, checks = json_steps[step]
        answers = {}
        for name, value in present.items():
            ok, message, normalized = checks[name](value)
            if not ok:
                errors.append(FieldError(name, message))
            else:
                answers[name] = normalized
        if answers:
            values[column] = answers
    else:
        table = _column_fields(today)[step]
        for name, value in present.items():
            check, column = table.get(name, (None, None))
            if check is None:
                errors.extend(_transient_field_errors(name, value))
                continue
            ok, message, normalized = check(value)
            if not ok:
                errors.append(FieldError(name, message))
            elif column is not None:
                values[column] = normalized

    if errors:
        raise ValidationError(errors)
    return values


def _transient_field_errors(name: str, value) -> list[FieldError]:
    """Format checks for security fields that are validated but never stored."""
    if _is_blank(value) or not isinstance(value, str):
        return []
    if name in ("ssnFull", "ssnFullConfirm") and len(_digits(value)) != 9:
        return [FieldError(name, "SSN must be 9 digits")]
    if name in ("ssnFirstFive", "ssnFirstFiveConfirm") and len(_digits(value)) != 5:
        return [FieldError(name, "Enter the first 5 digits of your SSN")]
    return []


# ---------------------------------------------------------------------------
# Full mode
# ---------------------------------------------------------------------------


def validate_application(
    form: Mapping,
    files: Mapping | None = None,
    today: date | None = None,
) -> list[FieldError]:
    """Check an assembled camelCase form record against every final rule.

    ``files`` maps ``passportScan``/``wardenLetter`` to SupplementaryFile
    objects. Returns every error found; an empty list means submittable.
    """
    today = today or date.today()
    files = files or {}
    try:
        values = FullApplication.model_validate(form).model_dump(by_alias=True)
    except PydanticValidationError as exc:
        return _pydantic_errors(exc)

    errors: list[FieldError] = []
    for table in _column_fields(today).values():
        for name, (check, _column) in table.items():
            ok, message, _normalized = check(values.get(name))
            if not ok:
                errors.append(FieldError(name, message))

    errors.extend(_experience_errors(values))
    errors.extend(_rules_errors(values))
    errors.extend(_security_errors(values, files, today))

    for name, upload in files.items():
        if upload is None:
            continue
        message = check_supplementary(upload)
        if message:
            errors.append(FieldError(name, message))
    return errors


def _experience_errors(values: Mapping) -> list[FieldError]:
    errors = []
    for name, options in EXPERIENCE_CHOICES.items():
        if values.get(name) not in options:
            errors.append(FieldError(name, "Please select an option"))
    for name in EXPERIENCE_TEXT:
        ok, message, _ = _text("This answer", 20, 2000)(values.get(name))
        if not ok:
            errors.append(FieldError(name, message))
    notes = values.get("additionalNotes")
    if notes and len(notes) > 2000:
        errors.append(FieldError("additionalNotes", "Notes must be at most 2000 characters"))
    return errors


def _rules_errors(values: Mapping) -> list[FieldError]:
    errors = []
    for name, (is_correct, message) in QUIZ_PREDICATES.items():
        answer = values.get(name)
        if answer is None:
            errors.append(FieldError(name, "Please select an option"))
        elif not is_correct(answer):
            errors.append(FieldError(name, message))
    if values.get("acknowledgmentAgreement") is not True:
        errors.append(FieldError("acknowledgmentAgreement", "You must agree to follow all rules"))
    return errors


def _security_errors(values: Mapping, files: Mapping, today: date) -> list[FieldError]:
    errors = []
    id_type = values.get("governmentIdType")
    state = values.get("idState")

    if id_type == GovernmentIdType.DRIVER_LICENSE.value and _is_blank(state):
        errors.append(FieldError("idState", "State is required for driver's license"))
    if id_type == GovernmentIdType.PASSPORT.value and not _is_blank(state):
        errors.append(FieldError("idState", "Do not provide state for passports"))

    confirm = values.get("governmentIdNumberConfirm")
    if _is_blank(confirm):
        errors.append(FieldError("governmentIdNumberConfirm", "Please confirm your ID number"))
    elif normalize_id_number(confirm) != normalize_id_number(values.get("governmentIdNumber") or ""):
        errors.append(FieldError("governmentIdNumberConfirm", "ID numbers do not match"))

    expiration = values.get("idExpiration")
    if not _is_blank(expiration):
        try:
            expires = parse_date(expiration)
        except ValueError:
            expires = None
        grace = timedelta(days=settings.ID_EXPIRATION_GRACE_DAYS)
        if expires is not None and expires < today - grace:
            errors.append(FieldError("idExpiration", "ID is expired"))

    method = values.get("ssnMethod")
    if _is_blank(method):
        errors.append(FieldError("ssnMethod", "Please select how to provide SSN"))
    elif method == SsnMethod.DIRECT.value:
        errors.extend(
            _pair_errors(values, "ssnFull", 9, "SSN is required for direct submission", "SSN numbers do not match")
        )
    elif method == SsnMethod.SPLIT.value:
        errors.extend(
            _pair_errors(values, "ssnFirstFive", 5, "First 5 digits of SSN are required", "SSN digits do not match")
        )

    for name in ("formerInmate", "onParole"):
        if _is_blank(values.get(name)):
            errors.append(FieldError(name, "Please answer this question"))

    if values.get("formerInmate") == "yes" and files.get("wardenLetter") is None:
        errors.append(FieldError("wardenLetter", "Warden letter is required for former inmates"))
    if id_type == GovernmentIdType.PASSPORT.value and files.get("passportScan") is None:
        errors.append(FieldError("passportScan", "A passport scan is required for passport holders"))

    if values.get("confirmAccuracy") is not True:
        errors.append(FieldError("confirmAccuracy", "You must confirm accuracy"))
    if values.get("consentToDataUse") is not True:
        errors.append(FieldError("consentToDataUse", "You must consent to data use"))
    if _is_blank(values.get("digitalSignature")):
        errors.append(FieldError("digitalSignature", "Digital signature is required"))
    return errors


def _pair_errors(values: Mapping, name: str, length: int, missing: str, mismatch: str) -> list[FieldError]:
    primary = _digits(values.get(name) or "")
    if len(primary) != length:
        return [FieldError(name, missing)]
    confirm = values.get(f"{name}Confirm")
    if not _is_blank(confirm) and _digits(confirm) != primary:
        return [FieldError(f"{name}Confirm", mismatch)]
    return []


def form_to_columns(form: Mapping, today: date | None = None) -> dict[str, object]:
    """Normalize a fully validated form record into column values."""
    columns: dict[str, object] = {}
    for step in STEP_SCHEMAS:
        step_payload = {key: form.get(key) for key in _step_keys(step) if key in form}
        columns.update(validate_step(step, step_payload, today))
    return columns


def _step_keys(step: str) -> list[str]:
    schema = STEP_SCHEMAS[step]
    return [field.alias or name for name, field in schema.model_fields.items()]
