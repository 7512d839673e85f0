# This project was developed with assistance from AI tools.
"""Sentinel values that satisfy NOT NULL columns before a visitor reaches them.

A draft is created at the personal step, long before contact and ID details
exist. Those columns hold the sentinels below until the matching step is
saved; every reader treats a sentinel as "not provided".
"""

from collections.abc import Mapping

PENDING_EMAIL = "pending@example.com"
PENDING_PHONE = "0000000000"
PENDING_COMPANY = "PENDING"
PENDING_ID_TYPE = "driver_license"
PENDING_ID_NUMBER = "PENDING"

# column -> sentinel
SENTINELS: dict[str, str] = {
    "email": PENDING_EMAIL,
    "phone_number": PENDING_PHONE,
    "company_or_organization": PENDING_COMPANY,
    "government_id_type": PENDING_ID_TYPE,
    "government_id_number": PENDING_ID_NUMBER,
}

# Columns that must hold real data before a draft may be submitted.
# government_id_type is excluded: its sentinel is also a legitimate answer.
REQUIRED_ON_SUBMIT = (
    "email",
    "phone_number",
    "company_or_organization",
    "government_id_number",
)


def is_placeholder(value, sentinel: str) -> bool:
    """True when ``value`` is empty, None, or exactly the sentinel."""
    if value is None or value == "":
        return True
    return _plain(value) == sentinel


def _plain(value):
    # Enum members compare by their stored value
    return getattr(value, "value", value)


def is_column_placeholder(record: Mapping, column: str) -> bool:
    """Placeholder check for a stored column, honoring the ID-type coupling."""
    if column == "government_id_type":
        # Unset for as long as the ID number is still pending
        return is_placeholder(record.get("government_id_number"), PENDING_ID_NUMBER)
    return is_placeholder(record.get(column), SENTINELS[column])


def strip_placeholders(record: Mapping) -> dict:
    """Return a copy with every placeholder column replaced by an empty string."""
    cleaned = dict(record)
    for column in SENTINELS:
        if column in cleaned and is_column_placeholder(record, column):
            cleaned[column] = ""
    return cleaned


def remaining_placeholders(record: Mapping) -> list[str]:
    """Submit-blocking columns that still hold their sentinel."""
    return [column for column in REQUIRED_ON_SUBMIT if is_column_placeholder(record, column)]


def draft_defaults() -> dict[str, str]:
    """Column values for a freshly created draft."""
    return dict(SENTINELS)
