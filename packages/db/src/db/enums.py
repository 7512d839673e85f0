# This project was developed with assistance from AI tools.
"""
Domain enums for the gate-clearance application lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class ApplicationStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def terminal_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses where a review decision has been made."""
        return frozenset({cls.APPROVED, cls.REJECTED})

    @classmethod
    def valid_transitions(cls) -> dict["ApplicationStatus", frozenset["ApplicationStatus"]]:
        """Allowed forward transitions. There are no backward edges."""
        return {
            cls.DRAFT: frozenset({cls.SUBMITTED}),
            cls.SUBMITTED: frozenset({cls.UNDER_REVIEW}),
            cls.UNDER_REVIEW: frozenset({cls.APPROVED, cls.REJECTED}),
            cls.APPROVED: frozenset(),
            cls.REJECTED: frozenset(),
        }


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    APPLICANT = "applicant"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    NONBINARY = "nonbinary"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"
    OTHER = "other"


class GovernmentIdType(str, enum.Enum):
    DRIVER_LICENSE = "driver_license"
    PASSPORT = "passport"


class SsnMethod(str, enum.Enum):
    DIRECT = "direct"
    CALL = "call"
    SPLIT = "split"


class DocumentKind(str, enum.Enum):
    CLEARANCE_FORM = "clearance_form"
    PASSPORT_SCAN = "passport_scan"
    WARDEN_LETTER = "warden_letter"
