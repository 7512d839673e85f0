# This project was developed with assistance from AI tools.
"""
Gate clearance -- domain models

Visitor clearance applications and the documents generated or uploaded
for them.
"""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    ApplicationStatus,
    DocumentKind,
    Gender,
    GovernmentIdType,
    SsnMethod,
)


def _str_enum(enum_cls, name: str) -> Enum:
    """VARCHAR-backed enum that persists member values rather than names."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
    )


class Application(Base):
    """Visitor gate-clearance application.

    Drafts satisfy the NOT NULL columns below with placeholder values until
    the visitor reaches the step that collects them.
    """

    __tablename__ = "applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(String(255), nullable=False, index=True)
    status = Column(
        _str_enum(ApplicationStatus, "application_status"),
        nullable=False,
        default=ApplicationStatus.DRAFT,
        index=True,
    )

    # Personal
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    other_names = Column(String(200), nullable=True)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(_str_enum(Gender, "gender"), nullable=False)

    # Contact
    email = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=False)
    company_or_organization = Column(String(200), nullable=False)
    purpose_of_visit = Column(Text, nullable=True)
    visit_date = Column(Date, nullable=True)

    # Experience and rules quiz answers
    impact_responses = Column(JSON, nullable=True)
    rules_quiz_answers = Column(JSON, nullable=True)

    # Security
    authorization_type = Column(String(50), nullable=False, default="Gate Clearance")
    government_id_type = Column(
        _str_enum(GovernmentIdType, "government_id_type"),
        nullable=False,
    )
    government_id_number = Column(String(50), nullable=False)
    id_state = Column(String(2), nullable=True)
    id_expiration = Column(Date, nullable=True)
    digital_signature = Column(Text, nullable=True)
    ssn_method = Column(_str_enum(SsnMethod, "ssn_method"), nullable=True)
    is_us_citizen = Column(Boolean, nullable=True)

    # Background questions
    visited_inmate = Column(Boolean, nullable=False, default=False)
    former_inmate = Column(Boolean, nullable=False, default=False)
    restricted_access = Column(Boolean, nullable=False, default=False)
    felony_conviction = Column(Boolean, nullable=False, default=False)
    on_probation_parole = Column(Boolean, nullable=False, default=False)
    pending_charges = Column(Boolean, nullable=False, default=False)
    # camelCase names of the questions above the visitor has actually answered
    background_answered = Column(JSON, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    documents = relationship(
        "Document", back_populates="application", cascade="all, delete-orphan",
        order_by="Document.uploaded_at",
    )

    def __repr__(self):
        return f"<Application(id={self.id}, status='{self.status}')>"


class Document(Base):
    """Stored file reference for an application. Rows are never updated."""

    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = Column(
        Uuid, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    kind = Column(
        _str_enum(DocumentKind, "document_kind"),
        nullable=False,
    )
    filename = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    size_bytes = Column(Integer, nullable=False)
    storage_key = Column(String(500), nullable=False)
    uploaded_by = Column(String(255), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="documents")

    def __repr__(self):
        return f"<Document(id={self.id}, kind='{self.kind}')>"
