# This project was developed with assistance from AI tools.
"""add clearance models

Revision ID: 3c1f0a9d2b7e
Revises:
Create Date: 2026-10-18 09:12:41.306512

"""

import sqlalchemy as sa
from alembic import op

revision = "3c1f0a9d2b7e"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "applications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("other_names", sa.String(200), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("gender", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("company_or_organization", sa.String(200), nullable=False),
        sa.Column("purpose_of_visit", sa.Text(), nullable=True),
        sa.Column("visit_date", sa.Date(), nullable=True),
        sa.Column("impact_responses", sa.JSON(), nullable=True),
        sa.Column("rules_quiz_answers", sa.JSON(), nullable=True),
        sa.Column("authorization_type", sa.String(50), nullable=False, server_default="Gate Clearance"),
        sa.Column("government_id_type", sa.String(20), nullable=False),
        sa.Column("government_id_number", sa.String(50), nullable=False),
        sa.Column("id_state", sa.String(2), nullable=True),
        sa.Column("id_expiration", sa.Date(), nullable=True),
        sa.Column("digital_signature", sa.Text(), nullable=True),
        sa.Column("ssn_method", sa.String(10), nullable=True),
        sa.Column("is_us_citizen", sa.Boolean(), nullable=True),
        sa.Column("visited_inmate", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("former_inmate", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("restricted_access", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("felony_conviction", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("on_probation_parole", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("pending_charges", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("background_answered", sa.JSON(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_owner_id", "applications", ["owner_id"])
    op.create_index("ix_applications_status", "applications", ["status"])

    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("application_id", sa.Uuid(), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("storage_key", sa.String(500), nullable=False),
        sa.Column("uploaded_by", sa.String(255), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_documents_application_id", "documents", ["application_id"])


def downgrade() -> None:
    op.drop_index("ix_documents_application_id", table_name="documents")
    op.drop_table("documents")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_index("ix_applications_owner_id", table_name="applications")
    op.drop_table("applications")
