"""Table definitions for RAMS.

SQLAlchemy Core tables registered on the shared metadata. Queries in
the workflow and directory packages are written against these.
"""

import sqlalchemy as sa

from .db import Base

metadata = Base.metadata

users = sa.Table(
    "users",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column("username", sa.String(100), nullable=False, unique=True),
    sa.Column("password_hash", sa.String(255), nullable=False),
    sa.Column("first_name", sa.String(100), nullable=True),
    sa.Column("last_name", sa.String(100), nullable=True),
    sa.Column("roles", sa.JSON, nullable=False, comment="JSON array of handler, approver, admin"),
    sa.Column("approval_level", sa.Integer, nullable=True),
    sa.Column("is_active", sa.Boolean, nullable=False, default=True),
    sa.Column("created_at", sa.DateTime, nullable=False),
    sa.Column("updated_at", sa.DateTime, nullable=False),
)

financial_institutions = sa.Table(
    "financial_institutions",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column("bank_code", sa.String(10), nullable=False, unique=True),
    sa.Column("bank_name", sa.String(200), nullable=False),
    sa.Column("created_at", sa.DateTime, nullable=False),
)

branches = sa.Table(
    "branches",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column(
        "institution_id",
        sa.String(36),
        sa.ForeignKey("financial_institutions.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("branch_code", sa.String(10), nullable=False),
    sa.Column("branch_name", sa.String(200), nullable=False),
    sa.Column("created_at", sa.DateTime, nullable=False),
    sa.UniqueConstraint("institution_id", "branch_code", name="uq_branches_institution_branch"),
)

reports = sa.Table(
    "reports",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column("report_number", sa.String(32), nullable=False, unique=True),
    sa.Column("user_number", sa.String(50), nullable=False, default=""),
    sa.Column("bank_code", sa.String(10), nullable=False, default=""),
    sa.Column("branch_code", sa.String(10), nullable=False, default=""),
    sa.Column("company_name", sa.String(200), nullable=False, default=""),
    sa.Column("contact_person_name", sa.String(200), nullable=False, default=""),
    sa.Column("inquiry_content", sa.Text, nullable=False, default=""),
    sa.Column("response_content", sa.Text, nullable=False, default=""),
    sa.Column("escalation_required", sa.Boolean, nullable=False, default=False),
    sa.Column("escalation_reason", sa.Text, nullable=True),
    sa.Column(
        "status",
        sa.String(32),
        nullable=False,
        default="draft",
        comment="draft, pending_approval, approved, rejected",
    ),
    sa.Column(
        "handler_id",
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    sa.Column(
        "approver_id",
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=True,
    ),
    sa.Column("rejection_reason", sa.Text, nullable=True),
    sa.Column("submitted_at", sa.DateTime, nullable=True),
    sa.Column("approved_at", sa.DateTime, nullable=True),
    sa.Column("created_at", sa.DateTime, nullable=False),
    sa.Column("updated_at", sa.DateTime, nullable=False),
    sa.Index("ix_reports_status", "status"),
    sa.Index("ix_reports_handler_id", "handler_id"),
    sa.Index("ix_reports_created_at", "created_at"),
)

sequence_counters = sa.Table(
    "sequence_counters",
    metadata,
    sa.Column("scope", sa.String(100), primary_key=True),
    sa.Column("last_value", sa.Integer, nullable=False),
    sa.Column("updated_at", sa.DateTime, nullable=False),
)
