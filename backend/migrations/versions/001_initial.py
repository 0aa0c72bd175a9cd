"""Create RAMS tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    # Users
    if not table_exists("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("username", sa.String(100), nullable=False),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("first_name", sa.String(100), nullable=True),
            sa.Column("last_name", sa.String(100), nullable=True),
            sa.Column(
                "roles",
                sa.JSON,
                nullable=False,
                comment="JSON array of handler, approver, admin",
            ),
            sa.Column("approval_level", sa.Integer, nullable=True),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("username", name="uq_users_username"),
        )

    # Financial institutions
    if not table_exists("financial_institutions"):
        op.create_table(
            "financial_institutions",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("bank_code", sa.String(10), nullable=False),
            sa.Column("bank_name", sa.String(200), nullable=False),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("bank_code", name="uq_financial_institutions_bank_code"),
        )

    # Branches - codes are unique per institution only
    if not table_exists("branches"):
        op.create_table(
            "branches",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column(
                "institution_id",
                sa.String(36),
                sa.ForeignKey("financial_institutions.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("branch_code", sa.String(10), nullable=False),
            sa.Column("branch_name", sa.String(200), nullable=False),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint(
                "institution_id", "branch_code", name="uq_branches_institution_branch"
            ),
        )

    # Reports
    if not table_exists("reports"):
        op.create_table(
            "reports",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("report_number", sa.String(32), nullable=False),
            sa.Column("user_number", sa.String(50), nullable=False, server_default=""),
            sa.Column("bank_code", sa.String(10), nullable=False, server_default=""),
            sa.Column("branch_code", sa.String(10), nullable=False, server_default=""),
            sa.Column("company_name", sa.String(200), nullable=False, server_default=""),
            sa.Column("contact_person_name", sa.String(200), nullable=False, server_default=""),
            sa.Column("inquiry_content", sa.Text, nullable=False, server_default=""),
            sa.Column("response_content", sa.Text, nullable=False, server_default=""),
            sa.Column(
                "escalation_required", sa.Boolean, nullable=False, server_default=sa.false()
            ),
            sa.Column("escalation_reason", sa.Text, nullable=True),
            sa.Column(
                "status",
                sa.String(32),
                nullable=False,
                server_default="draft",
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
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("report_number", name="uq_reports_report_number"),
        )
        op.create_index("ix_reports_status", "reports", ["status"])
        op.create_index("ix_reports_handler_id", "reports", ["handler_id"])
        op.create_index("ix_reports_created_at", "reports", ["created_at"])

    # Sequence counters for report numbers and PDF filenames
    if not table_exists("sequence_counters"):
        op.create_table(
            "sequence_counters",
            sa.Column("scope", sa.String(100), primary_key=True),
            sa.Column("last_value", sa.Integer, nullable=False),
            sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )


def downgrade() -> None:
    op.drop_table("sequence_counters")
    op.drop_index("ix_reports_created_at", table_name="reports")
    op.drop_index("ix_reports_handler_id", table_name="reports")
    op.drop_index("ix_reports_status", table_name="reports")
    op.drop_table("reports")
    op.drop_table("branches")
    op.drop_table("financial_institutions")
    op.drop_table("users")
