"""Create users and leave_requests tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ROLE = sa.Enum("STUDENT", "FACULTY", "ADMIN", name="role")
LEAVE_TYPE = sa.Enum("LEAVE", "ON_DUTY", name="leave_type")
LEAVE_STATUS = sa.Enum("PENDING", "APPROVED", "REJECTED", name="leave_status")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", ROLE, nullable=False),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("student_id", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("student_id", name="uq_users_student_id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_department", "users", ["department"])

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("student_user_id", sa.Integer(), nullable=False),
        sa.Column("leave_type", LEAVE_TYPE, nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("from_date", sa.Date(), nullable=False),
        sa.Column("to_date", sa.Date(), nullable=False),
        sa.Column("days_requested", sa.Integer(), nullable=False),
        sa.Column("semester", sa.String(1), nullable=False),
        sa.Column("academic_year", sa.String(9), nullable=False),
        sa.Column("emergency_contact_name", sa.String(50), nullable=False),
        sa.Column("emergency_contact_phone", sa.String(10), nullable=False),
        sa.Column("emergency_contact_relation", sa.String(20), nullable=False),
        sa.Column("status", LEAVE_STATUS, nullable=False),
        sa.Column("faculty_remarks", sa.String(300), nullable=True),
        sa.Column("reviewed_by_user_id", sa.Integer(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_leave_requests"),
        sa.ForeignKeyConstraint(
            ["student_user_id"],
            ["users.id"],
            name="fk_leave_requests_student_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["reviewed_by_user_id"],
            ["users.id"],
            name="fk_leave_requests_reviewed_by_user_id_users",
        ),
        sa.CheckConstraint("to_date >= from_date", name="ck_leave_requests_date_order"),
        sa.CheckConstraint("days_requested >= 1", name="ck_leave_requests_days_positive"),
    )
    op.create_index("ix_leave_requests_id", "leave_requests", ["id"])
    op.create_index("ix_leave_requests_student_user_id", "leave_requests", ["student_user_id"])
    op.create_index("ix_leave_requests_reviewed_by_user_id", "leave_requests", ["reviewed_by_user_id"])
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"])
    op.create_index("ix_leave_requests_academic_year", "leave_requests", ["academic_year"])
    op.create_index("ix_leave_requests_dates", "leave_requests", ["from_date", "to_date"])
    op.create_index("ix_leave_requests_year_semester", "leave_requests", ["academic_year", "semester"])


def downgrade() -> None:
    op.drop_table("leave_requests")
    op.drop_table("users")
    LEAVE_STATUS.drop(op.get_bind(), checkfirst=True)
    LEAVE_TYPE.drop(op.get_bind(), checkfirst=True)
    ROLE.drop(op.get_bind(), checkfirst=True)
