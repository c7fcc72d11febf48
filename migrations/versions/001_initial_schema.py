"""Initial schema: users, therapists, holidays, catalog, payments, bookings, sessions, counters.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_SESSION_CLAUSE = "status IS NULL OR status NOT IN ('cancelled', 'cancelledByTherapist', 'deleted')"


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=False, server_default=""),
        sa.Column("role", sa.String(), nullable=False, server_default="patient"),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)
    op.create_index(op.f("ix_users_status"), "users", ["status"], unique=False)

    op.create_table(
        "therapists",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("display_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("mobile", sa.String(), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_therapists_display_id"), "therapists", ["display_id"], unique=True)
    op.create_index(op.f("ix_therapists_user_id"), "therapists", ["user_id"], unique=False)

    op.create_table(
        "therapist_holidays",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("therapist_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.String(), nullable=False),
        sa.Column("is_full_day", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("slots", sa.JSON(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["therapist_id"], ["therapists.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("therapist_id", "date", name="uq_therapist_holidays_day"),
    )
    op.create_index(op.f("ix_therapist_holidays_therapist_id"), "therapist_holidays", ["therapist_id"], unique=False)
    op.create_index(op.f("ix_therapist_holidays_date"), "therapist_holidays", ["date"], unique=False)

    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("patient_code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("mobile", sa.String(), nullable=False, server_default=""),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_patients_patient_code"), "patients", ["patient_code"], unique=True)

    op.create_table(
        "packages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("cost_per_session", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_cost", sa.Float(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "therapy_types",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "counters",
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("name"),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("payment_id", sa.String(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("amount_paid", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(), nullable=False, server_default="cash"),
        sa.Column("payment_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_payments_payment_id"), "payments", ["payment_id"], unique=True)

    op.create_table(
        "finances",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False, server_default="income"),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("credit_debit_status", sa.String(), nullable=False, server_default="credited"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_finances_description"), "finances", ["description"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("appointment_id", sa.String(), nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("package_id", sa.Integer(), nullable=False),
        sa.Column("therapy_id", sa.Integer(), nullable=False),
        sa.Column("therapist_id", sa.Integer(), nullable=False),
        sa.Column("payment_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("payment_status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("remark", sa.String(), nullable=True),
        sa.Column("channel", sa.String(), nullable=True),
        sa.Column("discount_coupon", sa.String(), nullable=True),
        sa.Column("discount_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"]),
        sa.ForeignKeyConstraint(["package_id"], ["packages.id"]),
        sa.ForeignKeyConstraint(["therapy_id"], ["therapy_types.id"]),
        sa.ForeignKeyConstraint(["therapist_id"], ["therapists.id"]),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bookings_appointment_id"), "bookings", ["appointment_id"], unique=True)
    op.create_index(op.f("ix_bookings_patient_id"), "bookings", ["patient_id"], unique=False)
    op.create_index(op.f("ix_bookings_therapist_id"), "bookings", ["therapist_id"], unique=False)

    op.create_table(
        "booking_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("booking_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.String(), nullable=False),
        sa.Column("slot_id", sa.String(), nullable=False),
        sa.Column("time", sa.String(), nullable=False, server_default=""),
        sa.Column("therapist_id", sa.Integer(), nullable=False),
        sa.Column("therapist_display_id", sa.String(), nullable=False, server_default=""),
        sa.Column("therapy_type_id", sa.Integer(), nullable=True),
        sa.Column("is_checked_in", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("status", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["therapist_id"], ["therapists.id"]),
        sa.ForeignKeyConstraint(["therapy_type_id"], ["therapy_types.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_booking_sessions_booking_id"), "booking_sessions", ["booking_id"], unique=False)
    op.create_index(op.f("ix_booking_sessions_date"), "booking_sessions", ["date"], unique=False)
    op.create_index(op.f("ix_booking_sessions_therapist_id"), "booking_sessions", ["therapist_id"], unique=False)
    # At most one active session per (date, slot, therapist); cancelled rows do not hold the slot
    op.create_index(
        "uq_booking_sessions_active_slot",
        "booking_sessions",
        ["date", "slot_id", "therapist_id"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_SESSION_CLAUSE),
        sqlite_where=sa.text(ACTIVE_SESSION_CLAUSE),
    )

    op.create_table(
        "booking_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("request_id", sa.String(), nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("package_id", sa.Integer(), nullable=True),
        sa.Column("therapy_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("booking_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"]),
        sa.ForeignKeyConstraint(["package_id"], ["packages.id"]),
        sa.ForeignKeyConstraint(["therapy_id"], ["therapy_types.id"]),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_booking_requests_request_id"), "booking_requests", ["request_id"], unique=True)
    op.create_index(op.f("ix_booking_requests_status"), "booking_requests", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_booking_requests_status"), table_name="booking_requests")
    op.drop_index(op.f("ix_booking_requests_request_id"), table_name="booking_requests")
    op.drop_table("booking_requests")
    op.drop_index("uq_booking_sessions_active_slot", table_name="booking_sessions")
    op.drop_index(op.f("ix_booking_sessions_therapist_id"), table_name="booking_sessions")
    op.drop_index(op.f("ix_booking_sessions_date"), table_name="booking_sessions")
    op.drop_index(op.f("ix_booking_sessions_booking_id"), table_name="booking_sessions")
    op.drop_table("booking_sessions")
    op.drop_index(op.f("ix_bookings_therapist_id"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_patient_id"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_appointment_id"), table_name="bookings")
    op.drop_table("bookings")
    op.drop_index(op.f("ix_finances_description"), table_name="finances")
    op.drop_table("finances")
    op.drop_index(op.f("ix_payments_payment_id"), table_name="payments")
    op.drop_table("payments")
    op.drop_table("counters")
    op.drop_table("therapy_types")
    op.drop_table("packages")
    op.drop_index(op.f("ix_patients_patient_code"), table_name="patients")
    op.drop_table("patients")
    op.drop_index(op.f("ix_therapist_holidays_date"), table_name="therapist_holidays")
    op.drop_index(op.f("ix_therapist_holidays_therapist_id"), table_name="therapist_holidays")
    op.drop_table("therapist_holidays")
    op.drop_index(op.f("ix_therapists_user_id"), table_name="therapists")
    op.drop_index(op.f("ix_therapists_display_id"), table_name="therapists")
    op.drop_table("therapists")
    op.drop_index(op.f("ix_users_status"), table_name="users")
    op.drop_index(op.f("ix_users_role"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
