"""Initial schema: drivers, shifts, garages, bookings, quotes and inquiries.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _ts(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), **kwargs)


def _created_at() -> sa.Column:
    return _ts("created_at", server_default=sa.func.now())


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column(
            "role",
            sa.Enum("customer", "driver", "garage", "admin", name="role"),
            nullable=False,
            server_default="customer",
        ),
        sa.Column("is_approved", sa.Boolean, nullable=False, server_default=sa.false()),
        _created_at(),
    )

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), unique=True, nullable=False),
        sa.Column("first_name", sa.String(80), nullable=False),
        sa.Column("last_name", sa.String(80), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "suspended", "rejected", name="driverstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "onboarding_status",
            sa.Enum("not_started", "contracts_pending", "active", name="onboardingstatus"),
            nullable=False,
            server_default="not_started",
        ),
        sa.Column(
            "employment_type",
            sa.Enum("employee", "contractor", name="employmenttype"),
            nullable=False,
            server_default="employee",
        ),
        sa.Column("can_accept_jobs", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("police_check_completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("police_check_document_url", sa.String(500), nullable=True),
        sa.Column("police_check_certificate_number", sa.String(64), nullable=True),
        _ts("employment_contract_signed_at", nullable=True),
        _ts("driver_agreement_signed_at", nullable=True),
        _ts("work_health_safety_signed_at", nullable=True),
        _ts("code_of_conduct_signed_at", nullable=True),
        _ts("employee_start_date", nullable=True),
        sa.Column("superannuation_fund", sa.String(120), nullable=True),
        sa.Column("superannuation_member_number", sa.String(64), nullable=True),
        _ts("submitted_at", server_default=sa.func.now()),
        _ts("reviewed_at", nullable=True),
        sa.Column("reviewed_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("is_clocked_in", sa.Boolean, nullable=False, server_default=sa.false()),
        _ts("last_clock_in", nullable=True),
        _ts("last_clock_out", nullable=True),
        sa.Column("current_time_entry_id", sa.Integer, nullable=True),
        _created_at(),
        _ts("updated_at", server_default=sa.func.now()),
    )
    op.create_index("idx_drivers_status", "drivers", ["status"])
    op.create_index("idx_drivers_clock", "drivers", ["is_clocked_in", "last_clock_in"])

    # ── time_entries ──────────────────────────────────────────────────
    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        _ts("clock_in", nullable=False),
        _ts("clock_out", nullable=True),
        sa.Column(
            "clock_out_reason",
            sa.Enum("manual", "auto", name="clockoutreason"),
            nullable=True,
        ),
        sa.Column("clock_out_note", sa.String(255), nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column("jobs_completed", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("idx_time_entries_driver", "time_entries", ["driver_id", "clock_in"])

    # ── garages ───────────────────────────────────────────────────────
    op.create_table(
        "garages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), unique=True, nullable=False),
        sa.Column("business_name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "suspended", "rejected", name="garageaccountstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("linked_garage_place_id", sa.String(255), nullable=True),
        sa.Column("linked_garage_name", sa.String(200), nullable=True),
        _created_at(),
    )

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("user_name", sa.String(120), nullable=False),
        sa.Column("user_phone", sa.String(32), nullable=True),
        sa.Column("vehicle_registration", sa.String(20), nullable=False),
        sa.Column("service_type", sa.String(120), nullable=False),
        _ts("pickup_time", nullable=True),
        sa.Column("garage_name", sa.String(200), nullable=True),
        sa.Column("garage_place_id", sa.String(255), nullable=True),
        sa.Column("assigned_garage_id", sa.Integer, sa.ForeignKey("garages.id"), nullable=True),
        _ts("assigned_at", nullable=True),
        sa.Column("driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column(
            "garage_status",
            sa.Enum(
                "new", "accepted", "declined", "in_progress", "completed",
                name="garagestatus",
            ),
            nullable=False,
            server_default="new",
        ),
        sa.Column(
            "status",
            sa.Enum("pending", "in_progress", "completed", name="bookingstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("current_stage", sa.String(64), nullable=False, server_default="booking_confirmed"),
        sa.Column("overall_progress", sa.Integer, nullable=False, server_default="0"),
        _ts("garage_accepted_at", nullable=True),
        _ts("garage_completed_at", nullable=True),
        _ts("garage_responded_at", nullable=True),
        sa.Column("garage_responded_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("garage_response_notes", sa.Text, nullable=True),
        _created_at(),
        _ts("updated_at", server_default=sa.func.now()),
    )
    op.create_index("idx_bookings_garage", "bookings", ["assigned_garage_id", "garage_status"])
    op.create_index("idx_bookings_place", "bookings", ["garage_place_id"])
    op.create_index("idx_bookings_driver", "bookings", ["driver_id", "status"])

    # ── booking_updates (append-only) ─────────────────────────────────
    op.create_table(
        "booking_updates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer, sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("stage", sa.String(64), nullable=False),
        _ts("timestamp", nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("updated_by", sa.String(64), nullable=False),
    )
    op.create_index(
        "idx_booking_updates_booking", "booking_updates", ["booking_id", "timestamp"]
    )

    # ── garage_notifications ──────────────────────────────────────────
    op.create_table(
        "garage_notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("garage_id", sa.Integer, sa.ForeignKey("garages.id"), nullable=False),
        sa.Column("booking_id", sa.Integer, sa.ForeignKey("bookings.id"), nullable=True),
        sa.Column(
            "type",
            sa.Enum("booking_update", name="notificationtype"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index(
        "idx_garage_notifications_feed", "garage_notifications", ["garage_id", "is_read"]
    )

    # ── quote_requests / quotes ───────────────────────────────────────
    op.create_table(
        "quote_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("vehicle_registration", sa.String(20), nullable=False),
        sa.Column("service_description", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "open", "quoted", "accepted", "expired", "cancelled",
                name="quoterequeststatus",
            ),
            nullable=False,
            server_default="open",
        ),
        _ts("expires_at", nullable=True),
        _created_at(),
    )
    op.create_index("idx_quote_requests_customer", "quote_requests", ["customer_id"])

    op.create_table(
        "quotes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "quote_request_id", sa.Integer, sa.ForeignKey("quote_requests.id"), nullable=False
        ),
        sa.Column("garage_id", sa.Integer, sa.ForeignKey("garages.id"), nullable=False),
        sa.Column("garage_name", sa.String(200), nullable=False),
        sa.Column("quoted_amount", sa.Float, nullable=False),
        sa.Column("estimated_duration", sa.String(64), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "viewed", "expired", "cancelled", name="quotestatus"),
            nullable=False,
            server_default="pending",
        ),
        _ts("first_viewed_at", nullable=True),
        _ts("expires_at", nullable=True),
        _ts("valid_until", nullable=True),
        _created_at(),
    )
    op.create_index("idx_quotes_request", "quotes", ["quote_request_id", "status"])
    op.create_index("idx_quotes_garage", "quotes", ["garage_id", "status"])

    # ── inquiries ─────────────────────────────────────────────────────
    op.create_table(
        "inquiries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(200), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.Enum("new", "in-progress", "resolved", name="inquirystatus"),
            nullable=False,
            server_default="new",
        ),
        sa.Column("admin_notes", sa.Text, nullable=True),
        _ts("resolved_at", nullable=True),
        _created_at(),
    )
    op.create_index("idx_inquiries_status", "inquiries", ["status"])


def downgrade() -> None:
    op.drop_table("inquiries")
    op.drop_table("quotes")
    op.drop_table("quote_requests")
    op.drop_table("garage_notifications")
    op.drop_table("booking_updates")
    op.drop_table("bookings")
    op.drop_table("garages")
    op.drop_table("time_entries")
    op.drop_table("drivers")
    op.drop_table("users")
    for enum_name in (
        "inquirystatus",
        "quotestatus",
        "quoterequeststatus",
        "notificationtype",
        "bookingstatus",
        "garagestatus",
        "garageaccountstatus",
        "clockoutreason",
        "employmenttype",
        "onboardingstatus",
        "driverstatus",
        "role",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
