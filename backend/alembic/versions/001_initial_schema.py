"""Initial schema: companies, users, requests, quotes, jobs, timeline, notifications.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB()


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True)


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )

    op.create_table(
        "users",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("company_id", UUID, sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="client"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.CheckConstraint("role IN ('admin', 'client')", name="chk_user_role"),
    )
    op.create_index("ix_users_company_id", "users", ["company_id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "requests",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("request_number", sa.String(length=50), nullable=False, unique=True),
        sa.Column("company_id", UUID, sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("submitted_by", UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="pending"),
        sa.Column("form_type", sa.String(length=20), nullable=False, server_default="standard"),
        sa.Column("form_data", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=50), nullable=True),
        sa.Column("zip_code", sa.String(length=20), nullable=True),
        sa.Column("on_site_contact_name", sa.String(length=255), nullable=True),
        sa.Column("on_site_contact_email", sa.String(length=255), nullable=True),
        sa.Column("on_site_contact_phone", sa.String(length=50), nullable=True),
        sa.Column("preferred_date", sa.Date(), nullable=True),
        sa.Column("equipment", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("additional_notes", sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "status IN ('pending', 'quote_ready', 'revision_requested', 'accepted', 'declined')",
            name="chk_request_status",
        ),
        sa.CheckConstraint("form_type IN ('standard', 'logistics', 'materials')", name="chk_request_form_type"),
    )
    op.create_index("ix_requests_company_id", "requests", ["company_id"])
    op.create_index("ix_requests_status", "requests", ["status"])
    op.create_index("ix_requests_created_at", "requests", ["created_at"])

    op.create_table(
        "quotes",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("quote_number", sa.String(length=50), nullable=False, unique=True),
        sa.Column("request_id", UUID, sa.ForeignKey("requests.id"), nullable=False),
        sa.Column("company_id", UUID, sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("created_by", UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="draft"),
        sa.Column("pickup_date", sa.Date(), nullable=True),
        sa.Column("pickup_time_window", sa.String(length=100), nullable=True),
        sa.Column("valid_until", sa.Date(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("discount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("discount_type", sa.String(length=20), nullable=False, server_default="amount"),
        sa.Column("discount_rate", sa.Numeric(5, 2), nullable=True),
        sa.Column("total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("terms", sa.Text(), nullable=True),
        sa.Column("revision_message", sa.Text(), nullable=True),
        sa.Column("decline_reason", sa.Text(), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_by", UUID, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("signature_name", sa.String(length=255), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "status IN ('draft', 'sent', 'accepted', 'declined', 'revision_requested')",
            name="chk_quote_status",
        ),
        sa.CheckConstraint("discount_type IN ('amount', 'percentage')", name="chk_quote_discount_type"),
    )
    op.create_index("ix_quotes_request_id", "quotes", ["request_id"])
    op.create_index("ix_quotes_company_id", "quotes", ["company_id"])
    op.create_index("ix_quotes_status", "quotes", ["status"])
    op.create_index("ix_quotes_created_at", "quotes", ["created_at"])

    op.create_table(
        "quote_line_items",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("quote_id", UUID, sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_quote_line_items_quote_id", "quote_line_items", ["quote_id"])

    op.create_table(
        "jobs",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("job_number", sa.String(length=50), nullable=False, unique=True),
        sa.Column("quote_id", UUID, sa.ForeignKey("quotes.id"), nullable=False),
        sa.Column("request_id", UUID, sa.ForeignKey("requests.id"), nullable=False),
        sa.Column("company_id", UUID, sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="pickup_scheduled"),
        sa.Column("pickup_date", sa.Date(), nullable=True),
        sa.Column("pickup_time_window", sa.String(length=100), nullable=True),
        sa.Column("location", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("contact", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("equipment", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("services", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("pickup_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pickup_complete_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("quote_id", name="uq_jobs_quote_id"),
        sa.CheckConstraint(
            "status IN ('pickup_scheduled', 'pickup_complete', 'processing', 'pending_cod', 'complete')",
            name="chk_job_status",
        ),
    )
    op.create_index("ix_jobs_request_id", "jobs", ["request_id"])
    op.create_index("ix_jobs_company_id", "jobs", ["company_id"])
    op.create_index("ix_jobs_status", "jobs", ["status"])

    op.create_table(
        "timeline_events",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        sa.Column("entity_id", UUID, nullable=False),
        sa.Column("event_type", sa.String(length=20), nullable=False),
        sa.Column("previous_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("actor_id", UUID, sa.ForeignKey("users.id"), nullable=True),
        _created_at(),
        sa.CheckConstraint("entity_type IN ('request', 'quote', 'job')", name="chk_timeline_entity_type"),
        sa.CheckConstraint(
            "event_type IN ('created', 'status_change', 'declined', 'note')",
            name="chk_timeline_event_type",
        ),
    )
    op.create_index("idx_timeline_entity", "timeline_events", ["entity_type", "entity_id", "created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("user_id", UUID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(length=10), nullable=False, server_default="normal"),
        sa.Column("action_url", sa.String(length=500), nullable=True),
        sa.Column("entity_type", sa.String(length=20), nullable=True),
        sa.Column("entity_id", UUID, nullable=True),
        sa.Column("meta_data", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_dismissed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("dismissed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("email_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("push_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("push_sent_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("priority IN ('low', 'normal', 'high')", name="chk_notification_priority"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("idx_notifications_user_unread", "notifications", ["user_id", "is_read", "is_dismissed"])


def downgrade() -> None:
    op.drop_index("idx_notifications_user_unread", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("idx_timeline_entity", table_name="timeline_events")
    op.drop_table("timeline_events")
    op.drop_table("jobs")
    op.drop_table("quote_line_items")
    op.drop_table("quotes")
    op.drop_table("requests")
    op.drop_table("users")
    op.drop_table("companies")
