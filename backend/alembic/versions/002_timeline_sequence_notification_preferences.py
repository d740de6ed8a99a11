"""Add timeline_events.sequence and notification_preferences.

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("timeline_events", sa.Column("sequence", sa.BigInteger(), nullable=True))
    op.execute(
        """
        UPDATE timeline_events AS t
        SET sequence = ordered.rn
        FROM (
            SELECT id, row_number() OVER (ORDER BY created_at, id) AS rn
            FROM timeline_events
        ) AS ordered
        WHERE t.id = ordered.id
        """
    )
    op.alter_column("timeline_events", "sequence", nullable=False)
    op.drop_index("idx_timeline_entity", table_name="timeline_events")
    op.create_index(
        "idx_timeline_entity",
        "timeline_events",
        ["entity_type", "entity_id", "created_at", "sequence"],
    )

    op.create_table(
        "notification_preferences",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("email_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("push_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("onesignal_player_id", sa.String(length=255), nullable=True),
        sa.Column("onesignal_email_id", sa.String(length=255), nullable=True),
        sa.Column(
            "type_preferences",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_unique_constraint(
        "uq_notification_preferences_user_id",
        "notification_preferences",
        ["user_id"],
    )


def downgrade() -> None:
    op.drop_constraint("uq_notification_preferences_user_id", "notification_preferences", type_="unique")
    op.drop_table("notification_preferences")
    op.drop_index("idx_timeline_entity", table_name="timeline_events")
    op.create_index("idx_timeline_entity", "timeline_events", ["entity_type", "entity_id", "created_at"])
    op.drop_column("timeline_events", "sequence")
