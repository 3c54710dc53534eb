"""Initial database schema

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    # Create operators table
    op.create_table(
        "operators",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    # Create reviews table
    op.create_table(
        "reviews",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer_name", sa.String(length=100), nullable=False),
        sa.Column("customer_phone", sa.String(length=20), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="valid_review_rating"),
    )
    op.create_index("ix_reviews_rating", "reviews", ["rating"])
    op.create_index("ix_reviews_created_at", "reviews", ["created_at"])

    # Create analytics_events table
    op.create_table(
        "analytics_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column(
            "metric_type",
            sa.Enum(
                "review_submitted",
                "internal_feedback",
                "link_click",
                "google_redirect",
                "qr_generated",
                "share_created",
                name="metrictype",
            ),
            nullable=False,
        ),
        sa.Column("value", sa.Float(), nullable=False, server_default="1"),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analytics_events_metric_type", "analytics_events", ["metric_type"])
    op.create_index("ix_analytics_events_created_at", "analytics_events", ["created_at"])

    # Create app_settings table (single row, id = 1)
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.String(length=500), nullable=True),
        sa.Column("brand_color", sa.String(length=7), nullable=True),
        sa.Column("welcome_message", sa.Text(), nullable=True),
        sa.Column("thank_you_message", sa.Text(), nullable=True),
        sa.Column("google_business_url", sa.String(length=500), nullable=True),
        sa.Column("notification_email", sa.String(length=255), nullable=True),
        sa.Column("notify_new_reviews", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("notify_low_ratings", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("weekly_digest", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("id = 1", name="app_settings_singleton"),
    )

    # Create link_tracking table
    op.create_table(
        "link_tracking",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("business_id", sa.String(length=36), nullable=False, server_default="default"),
        sa.Column(
            "link_type",
            sa.Enum("direct", "qr_code", "social", "email", name="linktype"),
            nullable=False,
        ),
        sa.Column("link_url", sa.Text(), nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create email_logs table
    op.create_table(
        "email_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("to_email", sa.String(length=255), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("new_review", "low_rating_alert", "weekly_digest", name="emailkind"),
            nullable=False,
        ),
        sa.Column(
            "priority",
            sa.Enum("normal", "high", name="emailpriority"),
            nullable=False,
            server_default="normal",
        ),
        sa.Column(
            "status",
            sa.Enum("sent", "failed", "skipped", name="emailstatus"),
            nullable=False,
        ),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("provider_message_id", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("email_logs")
    op.drop_table("link_tracking")
    op.drop_table("app_settings")
    op.drop_index("ix_analytics_events_created_at", table_name="analytics_events")
    op.drop_index("ix_analytics_events_metric_type", table_name="analytics_events")
    op.drop_table("analytics_events")
    op.drop_index("ix_reviews_created_at", table_name="reviews")
    op.drop_index("ix_reviews_rating", table_name="reviews")
    op.drop_table("reviews")
    op.drop_table("operators")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS metrictype")
    op.execute("DROP TYPE IF EXISTS linktype")
    op.execute("DROP TYPE IF EXISTS emailkind")
    op.execute("DROP TYPE IF EXISTS emailpriority")
    op.execute("DROP TYPE IF EXISTS emailstatus")
