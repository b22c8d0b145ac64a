"""Initial review site schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _request_meta() -> list[sa.Column]:
    return [
        sa.Column("ip", sa.String(45)),
        sa.Column("ip_hash", sa.String(64)),
        sa.Column("ip_version", sa.Integer),
        sa.Column("user_agent", sa.Text),
        sa.Column("referrer", sa.Text),
    ]


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "school_overrides",
        sa.Column("school_id", sa.String(100), primary_key=True),
        sa.Column("data", sa.JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("school_id", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("overall_rating", sa.Float),
        sa.Column("teacher_quality", sa.Float),
        sa.Column("material_quality", sa.Float),
        sa.Column("connection_quality", sa.Float),
        sa.Column("price_rating", sa.Float),
        sa.Column("satisfaction_rating", sa.Float),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("age", sa.String(20)),
        sa.Column("review_comment", sa.Text),
        sa.Column("improvement_points", sa.Text),
        sa.Column("improvement_points_response", sa.Text),
        sa.Column("improvement_points_responded_at", sa.DateTime(timezone=True)),
        *_request_meta(),
        _created_at(),
    )
    op.create_index("ix_reviews_school_id", "reviews", ["school_id"])
    op.create_index("ix_reviews_status", "reviews", ["status"])
    op.create_index("ix_reviews_ip_hash", "reviews", ["ip_hash"])
    op.create_index("ix_reviews_created_at", "reviews", ["created_at"])

    op.create_table(
        "clicks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("offer_id", sa.String(100), nullable=False),
        sa.Column("click_id", sa.String(64), nullable=False, unique=True),
        sa.Column("url", sa.Text, nullable=False),
        *_request_meta(),
        _created_at(),
    )
    op.create_index("ix_clicks_offer_id", "clicks", ["offer_id"])
    op.create_index("ix_clicks_ip_hash", "clicks", ["ip_hash"])
    op.create_index("ix_clicks_created_at", "clicks", ["created_at"])

    op.create_table(
        "conversions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("offer_id", sa.String(100), nullable=False),
        sa.Column("student_id", sa.String(256)),
        sa.Column("student_id_hash", sa.String(64)),
        sa.Column("event_id", sa.String(128), unique=True),
        sa.Column("client_ts_ms", sa.BigInteger),
        sa.Column("risk", sa.JSON),
        sa.Column("review_comment", sa.Text),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("reward", sa.Float),
        sa.Column("payout", sa.Float),
        sa.Column("amount", sa.Float),
        sa.Column("commission", sa.Float),
        sa.Column("country", sa.String(8)),
        sa.Column("accept_language", sa.Text),
        sa.Column("origin", sa.Text),
        sa.Column("page_url", sa.Text),
        sa.Column("cf_ray", sa.String(100)),
        sa.Column("request_id", sa.String(100)),
        sa.Column("request_headers", sa.JSON),
        *_request_meta(),
        _created_at(),
    )
    op.create_index("ix_conversions_offer_id", "conversions", ["offer_id"])
    op.create_index("ix_conversions_status", "conversions", ["status"])
    op.create_index("ix_conversions_ip_hash", "conversions", ["ip_hash"])
    op.create_index("ix_conversions_created_at", "conversions", ["created_at"])

    op.create_table(
        "campaign_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("school_id", sa.String(100), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("old_campaign_data", sa.JSON),
        sa.Column("new_campaign_data", sa.JSON),
        sa.Column("approved_by", sa.String(100)),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        sa.Column("slack_message_ts", sa.String(50)),
        sa.Column("source_url", sa.Text),
        _created_at(),
    )
    op.create_index("ix_campaign_logs_school_id", "campaign_logs", ["school_id"])
    op.create_index("ix_campaign_logs_created_at", "campaign_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("campaign_logs")
    op.drop_table("conversions")
    op.drop_table("clicks")
    op.drop_table("reviews")
    op.drop_table("school_overrides")
