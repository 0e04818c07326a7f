"""clients and client_integrations

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_SECTIONS = (
    "metrics",
    "requests",
    "campaigns",
    "assets",
    "huddles",
    "social_posts",
    "reviews",
    "positive_themes",
    "negative_themes",
    "quick_links",
)


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("portal_token", sa.String(64), nullable=False),
        sa.Column("location", sa.String(255)),
        sa.Column("tagline", sa.String(500)),
        sa.Column("logo_url", sa.String(1000)),
        sa.Column("brand_color", sa.String(20)),
        sa.Column("brand_theme", sa.JSON),
        sa.Column("overall_health", sa.String(20)),
        sa.Column("health_summary", sa.Text),
        sa.Column("top_issue", sa.Text),
        sa.Column("action_needed", sa.Text),
        sa.Column("next_huddle", sa.String(255)),
        *[sa.Column(name, sa.JSON) for name in _SECTIONS],
        sa.Column("raw_metrics", sa.JSON),
        sa.Column("metrics_narrative", sa.Text),
        sa.Column("weekly_vibe", sa.Text),
        sa.Column("recent_reviews", sa.JSON),
        sa.Column("guest_happiness", sa.JSON),
        sa.Column("last_sync_at", sa.DateTime),
        sa.Column("sync_status", sa.String(20), nullable=False, server_default="idle"),
        sa.Column("created_at", sa.DateTime),
        sa.Column("updated_at", sa.DateTime),
        sa.Column("last_accessed_at", sa.DateTime),
    )
    op.create_index("ix_clients_portal_token", "clients", ["portal_token"], unique=True)
    op.create_index("ix_clients_sync_status", "clients", ["sync_status"])

    op.create_table(
        "client_integrations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "client_id",
            sa.Integer,
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("config", sa.Text, nullable=False),
        sa.Column("enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_synced_at", sa.DateTime),
        sa.Column("sync_error", sa.String(1000)),
        sa.Column("created_at", sa.DateTime),
        sa.Column("updated_at", sa.DateTime),
        sa.UniqueConstraint("client_id", "provider", name="uq_client_integration_provider"),
    )
    op.create_index("ix_client_integrations_client_id", "client_integrations", ["client_id"])


def downgrade() -> None:
    op.drop_table("client_integrations")
    op.drop_table("clients")
